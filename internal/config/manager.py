"""
Configuration management for Calendar Weather.
"""

import datetime
import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import tomli
from dateutil import tz

import lib.utils as utils

logger = logging.getLogger(__name__)

API_KEY_PLACEHOLDER = "YOUR_API_KEY_HERE"
ENV_VAR_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_-]*)\}")


def replaceMatchToEnv(match: re.Match[str]) -> str:
    """Replace environment variable placeholders with actual values.

    Args:
        match: A regex match object containing the environment variable name.

    Returns:
        str: The value of the environment variable or the original placeholder
             if the variable is not set.
    """
    key = match.group(1)
    return os.getenv(key, match.group(0))


def substituteEnvVars(value: Any) -> Any:
    """Recursively substitute environment variable placeholders in configuration values.

    This function processes strings, dictionaries, and lists to replace placeholders
    in the format ${VAR_NAME} with their corresponding environment variable values.
    Other types are returned unchanged.
    """
    if isinstance(value, str):
        return ENV_VAR_RE.sub(replaceMatchToEnv, value)
    elif isinstance(value, dict):
        return {k: substituteEnvVars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substituteEnvVars(item) for item in value]
    return value


class ConfigManager:
    """Manages configuration loading and validation for Calendar Weather."""

    def __init__(
        self, configPath: str = "config.toml", configDirs: Optional[List[str]] = None, dotEnvFile: str = ".env"
    ):
        """Initialize ConfigManager with config file path and optional config directories."""
        self.config_path = configPath
        self.config_dirs = configDirs or []
        utils.load_dotenv(path=dotEnvFile)
        self.config = substituteEnvVars(self._loadConfig())
        self._validateConfig()

    def _findTomlFilesRecursive(self, directory: str) -> List[Path]:
        """Recursively find all .toml files in a directory."""
        tomlFiles: List[Path] = []
        dirPath = Path(directory)

        if not dirPath.exists():
            logger.warning(f"Config directory {directory} does not exist, skipping")
            return tomlFiles

        if not dirPath.is_dir():
            logger.warning(f"Config path {directory} is not a directory, skipping")
            return tomlFiles

        for tomlFile in dirPath.rglob("*.toml"):
            if tomlFile.is_file():
                tomlFiles.append(tomlFile)
                logger.debug(f"Found config file: {tomlFile}")

        return sorted(tomlFiles)  # Sort for consistent ordering

    def _mergeConfigs(self, baseConfig: Dict[str, Any], newConfig: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge two configuration dictionaries."""
        merged = baseConfig.copy()

        for key, value in newConfig.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._mergeConfigs(merged[key], value)
            else:
                merged[key] = value

        return merged

    def _loadConfig(self) -> Dict[str, Any]:
        """
        Load configuration from TOML file and optional config directories.

        Files found in config directories are merged into the main configuration
        in sorted order, later files override earlier ones. Broken files in
        config directories are skipped.

        Raises:
            SystemExit: If the main configuration file is not found and no config
                        directories are provided, or if the main file can't be parsed.
        """
        configFile = Path(self.config_path)
        hasConfigFile = configFile.exists()
        if not hasConfigFile and not self.config_dirs:
            logger.error(f"Configuration file {self.config_path} not found!")
            sys.exit(1)

        config: Dict[str, Any] = {}
        if hasConfigFile:
            try:
                with open(configFile, "rb") as f:
                    config = tomli.load(f)
            except (OSError, tomli.TOMLDecodeError) as e:
                logger.error(f"Failed to load configuration {self.config_path}: {e}")
                sys.exit(1)
            logger.info(f"Loaded main config from {self.config_path}")

        if self.config_dirs:
            logger.info(f"Scanning {len(self.config_dirs)} config directories for .toml files")

            for configDir in self.config_dirs:
                tomlFiles = self._findTomlFilesRecursive(configDir)
                logger.info(f"Found {len(tomlFiles)} .toml files in {configDir}")

                for tomlFile in tomlFiles:
                    try:
                        with open(tomlFile, "rb") as f:
                            dirConfig = tomli.load(f)
                    except (OSError, tomli.TOMLDecodeError) as e:
                        logger.error(f"Failed to load config file {tomlFile}: {e}")
                        continue

                    config = self._mergeConfigs(config, dirConfig)
                    logger.info(f"Merged config from {tomlFile}")

        logger.info("Configuration loaded and merged successfully")
        return config

    def _validateConfig(self) -> None:
        """
        Validate required configuration.

        Raises:
            SystemExit: If OpenWeatherMap API key is missing
        """
        apiKey = self.getOpenWeatherMapConfig().get("api-key", "")
        if not isinstance(apiKey, str) or not apiKey or ENV_VAR_RE.search(apiKey):
            logger.error("OpenWeatherMap API key not found in configuration!")
            sys.exit(1)

    def get(self, key: str, default=None) -> Any:
        """Get configuration value by key."""
        return self.config.get(key, default)

    def getApplicationConfig(self) -> Dict[str, Any]:
        """Get application configuration (timezone, default-city)."""
        return self.get("application", {})

    def getDatabaseConfig(self) -> Dict[str, Any]:
        """Get database-specific configuration."""
        return self.get("database", {})

    def getLoggingConfig(self) -> Dict[str, Any]:
        """Get logging-specific configuration."""
        return self.get("logging", {})

    def getWeatherConfig(self) -> Dict[str, Any]:
        """
        Get weather orchestration configuration

        Returns:
            Dict with freshness-window, retention-window, past-days,
            future-days and short-circuit-fresh settings
        """
        return self.get("weather", {})

    def getOpenWeatherMapConfig(self) -> Dict[str, Any]:
        """
        Get OpenWeatherMap configuration

        Returns:
            Dict with OpenWeatherMap settings (api-key, request-timeout, language, units)
        """
        return self.get("openweathermap", {})

    def getApiKey(self) -> str:
        """Get OpenWeatherMap API key from configuration."""
        apiKey = self.getOpenWeatherMapConfig().get("api-key", "")
        if apiKey in ["", API_KEY_PLACEHOLDER]:
            logger.error("Please set your OpenWeatherMap API key in config.toml!")
            sys.exit(1)
        return apiKey

    def getTimezone(self) -> datetime.tzinfo:
        """
        Get configured timezone, system local zone if not configured.

        Raises:
            SystemExit: If configured timezone is unknown
        """
        tzName = self.getApplicationConfig().get("timezone")
        if not tzName:
            return tz.tzlocal()

        zone = tz.gettz(tzName)
        if zone is None:
            logger.error(f"Unknown timezone in configuration: {tzName}")
            sys.exit(1)
        return zone
