"""
Migration versions package

This package provides automatic migration discovery functionality.
"""

import importlib
import logging
import os
import re
from pathlib import Path
from typing import List, Optional, Type

from ..base import BaseMigration

logger = logging.getLogger(__name__)

MIGRATION_FILE_RE = re.compile(r"migration_(\d+)_.+\.py$")


def discoverMigrations() -> List[Type[BaseMigration]]:
    """
    Discover all migrations in versions directory

    Returns:
        List of migration classes sorted by version number
    """
    migrations = []
    versionsDir = Path(__file__).parent

    # Find all migration files
    migrationFiles = [f for f in os.listdir(versionsDir) if MIGRATION_FILE_RE.match(f)]

    # Sort by version number
    migrationFiles.sort(key=lambda f: int(MIGRATION_FILE_RE.match(f).group(1)))  # pyright: ignore[reportOptionalMemberAccess]

    for filename in migrationFiles:
        migrationClass = _importMigrationModule(filename)
        if migrationClass:
            migrations.append(migrationClass)

    logger.info(f"Discovered {len(migrations)} migrations")
    return migrations


def _importMigrationModule(filename: str) -> Optional[Type[BaseMigration]]:
    """
    Import a single migration module and return its class

    Args:
        filename: Migration filename (e.g., "migration_001_weather_cache.py")

    Returns:
        Migration class or None if module doesn't provide a valid one
    """
    moduleName = filename[:-3]
    module = importlib.import_module(f".{moduleName}", package=__name__)

    # Check if getMigration function exists
    if not hasattr(module, "getMigration"):
        logger.warning(f"Migration {filename} missing getMigration() function")
        return None

    migrationClass = module.getMigration()

    # Validate it's a proper migration class
    if not isinstance(migrationClass, type) or not issubclass(migrationClass, BaseMigration):
        logger.error(f"Migration {filename} getMigration() didn't return BaseMigration subclass")
        return None

    # Validate version number
    if not isinstance(getattr(migrationClass, "version", None), int):
        logger.error(f"Migration {filename} missing valid version attribute")
        return None

    logger.debug(f"Loaded migration {migrationClass.version}: {migrationClass.description}")
    return migrationClass


# Auto-discover migrations on import
DISCOVERED_MIGRATIONS = discoverMigrations()

__all__ = ["DISCOVERED_MIGRATIONS", "discoverMigrations"]
