"""
Calendar Weather - weather for a calendar date with TOML configuration and SQLite cache.
Console front-end wiring configuration, database, OpenWeatherMap client and weather session.
"""

import argparse
import asyncio
import datetime
import json
import logging
import os
import sys
from typing import List, Optional

from dateutil import parser as dateParser

from internal.config.manager import ConfigManager
from internal.database.manager import DatabaseManager
from internal.database.weather_cache import DatabaseWeatherCacheStore
from internal.weather import RequestState, WeatherOrchestrator, WeatherSession
from lib.logging_utils import initLogging
from lib.openweathermap import OpenWeatherMapClient

# Configure basic logging first
logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO)
# set higher logging level for httpx to avoid all GET requests being logged
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

HOURLY_ENTRIES_TO_SHOW = 6
HELP_TEXT = """Commands:
  city <name>       search city and show weather
  date <date>       select date (e.g. 2024-06-01, "june 3")
  next / prev       move selected date by one month
  refresh           re-fetch weather
  quit              exit"""


def parseDate(value: str) -> datetime.date:
    """Parse user-provided date, argparse type"""
    try:
        return dateParser.parse(value).date()
    except (ValueError, OverflowError) as e:
        raise argparse.ArgumentTypeError(f"Invalid date: {value}") from e


def formatSession(session: WeatherSession) -> str:
    """Render session state as text"""
    city = session.coordinates["name"] if session.coordinates else session.cityName or "-"
    lines = [f"=== {city}, {session.selectedDate.isoformat()} ==="]

    match session.state:
        case RequestState.IDLE:
            lines.append("No city selected")
        case RequestState.LOADING:
            lines.append("Loading...")
        case RequestState.ERROR:
            lines.append(f"Error: {session.error.message if session.error else 'unknown error'}")
        case RequestState.SUCCESS:
            snapshot = session.snapshot
            if snapshot is None:
                lines.append("No weather data")
                return "\n".join(lines)

            source = "cache" if snapshot["from_cache"] else "OpenWeatherMap"
            current = snapshot["current"]
            if current is not None:
                lines.append(
                    f"Now: {current['temp']:.1f}° (feels like {current['feels_like']:.1f}°), "
                    f"{current['weather_description']}, humidity {current['humidity']}%, "
                    f"wind {current['wind_speed']:.1f} m/s"
                )

            dailyEntry = session.orchestrator.findDailyEntry(session.selectedDate, snapshot["daily"])
            if dailyEntry is not None:
                lines.append(
                    f"Day: {dailyEntry['temp_min']:.1f}°..{dailyEntry['temp_max']:.1f}°, "
                    f"{dailyEntry['weather_description']}, precipitation {dailyEntry['pop'] * 100:.0f}%"
                )
                if dailyEntry["summary"]:
                    lines.append(dailyEntry["summary"])

            for hourly in snapshot["hourly"][:HOURLY_ENTRIES_TO_SHOW]:
                hour = datetime.datetime.fromtimestamp(hourly["dt"], tz=session.orchestrator.timezone)
                lines.append(f"  {hour:%H:%M} {hourly['temp']:5.1f}° {hourly['weather_description']}")

            lines.append(f"(source: {source})")

    return "\n".join(lines)


class CalendarWeatherApp:
    """Main application that coordinates all components."""

    def __init__(
        self,
        configPath: str = "config.toml",
        configDirs: Optional[List[str]] = None,
        city: Optional[str] = None,
        date: Optional[datetime.date] = None,
    ):
        """Initialize application with all components."""
        # Initialize configuration
        self.configManager = ConfigManager(configPath, configDirs)

        # Initialize logging with config
        initLogging(self.configManager.getLoggingConfig())

        # Initialize database
        self.databaseManager = DatabaseManager(self.configManager.getDatabaseConfig())
        self.cacheStore = DatabaseWeatherCacheStore(self.databaseManager.getDatabase())

        owmConfig = self.configManager.getOpenWeatherMapConfig()
        self.client = OpenWeatherMapClient(
            apiKey=self.configManager.getApiKey(),
            requestTimeout=int(owmConfig.get("request-timeout", 10)),
            defaultLanguage=owmConfig.get("language"),
        )

        weatherConfig = self.configManager.getWeatherConfig()
        self.orchestrator = WeatherOrchestrator(
            weatherClient=self.client,
            geocodingClient=self.client,
            cacheStore=self.cacheStore,
            timezone=self.configManager.getTimezone(),
            freshnessWindow=int(weatherConfig.get("freshness-window", 60 * 60)),
            retentionWindow=int(weatherConfig.get("retention-window", 7 * 24 * 60 * 60)),
            pastDays=int(weatherConfig.get("past-days", 5)),
            futureDays=int(weatherConfig.get("future-days", 7)),
            shortCircuitFresh=bool(weatherConfig.get("short-circuit-fresh", True)),
            units=owmConfig.get("units", "metric"),
        )

        self.session = WeatherSession(
            self.orchestrator,
            defaultCity=city or self.configManager.getApplicationConfig().get("default-city"),
            selectedDate=date,
        )

    async def handleCommand(self, line: str) -> bool:
        """
        Handle single console command

        Returns:
            False if application should exit, True otherwise
        """
        command, _, argument = line.strip().partition(" ")
        argument = argument.strip()

        match command.lower():
            case "":
                return True
            case "quit" | "exit" | "q":
                return False
            case "city":
                await self.session.searchCity(argument)
            case "date":
                try:
                    await self.session.selectDate(parseDate(argument))
                except argparse.ArgumentTypeError as e:
                    print(e)
                    return True
            case "next":
                await self.session.nextMonth()
            case "prev":
                await self.session.previousMonth()
            case "refresh":
                await self.session.refresh()
            case _:
                print(HELP_TEXT)
                return True

        print(formatSession(self.session))
        return True

    async def _run(self, interactive: bool) -> None:
        await self.session.start()
        print(formatSession(self.session))

        if not interactive:
            return

        print(HELP_TEXT)
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            if not await self.handleCommand(line):
                break

    def run(self, interactive: bool = False) -> None:
        """Load weather for default city and optionally start interactive loop."""
        try:
            asyncio.run(self._run(interactive))
        finally:
            self.databaseManager.getDatabase().close()


def parse_arguments():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Calendar Weather - weather for a calendar date")
    parser.add_argument(
        "-c",
        "--config",
        default="config.toml",
        help="Path to configuration file (default: config.toml)",
    )
    parser.add_argument(
        "--config-dir",
        action="append",
        help="Directory to search for .toml config files recursively (can be specified multiple times)",
    )
    parser.add_argument(
        "--city",
        help="City to show weather for (default: application.default-city from config)",
    )
    parser.add_argument(
        "--date",
        type=parseDate,
        help="Date to show weather for (default: today)",
    )
    parser.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="Start interactive console after showing weather",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Pretty-print loaded configuration and exit",
    )
    args = parser.parse_args()
    args.config = os.path.abspath(args.config)

    if args.config_dir:
        args.config_dir = [os.path.abspath(dirPath) for dirPath in args.config_dir]

    return args


def prettyPrintConfig(configManager: ConfigManager):
    """Pretty-print the loaded configuration, hiding the API key"""
    config = json.loads(json.dumps(configManager.config, default=str))
    if "api-key" in config.get("openweathermap", {}):
        config["openweathermap"]["api-key"] = "***"

    print("=== Calendar Weather Configuration ===")
    print(json.dumps(config, indent=2, ensure_ascii=False, sort_keys=True))


def main():
    """Main entry point."""
    args = parse_arguments()

    try:
        if args.print_config:
            prettyPrintConfig(ConfigManager(args.config, args.config_dir))
            sys.exit(0)

        app = CalendarWeatherApp(
            configPath=args.config,
            configDirs=args.config_dir,
            city=args.city,
            date=args.date,
        )
        app.run(interactive=args.interactive)
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    except Exception as e:
        logger.error(f"Application crashed: {e}")
        logger.exception(e)
        sys.exit(1)


if __name__ == "__main__":
    main()
