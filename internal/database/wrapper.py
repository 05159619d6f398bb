"""
Database wrapper for the weather cache.
This wrapper provides an abstraction layer that can be easily replaced
with other database backends in the future.
"""

import datetime
import logging
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import dateutil.parser

from .models import WeatherCacheDict

logger = logging.getLogger(__name__)

MEMORY_DB_PATH = ":memory:"


def convert_timestamp(val: bytes) -> datetime.datetime:
    return dateutil.parser.parse(val.decode("utf-8"))


def adapt_datetime(val: datetime.datetime) -> str:
    """Adapt datetime.datetime to SQLite format string for sqlite3"""
    # Same format as CURRENT_TIMESTAMP
    return val.replace(microsecond=0).strftime("%Y-%m-%d %H:%M:%S")


# Register converters for reading from database
sqlite3.register_converter("timestamp", convert_timestamp)

# Register adapters for writing to database (Python 3.12+ requirement)
sqlite3.register_adapter(datetime.datetime, adapt_datetime)


class DatabaseWrapper:
    """
    A wrapper around SQLite that provides a consistent interface
    that can be easily replaced with other database backends.

    Every thread gets its own connection, opened lazily on first use.
    """

    def __init__(self, dbPath: str, timeout: float = 30.0, readonly: bool = False):
        """
        Initialize database wrapper and run pending migrations

        Args:
            dbPath: Path to SQLite database file
            timeout: Connection timeout in seconds (default: 30.0)
            readonly: Open database in query-only mode, skip schema initialization
        """
        self.dbPath = dbPath
        self.timeout = timeout
        self.readonly = readonly

        # Every connection to plain :memory: is a separate database, threads must share one
        self._connectPath = dbPath
        self._useUri = False
        if dbPath == MEMORY_DB_PATH:
            self._connectPath = f"file:calendar_weather_{uuid.uuid4().hex}?mode=memory&cache=shared"
            self._useUri = True

        self._local = threading.local()
        self._lock = threading.Lock()
        self._allConnections: List[sqlite3.Connection] = []

        logger.info(f"Initializing database wrapper: path={dbPath}, timeout={timeout}, readonly={readonly}")
        self._initDatabase()

    def _getConnection(self, *, readonly: bool = False) -> sqlite3.Connection:
        """
        Get thread-local connection

        Args:
            readonly: Request readonly connection (default: False = writable)

        Raises:
            ValueError: If write access is requested on readonly database
        """
        if not readonly and self.readonly:
            raise ValueError(f"Cannot perform write operation on readonly database {self.dbPath}")

        if not hasattr(self._local, "connection"):
            logger.debug(f"Creating new connection in thread {threading.get_ident()} (path={self.dbPath})")
            connection = sqlite3.connect(
                self._connectPath,
                timeout=self.timeout,
                check_same_thread=False,
                detect_types=sqlite3.PARSE_DECLTYPES,
                uri=self._useUri,
            )
            connection.row_factory = sqlite3.Row

            if self.readonly:
                connection.execute("PRAGMA query_only = ON")

            self._local.connection = connection
            with self._lock:
                self._allConnections.append(connection)

        return self._local.connection

    @contextmanager
    def getCursor(self, *, readonly: bool = False):
        """
        Context manager for database operations

        Args:
            readonly: Request readonly connection (default: False = writable)

        Yields:
            sqlite3.Cursor: Database cursor with auto-commit/rollback
        """
        conn = self._getConnection(readonly=readonly)
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Database operation failed: {e}")
            raise
        finally:
            cursor.close()

    def close(self):
        """Close connections of all threads"""
        with self._lock:
            connections = self._allConnections
            self._allConnections = []

        for connection in connections:
            try:
                connection.close()
            except sqlite3.Error as e:
                logger.error(f"Error closing connection: {e}")

        if hasattr(self._local, "connection"):
            del self._local.connection
        logger.debug(f"Closed {len(connections)} database connections")

    def _initDatabase(self):
        """Initialize database schema and run migrations"""
        if self.readonly:
            logger.info("Skipping DB initialization for readonly database")
            return

        # Import here to avoid circular dependency
        from .migrations import MigrationManager

        # Create settings table (needed before migrations for version tracking)
        with self.getCursor() as cursor:
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """
            )

        migrationManager = MigrationManager(self)
        migrationManager.loadMigrationsFromVersions()
        migrationManager.migrate()
        logger.info("Database initialization complete")

    ###
    # TypedDict validation and conversion helpers
    ###

    def _validateDictIsWeatherCacheDict(self, rowDict: Dict[str, Any]) -> WeatherCacheDict:
        """
        Validate and convert a database row dictionary to WeatherCacheDict.
        This ensures the returned data matches the expected TypedDict structure.
        """
        requiredFields = {
            "key": str,
            "date": str,
            "temp_max": (int, float),
            "temp_min": (int, float),
            "description": str,
            "icon": str,
            "hourly_json": str,
            "daily_json": str,
            "last_updated": int,
        }

        for field, expectedType in requiredFields.items():
            if field not in rowDict:
                logger.error(f"Missing required field '{field}' in database row: {rowDict}")
                raise ValueError(f"Missing required field: {field}")

            if rowDict[field] is not None and not isinstance(rowDict[field], expectedType):
                logger.warning(f"Field '{field}' has type {type(rowDict[field])}, expected {expectedType}")

        # Columns added by later migrations may be NULL for old rows
        rowDict["current_json"] = rowDict.get("current_json") or ""
        rowDict["timezone"] = rowDict.get("timezone") or ""

        return rowDict  # type: ignore

    ###
    # Global Settings manipulation functions
    ###

    def setSetting(self, key: str, value: str) -> bool:
        """
        Set a configuration setting.

        Returns:
            bool: True if successful, False otherwise
        """
        try:
            with self.getCursor() as cursor:
                cursor.execute(
                    """
                    INSERT INTO settings
                        (key, value, created_at, updated_at)
                    VALUES
                        (:key, :value, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
                    ON CONFLICT(key) DO UPDATE SET
                        value = :value,
                        updated_at = CURRENT_TIMESTAMP
                """,
                    {
                        "key": key,
                        "value": value,
                    },
                )
                return True
        except (sqlite3.Error, ValueError) as e:
            logger.error(f"Failed to set setting {key}: {e}")
            return False

    def getSetting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get a configuration setting.

        Args:
            key: Setting key to retrieve
            default: Default value if key not found

        Returns:
            Setting value or default if not found"""
        try:
            with self.getCursor(readonly=True) as cursor:
                cursor.execute("SELECT value FROM settings WHERE key = ?", (key,))
                row = cursor.fetchone()
                return row["value"] if row else default
        except sqlite3.Error as e:
            logger.error(f"Failed to get setting {key}: {e}")
            return default

    def getSettings(self) -> Dict[str, str]:
        """Get all configuration settings."""
        try:
            with self.getCursor(readonly=True) as cursor:
                cursor.execute("SELECT key, value FROM settings")
                return {row["key"]: row["value"] for row in cursor.fetchall()}
        except sqlite3.Error as e:
            logger.error(f"Failed to get settings: {e}")
            return {}

    ###
    # Weather cache
    # Unlike settings, errors are raised: cache store decides what to do with them
    ###

    def getWeatherCacheEntry(self, key: str) -> Optional[WeatherCacheDict]:
        """
        Get weather cache entry by key.

        Returns:
            WeatherCacheDict or None if not found

        Raises:
            sqlite3.Error: On database failure
        """
        with self.getCursor(readonly=True) as cursor:
            cursor.execute(
                """
                SELECT *
                FROM weather_cache
                WHERE key = :key
            """,
                {"key": key},
            )
            row = cursor.fetchone()
            if row:
                return self._validateDictIsWeatherCacheDict(dict(row))
            return None

    def setWeatherCacheEntry(self, entry: WeatherCacheDict) -> None:
        """
        Store weather cache entry, replacing existing one with same key.

        Raises:
            sqlite3.Error: On database failure
        """
        with self.getCursor() as cursor:
            cursor.execute(
                """
                INSERT INTO weather_cache
                    (key, date, temp_max, temp_min, description, icon,
                     hourly_json, daily_json, current_json, timezone, last_updated)
                VALUES
                    (:key, :date, :temp_max, :temp_min, :description, :icon,
                     :hourly_json, :daily_json, :current_json, :timezone, :last_updated)
                ON CONFLICT(key) DO UPDATE SET
                    date = :date,
                    temp_max = :temp_max,
                    temp_min = :temp_min,
                    description = :description,
                    icon = :icon,
                    hourly_json = :hourly_json,
                    daily_json = :daily_json,
                    current_json = :current_json,
                    timezone = :timezone,
                    last_updated = :last_updated
            """,
                dict(entry),
            )

    def deleteWeatherCacheOlderThan(self, thresholdMs: int) -> int:
        """
        Delete weather cache entries updated before threshold.

        Args:
            thresholdMs: Threshold in epoch milliseconds

        Returns:
            Number of deleted entries

        Raises:
            sqlite3.Error: On database failure
        """
        with self.getCursor() as cursor:
            cursor.execute(
                """
                DELETE FROM weather_cache
                WHERE last_updated < :threshold
            """,
                {"threshold": thresholdMs},
            )
            return cursor.rowcount

    def clearWeatherCache(self) -> None:
        """
        Remove all weather cache entries.

        Raises:
            sqlite3.Error: On database failure
        """
        with self.getCursor() as cursor:
            cursor.execute("DELETE FROM weather_cache")
