"""
Database-backed weather cache store

This module provides a concrete implementation of the WeatherCacheStoreInterface
using the project's DatabaseWrapper for persistent caching. SQLite calls run
in worker threads so the event loop is never blocked.
"""

import asyncio
import logging
import sqlite3
from typing import Optional

from internal.weather.cache_interface import WeatherCacheStoreInterface
from internal.weather.models import WeatherCacheRecord, WeatherStorageError

from .wrapper import DatabaseWrapper

logger = logging.getLogger(__name__)


class DatabaseWeatherCacheStore(WeatherCacheStoreInterface):
    """Database-backed weather record store"""

    def __init__(self, db: DatabaseWrapper):
        """
        Initialize store with database wrapper

        Args:
            db: DatabaseWrapper instance from internal.database.wrapper
        """
        self.db = db

    async def get(self, key: str) -> Optional[WeatherCacheRecord]:
        try:
            entry = await asyncio.to_thread(self.db.getWeatherCacheEntry, key)
        except (sqlite3.Error, ValueError) as e:
            raise WeatherStorageError(f"Failed to get cache entry {key}: {e}") from e

        if entry is None:
            return None
        return {
            "key": entry["key"],
            "date": entry["date"],
            "temp_max": float(entry["temp_max"]),
            "temp_min": float(entry["temp_min"]),
            "description": entry["description"],
            "icon": entry["icon"],
            "hourly_json": entry["hourly_json"],
            "daily_json": entry["daily_json"],
            "current_json": entry["current_json"],
            "timezone": entry["timezone"],
            "last_updated": int(entry["last_updated"]),
        }

    async def put(self, key: str, record: WeatherCacheRecord) -> None:
        entry = dict(record)
        entry["key"] = key
        try:
            await asyncio.to_thread(self.db.setWeatherCacheEntry, entry)  # type: ignore[arg-type]
        except (sqlite3.Error, ValueError) as e:
            raise WeatherStorageError(f"Failed to set cache entry {key}: {e}") from e

    async def deleteOlderThan(self, thresholdMs: int) -> int:
        try:
            deleted = await asyncio.to_thread(self.db.deleteWeatherCacheOlderThan, thresholdMs)
        except (sqlite3.Error, ValueError) as e:
            raise WeatherStorageError(f"Failed to delete old cache entries: {e}") from e

        logger.debug(f"Deleted {deleted} weather cache entries older than {thresholdMs}")
        return deleted
