"""
Simple dictionary-based weather cache store

This module provides a basic in-memory store using Python dictionaries.
Useful for testing and for running without a database.
"""

import logging
from typing import Dict, Optional

from .cache_interface import WeatherCacheStoreInterface
from .models import WeatherCacheRecord

logger = logging.getLogger(__name__)


class DictWeatherCacheStore(WeatherCacheStoreInterface):
    """In-memory weather record store"""

    def __init__(self):
        self.records: Dict[str, WeatherCacheRecord] = {}

    async def get(self, key: str) -> Optional[WeatherCacheRecord]:
        record = self.records.get(key)
        if record is None:
            logger.debug(f"Cache miss for key: {key}")
            return None
        logger.debug(f"Cache hit for key: {key}")
        return record.copy()

    async def put(self, key: str, record: WeatherCacheRecord) -> None:
        self.records[key] = record.copy()
        logger.debug(f"Stored weather record for key: {key}")

    async def deleteOlderThan(self, thresholdMs: int) -> int:
        expiredKeys = [key for key, record in self.records.items() if record["last_updated"] < thresholdMs]
        for key in expiredKeys:
            del self.records[key]

        if expiredKeys:
            logger.debug(f"Removed {len(expiredKeys)} expired weather records")
        return len(expiredKeys)

    def clear(self) -> None:
        """Clear all cached data"""
        self.records.clear()

    def __len__(self) -> int:
        return len(self.records)
