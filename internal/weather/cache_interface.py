"""
Abstract cache interface for weather records

All weather cache store implementations must follow this interface.
Implementations raise WeatherStorageError on storage failure instead of
hiding it, the orchestrator decides what a failure means.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .models import WeatherCacheRecord


class WeatherCacheStoreInterface(ABC):
    """Abstract interface for weather record storage"""

    @abstractmethod
    async def get(self, key: str) -> Optional[WeatherCacheRecord]:
        """
        Get cached record by key

        Args:
            key: Cache key ("<ISO date>_<lat>_<lon>")

        Returns:
            Stored record or None if there is no record for key

        Raises:
            WeatherStorageError: If storage can't be read
        """
        pass

    @abstractmethod
    async def put(self, key: str, record: WeatherCacheRecord) -> None:
        """
        Store record, replacing existing one with same key

        Raises:
            WeatherStorageError: If storage can't be written
        """
        pass

    @abstractmethod
    async def deleteOlderThan(self, thresholdMs: int) -> int:
        """
        Delete all records with last_updated strictly less than threshold

        Args:
            thresholdMs: Threshold in epoch milliseconds

        Returns:
            Number of deleted records

        Raises:
            WeatherStorageError: If storage can't be written
        """
        pass
