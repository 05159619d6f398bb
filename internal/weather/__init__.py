"""
Weather Orchestration Package

Fetch-and-cache coordination for calendar weather: cache store interface
and in-memory store, orchestrator, request sequencing and caller session.
"""

from .cache_interface import WeatherCacheStoreInterface
from .dict_cache import DictWeatherCacheStore
from .models import (
    Coordinates,
    RequestState,
    WeatherCacheRecord,
    WeatherError,
    WeatherErrorKind,
    WeatherResult,
    WeatherSnapshot,
    WeatherStorageError,
)
from .orchestrator import WeatherOrchestrator, makeCacheKey
from .sequencer import RequestSequencer
from .session import WeatherSession

__all__ = [
    # Models
    "Coordinates",
    "RequestState",
    "WeatherCacheRecord",
    "WeatherError",
    "WeatherErrorKind",
    "WeatherResult",
    "WeatherSnapshot",
    "WeatherStorageError",
    # Cache stores
    "WeatherCacheStoreInterface",
    "DictWeatherCacheStore",
    # Orchestration
    "WeatherOrchestrator",
    "makeCacheKey",
    "RequestSequencer",
    "WeatherSession",
]
