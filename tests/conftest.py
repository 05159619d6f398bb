"""
Pytest configuration and common fixtures for calendar weather tests.

This module provides shared fixtures for testing the orchestrator together
with real storage backends. All fixtures follow camelCase naming convention.
"""

import datetime
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock, Mock

import pytest
from dateutil import tz

from internal.database.wrapper import DatabaseWrapper
from internal.weather.dict_cache import DictWeatherCacheStore

NOW = datetime.datetime(2024, 6, 1, 12, 0, tzinfo=datetime.timezone.utc)

# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def tempDbPath() -> Generator[str, None, None]:
    """
    Provide path of temporary SQLite database file.

    File database is required when cache store is used, because store
    calls run in worker threads and every thread has its own connection.

    Yields:
        str: Path to database file, removed after test
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        dbPath = f.name
    yield dbPath
    Path(dbPath).unlink(missing_ok=True)


@pytest.fixture
def testDatabase(tempDbPath) -> Generator[DatabaseWrapper, None, None]:
    """
    Provide real DatabaseWrapper with all migrations applied.

    Yields:
        DatabaseWrapper: Initialized database
    """
    db = DatabaseWrapper(tempDbPath)
    yield db
    db.close()


@pytest.fixture
def dictCacheStore() -> DictWeatherCacheStore:
    """Provide empty in-memory cache store"""
    return DictWeatherCacheStore()


# ============================================================================
# Weather API Fixtures
# ============================================================================


@pytest.fixture
def sampleOneCallResponse():
    """
    Provide normalized One Call response for 2024-06-01 in UTC.

    Returns:
        dict: OneCallResponse with current conditions, one hourly and two daily entries
    """
    noon = int(NOW.timestamp())
    return {
        "lat": 52.2297,
        "lon": 21.0122,
        "timezone": "UTC",
        "timezone_offset": 0,
        "current": {
            "dt": noon,
            "temp": 20.0,
            "feels_like": 19.0,
            "pressure": 1013,
            "humidity": 60,
            "uvi": 2.5,
            "wind_speed": 3.0,
            "weather_id": 800,
            "weather_main": "Clear",
            "weather_description": "clear sky",
            "weather_icon": "01d",
        },
        "hourly": [
            {
                "dt": noon,
                "temp": 20.0,
                "feels_like": 19.0,
                "pop": 0.0,
                "weather_id": 800,
                "weather_main": "Clear",
                "weather_description": "clear sky",
                "weather_icon": "01d",
            }
        ],
        "daily": [
            {
                "dt": noon + dayOffset * 86400,
                "summary": "Sunny day",
                "temp_day": 22.0,
                "temp_night": 12.0,
                "temp_eve": 20.0,
                "temp_morn": 14.0,
                "temp_min": 12.0 + dayOffset,
                "temp_max": 25.0 + dayOffset,
                "feels_like_day": 21.0,
                "feels_like_night": 11.0,
                "feels_like_eve": 19.0,
                "feels_like_morn": 13.0,
                "pop": 0.1,
                "weather_id": 800,
                "weather_main": "Clear",
                "weather_description": "clear sky",
                "weather_icon": "01d",
            }
            for dayOffset in range(2)
        ],
    }


@pytest.fixture
def mockWeatherClient(sampleOneCallResponse):
    """
    Provide mocked weather client returning sample One Call response.

    Example:
        async def testFetch(mockWeatherClient):
            mockWeatherClient.fetchOneCall.side_effect = OpenWeatherMapError("down")
    """
    client = Mock()
    client.fetchOneCall = AsyncMock(return_value=sampleOneCallResponse)
    client.fetchHistorical = AsyncMock()
    return client


@pytest.fixture
def mockGeocodingClient():
    """Provide mocked geocoding client resolving any query to Warsaw"""
    client = Mock()
    client.search = AsyncMock(
        return_value=[{"name": "Warsaw", "lat": 52.2297, "lon": 21.0122, "country": "PL", "state": None}]
    )
    return client


@pytest.fixture
def utcZone():
    return tz.UTC
