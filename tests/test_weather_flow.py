"""
End-to-end weather flow tests: orchestrator and session on top of the
SQLite cache store with mocked OpenWeatherMap clients.
"""

import datetime

import pytest

import lib.utils as utils
from lib.openweathermap.interface import OpenWeatherMapError

from internal.database.weather_cache import DatabaseWeatherCacheStore
from internal.weather.models import RequestState, WeatherErrorKind
from internal.weather.orchestrator import WeatherOrchestrator, makeCacheKey
from internal.weather.session import WeatherSession

NOW = datetime.datetime(2024, 6, 1, 12, 0, tzinfo=datetime.timezone.utc)
TODAY = datetime.date(2024, 6, 1)
LAT = 52.2297
LON = 21.0122


@pytest.fixture
def databaseStore(testDatabase):
    return DatabaseWeatherCacheStore(testDatabase)


@pytest.fixture
def orchestrator(mockWeatherClient, mockGeocodingClient, databaseStore, utcZone):
    return WeatherOrchestrator(
        weatherClient=mockWeatherClient,
        geocodingClient=mockGeocodingClient,
        cacheStore=databaseStore,
        timezone=utcZone,
    )


@pytest.mark.asyncio
async def testFetchStoresRecordInDatabase(orchestrator, testDatabase):
    """Successful fetch persists flattened record with matched daily temperatures"""
    ret = await orchestrator.getWeather(TODAY, LAT, LON, now=NOW)

    assert ret.isOk()
    assert ret.value is not None
    assert ret.value["from_cache"] is False

    entry = testDatabase.getWeatherCacheEntry(makeCacheKey(TODAY, LAT, LON))
    assert entry is not None
    assert entry["date"] == "2024-06-01"
    assert entry["temp_max"] == 25.0
    assert entry["temp_min"] == 12.0
    assert entry["description"] == "clear sky"
    assert entry["icon"] == "01d"
    assert entry["timezone"] == "UTC"
    assert entry["last_updated"] == utils.toEpochMillis(NOW)


@pytest.mark.asyncio
async def testFreshRecordIsServedFromDatabase(orchestrator, mockWeatherClient):
    """Second request within freshness window does not hit remote API"""
    await orchestrator.getWeather(TODAY, LAT, LON, now=NOW)
    ret = await orchestrator.getWeather(TODAY, LAT, LON, now=NOW + datetime.timedelta(minutes=30))

    assert ret.isOk()
    assert ret.value is not None
    assert ret.value["from_cache"] is True
    assert ret.value["current"] is not None
    assert ret.value["current"]["temp"] == 20.0
    assert len(ret.value["daily"]) == 2
    assert ret.value["timezone"] == "UTC"
    assert mockWeatherClient.fetchOneCall.await_count == 1


@pytest.mark.asyncio
async def testStaleRecordIsReplaced(orchestrator, mockWeatherClient, testDatabase, sampleOneCallResponse):
    """Stale record triggers re-fetch and is replaced wholesale"""
    await orchestrator.getWeather(TODAY, LAT, LON, now=NOW)

    sampleOneCallResponse["current"]["weather_description"] = "light rain"
    later = NOW + datetime.timedelta(hours=2)
    ret = await orchestrator.getWeather(TODAY, LAT, LON, now=later)

    assert ret.isOk()
    assert mockWeatherClient.fetchOneCall.await_count == 2
    entry = testDatabase.getWeatherCacheEntry(makeCacheKey(TODAY, LAT, LON))
    assert entry is not None
    assert entry["description"] == "light rain"
    assert entry["last_updated"] == utils.toEpochMillis(later)


@pytest.mark.asyncio
async def testRemoteFailureLeavesDatabaseUntouched(orchestrator, mockWeatherClient, testDatabase):
    mockWeatherClient.fetchOneCall.side_effect = OpenWeatherMapError("Rate limit exceeded", statusCode=429)

    ret = await orchestrator.getWeather(TODAY, LAT, LON, now=NOW)

    assert not ret.isOk()
    assert ret.error is not None
    assert ret.error.kind == WeatherErrorKind.REMOTE_ERROR
    assert testDatabase.getWeatherCacheEntry(makeCacheKey(TODAY, LAT, LON)) is None


@pytest.mark.asyncio
async def testSweepRemovesOnlyExpiredRecords(orchestrator, testDatabase):
    """Records older than retention window are purged, newer ones survive"""
    oldDate = TODAY - datetime.timedelta(days=3)
    await orchestrator.getWeather(oldDate, LAT, LON, now=NOW - datetime.timedelta(days=8))
    await orchestrator.getWeather(TODAY, LAT, LON, now=NOW - datetime.timedelta(days=1))

    await orchestrator.sweep(now=NOW)

    assert testDatabase.getWeatherCacheEntry(makeCacheKey(oldDate, LAT, LON)) is None
    assert testDatabase.getWeatherCacheEntry(makeCacheKey(TODAY, LAT, LON)) is not None


@pytest.mark.asyncio
async def testSessionStartsWithDefaultCity(orchestrator, mockWeatherClient, testDatabase):
    """Session resolves default city and loads today's weather into the cache"""
    session = WeatherSession(orchestrator, defaultCity="Warsaw")

    await session.start()

    assert session.coordinates is not None
    assert session.coordinates["name"] == "Warsaw"
    assert session.state == RequestState.SUCCESS
    assert session.snapshot is not None
    assert session.snapshot["from_cache"] is False
    mockWeatherClient.fetchOneCall.assert_awaited_once()
    assert testDatabase.getWeatherCacheEntry(makeCacheKey(session.selectedDate, LAT, LON)) is not None

    # Same day again is served from the database
    await session.refresh()
    assert session.state == RequestState.SUCCESS
    assert session.snapshot is not None
    assert session.snapshot["from_cache"] is True
    mockWeatherClient.fetchOneCall.assert_awaited_once()
