"""
Weather orchestrator: decides between cached and remote weather data

Given a calendar date and coordinates the orchestrator checks the cache
store, fetches One Call data when the cached record is missing or stale,
flattens the response into a cache record and returns a normalized
snapshot. Expected failures are returned as WeatherResult, never raised.
"""

import datetime
import json
import logging
import math
from typing import Any, List, Optional

from dateutil import tz

import lib.utils as utils
from lib.openweathermap.interface import GeocodingClientInterface, OpenWeatherMapError, WeatherClientInterface
from lib.openweathermap.models import DailyWeather, OneCallResponse

from .cache_interface import WeatherCacheStoreInterface
from .models import (
    Coordinates,
    WeatherCacheRecord,
    WeatherErrorKind,
    WeatherResult,
    WeatherSnapshot,
)

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS_WINDOW = 60 * 60  # 1 hour
DEFAULT_RETENTION_WINDOW = 7 * 24 * 60 * 60  # 7 days
DEFAULT_PAST_DAYS = 5
DEFAULT_FUTURE_DAYS = 7


def makeCacheKey(date: datetime.date, lat: float, lon: float) -> str:
    """
    Build cache key for given date and location.
    Coordinates are used as-is (no rounding), so only identical
    coordinates share a key.
    """
    return f"{date.isoformat()}_{float(lat)!r}_{float(lon)!r}"


def _isCoordinate(value: Any, limit: float) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and -limit <= value <= limit


class WeatherOrchestrator:
    """
    Fetch-and-cache coordinator for weather data

    Example usage:
        orchestrator = WeatherOrchestrator(
            weatherClient=client,
            geocodingClient=client,
            cacheStore=DictWeatherCacheStore(),
        )
        cityRet = await orchestrator.resolveCity("Warsaw")
        if cityRet.isOk():
            weatherRet = await orchestrator.getWeather(
                datetime.date.today(), cityRet.value["lat"], cityRet.value["lon"]
            )
    """

    def __init__(
        self,
        weatherClient: WeatherClientInterface,
        geocodingClient: GeocodingClientInterface,
        cacheStore: WeatherCacheStoreInterface,
        timezone: Optional[datetime.tzinfo] = None,
        freshnessWindow: int = DEFAULT_FRESHNESS_WINDOW,
        retentionWindow: int = DEFAULT_RETENTION_WINDOW,
        pastDays: int = DEFAULT_PAST_DAYS,
        futureDays: int = DEFAULT_FUTURE_DAYS,
        shortCircuitFresh: bool = True,
        units: str = "metric",
    ):
        """
        Initialize orchestrator

        Args:
            weatherClient: Source of One Call data
            geocodingClient: Source of city coordinates
            cacheStore: Store for flattened weather records
            timezone: Zone used to compute "today" and daily entry dates (default: system local zone)
            freshnessWindow: Max age (seconds) of cached record considered fresh
            retentionWindow: Max age (seconds) of cached record before sweep removes it
            pastDays: How many days back from today are supported
            futureDays: How many days ahead of today are supported
            shortCircuitFresh: Return fresh cached record without remote call.
                If disabled, freshness is only logged and data is always re-fetched
            units: Units passed to weather client
        """
        self.weatherClient = weatherClient
        self.geocodingClient = geocodingClient
        self.cacheStore = cacheStore
        self.timezone = timezone if timezone is not None else tz.tzlocal()
        self.freshnessWindow = freshnessWindow
        self.retentionWindow = retentionWindow
        self.pastDays = pastDays
        self.futureDays = futureDays
        self.shortCircuitFresh = shortCircuitFresh
        self.units = units

    def _localDate(self, dt: datetime.datetime) -> datetime.date:
        return utils.toUtc(dt).astimezone(self.timezone).date()

    def findDailyEntry(self, date: datetime.date, daily: List[DailyWeather]) -> Optional[DailyWeather]:
        """Find daily entry which falls on given local date"""
        for entry in daily:
            entryDate = self._localDate(datetime.datetime.fromtimestamp(entry["dt"], tz=datetime.timezone.utc))
            if entryDate == date:
                return entry
        return None

    def buildCacheRecord(
        self,
        key: str,
        date: datetime.date,
        response: OneCallResponse,
        lastUpdated: int,
    ) -> Optional[WeatherCacheRecord]:
        """
        Flatten One Call response into cache record

        Max/min temperatures are taken from daily entry matching the date,
        falling back to current temperature for both if there is none.

        Returns:
            WeatherCacheRecord or None if response has no current conditions
        """
        current = response["current"]
        if current is None:
            return None

        dailyEntry = self.findDailyEntry(date, response["daily"])
        if dailyEntry is not None:
            tempMax = dailyEntry["temp_max"]
            tempMin = dailyEntry["temp_min"]
        else:
            tempMax = tempMin = current["temp"]

        return {
            "key": key,
            "date": date.isoformat(),
            "temp_max": tempMax,
            "temp_min": tempMin,
            "description": current["weather_description"],
            "icon": current["weather_icon"],
            "hourly_json": utils.jsonDumps(response["hourly"]),
            "daily_json": utils.jsonDumps(response["daily"]),
            "current_json": utils.jsonDumps(current),
            "timezone": response["timezone"],
            "last_updated": lastUpdated,
        }

    def snapshotFromRecord(self, record: WeatherCacheRecord) -> WeatherSnapshot:
        """
        Deserialize cached record into snapshot

        Raises:
            ValueError: If stored JSON is malformed
        """
        currentJson = record.get("current_json")
        return {
            "current": json.loads(currentJson) if currentJson else None,
            "hourly": json.loads(record["hourly_json"] or "[]"),
            "daily": json.loads(record["daily_json"] or "[]"),
            "timezone": record.get("timezone") or "",
            "from_cache": True,
        }

    def _validateRequest(self, date: Any, lat: Any, lon: Any) -> Optional[str]:
        if isinstance(date, datetime.datetime) or not isinstance(date, datetime.date):
            return f"date must be a calendar date, got {type(date).__name__}"
        if not _isCoordinate(lat, 90):
            return f"latitude must be a finite number in [-90, 90], got {lat!r}"
        if not _isCoordinate(lon, 180):
            return f"longitude must be a finite number in [-180, 180], got {lon!r}"
        return None

    async def getWeather(
        self,
        date: datetime.date,
        lat: float,
        lon: float,
        now: Optional[datetime.datetime] = None,
    ) -> WeatherResult[WeatherSnapshot]:
        """
        Get weather snapshot for date and location

        Args:
            date: Calendar date in configured timezone
            lat: Latitude
            lon: Longitude
            now: Current moment (default: current UTC time, naive is treated as UTC)

        Returns:
            WeatherResult with WeatherSnapshot or error of kind
            INVALID_ARGUMENT, UNSUPPORTED, OUT_OF_RANGE or REMOTE_ERROR
        """
        validationError = self._validateRequest(date, lat, lon)
        if validationError is not None:
            logger.warning(f"Invalid weather request: {validationError}")
            return WeatherResult.failure(WeatherErrorKind.INVALID_ARGUMENT, validationError)

        now = utils.toUtc(now) if now is not None else utils.nowUtc()
        nowMs = utils.toEpochMillis(now)
        key = makeCacheKey(date, lat, lon)

        record: Optional[WeatherCacheRecord] = None
        try:
            record = await self.cacheStore.get(key)
        except Exception as e:
            logger.error(f"Failed to read cache entry {key}, treating as miss: {e}")

        if record is not None:
            ageMs = nowMs - record["last_updated"]
            if ageMs < self.freshnessWindow * 1000:
                if self.shortCircuitFresh:
                    try:
                        logger.debug(f"Fresh cache hit for {key} (age {ageMs}ms)")
                        return WeatherResult.ok(self.snapshotFromRecord(record))
                    except (ValueError, TypeError, KeyError) as e:
                        logger.error(f"Broken cache entry {key}, re-fetching: {e}")
                else:
                    logger.debug(f"Cache entry {key} is fresh (age {ageMs}ms), re-fetching anyway")
            else:
                logger.debug(f"Cache entry {key} is stale (age {ageMs}ms)")

        today = self._localDate(now)
        if date < today - datetime.timedelta(days=self.pastDays):
            logger.warning(f"Historical weather for {date} is not supported (today is {today})")
            return WeatherResult.failure(
                WeatherErrorKind.UNSUPPORTED,
                f"Weather older than {self.pastDays} days is not supported",
            )
        if date > today + datetime.timedelta(days=self.futureDays):
            logger.warning(f"Weather for {date} is too far in the future (today is {today})")
            return WeatherResult.failure(
                WeatherErrorKind.OUT_OF_RANGE,
                f"Forecast is available only {self.futureDays} days ahead",
            )

        try:
            response = await self.weatherClient.fetchOneCall(lat, lon, units=self.units)
        except OpenWeatherMapError as e:
            logger.error(f"Failed to fetch weather for {lat}, {lon}: {e}")
            return WeatherResult.failure(WeatherErrorKind.REMOTE_ERROR, str(e), cause=e)
        except Exception as e:
            logger.error(f"Unexpected error while fetching weather for {lat}, {lon}: {e}")
            logger.exception(e)
            return WeatherResult.failure(WeatherErrorKind.REMOTE_ERROR, f"Unexpected error: {e}", cause=e)

        newRecord = self.buildCacheRecord(key, date, response, nowMs)
        if newRecord is None:
            logger.warning(f"Weather response for {lat}, {lon} has no current conditions, not caching")
        else:
            try:
                await self.cacheStore.put(key, newRecord)
            except Exception as e:
                logger.error(f"Failed to store cache entry {key}: {e}")

        return WeatherResult.ok(
            {
                "current": response["current"],
                "hourly": response["hourly"],
                "daily": response["daily"],
                "timezone": response["timezone"],
                "from_cache": False,
            }
        )

    async def resolveCity(self, name: str) -> WeatherResult[Coordinates]:
        """
        Resolve city name to coordinates

        Returns:
            WeatherResult with Coordinates or error of kind
            INVALID_ARGUMENT, NOT_FOUND or REMOTE_ERROR
        """
        if not isinstance(name, str) or not name.strip():
            return WeatherResult.failure(WeatherErrorKind.INVALID_ARGUMENT, "City name is empty")

        query = name.strip()
        try:
            results = await self.geocodingClient.search(query, limit=1)
        except Exception as e:
            logger.error(f"Failed to resolve city {query}: {e}")
            return WeatherResult.failure(WeatherErrorKind.REMOTE_ERROR, str(e), cause=e)

        if not results:
            logger.info(f"City not found: {query}")
            return WeatherResult.failure(WeatherErrorKind.NOT_FOUND, f"City not found: {query}")

        hit = results[0]
        return WeatherResult.ok(
            {
                "lat": hit["lat"],
                "lon": hit["lon"],
                "name": hit["name"],
                "country": hit.get("country"),
                "state": hit.get("state"),
            }
        )

    async def sweep(self, now: Optional[datetime.datetime] = None) -> None:
        """Delete cached records older than retention window"""
        now = utils.toUtc(now) if now is not None else utils.nowUtc()
        thresholdMs = utils.toEpochMillis(now) - self.retentionWindow * 1000
        try:
            deleted = await self.cacheStore.deleteOlderThan(thresholdMs)
            logger.info(f"Cache sweep removed {deleted} weather records")
        except Exception as e:
            logger.error(f"Cache sweep failed: {e}")
