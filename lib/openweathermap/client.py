"""
OpenWeatherMap Async Client

This module provides the OpenWeatherMapClient class for interacting with
the OpenWeatherMap One Call 3.0 and Geocoding APIs.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from .interface import GeocodingClientInterface, OpenWeatherMapError, WeatherClientInterface
from .models import (
    CurrentWeather,
    DailyWeather,
    GeocodingResult,
    HistoricalDataPoint,
    HistoricalResponse,
    HourlyWeather,
    OneCallResponse,
)

logger = logging.getLogger(__name__)


def _firstCondition(item: Dict[str, Any]) -> Dict[str, Any]:
    """Get first weather condition of response item (API returns a list, usually of one element)"""
    conditions = item.get("weather") or []
    return conditions[0] if conditions else {}


def _parseCurrent(currentData: Dict[str, Any]) -> CurrentWeather:
    weatherInfo = _firstCondition(currentData)
    return {
        "dt": int(currentData.get("dt", 0)),
        "temp": float(currentData.get("temp", 0)),
        "feels_like": float(currentData.get("feels_like", 0)),
        "pressure": int(currentData.get("pressure", 0)),
        "humidity": int(currentData.get("humidity", 0)),
        "uvi": float(currentData.get("uvi", 0)),
        "wind_speed": float(currentData.get("wind_speed", 0)),
        "weather_id": int(weatherInfo.get("id", 0)),
        "weather_main": weatherInfo.get("main", ""),
        "weather_description": weatherInfo.get("description", ""),
        "weather_icon": weatherInfo.get("icon", ""),
    }


def _parseHourly(hourlyItem: Dict[str, Any]) -> HourlyWeather:
    weatherInfo = _firstCondition(hourlyItem)
    return {
        "dt": int(hourlyItem.get("dt", 0)),
        "temp": float(hourlyItem.get("temp", 0)),
        "feels_like": float(hourlyItem.get("feels_like", 0)),
        "pop": float(hourlyItem.get("pop", 0)),
        "weather_id": int(weatherInfo.get("id", 0)),
        "weather_main": weatherInfo.get("main", ""),
        "weather_description": weatherInfo.get("description", ""),
        "weather_icon": weatherInfo.get("icon", ""),
    }


def _parseDaily(dailyItem: Dict[str, Any]) -> DailyWeather:
    weatherInfo = _firstCondition(dailyItem)
    tempData = dailyItem.get("temp", {})
    feelsLikeData = dailyItem.get("feels_like", {})
    return {
        "dt": int(dailyItem.get("dt", 0)),
        "summary": dailyItem.get("summary", ""),
        "temp_day": float(tempData.get("day", 0)),
        "temp_night": float(tempData.get("night", 0)),
        "temp_eve": float(tempData.get("eve", 0)),
        "temp_morn": float(tempData.get("morn", 0)),
        "temp_min": float(tempData.get("min", 0)),
        "temp_max": float(tempData.get("max", 0)),
        "feels_like_day": float(feelsLikeData.get("day", 0)),
        "feels_like_night": float(feelsLikeData.get("night", 0)),
        "feels_like_eve": float(feelsLikeData.get("eve", 0)),
        "feels_like_morn": float(feelsLikeData.get("morn", 0)),
        "pop": float(dailyItem.get("pop", 0)),
        "weather_id": int(weatherInfo.get("id", 0)),
        "weather_main": weatherInfo.get("main", ""),
        "weather_description": weatherInfo.get("description", ""),
        "weather_icon": weatherInfo.get("icon", ""),
    }


def _parseHistoricalPoint(item: Dict[str, Any]) -> HistoricalDataPoint:
    weatherInfo = _firstCondition(item)
    return {
        "dt": int(item.get("dt", 0)),
        "temp": float(item.get("temp", 0)),
        "feels_like": float(item.get("feels_like", 0)),
        "pressure": int(item.get("pressure", 0)),
        "humidity": int(item.get("humidity", 0)),
        "uvi": float(item.get("uvi", 0)),
        "wind_speed": float(item.get("wind_speed", 0)),
        "weather_id": int(weatherInfo.get("id", 0)),
        "weather_main": weatherInfo.get("main", ""),
        "weather_description": weatherInfo.get("description", ""),
        "weather_icon": weatherInfo.get("icon", ""),
    }


class OpenWeatherMapClient(GeocodingClientInterface, WeatherClientInterface):
    """
    Async client for OpenWeatherMap API

    Creates a new HTTP session for each request to support proper concurrent requests.
    The client does not cache anything and does not retry: caching and freshness
    decisions belong to the caller.

    Example usage:
        client = OpenWeatherMapClient(apiKey="your_key")

        # Get coordinates
        locations = await client.search("Warsaw", limit=1)

        # Get weather
        weather = await client.fetchOneCall(52.2297, 21.0122)
    """

    API_BASE_URL = "https://api.openweathermap.org"
    GEOCODING_API = API_BASE_URL + "/geo/1.0/direct"
    WEATHER_API = API_BASE_URL + "/data/3.0/onecall"
    HISTORICAL_API = API_BASE_URL + "/data/3.0/onecall/timemachine"

    def __init__(
        self,
        apiKey: str,
        requestTimeout: int = 10,
        defaultLanguage: Optional[str] = None,
    ):
        """
        Initialize OpenWeatherMap client

        Args:
            apiKey: OpenWeatherMap API key
            requestTimeout: HTTP request timeout (seconds)
            defaultLanguage: Optional language for weather descriptions (e.g. "en", "pl")
        """
        self.apiKey = apiKey
        self.requestTimeout = requestTimeout
        self.defaultLanguage = defaultLanguage

    async def search(self, query: str, limit: int = 1) -> List[GeocodingResult]:
        """
        Get locations by city name

        Uses: https://api.openweathermap.org/geo/1.0/direct

        Args:
            query: City name, optionally "city,state,country"
            limit: Max results (default 1)

        Returns:
            List of GeocodingResult, empty if nothing was found
        """
        params = {"q": query, "limit": limit, "appid": self.apiKey}

        responseData = await self._makeRequest(self.GEOCODING_API, params)
        if not isinstance(responseData, list):
            raise OpenWeatherMapError(f"Unexpected geocoding response type: {type(responseData).__name__}")

        if not responseData:
            logger.info(f"No geocoding results for: {query}")

        try:
            return [
                {
                    "name": item.get("name", ""),
                    "lat": float(item["lat"]),
                    "lon": float(item["lon"]),
                    "country": item.get("country"),
                    "state": item.get("state"),
                }
                for item in responseData
            ]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise OpenWeatherMapError(f"Failed to parse geocoding response: {e}") from e

    async def fetchOneCall(
        self,
        lat: float,
        lon: float,
        exclude: str = "minutely,alerts",
        units: str = "metric",
    ) -> OneCallResponse:
        """
        Get weather data by coordinates

        Uses: https://api.openweathermap.org/data/3.0/onecall

        Args:
            lat: Latitude
            lon: Longitude
            exclude: Comma-separated parts to exclude (default "minutely,alerts")
            units: Units of measurement ("metric", "imperial" or "standard")

        Returns:
            OneCallResponse with current conditions, hourly and daily forecast
        """
        params: Dict[str, Any] = {
            "lat": lat,
            "lon": lon,
            "exclude": exclude,
            "units": units,
            "appid": self.apiKey,
        }
        if self.defaultLanguage:
            params["lang"] = self.defaultLanguage

        responseData = await self._makeRequest(self.WEATHER_API, params)
        if not isinstance(responseData, dict):
            raise OpenWeatherMapError(f"Unexpected weather response type: {type(responseData).__name__}")

        try:
            currentData = responseData.get("current")
            result: OneCallResponse = {
                "lat": float(responseData.get("lat", lat)),
                "lon": float(responseData.get("lon", lon)),
                "timezone": responseData.get("timezone", ""),
                "timezone_offset": int(responseData.get("timezone_offset", 0)),
                "current": _parseCurrent(currentData) if currentData else None,
                "hourly": [_parseHourly(item) for item in responseData.get("hourly") or []],
                "daily": [_parseDaily(item) for item in responseData.get("daily") or []],
            }
        except (TypeError, ValueError, AttributeError) as e:
            raise OpenWeatherMapError(f"Failed to parse weather response: {e}") from e

        logger.debug(
            f"Got weather for {lat}, {lon}: {len(result['hourly'])} hourly, {len(result['daily'])} daily entries"
        )
        return result

    async def fetchHistorical(
        self,
        lat: float,
        lon: float,
        epochSeconds: int,
        units: str = "metric",
    ) -> HistoricalResponse:
        """
        Get historical weather data for given moment

        Uses: https://api.openweathermap.org/data/3.0/onecall/timemachine

        Args:
            lat: Latitude
            lon: Longitude
            epochSeconds: Unix timestamp of requested moment
            units: Units of measurement

        Returns:
            HistoricalResponse with data points for requested moment
        """
        params: Dict[str, Any] = {
            "lat": lat,
            "lon": lon,
            "dt": epochSeconds,
            "units": units,
            "appid": self.apiKey,
        }
        if self.defaultLanguage:
            params["lang"] = self.defaultLanguage

        responseData = await self._makeRequest(self.HISTORICAL_API, params)
        if not isinstance(responseData, dict):
            raise OpenWeatherMapError(f"Unexpected historical response type: {type(responseData).__name__}")

        try:
            return {
                "lat": float(responseData.get("lat", lat)),
                "lon": float(responseData.get("lon", lon)),
                "timezone": responseData.get("timezone", ""),
                "data": [_parseHistoricalPoint(item) for item in responseData.get("data") or []],
            }
        except (TypeError, ValueError, AttributeError) as e:
            raise OpenWeatherMapError(f"Failed to parse historical response: {e}") from e

    async def _makeRequest(self, url: str, params: Dict[str, Any]) -> Any:
        """
        Make HTTP request to OpenWeatherMap API

        Creates a new session for each request to support proper concurrent requests.

        Args:
            url: API endpoint URL
            params: Query parameters (including appid)

        Returns:
            Parsed JSON response

        Raises:
            OpenWeatherMapError: On timeout, network error, non-200 status or invalid JSON
        """
        safeParams = {k: v for k, v in params.items() if k != "appid"}
        logger.debug(f"Making request to {url} with params: {safeParams}")

        try:
            async with httpx.AsyncClient(timeout=self.requestTimeout) as session:
                response = await session.get(url, params=params)
        except httpx.TimeoutException as e:
            logger.error(f"Request timeout: {url}")
            raise OpenWeatherMapError(f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            logger.error(f"Network error: {e}")
            raise OpenWeatherMapError(f"Network error: {e}") from e

        if response.status_code != 200:
            match response.status_code:
                case 401:
                    message = "Invalid API key"
                case 404:
                    message = "Not found"
                case 429:
                    message = "Rate limit exceeded"
                case _:
                    message = "API request failed"
            logger.error(f"{message}: HTTP {response.status_code}")
            raise OpenWeatherMapError(f"{message} (HTTP {response.status_code})", statusCode=response.status_code)

        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Failed to parse JSON response: {e}")
            raise OpenWeatherMapError(f"Failed to parse JSON response: {e}", statusCode=200) from e

        logger.debug(f"API request successful: {response.status_code}")
        return data
