"""
OpenWeatherMap Async Client Library

This module provides an async client for the OpenWeatherMap API.
Supports geocoding (city name → coordinates), One Call weather data
(current + hourly + daily) and historical (timemachine) data.

Example usage:
    from lib.openweathermap import OpenWeatherMapClient

    client = OpenWeatherMapClient(apiKey="your_api_key")

    locations = await client.search("Warsaw", limit=1)
    if locations:
        weather = await client.fetchOneCall(locations[0]["lat"], locations[0]["lon"])
        print(f"Temperature: {weather['current']['temp']}°C")
"""

from .client import OpenWeatherMapClient
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

__all__ = [
    "GeocodingResult",
    "CurrentWeather",
    "HourlyWeather",
    "DailyWeather",
    "OneCallResponse",
    "HistoricalDataPoint",
    "HistoricalResponse",
    "GeocodingClientInterface",
    "WeatherClientInterface",
    "OpenWeatherMapError",
    "OpenWeatherMapClient",
]
