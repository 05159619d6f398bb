"""
Data models for OpenWeatherMap API client

This module defines TypedDict classes for normalized API responses.
All models follow the OpenWeatherMap One Call API 3.0 and Geocoding API 1.0.
"""

from typing import List, Optional, TypedDict

# API Response Models


class GeocodingResult(TypedDict):
    """Result from geocoding API"""

    name: str  # City name (English)
    lat: float  # Latitude
    lon: float  # Longitude
    country: Optional[str]  # Country code (e.g., "PL")
    state: Optional[str]  # State/region name (if available)


class CurrentWeather(TypedDict):
    """Current weather data"""

    # https://openweathermap.org/api/one-call-3#parameter

    dt: int  # Unix timestamp
    temp: float  # Temperature (Celsius)
    feels_like: float  # Feels like temperature (Celsius)
    pressure: int  # Atmospheric pressure (hPa)
    humidity: int  # Humidity percentage
    uvi: float  # UV index
    wind_speed: float  # Wind speed (m/s)

    # https://openweathermap.org/weather-conditions#Weather-Condition-Codes-2
    weather_id: int  # Weather condition ID
    weather_main: str  # Weather group (Rain, Snow, Clear, etc.)
    weather_description: str  # Weather description
    weather_icon: str  # Icon code (e.g. "10d")


class HourlyWeather(TypedDict):
    """Hourly weather forecast"""

    dt: int  # Unix timestamp
    temp: float  # Temperature (Celsius)
    feels_like: float  # Feels like temperature (Celsius)
    pop: float  # Probability of precipitation (0-1)

    weather_id: int
    weather_main: str
    weather_description: str
    weather_icon: str


class DailyWeather(TypedDict):
    """Daily weather forecast"""

    dt: int  # Unix timestamp (noon of the forecast day)
    summary: str  # Human-readable description of the weather conditions for the day

    temp_day: float
    temp_night: float
    temp_eve: float
    temp_morn: float
    temp_min: float
    temp_max: float

    feels_like_day: float
    feels_like_night: float
    feels_like_eve: float
    feels_like_morn: float

    pop: float  # Probability of precipitation (0-1)

    weather_id: int
    weather_main: str
    weather_description: str
    weather_icon: str


class OneCallResponse(TypedDict):
    """Complete One Call response"""

    lat: float
    lon: float
    timezone: str  # Timezone name
    timezone_offset: int  # Timezone offset in seconds
    current: Optional[CurrentWeather]
    hourly: List[HourlyWeather]  # Up to 48 hours
    daily: List[DailyWeather]  # Up to 8 days


class HistoricalDataPoint(TypedDict):
    """Single point of the timemachine response, usually hourly"""

    dt: int
    temp: float
    feels_like: float
    pressure: int
    humidity: int
    uvi: float
    wind_speed: float

    weather_id: int
    weather_main: str
    weather_description: str
    weather_icon: str


class HistoricalResponse(TypedDict):
    """Response of the One Call timemachine endpoint"""

    lat: float
    lon: float
    timezone: str
    data: List[HistoricalDataPoint]
