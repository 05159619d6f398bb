"""
Different DB-related models
"""

from typing import TypedDict


class WeatherCacheDict(TypedDict):
    # From weather_cache table
    key: str
    date: str
    temp_max: float
    temp_min: float
    description: str
    icon: str
    hourly_json: str
    daily_json: str
    current_json: str
    timezone: str
    last_updated: int
