"""
Abstract collaborator interfaces for weather data sources

The orchestrator only depends on these interfaces, so any weather
backend (or a test double) can be plugged in.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import GeocodingResult, HistoricalResponse, OneCallResponse


class OpenWeatherMapError(Exception):
    """Raised when a request to the weather API fails"""

    def __init__(self, message: str, statusCode: Optional[int] = None):
        super().__init__(message)
        self.statusCode = statusCode


class GeocodingClientInterface(ABC):
    """Resolves place names to coordinates"""

    @abstractmethod
    async def search(self, query: str, limit: int = 1) -> List[GeocodingResult]:
        """
        Search locations by name

        Args:
            query: City name, optionally with state and country ("London,GB")
            limit: Max results

        Returns:
            List of matches, empty if nothing was found

        Raises:
            OpenWeatherMapError: On transport or decoding failure
        """
        pass


class WeatherClientInterface(ABC):
    """Fetches weather for coordinates"""

    @abstractmethod
    async def fetchOneCall(
        self,
        lat: float,
        lon: float,
        exclude: str = "minutely,alerts",
        units: str = "metric",
    ) -> OneCallResponse:
        """
        Fetch current, hourly and daily weather

        Raises:
            OpenWeatherMapError: On transport or decoding failure
        """
        pass

    @abstractmethod
    async def fetchHistorical(
        self,
        lat: float,
        lon: float,
        epochSeconds: int,
        units: str = "metric",
    ) -> HistoricalResponse:
        """
        Fetch historical weather for given moment

        Raises:
            OpenWeatherMapError: On transport or decoding failure
        """
        pass
