"""
Weather orchestration models: error kinds, results and cached records
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, List, Optional, TypedDict, TypeVar

from lib.openweathermap.models import CurrentWeather, DailyWeather, HourlyWeather

T = TypeVar("T")


class WeatherErrorKind(StrEnum):
    """
    Enum for weather request failure kind.
    """

    INVALID_ARGUMENT = "invalid-argument"
    OUT_OF_RANGE = "out-of-range"
    UNSUPPORTED = "unsupported"
    REMOTE_ERROR = "remote-error"
    NOT_FOUND = "not-found"


class RequestState(StrEnum):
    """
    Enum for caller-side request state.
    """

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class WeatherStorageError(Exception):
    """Raised by cache stores when underlying storage fails"""

    pass


@dataclass(frozen=True)
class WeatherError:
    kind: WeatherErrorKind
    message: str
    cause: Optional[BaseException] = None

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


@dataclass(frozen=True)
class WeatherResult(Generic[T]):
    """Either a value or a WeatherError, never both"""

    value: Optional[T] = None
    error: Optional[WeatherError] = None

    @classmethod
    def ok(cls, value: T) -> "WeatherResult[T]":
        return cls(value=value)

    @classmethod
    def failure(
        cls, kind: WeatherErrorKind, message: str, cause: Optional[BaseException] = None
    ) -> "WeatherResult[T]":
        return cls(error=WeatherError(kind=kind, message=message, cause=cause))

    def isOk(self) -> bool:
        return self.error is None


class Coordinates(TypedDict):
    lat: float
    lon: float
    name: str
    country: Optional[str]
    state: Optional[str]


class WeatherSnapshot(TypedDict):
    current: Optional[CurrentWeather]
    hourly: List[HourlyWeather]
    daily: List[DailyWeather]
    timezone: str
    from_cache: bool


class WeatherCacheRecord(TypedDict):
    # Mirrors weather_cache table
    key: str
    date: str  # ISO date, "2024-06-01"
    temp_max: float
    temp_min: float
    description: str
    icon: str
    hourly_json: str
    daily_json: str
    current_json: str
    timezone: str  # Zone name of the response, "Europe/Warsaw"
    last_updated: int  # Epoch milliseconds
