"""
Caller-side weather session: selected date, city and request state
"""

import datetime
import logging
from typing import Optional

from dateutil.relativedelta import relativedelta

from .models import Coordinates, RequestState, WeatherError, WeatherErrorKind, WeatherSnapshot
from .orchestrator import WeatherOrchestrator
from .sequencer import RequestSequencer

logger = logging.getLogger(__name__)

WEATHER_SLOT = "weather"
CITY_SLOT = "city"


class WeatherSession:
    """
    Holds what the user is looking at and the state of the weather request.

    All fetches go through the weather slot, so when requests overlap only the
    latest one publishes its outcome. City searches also have their own slot
    so an outdated search never replaces coordinates of a newer one.
    """

    def __init__(
        self,
        orchestrator: WeatherOrchestrator,
        defaultCity: Optional[str] = None,
        selectedDate: Optional[datetime.date] = None,
        sequencer: Optional[RequestSequencer] = None,
    ):
        self.orchestrator = orchestrator
        self.defaultCity = defaultCity
        self.sequencer = sequencer if sequencer is not None else RequestSequencer()

        if selectedDate is None:
            selectedDate = datetime.datetime.now(orchestrator.timezone).date()
        self.selectedDate: datetime.date = selectedDate
        self.currentMonth: datetime.date = selectedDate.replace(day=1)

        self.cityName: Optional[str] = None
        self.coordinates: Optional[Coordinates] = None
        self.state = RequestState.IDLE
        self.snapshot: Optional[WeatherSnapshot] = None
        self.error: Optional[WeatherError] = None

    def _setError(self, error: WeatherError) -> None:
        self.state = RequestState.ERROR
        self.error = error
        self.snapshot = None

    async def start(self, now: Optional[datetime.datetime] = None) -> None:
        """Purge old cache records and load weather for default city (if any)"""
        await self.orchestrator.sweep(now)
        if self.defaultCity:
            await self.searchCity(self.defaultCity)

    async def searchCity(self, name: str) -> None:
        """
        Resolve city and fetch weather for selected date there.

        A newer city search supersedes this one completely. A newer date
        selection or refresh only supersedes the weather fetch: resolved
        coordinates are kept and weather is fetched again for them.
        """
        citySeq = self.sequencer.begin(CITY_SLOT)
        seq = self.sequencer.begin(WEATHER_SLOT)
        previousCityName = self.cityName
        self.cityName = name
        self.state = RequestState.LOADING
        logger.debug(f"Searching city: {name} (request #{seq})")

        ret = await self.orchestrator.resolveCity(name)
        if not self.sequencer.isLatest(CITY_SLOT, citySeq):
            logger.debug(f"Dropping outdated city search #{citySeq}")
            return

        if not ret.isOk():
            assert ret.error is not None
            if ret.error.kind == WeatherErrorKind.INVALID_ARGUMENT:
                # Blank input, keep whatever city was shown before
                self.cityName = previousCityName
                if self.sequencer.isLatest(WEATHER_SLOT, seq):
                    self._setError(ret.error)
                return

            self.coordinates = None
            # Weather still in flight belongs to the previous city
            self.sequencer.begin(WEATHER_SLOT)
            self._setError(ret.error)
            return

        self.coordinates = ret.value
        if not self.sequencer.isLatest(WEATHER_SLOT, seq):
            logger.debug(f"City search #{citySeq} was overtaken by another request, re-fetching weather")
            seq = self.sequencer.begin(WEATHER_SLOT)
        await self._fetchWeather(seq)

    async def selectDate(self, date: datetime.date) -> None:
        """Select new date and fetch weather for it"""
        self.selectedDate = date
        self.currentMonth = date.replace(day=1)
        await self._fetchWeather(self.sequencer.begin(WEATHER_SLOT))

    async def nextMonth(self) -> None:
        """
        Move to next month keeping the day of month where possible
        (Jan 31 -> Feb 28/29) and fetch weather
        """
        await self.selectDate(self.selectedDate + relativedelta(months=1))

    async def previousMonth(self) -> None:
        """Move to previous month, same rules as nextMonth"""
        await self.selectDate(self.selectedDate - relativedelta(months=1))

    async def refresh(self) -> None:
        """Re-fetch weather for current date and coordinates"""
        await self._fetchWeather(self.sequencer.begin(WEATHER_SLOT))

    async def _fetchWeather(self, seq: int) -> None:
        if self.coordinates is None:
            logger.debug("Skipping weather fetch, no coordinates available")
            # Keep previous error (e.g. city not found) if there is one
            if self.state != RequestState.ERROR:
                self._setError(
                    WeatherError(kind=WeatherErrorKind.INVALID_ARGUMENT, message="Search for a city first")
                )
            return

        self.state = RequestState.LOADING
        coordinates = self.coordinates
        date = self.selectedDate
        logger.debug(f"Fetching weather for {date} at {coordinates['lat']}, {coordinates['lon']} (request #{seq})")

        ret = await self.orchestrator.getWeather(date, coordinates["lat"], coordinates["lon"])
        if not self.sequencer.isLatest(WEATHER_SLOT, seq):
            logger.debug(f"Dropping outdated weather result #{seq}")
            return

        if ret.isOk():
            self.state = RequestState.SUCCESS
            self.snapshot = ret.value
            self.error = None
        else:
            assert ret.error is not None
            self._setError(ret.error)
