"""
Tests for WeatherSession: request state, city search, date selection
and discarding of outdated results.
"""

import asyncio
import datetime
from unittest.mock import AsyncMock, Mock

import pytest
from dateutil import tz

from internal.weather.models import RequestState, WeatherErrorKind, WeatherResult
from internal.weather.session import WEATHER_SLOT, WeatherSession

DATE = datetime.date(2024, 6, 1)
COORDINATES = {"lat": 52.2297, "lon": 21.0122, "name": "Warsaw", "country": "PL", "state": None}


def makeSnapshot(temp: float):
    return {
        "current": {"temp": temp},
        "hourly": [],
        "daily": [],
        "timezone": "Europe/Warsaw",
        "from_cache": False,
    }


@pytest.fixture
def orchestrator():
    orchestrator = Mock()
    orchestrator.timezone = tz.UTC
    orchestrator.sweep = AsyncMock(return_value=None)
    orchestrator.resolveCity = AsyncMock(return_value=WeatherResult.ok(COORDINATES))
    orchestrator.getWeather = AsyncMock(return_value=WeatherResult.ok(makeSnapshot(20.0)))
    return orchestrator


@pytest.fixture
def session(orchestrator):
    return WeatherSession(orchestrator, defaultCity="Warsaw", selectedDate=DATE)


class TestWeatherSession:
    """Test session state transitions"""

    def testInitialState(self, session):
        assert session.state == RequestState.IDLE
        assert session.selectedDate == DATE
        assert session.coordinates is None
        assert session.snapshot is None

    def testDefaultSelectedDateIsToday(self, orchestrator):
        session = WeatherSession(orchestrator)

        assert session.selectedDate == datetime.datetime.now(tz.UTC).date()

    @pytest.mark.asyncio
    async def testStartSweepsAndLoadsDefaultCity(self, session, orchestrator):
        now = datetime.datetime(2024, 6, 1, 12, tzinfo=datetime.timezone.utc)
        await session.start(now)

        orchestrator.sweep.assert_awaited_once_with(now)
        orchestrator.resolveCity.assert_awaited_once_with("Warsaw")
        orchestrator.getWeather.assert_awaited_once_with(DATE, 52.2297, 21.0122)
        assert session.state == RequestState.SUCCESS
        assert session.coordinates == COORDINATES
        assert session.snapshot["current"]["temp"] == 20.0

    @pytest.mark.asyncio
    async def testStartWithoutDefaultCity(self, orchestrator):
        session = WeatherSession(orchestrator, selectedDate=DATE)
        await session.start()

        assert orchestrator.sweep.await_count == 1
        assert orchestrator.resolveCity.await_count == 0
        assert session.state == RequestState.IDLE

    @pytest.mark.asyncio
    async def testCityNotFound(self, session, orchestrator):
        await session.searchCity("Warsaw")
        orchestrator.resolveCity.return_value = WeatherResult.failure(
            WeatherErrorKind.NOT_FOUND, "City not found: Nowhere12345"
        )

        await session.searchCity("Nowhere12345")

        assert session.state == RequestState.ERROR
        assert session.error.kind == WeatherErrorKind.NOT_FOUND
        assert session.coordinates is None
        assert session.snapshot is None
        assert session.cityName == "Nowhere12345"

    @pytest.mark.asyncio
    async def testBlankCityKeepsPreviousCity(self, session, orchestrator):
        await session.searchCity("Warsaw")
        orchestrator.resolveCity.return_value = WeatherResult.failure(
            WeatherErrorKind.INVALID_ARGUMENT, "City name is empty"
        )

        await session.searchCity("   ")

        assert session.state == RequestState.ERROR
        assert session.error.kind == WeatherErrorKind.INVALID_ARGUMENT
        assert session.coordinates == COORDINATES
        assert session.cityName == "Warsaw"

        orchestrator.getWeather.reset_mock()
        await session.refresh()

        orchestrator.getWeather.assert_awaited_once_with(DATE, 52.2297, 21.0122)
        assert session.state == RequestState.SUCCESS

    @pytest.mark.asyncio
    async def testSelectDateWithoutCity(self, session, orchestrator):
        await session.selectDate(datetime.date(2024, 6, 3))

        assert session.state == RequestState.ERROR
        assert "city" in session.error.message
        assert orchestrator.getWeather.await_count == 0

    @pytest.mark.asyncio
    async def testSelectDateKeepsPreviousError(self, session, orchestrator):
        orchestrator.resolveCity.return_value = WeatherResult.failure(WeatherErrorKind.NOT_FOUND, "not found")
        await session.searchCity("Nowhere12345")

        await session.selectDate(datetime.date(2024, 6, 3))

        assert session.error.kind == WeatherErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def testSelectDateFetches(self, session, orchestrator):
        await session.searchCity("Warsaw")
        newDate = datetime.date(2024, 6, 3)

        await session.selectDate(newDate)

        orchestrator.getWeather.assert_awaited_with(newDate, 52.2297, 21.0122)
        assert session.selectedDate == newDate
        assert session.currentMonth == datetime.date(2024, 6, 1)
        assert session.state == RequestState.SUCCESS

    @pytest.mark.asyncio
    async def testWeatherError(self, session, orchestrator):
        await session.searchCity("Warsaw")
        orchestrator.getWeather.return_value = WeatherResult.failure(
            WeatherErrorKind.OUT_OF_RANGE, "Forecast is available only 7 days ahead"
        )

        await session.selectDate(datetime.date(2024, 7, 1))

        assert session.state == RequestState.ERROR
        assert session.error.kind == WeatherErrorKind.OUT_OF_RANGE
        assert session.snapshot is None

    @pytest.mark.asyncio
    async def testRefresh(self, session, orchestrator):
        await session.searchCity("Warsaw")
        await session.refresh()

        assert orchestrator.getWeather.await_count == 2
        assert session.state == RequestState.SUCCESS

    @pytest.mark.asyncio
    async def testNextMonthClampsDay(self, orchestrator):
        session = WeatherSession(orchestrator, selectedDate=datetime.date(2024, 1, 31))
        await session.searchCity("Warsaw")

        await session.nextMonth()

        assert session.selectedDate == datetime.date(2024, 2, 29)
        assert session.currentMonth == datetime.date(2024, 2, 1)

    @pytest.mark.asyncio
    async def testPreviousMonth(self, orchestrator):
        session = WeatherSession(orchestrator, selectedDate=datetime.date(2024, 3, 31))
        await session.searchCity("Warsaw")

        await session.previousMonth()

        assert session.selectedDate == datetime.date(2024, 2, 29)
        orchestrator.getWeather.assert_awaited_with(datetime.date(2024, 2, 29), 52.2297, 21.0122)


class TestWeatherSessionOrdering:
    """Test that only the latest request publishes its outcome"""

    @pytest.mark.asyncio
    async def testOutdatedResultIsDropped(self, session, orchestrator):
        await session.searchCity("Warsaw")
        slowDate = datetime.date(2024, 6, 2)
        fastDate = datetime.date(2024, 6, 3)
        release = asyncio.Event()

        async def getWeather(date, lat, lon):
            if date == slowDate:
                await release.wait()
                return WeatherResult.ok(makeSnapshot(1.0))
            return WeatherResult.ok(makeSnapshot(2.0))

        orchestrator.getWeather.side_effect = getWeather

        slowTask = asyncio.create_task(session.selectDate(slowDate))
        await asyncio.sleep(0)
        assert session.state == RequestState.LOADING

        await session.selectDate(fastDate)
        assert session.snapshot["current"]["temp"] == 2.0

        release.set()
        await slowTask

        assert session.state == RequestState.SUCCESS
        assert session.snapshot["current"]["temp"] == 2.0
        assert session.selectedDate == fastDate

    @pytest.mark.asyncio
    async def testOutdatedCitySearchIsDropped(self, session, orchestrator):
        release = asyncio.Event()
        otherCoordinates = dict(COORDINATES, name="Krakow", lat=50.06, lon=19.94)

        async def resolveCity(name):
            if name == "Warsaw":
                await release.wait()
                return WeatherResult.ok(COORDINATES)
            return WeatherResult.ok(otherCoordinates)

        orchestrator.resolveCity.side_effect = resolveCity

        slowTask = asyncio.create_task(session.searchCity("Warsaw"))
        await asyncio.sleep(0)
        await session.searchCity("Krakow")
        release.set()
        await slowTask

        assert session.coordinates == otherCoordinates
        assert orchestrator.getWeather.await_count == 1
        assert session.sequencer.current(WEATHER_SLOT) == 2

    @pytest.mark.asyncio
    async def testCitySearchOvertakenByDateSelection(self, session, orchestrator):
        """City resolved after a newer date selection is kept and weather is re-fetched for it"""
        await session.searchCity("Warsaw")
        release = asyncio.Event()
        otherCoordinates = dict(COORDINATES, name="Krakow", lat=50.06, lon=19.94)
        newDate = datetime.date(2024, 6, 2)

        async def resolveCity(name):
            await release.wait()
            return WeatherResult.ok(otherCoordinates)

        async def getWeather(date, lat, lon):
            return WeatherResult.ok(makeSnapshot(lat))

        orchestrator.resolveCity.side_effect = resolveCity
        orchestrator.getWeather.side_effect = getWeather

        searchTask = asyncio.create_task(session.searchCity("Krakow"))
        await asyncio.sleep(0)
        await session.selectDate(newDate)
        assert session.snapshot["current"]["temp"] == 52.2297

        release.set()
        await searchTask

        assert session.cityName == "Krakow"
        assert session.coordinates == otherCoordinates
        assert session.state == RequestState.SUCCESS
        assert session.snapshot["current"]["temp"] == 50.06
        orchestrator.getWeather.assert_awaited_with(newDate, 50.06, 19.94)

        await session.refresh()
        orchestrator.getWeather.assert_awaited_with(newDate, 50.06, 19.94)

    @pytest.mark.asyncio
    async def testFailedCitySearchDropsWeatherOfPreviousCity(self, session, orchestrator):
        await session.searchCity("Warsaw")
        releaseCity = asyncio.Event()
        releaseWeather = asyncio.Event()

        async def resolveCity(name):
            await releaseCity.wait()
            return WeatherResult.failure(WeatherErrorKind.NOT_FOUND, f"City not found: {name}")

        async def getWeather(date, lat, lon):
            await releaseWeather.wait()
            return WeatherResult.ok(makeSnapshot(20.0))

        orchestrator.resolveCity.side_effect = resolveCity
        orchestrator.getWeather.side_effect = getWeather

        searchTask = asyncio.create_task(session.searchCity("Nowhere12345"))
        await asyncio.sleep(0)
        dateTask = asyncio.create_task(session.selectDate(datetime.date(2024, 6, 2)))
        await asyncio.sleep(0)

        releaseCity.set()
        await searchTask
        releaseWeather.set()
        await dateTask

        assert session.state == RequestState.ERROR
        assert session.error.kind == WeatherErrorKind.NOT_FOUND
        assert session.coordinates is None
        assert session.snapshot is None
