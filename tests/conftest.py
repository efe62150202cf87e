"""Pytest fixtures and stubs shared by the weather tool tests."""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from adk_mcp_tools.weather_tool.errors import NotFoundError
from adk_mcp_tools.weather_tool.models import ForecastDay, ForecastSnapshot, Units, WeatherSnapshot
from adk_mcp_tools.weather_tool.providers import WeatherProvider
from adk_mcp_tools.weather_tool.tool_implementation import WeatherTool

# ===================================================================
# Snapshot factories
# ===================================================================


def make_snapshot(location: str = "Test City", units: Units = Units.METRIC, **overrides) -> WeatherSnapshot:
    fields = dict(
        location=location,
        country="TC",
        temperature=20,
        feels_like=22,
        humidity=60,
        pressure=1013,
        description="clear sky",
        icon="01d",
        wind_speed=5,
        wind_direction=90,
        visibility=10000,
        units=units,
    )
    fields.update(overrides)
    return WeatherSnapshot(**fields)


def make_forecast(location: str = "Test City", units: Units = Units.METRIC, days: int = 1) -> ForecastSnapshot:
    return ForecastSnapshot(
        location=location,
        country="TC",
        forecasts=tuple(
            ForecastDay(
                date=f"2025-08-{17 + i:02d}",
                high=25,
                low=15,
                description="sunny",
                icon="01d",
                precipitation=0,
            )
            for i in range(days)
        ),
        units=units,
    )


# ===================================================================
# Stub providers
# ===================================================================


class StubProvider(WeatherProvider):
    """Provider returning canned snapshots, with the shared input validation."""

    def __init__(self, delays: Optional[Dict[str, float]] = None):
        super().__init__()
        self.delays = delays or {}
        self.calls: List[tuple] = []

    async def _pause(self, key: Any) -> None:
        delay = self.delays.get(key, 0)
        if delay:
            await asyncio.sleep(delay)

    async def get_current_weather(self, location, units=None):
        location = self._require_location(location)
        resolved = self._resolve_units(units)
        self.calls.append(("get_current_weather", location, resolved))
        await self._pause(location)
        return make_snapshot(location, resolved)

    async def get_forecast(self, latitude, longitude, units=None, days=5):
        latitude, longitude = self._require_coordinates(latitude, longitude)
        days = self._require_days(days)
        resolved = self._resolve_units(units)
        self.calls.append(("get_forecast", latitude, longitude, resolved, days))
        return make_forecast(f"{latitude},{longitude}", resolved, days)

    async def get_weather_by_coords(self, latitude, longitude, units=None):
        latitude, longitude = self._require_coordinates(latitude, longitude)
        resolved = self._resolve_units(units)
        self.calls.append(("get_weather_by_coords", latitude, longitude, resolved))
        return make_snapshot("Coordinate City", resolved, temperature=18, humidity=65)

    async def validate_connection(self):
        return True


class ErrorProvider(WeatherProvider):
    """Provider whose every fetch fails."""

    async def get_current_weather(self, location, units=None):
        raise RuntimeError("API key invalid")

    async def get_forecast(self, latitude, longitude, units=None, days=5):
        raise RuntimeError("Rate limit exceeded")

    async def get_weather_by_coords(self, latitude, longitude, units=None):
        raise NotFoundError("Location not found")

    async def validate_connection(self):
        return False


# ===================================================================
# Fake aiohttp session
# ===================================================================


class FakeResponse:
    def __init__(self, status: int = 200, payload: Any = None, json_error: Optional[Exception] = None):
        self.status = status
        self._payload = payload
        self._json_error = json_error

    async def json(self, content_type=None):
        if self._json_error is not None:
            raise self._json_error
        return self._payload


class _FakeRequest:
    def __init__(self, response: FakeResponse, error: Optional[Exception], delay: float):
        self._response = response
        self._error = error
        self._delay = delay

    async def __aenter__(self):
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._response

    async def __aexit__(self, *exc_info):
        return False


class FakeSession:
    """Stands in for aiohttp.ClientSession; records every GET."""

    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None, delay: float = 0):
        self.response = response or FakeResponse(payload={})
        self.error = error
        self.delay = delay
        self.requests: List[tuple] = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, dict(params or {})))
        return _FakeRequest(self.response, self.error, self.delay)


# ===================================================================
# Fixtures
# ===================================================================


@pytest.fixture
def stub_provider():
    return StubProvider()


@pytest.fixture
def weather(stub_provider):
    return WeatherTool(provider=stub_provider, default_units="metric")


@pytest.fixture
def error_weather():
    return WeatherTool(provider=ErrorProvider(), default_units="metric")


@pytest.fixture
def recorder():
    """Handler that keeps every event it receives."""

    class Recorder:
        def __init__(self):
            self.events = []

        def __call__(self, event):
            self.events.append(event)

        @property
        def types(self):
            return [event.type for event in self.events]

    return Recorder()


@pytest.fixture
def current_weather_payload():
    return {
        "name": "Tokyo",
        "sys": {"country": "JP"},
        "main": {"temp": 22.5, "feels_like": 21.4, "humidity": 70, "pressure": 1012},
        "weather": [{"description": "scattered clouds", "icon": "03d"}],
        "wind": {"speed": 3.6, "deg": 200},
        "visibility": 10000,
    }


@pytest.fixture
def forecast_payload():
    # 2025-08-17 00:00 UTC = 1755388800
    day1 = 1755388800
    day2 = day1 + 86400
    return {
        "city": {"name": "Paris", "country": "FR", "timezone": 0},
        "list": [
            {"dt": day1, "main": {"temp": 14.2}, "weather": [{"description": "clear sky", "icon": "01n"}]},
            {"dt": day1 + 12 * 3600, "main": {"temp": 24.6},
             "weather": [{"description": "few clouds", "icon": "02d"}], "rain": {"3h": 0.5}},
            {"dt": day1 + 21 * 3600, "main": {"temp": 17.0},
             "weather": [{"description": "light rain", "icon": "10n"}], "rain": {"3h": 1.25}},
            {"dt": day2 + 3 * 3600, "main": {"temp": 12.4},
             "weather": [{"description": "overcast clouds", "icon": "04n"}], "snow": {"3h": 0.25}},
            {"dt": day2 + 9 * 3600, "main": {"temp": 19.5},
             "weather": [{"description": "broken clouds", "icon": "04d"}]},
        ],
    }
