"""Tests for the WeatherTool façade: delegation, timing and event emission."""

import asyncio
from datetime import datetime

import pytest

from adk_mcp_tools.weather_tool.errors import (
    InvalidArgumentError,
    NotFoundError,
    OutOfRangeError,
    RequestTimeoutError,
)
from adk_mcp_tools.weather_tool.events import EventBus
from adk_mcp_tools.weather_tool.models import ForecastSnapshot, Units, WeatherSnapshot
from adk_mcp_tools.weather_tool.providers import OpenWeatherProvider
from adk_mcp_tools.weather_tool.tool_implementation import WeatherOperation, WeatherTool
from tests.conftest import ErrorProvider, FakeSession, StubProvider

# =============================================================================
# Construction
# =============================================================================


class TestWeatherToolInitialization:
    """Test WeatherTool construction."""

    def test_provider_is_required(self):
        with pytest.raises(InvalidArgumentError):
            WeatherTool(provider=None)

    def test_provider_must_implement_contract(self):
        with pytest.raises(TypeError):
            WeatherTool(provider=object())

    def test_default_units_metric(self, stub_provider):
        assert WeatherTool(stub_provider).default_units is Units.METRIC

    def test_invalid_default_units_rejected(self, stub_provider):
        with pytest.raises(InvalidArgumentError):
            WeatherTool(stub_provider, default_units="celsius")

    def test_creates_private_bus_when_none_given(self, stub_provider):
        first = WeatherTool(stub_provider)
        second = WeatherTool(stub_provider)
        assert isinstance(first.events, EventBus)
        assert first.events is not second.events

    def test_uses_shared_bus(self, stub_provider):
        bus = EventBus()
        assert WeatherTool(stub_provider, event_bus=bus).events is bus


# =============================================================================
# Current weather
# =============================================================================


class TestGetCurrentWeather:
    """Test the current-conditions operation."""

    @pytest.mark.asyncio
    async def test_returns_snapshot_and_emits_one_success_event(self, weather, recorder):
        weather.on("weather.current", recorder)

        result = await weather.get_current_weather({"location": "Tokyo"})

        assert isinstance(result, WeatherSnapshot)
        assert result.location == "Tokyo"
        assert len(recorder.events) == 1
        event = recorder.events[0]
        assert event.type == "weather.current"
        assert event.source_id == "weather"
        assert event.operation == "get_current_weather"
        assert event.error is None
        assert isinstance(event.timestamp, datetime)
        assert event.data["location"] == "Tokyo"
        assert event.data["units"] == "metric"
        assert isinstance(event.data["duration"], float)
        assert event.data["duration"] >= 0

    @pytest.mark.asyncio
    async def test_success_event_carries_measurements(self, weather, recorder):
        weather.on("weather.current", recorder)
        await weather.get_current_weather({"location": "Berlin"})

        data = recorder.events[0].data
        assert data["temperature"] == 20
        assert data["humidity"] == 60
        assert data["pressure"] == 1013
        assert data["description"] == "clear sky"
        assert data["icon"] == "01d"
        assert data["wind_speed"] == 5
        assert data["wind_direction"] == 90
        assert data["visibility"] == 10000

    @pytest.mark.asyncio
    async def test_units_override_reaches_provider_and_event(self, weather, stub_provider, recorder):
        weather.on("weather.current", recorder)
        await weather.get_current_weather({"location": "Berlin", "units": "imperial"})

        assert stub_provider.calls[-1] == ("get_current_weather", "Berlin", Units.IMPERIAL)
        assert recorder.events[0].data["units"] == "imperial"

    @pytest.mark.asyncio
    async def test_error_event_then_same_error_raised(self, error_weather, recorder):
        error_weather.on("weather.current", recorder)

        with pytest.raises(RuntimeError, match="API key invalid"):
            await error_weather.get_current_weather({"location": "London"})

        assert len(recorder.events) == 1
        event = recorder.events[0]
        assert event.type == "weather.current"
        assert event.operation == "get_current_weather"
        assert event.data["location"] == "London"
        assert event.data["units"] == "metric"
        assert event.data["duration"] >= 0
        assert event.error.message == "API key invalid"
        assert "temperature" not in event.data

    @pytest.mark.asyncio
    async def test_empty_location_fails_with_invalid_argument_and_error_event(self, weather, stub_provider, recorder):
        weather.on("*", recorder)

        with pytest.raises(InvalidArgumentError):
            await weather.get_current_weather({"location": ""})

        assert stub_provider.calls == []
        assert recorder.types == ["weather.current"]
        assert recorder.events[0].error.message == "Location is required"


# =============================================================================
# Forecast
# =============================================================================


class TestGetForecast:
    """Test the forecast operation."""

    @pytest.mark.asyncio
    async def test_emits_forecast_event_with_summary(self, weather, recorder):
        weather.on("weather.forecast", recorder)

        result = await weather.get_forecast({"latitude": 35.6762, "longitude": 139.6503, "days": 3})

        assert isinstance(result, ForecastSnapshot)
        event = recorder.events[0]
        assert event.type == "weather.forecast"
        assert event.operation == "get_forecast"
        assert event.data["latitude"] == 35.6762
        assert event.data["longitude"] == 139.6503
        assert event.data["location"] == "35.6762,139.6503"
        assert event.data["country"] == "TC"
        assert event.data["forecast_count"] == 3

    @pytest.mark.asyncio
    async def test_days_default_left_to_provider(self, weather, stub_provider):
        await weather.get_forecast({"latitude": 1.0, "longitude": 2.0})
        assert stub_provider.calls[-1] == ("get_forecast", 1.0, 2.0, Units.METRIC, 5)

    @pytest.mark.asyncio
    async def test_custom_units_preserved_in_event(self, weather, recorder):
        weather.on("weather.forecast", recorder)
        await weather.get_forecast({"latitude": 35.6762, "longitude": 139.6503, "units": "kelvin"})
        assert recorder.events[0].data["units"] == "kelvin"

    @pytest.mark.asyncio
    async def test_rejection_is_reraised_and_published(self, error_weather, recorder):
        error_weather.on("weather.forecast", recorder)

        with pytest.raises(RuntimeError) as excinfo:
            await error_weather.get_forecast({"latitude": 40.7128, "longitude": -74.0060})

        assert str(excinfo.value) == "Rate limit exceeded"
        assert len(recorder.events) == 1
        assert recorder.events[0].error.message == "Rate limit exceeded"


# =============================================================================
# By coordinates
# =============================================================================


class TestGetWeatherByCoords:
    """Test the by-coordinates operation."""

    @pytest.mark.asyncio
    async def test_emits_coords_event(self, weather, recorder):
        weather.on("weather.coords", recorder)

        result = await weather.get_weather_by_coords({"latitude": 48.8566, "longitude": 2.3522})

        assert result.location == "Coordinate City"
        event = recorder.events[0]
        assert event.type == "weather.coords"
        assert event.operation == "get_weather_by_coords"
        assert event.data["latitude"] == 48.8566
        assert event.data["longitude"] == 2.3522
        assert event.data["units"] == "metric"
        assert event.data["temperature"] == 18

    @pytest.mark.asyncio
    async def test_provider_exception_object_passes_through_unchanged(self, recorder):
        provider = ErrorProvider()
        raised = NotFoundError("Location not found")

        async def fail(latitude, longitude, units=None):
            raise raised

        provider.get_weather_by_coords = fail
        tool = WeatherTool(provider)
        tool.on("weather.coords", recorder)

        with pytest.raises(NotFoundError) as excinfo:
            await tool.get_weather_by_coords({"latitude": 0, "longitude": 0})

        assert excinfo.value is raised
        assert recorder.events[0].error.message == "Location not found"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("latitude,longitude", [(-91, 0), (91, 0), (0, -181), (0, 181)])
    async def test_out_of_range_fails_before_provider_fetch(self, weather, stub_provider, recorder, latitude, longitude):
        weather.on("weather.coords", recorder)

        with pytest.raises(OutOfRangeError):
            await weather.get_weather_by_coords({"latitude": latitude, "longitude": longitude})

        assert stub_provider.calls == []
        assert len(recorder.events) == 1
        assert recorder.events[0].failed


# =============================================================================
# Parameter checks and event cardinality
# =============================================================================


class TestParameterChecks:
    """Shape problems raise before timing starts and publish nothing."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "operation,params",
        [
            ("get_current_weather", {}),
            ("get_current_weather", {"location": None}),
            ("get_forecast", {"latitude": 1.0}),
            ("get_weather_by_coords", {"longitude": 1.0}),
            ("get_current_weather", "Tokyo"),
            ("get_current_weather", {"location": "Tokyo", "units": "celsius"}),
        ],
    )
    async def test_shape_errors_publish_nothing(self, weather, stub_provider, recorder, operation, params):
        weather.on("*", recorder)

        with pytest.raises(InvalidArgumentError):
            await getattr(weather, operation)(params)

        assert recorder.events == []
        assert stub_provider.calls == []

    @pytest.mark.asyncio
    async def test_exactly_one_event_per_call(self, weather, error_weather, recorder):
        weather.on("*", recorder)
        error_weather.on("*", recorder)

        await weather.get_current_weather({"location": "A"})
        await weather.get_forecast({"latitude": 1, "longitude": 2})
        await weather.get_weather_by_coords({"latitude": 1, "longitude": 2})
        for call, params in [
            (error_weather.get_current_weather, {"location": "B"}),
            (error_weather.get_forecast, {"latitude": 1, "longitude": 2}),
            (error_weather.get_weather_by_coords, {"latitude": 1, "longitude": 2}),
        ]:
            with pytest.raises(Exception):
                await call(params)

        assert recorder.types == ["weather.current", "weather.forecast", "weather.coords"] * 2
        assert [event.failed for event in recorder.events] == [False] * 3 + [True] * 3

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_affect_result(self, weather, recorder):
        def broken(event):
            raise RuntimeError("subscriber bug")

        weather.on("*", broken)
        weather.on("*", recorder)

        result = await weather.get_current_weather({"location": "Oslo"})

        assert result.location == "Oslo"
        assert len(recorder.events) == 1

    @pytest.mark.asyncio
    async def test_execute_accepts_operation_name_or_enum(self, weather, recorder):
        weather.on("*", recorder)
        await weather.execute("get_current_weather", {"location": "Rome"})
        await weather.execute(WeatherOperation.COORDS, {"latitude": 41.9, "longitude": 12.5})
        assert recorder.types == ["weather.current", "weather.coords"]

    @pytest.mark.asyncio
    async def test_execute_unknown_operation(self, weather):
        with pytest.raises(InvalidArgumentError):
            await weather.execute("get_pollen", {})


# =============================================================================
# Concurrency
# =============================================================================


class TestConcurrentCalls:
    """Events follow completion order, not invocation order."""

    @pytest.mark.asyncio
    async def test_events_published_in_completion_order(self, recorder):
        tool = WeatherTool(StubProvider(delays={"Slow": 0.05, "Fast": 0}))
        tool.on("weather.current", recorder)

        slow, fast = await asyncio.gather(
            tool.get_current_weather({"location": "Slow"}),
            tool.get_current_weather({"location": "Fast"}),
        )

        assert (slow.location, fast.location) == ("Slow", "Fast")
        assert [event.data["location"] for event in recorder.events] == ["Fast", "Slow"]


# =============================================================================
# Timeouts and cancellation
# =============================================================================


class TestInterruptedCalls:
    """A call that never settles normally still publishes one error event."""

    @pytest.mark.asyncio
    async def test_provider_timeout_publishes_error_event(self, recorder):
        provider = OpenWeatherProvider(api_key="test-key", timeout_ms=20, session=FakeSession(delay=0.5))
        tool = WeatherTool(provider)
        tool.on("*", recorder)

        with pytest.raises(RequestTimeoutError):
            await tool.get_current_weather({"location": "Tokyo"})

        assert recorder.types == ["weather.current"]
        event = recorder.events[0]
        assert event.error.message == "Request timed out after 20ms"
        assert event.data["location"] == "Tokyo"
        assert event.data["duration"] >= 0

    @pytest.mark.asyncio
    async def test_cancelled_call_publishes_error_event(self, recorder):
        tool = WeatherTool(StubProvider(delays={"Slow": 5}))
        tool.on("*", recorder)

        task = asyncio.create_task(tool.get_current_weather({"location": "Slow"}))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert recorder.types == ["weather.current"]
        assert recorder.events[0].error.message == "CancelledError"


# =============================================================================
# Subscription API on the façade
# =============================================================================


class TestEventCleanup:
    """Test on/once/off through the façade."""

    @pytest.mark.asyncio
    async def test_unsubscribe(self, weather, recorder):
        unsubscribe = weather.on("weather.current", recorder)
        unsubscribe()
        await weather.get_current_weather({"location": "Test"})
        assert recorder.events == []

    @pytest.mark.asyncio
    async def test_once(self, weather, recorder):
        weather.once("weather.current", recorder)
        await weather.get_current_weather({"location": "Test1"})
        await weather.get_current_weather({"location": "Test2"})
        assert len(recorder.events) == 1
        assert recorder.events[0].data["location"] == "Test1"

    @pytest.mark.asyncio
    async def test_off_removes_all_handlers_for_type(self, weather):
        first, second = [], []
        weather.on("weather.current", first.append)
        weather.on("weather.current", second.append)

        weather.off("weather.current")
        await weather.get_current_weather({"location": "Test"})

        assert first == [] and second == []

    @pytest.mark.asyncio
    async def test_validate_connection_passthrough_without_event(self, weather, error_weather, recorder):
        weather.on("*", recorder)
        assert await weather.validate_connection() is True
        assert await error_weather.validate_connection() is False
        assert recorder.events == []


# =============================================================================
# Agent-facing surface
# =============================================================================


class TestCapabilities:
    """Test capability table, schema and teaching contract."""

    def test_capabilities_cover_every_operation(self, weather):
        capabilities = weather.capabilities()
        assert set(capabilities) == {op.tool_name for op in WeatherOperation}
        assert weather.can("get_forecast")
        assert not weather.can("search_location")

    def test_capabilities_copy_is_independent(self, weather):
        weather.capabilities().clear()
        assert len(weather.capabilities()) == 3

    @pytest.mark.asyncio
    async def test_capability_returns_json_ready_dict_and_emits_event(self, weather, recorder):
        weather.on("weather.current", recorder)

        result = await weather.capabilities()["get_current_weather"](location="Tokyo", units="imperial")

        assert result["location"] == "Tokyo"
        assert result["units"] == "imperial"
        assert isinstance(result["timestamp"], str)
        assert recorder.events[0].data["location"] == "Tokyo"
        assert recorder.events[0].data["units"] == "imperial"

    @pytest.mark.asyncio
    async def test_forecast_capability_serializes_days(self, weather):
        result = await weather.capabilities()["get_forecast"](latitude=1.0, longitude=2.0, days=2)
        assert len(result["forecasts"]) == 2
        assert result["forecasts"][0]["date"] == "2025-08-17"

    def test_schema_lists_parameters(self, weather):
        schema = weather.schema()
        assert schema["get_current_weather"]["parameters"]["location"]["required"] is True
        assert schema["get_forecast"]["parameters"]["latitude"]["range"] == [-90, 90]

    def test_teach_contract(self, weather):
        contract = weather.teach()
        assert contract.unit_id == "weather"
        assert set(contract.capabilities) == set(contract.schema)
        assert contract.validator("get_current_weather", {}) == ["Missing required parameter 'location'"]

    def test_whoami_and_help(self, weather):
        assert "weather" in weather.whoami()
        text = weather.help()
        assert "get_current_weather(location, units?)" in text
        assert "StubProvider" in text
        assert "Default units: metric" in text
