"""
Weather Tool Implementation

Implements the WeatherTool façade that agents call: it delegates each query to
a WeatherProvider, times it, and publishes exactly one event per call on its
EventBus once the provider call has settled.

Operations:
    - get_current_weather: Current conditions by place name (event: weather.current)
    - get_forecast: Daily forecast by coordinates (event: weather.forecast)
    - get_weather_by_coords: Current conditions by coordinates (event: weather.coords)

The module-level functions of the same names run against a lazily built
default tool configured from the environment, for agents that take plain
functions as tools.
"""

import asyncio
import functools
import logging
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, NamedTuple, Optional, Tuple, Union

from .config import WeatherToolSettings, load_settings
from .errors import InvalidArgumentError
from .events import EventBus, EventHandler, Unsubscribe
from .models import EventError, ForecastSnapshot, Units, WeatherEvent, WeatherSnapshot
from .providers import OpenWeatherProvider, WeatherProvider
from .tool_schema import TOOL_SCHEMA, get_function_schema, validate_arguments

logger = logging.getLogger(__name__)

VERSION = "1.0.1"
UNIT_ID = "weather"

Capability = Callable[..., Awaitable[Dict[str, Any]]]


class WeatherOperation(Enum):
    """The weather queries the façade supports, with their tool name, event type and required keys."""

    CURRENT = ("get_current_weather", "weather.current", ("location",))
    FORECAST = ("get_forecast", "weather.forecast", ("latitude", "longitude"))
    COORDS = ("get_weather_by_coords", "weather.coords", ("latitude", "longitude"))

    def __init__(self, tool_name: str, event_type: str, required: Tuple[str, ...]):
        self.tool_name = tool_name
        self.event_type = event_type
        self.required = required

    @classmethod
    def from_name(cls, name: str) -> "WeatherOperation":
        for operation in cls:
            if operation.tool_name == name:
                return operation
        raise InvalidArgumentError(f"Unknown weather operation: {name}")


class TeachingContract(NamedTuple):
    """What the tool hands to an agent framework: callables, their schema and a validator."""

    unit_id: str
    capabilities: Dict[str, Capability]
    schema: Dict[str, Any]
    validator: Callable[[str, Mapping], List[str]]


class WeatherTool:
    """
    Weather façade with timing and event publication.

    Args:
        provider: WeatherProvider that performs the actual fetches (required)
        default_units: Unit system used when a call does not override it
        event_bus: Optional EventBus to publish on; a private one is created if omitted
        metadata: Free-form metadata kept alongside the tool
        source_id: Identifier stamped on every published event

    Example:
        >>> tool = WeatherTool(OpenWeatherProvider(api_key="..."))
        >>> tool.on("weather.*", lambda event: print(event.type, event.data["duration"]))
        >>> snapshot = await tool.get_current_weather({"location": "Tokyo"})
    """

    def __init__(
        self,
        provider: WeatherProvider,
        default_units: Union[Units, str] = Units.METRIC,
        event_bus: Optional[EventBus] = None,
        metadata: Optional[Dict[str, Any]] = None,
        source_id: str = UNIT_ID,
    ):
        if provider is None:
            raise InvalidArgumentError("Provider is required")
        if not isinstance(provider, WeatherProvider):
            raise TypeError(f"Provider must be a WeatherProvider, got {type(provider).__name__}")

        self._provider = provider
        self.default_units = Units.parse(default_units)
        self._events = event_bus if event_bus is not None else EventBus()
        self.metadata = dict(metadata or {})
        self.source_id = source_id
        self.created = datetime.now(timezone.utc)

        self._dispatch = {
            WeatherOperation.CURRENT: self._fetch_current,
            WeatherOperation.FORECAST: self._fetch_forecast,
            WeatherOperation.COORDS: self._fetch_by_coords,
        }
        self._capabilities = self._build_capabilities()
        logger.info(
            f"Initialized weather tool '{source_id}' with {type(provider).__name__} "
            f"(default units: {self.default_units.value})"
        )

    @property
    def provider(self) -> WeatherProvider:
        return self._provider

    @property
    def events(self) -> EventBus:
        return self._events

    # ------------------------------------------------------------------
    # Weather operations
    # ------------------------------------------------------------------

    async def get_current_weather(self, params: Mapping[str, Any]) -> WeatherSnapshot:
        """Current conditions for `params["location"]`."""
        return await self.execute(WeatherOperation.CURRENT, params)

    async def get_forecast(self, params: Mapping[str, Any]) -> ForecastSnapshot:
        """Daily forecast for `params["latitude"]`, `params["longitude"]` (optional `days`)."""
        return await self.execute(WeatherOperation.FORECAST, params)

    async def get_weather_by_coords(self, params: Mapping[str, Any]) -> WeatherSnapshot:
        """Current conditions for `params["latitude"]`, `params["longitude"]`."""
        return await self.execute(WeatherOperation.COORDS, params)

    async def validate_connection(self) -> bool:
        return await self._provider.validate_connection()

    async def execute(
        self, operation: Union[WeatherOperation, str], params: Mapping[str, Any]
    ) -> Union[WeatherSnapshot, ForecastSnapshot]:
        """
        Run one weather operation and publish its event.

        Parameter-shape problems (not a mapping, missing required key, unknown
        units) raise InvalidArgumentError before timing starts and publish
        nothing. Everything after that publishes exactly one event, then
        returns the result or re-raises the provider's exception unchanged.
        """
        if isinstance(operation, str):
            operation = WeatherOperation.from_name(operation)
        query = self._check_params(operation, params)
        units = Units.parse(query["units"]) if query.get("units") is not None else self.default_units

        start = time.perf_counter()
        try:
            result = await self._dispatch[operation](query, units)
        except (Exception, asyncio.CancelledError) as e:
            duration = (time.perf_counter() - start) * 1000
            logger.warning(f"{operation.tool_name} failed after {duration:.1f}ms: {e!r}")
            self._publish(operation, query, units, duration, error=e)
            raise

        duration = (time.perf_counter() - start) * 1000
        logger.info(f"{operation.tool_name} completed in {duration:.1f}ms")
        self._publish(operation, query, units, duration, result=result)
        return result

    async def _fetch_current(self, query: Dict[str, Any], units: Units) -> WeatherSnapshot:
        return await self._provider.get_current_weather(query["location"], units)

    async def _fetch_forecast(self, query: Dict[str, Any], units: Units) -> ForecastSnapshot:
        if query.get("days") is not None:
            return await self._provider.get_forecast(query["latitude"], query["longitude"], units, query["days"])
        return await self._provider.get_forecast(query["latitude"], query["longitude"], units)

    async def _fetch_by_coords(self, query: Dict[str, Any], units: Units) -> WeatherSnapshot:
        return await self._provider.get_weather_by_coords(query["latitude"], query["longitude"], units)

    @staticmethod
    def _check_params(operation: WeatherOperation, params: Mapping[str, Any]) -> Dict[str, Any]:
        if not isinstance(params, Mapping):
            raise InvalidArgumentError(
                f"{operation.tool_name} expects a parameter mapping, got {type(params).__name__}"
            )
        missing = [key for key in operation.required if params.get(key) is None]
        if missing:
            raise InvalidArgumentError(f"{operation.tool_name} missing required parameter(s): {', '.join(missing)}")
        return dict(params)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, pattern: str, handler: EventHandler) -> Unsubscribe:
        return self._events.on(pattern, handler)

    def once(self, pattern: str, handler: EventHandler) -> Unsubscribe:
        return self._events.once(pattern, handler)

    def off(self, event_type: str) -> int:
        return self._events.off(event_type)

    def _publish(
        self,
        operation: WeatherOperation,
        query: Dict[str, Any],
        units: Units,
        duration: float,
        result: Optional[Union[WeatherSnapshot, ForecastSnapshot]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        data = dict(query)
        data["units"] = units.value
        data["duration"] = duration

        if isinstance(result, WeatherSnapshot):
            data.update(
                temperature=result.temperature,
                humidity=result.humidity,
                pressure=result.pressure,
                description=result.description,
                icon=result.icon,
                wind_speed=result.wind_speed,
                wind_direction=result.wind_direction,
                visibility=result.visibility,
            )
        elif isinstance(result, ForecastSnapshot):
            data.update(
                location=result.location,
                country=result.country,
                forecast_count=len(result.forecasts),
            )

        event = WeatherEvent(
            type=operation.event_type,
            source_id=self.source_id,
            operation=operation.tool_name,
            data=data,
            error=EventError(message=str(error) or type(error).__name__) if error is not None else None,
        )
        self._events.publish(event)

    # ------------------------------------------------------------------
    # Agent-facing surface
    # ------------------------------------------------------------------

    def _build_capabilities(self) -> Dict[str, Capability]:
        """Keyword-argument wrappers returning JSON-ready dicts, one per operation."""

        async def get_current_weather(location: str, units: Optional[str] = None) -> Dict[str, Any]:
            """
            Get current weather conditions for a city.

            Args:
                location: City name, e.g. "London", "New York", "Tokyo".
                units: "metric", "imperial" or "kelvin". Defaults to the configured units.

            Returns:
                Temperature, feels-like, humidity, pressure, wind, visibility and a description.
            """
            snapshot = await self.get_current_weather(_drop_none(location=location, units=units))
            return snapshot.model_dump(mode="json")

        async def get_forecast(
            latitude: float, longitude: float, units: Optional[str] = None, days: int = 5
        ) -> Dict[str, Any]:
            """
            Get a daily weather forecast for geographic coordinates.

            Args:
                latitude: Latitude in decimal degrees (-90 to 90).
                longitude: Longitude in decimal degrees (-180 to 180).
                units: "metric", "imperial" or "kelvin". Defaults to the configured units.
                days: Number of days to return, 1 to 5.

            Returns:
                Location plus one entry per day with high, low, description and precipitation.
            """
            snapshot = await self.get_forecast(
                _drop_none(latitude=latitude, longitude=longitude, units=units, days=days)
            )
            return snapshot.model_dump(mode="json")

        async def get_weather_by_coords(
            latitude: float, longitude: float, units: Optional[str] = None
        ) -> Dict[str, Any]:
            """
            Get current weather conditions for geographic coordinates.

            Args:
                latitude: Latitude in decimal degrees (-90 to 90).
                longitude: Longitude in decimal degrees (-180 to 180).
                units: "metric", "imperial" or "kelvin". Defaults to the configured units.
            """
            snapshot = await self.get_weather_by_coords(
                _drop_none(latitude=latitude, longitude=longitude, units=units)
            )
            return snapshot.model_dump(mode="json")

        table = {
            WeatherOperation.CURRENT: get_current_weather,
            WeatherOperation.FORECAST: get_forecast,
            WeatherOperation.COORDS: get_weather_by_coords,
        }
        return {operation.tool_name: table[operation] for operation in WeatherOperation}

    def capabilities(self) -> Dict[str, Capability]:
        return dict(self._capabilities)

    def can(self, name: str) -> bool:
        return name in self._capabilities

    def schema(self) -> Dict[str, Any]:
        return {operation.tool_name: get_function_schema(operation.tool_name) for operation in WeatherOperation}

    def teach(self) -> TeachingContract:
        return TeachingContract(
            unit_id=self.source_id,
            capabilities=self.capabilities(),
            schema=self.schema(),
            validator=validate_arguments,
        )

    def whoami(self) -> str:
        return f"Weather Tool - AI-ready weather information provider ({self.source_id} v{VERSION})"

    def help(self) -> str:
        lines = [self.whoami(), "", "Capabilities:"]
        for function in TOOL_SCHEMA["functions"]:
            params = ", ".join(
                name if spec.get("required") else f"{name}?" for name, spec in function["parameters"].items()
            )
            lines.append(f"  - {function['name']}({params}): {function['description']}")
        lines += [
            "",
            "Configuration:",
            f"  - Provider: {type(self._provider).__name__}",
            f"  - Default units: {self.default_units.value}",
            "",
            "Events: weather.current, weather.forecast, weather.coords (subscribe with on/once, '*' or 'weather.*')",
        ]
        return "\n".join(lines)


def _drop_none(**kwargs: Any) -> Dict[str, Any]:
    return {key: value for key, value in kwargs.items() if value is not None}


def build_weather_tool(
    settings: WeatherToolSettings, event_bus: Optional[EventBus] = None
) -> WeatherTool:
    """Build an OpenWeather-backed WeatherTool from settings."""
    provider = OpenWeatherProvider(
        api_key=settings.api_key,
        timeout_ms=settings.timeout_ms,
        base_url=settings.base_url,
        language=settings.language,
        default_units=settings.default_units,
    )
    return WeatherTool(provider, default_units=settings.default_units, event_bus=event_bus)


@functools.lru_cache(maxsize=1)
def default_weather_tool() -> WeatherTool:
    """Shared WeatherTool configured from the environment (.env is honoured)."""
    return build_weather_tool(load_settings())


async def get_current_weather(location: str, units: Optional[str] = None) -> Dict[str, Any]:
    """
    Gets current weather conditions for a city.

    Args:
        location: City name, e.g. "London", "New York", "Tokyo"
        units: "metric", "imperial" or "kelvin" (default: configured units)

    Returns:
        Dictionary with temperature, feels_like, humidity, pressure, wind and description

    Example:
        >>> weather = await get_current_weather("Tokyo")
        >>> print(weather["temperature"], weather["description"])
    """
    return await default_weather_tool().capabilities()["get_current_weather"](location=location, units=units)


async def get_forecast(
    latitude: float, longitude: float, units: Optional[str] = None, days: int = 5
) -> Dict[str, Any]:
    """
    Gets a daily forecast (up to 5 days) for a latitude and longitude.

    Args:
        latitude: Latitude in decimal degrees (-90 to 90)
        longitude: Longitude in decimal degrees (-180 to 180)
        units: "metric", "imperial" or "kelvin" (default: configured units)
        days: Number of forecast days, 1 to 5 (default: 5)

    Returns:
        Dictionary with location, country and a list of daily forecasts
    """
    return await default_weather_tool().capabilities()["get_forecast"](
        latitude=latitude, longitude=longitude, units=units, days=days
    )


async def get_weather_by_coords(
    latitude: float, longitude: float, units: Optional[str] = None
) -> Dict[str, Any]:
    """Gets current weather conditions for a latitude and longitude."""
    return await default_weather_tool().capabilities()["get_weather_by_coords"](
        latitude=latitude, longitude=longitude, units=units
    )


__all__ = [
    "VERSION",
    "WeatherOperation",
    "TeachingContract",
    "WeatherTool",
    "build_weather_tool",
    "default_weather_tool",
    "get_current_weather",
    "get_forecast",
    "get_weather_by_coords",
]
