"""
Weather Tools for ADK Agents

This package exposes third-party weather data (OpenWeatherMap) to ADK agents
through a uniform provider interface and a façade that times every query and
publishes one event per call.

Modules:
    - tool_implementation: WeatherTool façade and agent-facing functions
    - providers: WeatherProvider contract and the OpenWeatherMap provider
    - events: Wildcard-capable event bus
    - tool_schema: Parameter schemas and argument validation
    - weather_server: MCP server wrapper for exposing weather tools
"""

from .errors import (
    InvalidArgumentError,
    NotFoundError,
    OutOfRangeError,
    RequestTimeoutError,
    TransportError,
    UnauthorizedError,
    UpstreamError,
    WeatherProviderError,
)
from .events import EventBus
from .models import ForecastDay, ForecastSnapshot, LocationResult, Units, WeatherEvent, WeatherSnapshot
from .providers import OpenWeatherProvider, WeatherProvider
from .tool_implementation import (
    VERSION,
    WeatherOperation,
    WeatherTool,
    build_weather_tool,
    get_current_weather,
    get_forecast,
    get_weather_by_coords,
)

__version__ = VERSION
__all__ = [
    "WeatherTool",
    "WeatherOperation",
    "build_weather_tool",
    "get_current_weather",
    "get_forecast",
    "get_weather_by_coords",
    "EventBus",
    "WeatherEvent",
    "WeatherProvider",
    "OpenWeatherProvider",
    "Units",
    "WeatherSnapshot",
    "ForecastSnapshot",
    "ForecastDay",
    "LocationResult",
    "WeatherProviderError",
    "InvalidArgumentError",
    "OutOfRangeError",
    "NotFoundError",
    "UnauthorizedError",
    "RequestTimeoutError",
    "UpstreamError",
    "TransportError",
]
