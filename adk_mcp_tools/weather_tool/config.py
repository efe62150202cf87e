"""
Weather Tool Configuration

Reads provider settings from environment variables, loading a local .env file
first when one is present.

Variables:
    OPENWEATHER_API_KEY     OpenWeatherMap API key (required)
    WEATHER_TIMEOUT_MS      Per-request timeout in milliseconds (default: 5000)
    WEATHER_DEFAULT_UNITS   metric, imperial or kelvin (default: metric)
    OPENWEATHER_BASE_URL    Data API root (default: OpenWeatherMap 2.5)
    OPENWEATHER_LANGUAGE    Language for descriptions (default: en)
"""

import os
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from .errors import InvalidArgumentError
from .models import Units
from .providers.openweather import DEFAULT_BASE_URL, DEFAULT_LANGUAGE, DEFAULT_TIMEOUT_MS


class WeatherToolSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_key: str
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    default_units: Units = Units.METRIC
    base_url: str = DEFAULT_BASE_URL
    language: str = DEFAULT_LANGUAGE


def load_settings(env: Optional[Mapping[str, str]] = None) -> WeatherToolSettings:
    """
    Build settings from `env`, or from the process environment after loading .env.

    Raises:
        InvalidArgumentError: if the API key is missing or a value is malformed
    """
    if env is None:
        load_dotenv()
        env = os.environ

    api_key = env.get("OPENWEATHER_API_KEY", "").strip()
    if not api_key:
        raise InvalidArgumentError("OPENWEATHER_API_KEY is not set")

    raw_timeout = env.get("WEATHER_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS))
    try:
        timeout_ms = int(raw_timeout)
    except ValueError:
        raise InvalidArgumentError(f"WEATHER_TIMEOUT_MS must be an integer, got {raw_timeout!r}") from None
    if timeout_ms <= 0:
        raise InvalidArgumentError(f"WEATHER_TIMEOUT_MS must be positive, got {timeout_ms}")

    return WeatherToolSettings(
        api_key=api_key,
        timeout_ms=timeout_ms,
        default_units=Units.parse(env.get("WEATHER_DEFAULT_UNITS", Units.METRIC.value)),
        base_url=env.get("OPENWEATHER_BASE_URL", DEFAULT_BASE_URL),
        language=env.get("OPENWEATHER_LANGUAGE", DEFAULT_LANGUAGE),
    )


__all__ = ["WeatherToolSettings", "load_settings"]
