"""
Weather Tool Data Models

Immutable values produced by providers (snapshots, geocoding results) and
published by the façade (events).
"""

from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_serializer, field_validator

from .errors import InvalidArgumentError


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Units(str, Enum):
    """Unit systems understood by the weather tools."""

    METRIC = "metric"
    IMPERIAL = "imperial"
    KELVIN = "kelvin"

    @classmethod
    def parse(cls, value: Union["Units", str]) -> "Units":
        """Normalize a unit selector, rejecting anything outside the enum."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        allowed = ", ".join(u.value for u in cls)
        raise InvalidArgumentError(f"Unsupported units {value!r}; expected one of: {allowed}")


class WeatherSnapshot(BaseModel):
    """Current conditions for one place."""

    model_config = ConfigDict(frozen=True)

    location: str
    country: str
    temperature: int
    feels_like: int
    humidity: float
    pressure: float
    description: str
    icon: str
    wind_speed: float = 0
    wind_direction: float = 0
    visibility: float = 0
    uv_index: Optional[float] = None
    units: Units
    timestamp: datetime = Field(default_factory=_utc_now)


class ForecastDay(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    high: int
    low: int
    description: str
    icon: str
    precipitation: float = 0


class ForecastSnapshot(BaseModel):
    """Daily forecast rollup for one place."""

    model_config = ConfigDict(frozen=True)

    location: str
    country: str
    forecasts: Tuple[ForecastDay, ...]
    units: Units
    timestamp: datetime = Field(default_factory=_utc_now)


class LocationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    country: str
    lat: float
    lon: float


class EventError(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class WeatherEvent(BaseModel):
    """
    A single post-call notification from the weather façade.

    `type` is a two-segment `domain.kind` string; both segments are split
    once at construction and exposed as `domain` and `kind`. `data` is a
    read-only copy of the mapping passed in, shared by every handler.
    """

    model_config = ConfigDict(frozen=True)

    type: str
    timestamp: datetime = Field(default_factory=_utc_now)
    source_id: str
    operation: str
    data: Mapping[str, Any] = Field(default_factory=dict)
    error: Optional[EventError] = None

    _domain: str = PrivateAttr(default="")
    _kind: str = PrivateAttr(default="")

    @field_validator("data", mode="after")
    @classmethod
    def _freeze_data(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @field_serializer("data")
    def _serialize_data(self, value: Mapping[str, Any]) -> Dict[str, Any]:
        return dict(value)

    def model_post_init(self, __context: Any) -> None:
        domain, _, kind = self.type.partition(".")
        self._domain = domain
        self._kind = kind

    @property
    def domain(self) -> str:
        return self._domain

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def failed(self) -> bool:
        return self.error is not None


__all__ = [
    "Units",
    "WeatherSnapshot",
    "ForecastDay",
    "ForecastSnapshot",
    "LocationResult",
    "EventError",
    "WeatherEvent",
]
