"""Provider-agnostic weather interface."""

import math
from abc import ABC, abstractmethod
from numbers import Real
from typing import Optional, Tuple, Union

from ..errors import InvalidArgumentError, OutOfRangeError
from ..models import ForecastSnapshot, Units, WeatherSnapshot


MAX_FORECAST_DAYS = 5

UnitsArg = Optional[Union[Units, str]]


class WeatherProvider(ABC):
    """
    Base contract for weather data providers.

    Concrete providers implement the four operations below. The validation
    helpers are shared so every provider rejects bad input the same way and
    before touching the network.
    """

    def __init__(self, default_units: Union[Units, str] = Units.METRIC):
        self.default_units = Units.parse(default_units)

    @abstractmethod
    async def get_current_weather(self, location: str, units: UnitsArg = None) -> WeatherSnapshot:
        """Current conditions for a place name."""

    @abstractmethod
    async def get_forecast(
        self,
        latitude: float,
        longitude: float,
        units: UnitsArg = None,
        days: int = MAX_FORECAST_DAYS,
    ) -> ForecastSnapshot:
        """Daily forecast for a coordinate pair."""

    @abstractmethod
    async def get_weather_by_coords(
        self, latitude: float, longitude: float, units: UnitsArg = None
    ) -> WeatherSnapshot:
        """Current conditions for a coordinate pair."""

    @abstractmethod
    async def validate_connection(self) -> bool:
        """Report whether the provider is reachable and configured; never raises."""

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _resolve_units(self, units: UnitsArg) -> Units:
        if units is None:
            return self.default_units
        return Units.parse(units)

    @staticmethod
    def _require_location(location: str) -> str:
        if not isinstance(location, str) or not location.strip():
            raise InvalidArgumentError("Location is required")
        return location.strip()

    @staticmethod
    def _require_coordinates(latitude: float, longitude: float) -> Tuple[float, float]:
        for value in (latitude, longitude):
            if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
                raise InvalidArgumentError("Valid latitude and longitude are required")
        if not -90 <= latitude <= 90:
            raise OutOfRangeError(f"Latitude must be between -90 and 90, got {latitude}")
        if not -180 <= longitude <= 180:
            raise OutOfRangeError(f"Longitude must be between -180 and 180, got {longitude}")
        return float(latitude), float(longitude)

    @staticmethod
    def _require_days(days: int) -> int:
        if isinstance(days, bool) or not isinstance(days, int) or not 1 <= days <= MAX_FORECAST_DAYS:
            raise InvalidArgumentError(
                f"Forecast days must be an integer between 1 and {MAX_FORECAST_DAYS}, got {days!r}"
            )
        return days


__all__ = ["WeatherProvider", "MAX_FORECAST_DAYS", "UnitsArg"]
