"""Weather data providers."""

from .base import MAX_FORECAST_DAYS, WeatherProvider
from .openweather import OpenWeatherProvider

__all__ = ["WeatherProvider", "OpenWeatherProvider", "MAX_FORECAST_DAYS"]
