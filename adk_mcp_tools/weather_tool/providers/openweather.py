"""
OpenWeatherMap 2.5 Provider

Fetches current conditions, 5-day/3-hour forecasts and geocoding results from
OpenWeatherMap over aiohttp, and normalizes them into weather snapshots.
"""

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

import aiohttp

from ..errors import (
    InvalidArgumentError,
    NotFoundError,
    RequestTimeoutError,
    TransportError,
    UnauthorizedError,
    UpstreamError,
    WeatherProviderError,
)
from ..models import ForecastDay, ForecastSnapshot, LocationResult, Units, WeatherSnapshot
from .base import MAX_FORECAST_DAYS, UnitsArg, WeatherProvider

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openweathermap.org/data/2.5"
DEFAULT_GEO_URL = "https://api.openweathermap.org/geo/1.0"
DEFAULT_TIMEOUT_MS = 5000
DEFAULT_LANGUAGE = "en"
MAX_SEARCH_RESULTS = 5

# Known-good query used by validate_connection
HEALTHCHECK_LOCATION = "London"

# OpenWeather names Kelvin output "standard"
_WIRE_UNITS = {
    Units.METRIC: "metric",
    Units.IMPERIAL: "imperial",
    Units.KELVIN: "standard",
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class OpenWeatherProvider(WeatherProvider):
    """
    Weather provider backed by the OpenWeatherMap REST API.

    Args:
        api_key: OpenWeatherMap API key (required)
        timeout_ms: Deadline for each outbound request in milliseconds (default: 5000)
        base_url: Data API root (default: OpenWeatherMap 2.5)
        geo_url: Geocoding API root
        language: Language for textual descriptions (default: "en")
        default_units: Unit system used when a call does not pick one
        session: Optional aiohttp session owned by the caller. When omitted,
            each request opens and closes its own session.

    Example:
        >>> provider = OpenWeatherProvider(api_key="...", timeout_ms=10000)
        >>> snapshot = await provider.get_current_weather("Tokyo")
    """

    def __init__(
        self,
        api_key: str,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        base_url: str = DEFAULT_BASE_URL,
        geo_url: str = DEFAULT_GEO_URL,
        language: str = DEFAULT_LANGUAGE,
        default_units: Union[Units, str] = Units.METRIC,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        if not isinstance(api_key, str) or not api_key.strip():
            raise InvalidArgumentError("API key is required")
        if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, (int, float)) or timeout_ms <= 0:
            raise InvalidArgumentError(f"Timeout must be a positive number of milliseconds, got {timeout_ms!r}")
        super().__init__(default_units)

        self.api_key = api_key
        self.timeout_ms = timeout_ms
        self.base_url = base_url.rstrip("/")
        self.geo_url = geo_url.rstrip("/")
        self.language = language
        self._session = session
        self._client_timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000)
        logger.info(f"Initialized OpenWeather provider (timeout={timeout_ms}ms, units={self.default_units.value})")

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def get_current_weather(self, location: str, units: UnitsArg = None) -> WeatherSnapshot:
        location = self._require_location(location)
        resolved = self._resolve_units(units)
        data = await self._get_json(f"{self.base_url}/weather", {"q": location, **self._query_params(resolved)})
        return self._transform_weather(data, resolved)

    async def get_weather_by_coords(
        self, latitude: float, longitude: float, units: UnitsArg = None
    ) -> WeatherSnapshot:
        latitude, longitude = self._require_coordinates(latitude, longitude)
        resolved = self._resolve_units(units)
        params = {"lat": latitude, "lon": longitude, **self._query_params(resolved)}
        data = await self._get_json(f"{self.base_url}/weather", params)
        return self._transform_weather(data, resolved)

    async def get_forecast(
        self,
        latitude: float,
        longitude: float,
        units: UnitsArg = None,
        days: int = MAX_FORECAST_DAYS,
    ) -> ForecastSnapshot:
        latitude, longitude = self._require_coordinates(latitude, longitude)
        days = self._require_days(days)
        resolved = self._resolve_units(units)
        params = {"lat": latitude, "lon": longitude, **self._query_params(resolved)}
        data = await self._get_json(f"{self.base_url}/forecast", params)
        return self._transform_forecast(data, resolved, days)

    async def get_forecast_by_name(
        self, location: str, units: UnitsArg = None, days: int = MAX_FORECAST_DAYS
    ) -> ForecastSnapshot:
        """Daily forecast looked up by place name instead of coordinates."""
        location = self._require_location(location)
        days = self._require_days(days)
        resolved = self._resolve_units(units)
        data = await self._get_json(f"{self.base_url}/forecast", {"q": location, **self._query_params(resolved)})
        return self._transform_forecast(data, resolved, days)

    async def search_location(self, query: str, limit: int = MAX_SEARCH_RESULTS) -> List[LocationResult]:
        """
        Resolve a free-text place name to candidate coordinates.

        Args:
            query: Place name, e.g. "French Riviera"
            limit: Maximum number of candidates, 1 to 5

        Returns:
            List of LocationResult, best match first
        """
        if not isinstance(query, str) or not query.strip():
            raise InvalidArgumentError("Search query is required")
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_SEARCH_RESULTS:
            raise InvalidArgumentError(f"Search limit must be between 1 and {MAX_SEARCH_RESULTS}, got {limit!r}")

        data = await self._get_json(
            f"{self.geo_url}/direct",
            {"q": query.strip(), "limit": limit, "appid": self.api_key},
        )
        if not isinstance(data, list):
            raise TransportError("Malformed geocoding response: expected a list")

        try:
            return [
                LocationResult(
                    name=entry["name"],
                    country=entry.get("country", ""),
                    lat=entry["lat"],
                    lon=entry["lon"],
                )
                for entry in data
            ]
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise TransportError(f"Malformed geocoding response: {e}") from e

    async def validate_connection(self) -> bool:
        try:
            await self._get_json(
                f"{self.base_url}/weather",
                {"q": HEALTHCHECK_LOCATION, **self._query_params(Units.METRIC)},
            )
        except Exception as e:
            logger.warning(f"Connection validation failed: {e!r}")
            return False
        return True

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _query_params(self, units: Units) -> Dict[str, Any]:
        return {"appid": self.api_key, "units": _WIRE_UNITS[units], "lang": self.language}

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        """GET `url` and decode the JSON body, bounded by the provider timeout."""
        safe_params = {k: v for k, v in params.items() if k != "appid"}
        logger.info(f"GET {url} {safe_params}")
        try:
            return await asyncio.wait_for(self._fetch(url, params), timeout=self.timeout_ms / 1000)
        except asyncio.TimeoutError as e:
            logger.warning(f"Request to {url} timed out after {self.timeout_ms}ms")
            raise RequestTimeoutError(f"Request timed out after {self.timeout_ms}ms") from e

    async def _fetch(self, url: str, params: Dict[str, Any]) -> Any:
        if self._session is not None:
            return await self._request(self._session, url, params)
        async with aiohttp.ClientSession(timeout=self._client_timeout) as session:
            return await self._request(session, url, params)

    async def _request(self, session: aiohttp.ClientSession, url: str, params: Dict[str, Any]) -> Any:
        try:
            async with session.get(url, params=params, timeout=self._client_timeout) as response:
                if not 200 <= response.status < 300:
                    raise self._status_error(response.status)
                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise TransportError(f"Invalid JSON in response from {url}") from e
        except asyncio.TimeoutError:
            raise
        except (aiohttp.ClientError, RuntimeError) as e:
            # aiohttp raises RuntimeError for a closed session
            logger.error(f"Request to {url} failed: {e}")
            raise TransportError(f"Request failed: {e}") from e

    @staticmethod
    def _status_error(status: int) -> WeatherProviderError:
        if status == 404:
            return NotFoundError("Location not found")
        if status == 401:
            return UnauthorizedError("Invalid API key")
        logger.error(f"OpenWeather returned HTTP {status}")
        return UpstreamError(status)

    # ------------------------------------------------------------------
    # Response shaping
    # ------------------------------------------------------------------

    @staticmethod
    def _transform_weather(data: Dict[str, Any], units: Units) -> WeatherSnapshot:
        try:
            main = data["main"]
            condition = (data.get("weather") or [{}])[0]
            wind = data.get("wind") or {}
            return WeatherSnapshot(
                location=data.get("name", ""),
                country=(data.get("sys") or {}).get("country", ""),
                temperature=_round_half_up(main["temp"]),
                feels_like=_round_half_up(main.get("feels_like", main["temp"])),
                humidity=main.get("humidity", 0),
                pressure=main.get("pressure", 0),
                description=condition.get("description", ""),
                icon=condition.get("icon", ""),
                wind_speed=wind.get("speed") or 0,
                wind_direction=wind.get("deg") or 0,
                visibility=data.get("visibility") or 0,
                uv_index=data.get("uvi"),
                units=units,
            )
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise TransportError(f"Malformed weather response: {e}") from e

    @staticmethod
    def _transform_forecast(data: Dict[str, Any], units: Units, days: int) -> ForecastSnapshot:
        """
        Roll 3-hourly samples up into daily entries.

        Samples are grouped by the city's local calendar date. The entry at
        local noon (or the day's first sample) supplies description and icon;
        rain and snow volumes are summed over the day.
        """
        try:
            city = data.get("city") or {}
            offset = city.get("timezone") or 0

            daily: Dict[str, List[Tuple[datetime, Dict[str, Any]]]] = {}
            for item in sorted(data.get("list") or [], key=lambda entry: entry["dt"]):
                local = datetime.fromtimestamp(item["dt"] + offset, tz=timezone.utc)
                daily.setdefault(local.date().isoformat(), []).append((local, item))

            forecasts = []
            for date, samples in list(daily.items())[:days]:
                temps = [item["main"]["temp"] for _, item in samples]
                midday = next((item for local, item in samples if local.hour == 12), samples[0][1])
                condition = (midday.get("weather") or [{}])[0]
                precipitation = sum(
                    (item.get("rain") or {}).get("3h", 0) + (item.get("snow") or {}).get("3h", 0)
                    for _, item in samples
                )
                forecasts.append(
                    ForecastDay(
                        date=date,
                        high=_round_half_up(max(temps)),
                        low=_round_half_up(min(temps)),
                        description=condition.get("description", ""),
                        icon=condition.get("icon", ""),
                        precipitation=round(precipitation, 2),
                    )
                )

            return ForecastSnapshot(
                location=city.get("name", ""),
                country=city.get("country", ""),
                forecasts=tuple(forecasts),
                units=units,
            )
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise TransportError(f"Malformed forecast response: {e}") from e


__all__ = ["OpenWeatherProvider", "DEFAULT_BASE_URL", "DEFAULT_GEO_URL", "DEFAULT_TIMEOUT_MS"]
