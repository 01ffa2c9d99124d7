"""Open-Meteo forecast integration and the periodic weather refresher."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable

import httpx

from agrigenius.core.config import settings
from agrigenius.core.context import SessionContext
from agrigenius.core.i18n import get_translator
from agrigenius.models import FarmLocation
from agrigenius.services.errors import (
    MalformedResponse,
    NetworkFailure,
    NotAuthenticated,
    NotConfigured,
    NotFound,
)
from agrigenius.services.gateway import ProfileGateway
from agrigenius.services.refresher import PeriodicRefresher, utc_now
from agrigenius.services.weather_codes import describe

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = (
    "Failed to get weather forecast from the weather service. "
    "Please check the network connection and try again."
)
MALFORMED_MESSAGE = "Invalid data format received from weather service."
NO_LOCATION_MESSAGE = "Farm location is not set."

HOURLY_FIELDS = ("temperature_2m", "relative_humidity_2m", "weather_code", "wind_speed_10m")
DAILY_FIELDS = ("weather_code", "temperature_2m_max", "temperature_2m_min")
WEEKDAY_KEYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True)
class CurrentWeather:
    temperature: float
    condition: str
    humidity: float
    wind_speed: float


@dataclass(frozen=True)
class HourlyForecast:
    time: str
    temperature: float
    condition: str


@dataclass(frozen=True)
class DailyForecast:
    day: str
    min_temp: float
    max_temp: float
    condition: str


@dataclass(frozen=True)
class WeatherSnapshot:
    """Normalized forecast; replaced wholesale on each refresh."""

    current: CurrentWeather
    hourly: list[HourlyForecast] = field(default_factory=list)
    daily: list[DailyForecast] = field(default_factory=list)


def _coerce_float(value: Any) -> float | None:
    try:
        if value is None or isinstance(value, bool):
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _series_value(series: Any, index: int) -> float:
    if not isinstance(series, list) or index >= len(series):
        raise MalformedResponse(MALFORMED_MESSAGE)
    value = _coerce_float(series[index])
    if value is None:
        raise MalformedResponse(MALFORMED_MESSAGE)
    return value


def _parse_time(value: Any) -> datetime:
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError as exc:
        raise MalformedResponse(MALFORMED_MESSAGE) from exc
    return parsed.replace(tzinfo=None)


def hour_label(moment: datetime) -> str:
    """Render an hour the way the forecast strip shows it, e.g. ``3 PM``."""
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{moment.hour % 12 or 12} {suffix}"


def current_hour_index(times: list[datetime], now: datetime) -> int:
    """Index of the latest timestamp at or before ``now`` (0 when none is)."""
    for index in range(len(times) - 1, -1, -1):
        if times[index] <= now:
            return index
    return 0


def build_snapshot(
    payload: Any,
    language: str = "en",
    now: datetime | None = None,
    hourly_entries: int | None = None,
) -> WeatherSnapshot:
    """Transform a raw Open-Meteo payload into a ``WeatherSnapshot``.

    Timestamps in the payload are local to the farm (``timezone=auto``), so
    ``now`` (UTC) is shifted by ``utc_offset_seconds`` before comparing.
    """

    if not isinstance(payload, dict):
        raise MalformedResponse(MALFORMED_MESSAGE)
    hourly = payload.get("hourly") or {}
    daily = payload.get("daily") or {}
    if not isinstance(hourly, dict) or not isinstance(daily, dict):
        raise MalformedResponse(MALFORMED_MESSAGE)
    hourly_times_raw = hourly.get("time")
    daily_times_raw = daily.get("time")
    if not isinstance(hourly_times_raw, list) or not hourly_times_raw:
        raise MalformedResponse(MALFORMED_MESSAGE)
    if not isinstance(daily_times_raw, list):
        raise MalformedResponse(MALFORMED_MESSAGE)

    translator = get_translator(language)
    offset = timedelta(seconds=int(payload.get("utc_offset_seconds") or 0))
    now_utc = now or utc_now()
    if now_utc.tzinfo is None:
        now_utc = now_utc.replace(tzinfo=timezone.utc)
    local_now = (now_utc.astimezone(timezone.utc) + offset).replace(tzinfo=None)

    hourly_times = [_parse_time(value) for value in hourly_times_raw]
    index = current_hour_index(hourly_times, local_now)

    current = CurrentWeather(
        temperature=_series_value(hourly.get("temperature_2m"), index),
        condition=describe(_series_value(hourly.get("weather_code"), index), language),
        humidity=_series_value(hourly.get("relative_humidity_2m"), index),
        wind_speed=_series_value(hourly.get("wind_speed_10m"), index),
    )

    limit = hourly_entries or settings.weather_hourly_entries
    hourly_forecast = [
        HourlyForecast(
            time=hour_label(hourly_times[position]),
            temperature=_series_value(hourly.get("temperature_2m"), position),
            condition=describe(_series_value(hourly.get("weather_code"), position), language),
        )
        for position in range(index, min(index + limit, len(hourly_times)))
    ]

    daily_forecast: list[DailyForecast] = []
    for position, raw_day in enumerate(daily_times_raw):
        try:
            day = date.fromisoformat(str(raw_day)[:10])
        except ValueError as exc:
            raise MalformedResponse(MALFORMED_MESSAGE) from exc
        daily_forecast.append(
            DailyForecast(
                day=translator.t(WEEKDAY_KEYS[day.weekday()]),
                min_temp=_series_value(daily.get("temperature_2m_min"), position),
                max_temp=_series_value(daily.get("temperature_2m_max"), position),
                condition=describe(_series_value(daily.get("weather_code"), position), language),
            )
        )

    return WeatherSnapshot(current=current, hourly=hourly_forecast, daily=daily_forecast)


class OpenMeteoClient:
    """Fetch forecast payloads for a farm location."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = base_url or settings.weather_api_url
        self.timeout = timeout or settings.weather_api_timeout
        self._client = client
        self._owns_client = client is None

    def build_params(self, location: FarmLocation) -> dict[str, Any]:
        return {
            "latitude": location.lat,
            "longitude": location.lon,
            "hourly": ",".join(HOURLY_FIELDS),
            "daily": ",".join(DAILY_FIELDS),
            "timezone": "auto",
            "forecast_days": settings.weather_forecast_days,
        }

    async def fetch_payload(self, location: FarmLocation) -> dict[str, Any]:
        client = self._get_client()
        try:
            logger.debug("Fetching Open-Meteo forecast for %s,%s", location.lat, location.lon)
            response = await client.get(
                self.base_url,
                params=self.build_params(location),
                headers={"Cache-Control": "no-cache"},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Open-Meteo API call failed: %s", exc)
            if isinstance(exc, httpx.HTTPStatusError):
                logger.warning(
                    "Open-Meteo error response: %s %s",
                    exc.response.status_code,
                    exc.response.text[:500],
                )
            raise NetworkFailure(FETCH_FAILED_MESSAGE) from exc
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponse(MALFORMED_MESSAGE) from exc

    async def fetch(
        self, location: FarmLocation, language: str = "en", now: datetime | None = None
    ) -> WeatherSnapshot:
        payload = await self.fetch_payload(location)
        return build_snapshot(payload, language=language, now=now)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None


class WeatherRefresher(PeriodicRefresher[WeatherSnapshot]):
    """Refresh the farm forecast on a long interval."""

    resource = "weather"

    def __init__(
        self,
        context: SessionContext,
        gateway: ProfileGateway,
        client: OpenMeteoClient | None = None,
        interval_seconds: float | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(
            interval_seconds or settings.weather_refresh_minutes * 60,
            clock=clock,
        )
        self.context = context
        self.gateway = gateway
        self.client = client or OpenMeteoClient()
        self.location: FarmLocation | None = None

    def _resolve_location(self) -> FarmLocation:
        if not self.context.is_authenticated:
            raise NotAuthenticated("No user is logged in.")
        try:
            profile = self.gateway.get_profile(self.context.identity)
        except NotFound:
            profile = None
        self.location = profile.farm_location if profile else None
        if self.location is None:
            raise NotConfigured(NO_LOCATION_MESSAGE)
        return self.location

    async def _activate(self) -> None:
        self._resolve_location()

    async def _fetch(self) -> WeatherSnapshot:
        location = self._resolve_location()
        return await self.client.fetch(location, self.context.language, now=self._clock())

    async def aclose(self) -> None:
        self.stop()
        await self.client.aclose()


__all__ = [
    "CurrentWeather",
    "DailyForecast",
    "HourlyForecast",
    "OpenMeteoClient",
    "WeatherRefresher",
    "WeatherSnapshot",
    "build_snapshot",
    "current_hour_index",
    "hour_label",
]
