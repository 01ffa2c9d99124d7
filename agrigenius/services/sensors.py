"""Live soil/climate telemetry polled from the user's sensor endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping

import httpx

from agrigenius.core.config import settings
from agrigenius.core.context import SessionContext
from agrigenius.core.i18n import Translator
from agrigenius.services.errors import (
    MalformedResponse,
    NetworkFailure,
    NotAuthenticated,
    NotConfigured,
    NotFound,
)
from agrigenius.services.gateway import ProfileGateway
from agrigenius.services.refresher import PeriodicRefresher, RefreshState

logger = logging.getLogger(__name__)

NO_USER_MESSAGE = "No user is logged in."
NOT_CONFIGURED_MESSAGE = "URL is not configured."
MALFORMED_MESSAGE = "Invalid data format received from the server."
CORS_HINT_MESSAGE = (
    "A network error occurred. This could be a CORS issue or a lost connection. "
    "Please ensure your sensor endpoint is deployed correctly."
)

# Internal field name -> accepted payload keys (PascalCase feed, internal names).
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "nitrogen": ("Nitrogen", "nitrogen"),
    "phosphorus": ("Phosphorus", "phosphorus"),
    "potassium": ("Potassium", "potassium"),
    "temperature": ("Temp", "temperature"),
    "humidity": ("Humidity", "humidity"),
    "moisture": ("Moisture", "moisture"),
}


@dataclass(frozen=True)
class SensorReading:
    """One complete telemetry snapshot; replaced wholesale on every poll."""

    nitrogen: float
    phosphorus: float
    potassium: float
    temperature: float
    humidity: float
    moisture: float


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def normalize_payload(payload: Any) -> SensorReading:
    """Validate the six numeric fields and map them to internal names."""

    if not isinstance(payload, Mapping):
        raise MalformedResponse(MALFORMED_MESSAGE)
    values: dict[str, float] = {}
    for field, aliases in FIELD_ALIASES.items():
        for key in aliases:
            if key in payload:
                raw = payload[key]
                break
        else:
            raise MalformedResponse(MALFORMED_MESSAGE)
        if not _is_number(raw):
            raise MalformedResponse(MALFORMED_MESSAGE)
        values[field] = raw
    return SensorReading(**values)


class SensorPoller(PeriodicRefresher[SensorReading]):
    """Poll the user-configured telemetry endpoint every few seconds."""

    resource = "sensors"

    def __init__(
        self,
        context: SessionContext,
        gateway: ProfileGateway,
        client: httpx.AsyncClient | None = None,
        interval_seconds: float | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(interval_seconds or settings.sensor_poll_interval_seconds, clock=clock)
        self.context = context
        self.gateway = gateway
        self.endpoint: str | None = None
        self._client = client
        self._owns_client = client is None

    def _resolve_endpoint(self) -> str:
        """Read the endpoint from the profile; it may change between polls."""

        if not self.context.is_authenticated:
            raise NotAuthenticated(NO_USER_MESSAGE)
        try:
            profile = self.gateway.get_profile(self.context.identity)
        except NotFound:
            profile = None
        script_url = ((profile.script_url if profile else "") or "").strip()
        if not script_url:
            self.endpoint = None
            raise NotConfigured(NOT_CONFIGURED_MESSAGE)
        if script_url != self.endpoint:
            logger.info("Sensor endpoint for %s set to %s", self.context.identity.uid, script_url)
        self.endpoint = script_url
        return script_url

    async def _activate(self) -> None:
        self._resolve_endpoint()

    async def _fetch(self) -> SensorReading:
        endpoint = self._resolve_endpoint()
        client = self._get_client()
        try:
            response = await client.get(
                endpoint,
                headers={"Cache-Control": "no-cache"},
                follow_redirects=True,
            )
        except httpx.TransportError as exc:
            logger.warning("Sensor endpoint unreachable (%s): %s", endpoint, exc)
            raise NetworkFailure(CORS_HINT_MESSAGE, cors_hint=True) from exc
        if response.is_error:
            raise NetworkFailure(f"Network response was not ok. Status: {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponse(MALFORMED_MESSAGE) from exc
        return normalize_payload(payload)

    def _format_error(self, exc: Exception) -> str:
        message = str(exc) or "An unknown error occurred."
        return f"Failed to fetch sensor data. {message}"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=settings.sensor_fetch_timeout)
        return self._client

    async def aclose(self) -> None:
        self.stop()
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None


def describe_status(state: RefreshState[SensorReading], translator: Translator) -> str | None:
    """Status line shown under the dashboard heading."""

    stamp = state.last_updated.strftime("%H:%M:%S") if state.last_updated else None
    if state.is_loading and stamp is None:
        return translator.t("fetchingLiveData")
    if state.error and stamp:
        return translator.t("connectionIssue", time=stamp)
    if stamp:
        return translator.t("lastUpdated", time=stamp)
    return None


__all__ = [
    "FIELD_ALIASES",
    "SensorPoller",
    "SensorReading",
    "describe_status",
    "normalize_payload",
]
