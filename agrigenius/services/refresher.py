"""Periodic refresh loop shared by the sensor and weather controllers."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import asdict, dataclass, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from prometheus_client import Counter, Histogram

from agrigenius.core.config import settings
from agrigenius.services.errors import AgriGeniusError, NotAuthenticated, NotConfigured

logger = logging.getLogger(__name__)

T = TypeVar("T")

REFRESH_SUCCESS = Counter(
    "agrigenius_refresh_success_total",
    "Successful refresh cycles per resource.",
    ["resource"],
)
REFRESH_FAILURE = Counter(
    "agrigenius_refresh_failure_total",
    "Failed refresh cycles per resource and error kind.",
    ["resource", "kind"],
)
REFRESH_LATENCY_SECONDS = Histogram(
    "agrigenius_refresh_fetch_seconds",
    "Latency of each refresh fetch.",
    ["resource"],
)


class LoadPhase(str, Enum):
    """Only the first fetch of a cycle drives the blocking loading state."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"


@dataclass
class RefreshState(Generic[T]):
    value: T | None = None
    is_loading: bool = True
    error: str | None = None
    error_kind: str | None = None
    last_updated: datetime | None = None
    phase: LoadPhase = LoadPhase.UNINITIALIZED
    polling: bool = False

    def to_dict(self) -> dict[str, Any]:
        value: Any = self.value
        if value is not None and is_dataclass(value):
            value = asdict(value)
        return {
            "value": value,
            "is_loading": self.is_loading,
            "error": self.error,
            "error_kind": self.error_kind,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "phase": self.phase.value,
            "polling": self.polling,
        }


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PeriodicRefresher(Generic[T]):
    """Fetch a resource now and then every ``interval_seconds``.

    Subclasses implement ``_activate`` (resolve configuration, raising
    ``NotAuthenticated``/``NotConfigured`` to stay idle) and ``_fetch``.
    A failed refresh keeps the last good value unless the resource is no
    longer configured. Results that land after ``stop()`` or after a newer
    ``refetch()`` are dropped.
    """

    resource = "resource"

    def __init__(self, interval_seconds: float, clock: Callable[[], datetime] | None = None) -> None:
        self.interval_seconds = interval_seconds
        self.state: RefreshState[T] = RefreshState()
        self._clock = clock or utc_now
        self._task: asyncio.Task[None] | None = None
        self._generation = 0
        self._closed = False
        self._listeners: list[Callable[[RefreshState[T]], None]] = []

    # -- subclass hooks ---------------------------------------------------

    async def _activate(self) -> None:
        return None

    async def _fetch(self) -> T:
        raise NotImplementedError

    def _format_error(self, exc: Exception) -> str:
        return str(exc) or "An unknown error occurred."

    # -- lifecycle --------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Callable[[RefreshState[T]], None]) -> None:
        self._listeners.append(listener)

    async def start(self) -> None:
        """Activate, perform the first fetch and schedule background refreshes."""

        if self._closed:
            raise RuntimeError(f"{self.resource} controller has been stopped")
        self._cancel_task()
        self._generation += 1
        generation = self._generation

        try:
            await self._activate()
        except (NotAuthenticated, NotConfigured) as exc:
            if generation == self._generation and not self._closed:
                self._apply_configuration_error(exc)
            return

        await self.refresh(generation)
        if generation == self._generation and not self._closed:
            self.state.polling = True
            self._task = asyncio.create_task(self._run(generation), name=f"{self.resource}-refresh")

    async def refetch(self) -> None:
        """Clear value and error, then restart the cycle as a first load."""

        self.state.phase = LoadPhase.UNINITIALIZED
        self.state.value = None
        self.state.is_loading = True
        self.state.error = None
        self.state.error_kind = None
        self._notify()
        await self.start()

    def stop(self) -> None:
        """Cancel the timer; nothing fetched afterwards is applied."""

        if self._closed:
            return
        self._closed = True
        self._generation += 1
        self._cancel_task()
        self.state.polling = False
        logger.debug("Stopped %s refresher", self.resource)

    async def _run(self, generation: int) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            if generation != self._generation or self._closed:
                return
            await self.refresh(generation)

    async def refresh(self, generation: int | None = None) -> None:
        """Run one fetch and fold its outcome into ``state``."""

        generation = self._generation if generation is None else generation
        first_load = self.state.phase is LoadPhase.UNINITIALIZED
        if first_load and not self.state.is_loading:
            self.state.is_loading = True
            self._notify()

        started = time.perf_counter()
        value: T | None = None
        failure: Exception | None = None
        try:
            value = await self._fetch()
        except AgriGeniusError as exc:
            failure = exc
        except Exception as exc:
            logger.exception("Unexpected failure refreshing %s", self.resource)
            failure = exc
        finally:
            if settings.metrics_enabled:
                REFRESH_LATENCY_SECONDS.labels(self.resource).observe(time.perf_counter() - started)

        if generation != self._generation or self._closed:
            logger.debug("Discarding stale %s result", self.resource)
            return

        if failure is None:
            self.state.value = value
            self.state.last_updated = self._clock()
            self.state.error = None
            self.state.error_kind = None
            if settings.metrics_enabled:
                REFRESH_SUCCESS.labels(self.resource).inc()
        else:
            kind = getattr(failure, "kind", "error")
            if isinstance(failure, (NotAuthenticated, NotConfigured)):
                self.state.error = str(failure)
            else:
                self.state.error = self._format_error(failure)
            if isinstance(failure, NotConfigured):
                self.state.value = None
            self.state.error_kind = kind
            logger.warning("Failed to refresh %s: %s", self.resource, failure)
            if settings.metrics_enabled:
                REFRESH_FAILURE.labels(self.resource, kind).inc()

        if first_load:
            self.state.phase = LoadPhase.INITIALIZED
        self.state.is_loading = False
        self._notify()

    def _apply_configuration_error(self, exc: AgriGeniusError) -> None:
        self.state.error = str(exc)
        self.state.error_kind = exc.kind
        if isinstance(exc, NotConfigured):
            self.state.value = None
        self.state.phase = LoadPhase.INITIALIZED
        self.state.is_loading = False
        self.state.polling = False
        logger.info("%s refresher idle: %s", self.resource, exc)
        self._notify()

    def _cancel_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.state)
            except Exception:
                logger.exception("%s state listener failed", self.resource)


__all__ = ["LoadPhase", "PeriodicRefresher", "RefreshState", "utc_now"]
