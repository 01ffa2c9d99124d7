"""Per-user controller registry backing the HTTP API."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field

import httpx

from agrigenius.core.config import settings
from agrigenius.core.context import SessionContext
from agrigenius.services.assistant import AgriAssistant
from agrigenius.services.conversation import ConversationController
from agrigenius.services.errors import NotAuthenticated, NotFound
from agrigenius.services.gateway import ProfileGateway
from agrigenius.services.navigation import View, ViewRouter
from agrigenius.services.sensors import SensorPoller, SensorReading
from agrigenius.services.speech import RecognizerFactory, SpeechSynthesizer
from agrigenius.services.weather import OpenMeteoClient, WeatherRefresher

logger = logging.getLogger(__name__)


@dataclass
class UserControllers:
    context: SessionContext
    router: ViewRouter
    sensors: SensorPoller | None = None
    weather: WeatherRefresher | None = None
    chats: dict[str, ConversationController] = field(default_factory=dict)
    sensors_lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    weather_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class ControllerRegistry:
    """Create controllers lazily per user and tear them down with their screen.

    A context change (new language) discards every controller bound to the
    previous context.
    """

    def __init__(
        self,
        gateway: ProfileGateway | None = None,
        assistant: AgriAssistant | None = None,
        sensor_client: httpx.AsyncClient | None = None,
        weather_client: OpenMeteoClient | None = None,
        recognizer_factory: RecognizerFactory | None = None,
        synthesizer: SpeechSynthesizer | None = None,
    ) -> None:
        self.gateway = gateway or ProfileGateway()
        self.assistant = assistant or AgriAssistant()
        self.sensor_client = sensor_client or httpx.AsyncClient(timeout=settings.sensor_fetch_timeout)
        self.weather_client = weather_client or OpenMeteoClient()
        self.recognizer_factory = recognizer_factory
        self.synthesizer = synthesizer
        self._users: dict[str, UserControllers] = {}

    def _entry(self, context: SessionContext) -> UserControllers:
        if context.identity is None:
            raise NotAuthenticated("No user is logged in.")
        uid = context.identity.uid
        entry = self._users.get(uid)
        if entry is not None and entry.context != context:
            logger.info("Session context changed for %s; rebuilding controllers", uid)
            self._teardown(entry)
            entry = None
        if entry is None:
            entry = UserControllers(context=context, router=ViewRouter())
            entry.router.register(View.DASHBOARD, unmount=lambda e=entry: self._stop_sensors(e))
            entry.router.register(View.WEATHER, unmount=lambda e=entry: self._stop_weather(e))
            entry.router.start()
            self._users[uid] = entry
        return entry

    def router(self, context: SessionContext) -> ViewRouter:
        return self._entry(context).router

    async def sensors(self, context: SessionContext) -> SensorPoller:
        entry = self._entry(context)
        async with entry.sensors_lock:
            if entry.sensors is None or entry.sensors.closed:
                entry.sensors = SensorPoller(context, self.gateway, client=self.sensor_client)
                await entry.sensors.start()
            elif not entry.sensors.state.polling:
                # idle until configured; the profile may have changed since
                await entry.sensors.start()
            return entry.sensors

    async def weather(self, context: SessionContext) -> WeatherRefresher:
        entry = self._entry(context)
        async with entry.weather_lock:
            if entry.weather is None or entry.weather.closed:
                entry.weather = WeatherRefresher(context, self.gateway, client=self.weather_client)
                await entry.weather.start()
            elif not entry.weather.state.polling:
                await entry.weather.start()
            return entry.weather

    def latest_reading(self, context: SessionContext) -> SensorReading | None:
        entry = self._users.get(context.identity.uid) if context.identity else None
        if entry is None or entry.sensors is None:
            return None
        return entry.sensors.state.value

    async def open_chat(self, context: SessionContext) -> tuple[str, ConversationController]:
        entry = self._entry(context)
        controller = ConversationController(
            context,
            self.assistant,
            gateway=self.gateway,
            weather_client=self.weather_client,
            sensor_source=lambda: self.latest_reading(context),
            recognizer_factory=self.recognizer_factory,
            synthesizer=self.synthesizer,
        )
        await controller.load_context()
        session_id = uuid.uuid4().hex
        entry.chats[session_id] = controller
        if not entry.router.chat_open:
            entry.router.toggle_chat()
        return session_id, controller

    def get_chat(self, context: SessionContext, session_id: str) -> ConversationController:
        controller = self._entry(context).chats.get(session_id)
        if controller is None:
            raise NotFound(f"Unknown chat session: {session_id}")
        return controller

    def close_chat(self, context: SessionContext, session_id: str) -> None:
        entry = self._entry(context)
        controller = entry.chats.pop(session_id, None)
        if controller is None:
            raise NotFound(f"Unknown chat session: {session_id}")
        controller.close()
        if not entry.chats and entry.router.chat_open:
            entry.router.toggle_chat()

    @staticmethod
    def _stop_sensors(entry: UserControllers) -> None:
        if entry.sensors is not None:
            entry.sensors.stop()
            entry.sensors = None

    @staticmethod
    def _stop_weather(entry: UserControllers) -> None:
        if entry.weather is not None:
            entry.weather.stop()
            entry.weather = None

    def _teardown(self, entry: UserControllers) -> None:
        entry.router.close()
        self._stop_sensors(entry)
        self._stop_weather(entry)
        for controller in entry.chats.values():
            controller.close()
        entry.chats.clear()

    def reset_feeds(self, uid: str) -> None:
        """Stop the sensor and weather controllers after a profile edit."""

        entry = self._users.get(uid)
        if entry is not None:
            self._stop_sensors(entry)
            self._stop_weather(entry)

    def forget(self, uid: str) -> None:
        entry = self._users.pop(uid, None)
        if entry is not None:
            self._teardown(entry)

    async def shutdown(self) -> None:
        for uid in list(self._users):
            self.forget(uid)
        await self.weather_client.aclose()
        await self.sensor_client.aclose()
        logger.info("Controller registry shut down")


registry: ControllerRegistry | None = None


def get_registry() -> ControllerRegistry:
    global registry
    if registry is None:
        registry = ControllerRegistry()
    return registry


__all__ = ["ControllerRegistry", "UserControllers", "get_registry", "registry"]
