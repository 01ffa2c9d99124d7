from __future__ import annotations

import asyncio

import httpx
import pytest

from agrigenius.core.context import SessionContext
from agrigenius.services.errors import NotAuthenticated, NotFound
from agrigenius.services.navigation import View
from agrigenius.services.registry import ControllerRegistry
from agrigenius.services.weather import OpenMeteoClient

from fakes import FakeAssistant

FEED = {"Nitrogen": 42, "Phosphorus": 31, "Potassium": 55, "Temp": 27.5, "Humidity": 64, "Moisture": 38}


def make_registry(gateway, assistant=None, sensor_feed=None):
    def default_feed(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=FEED)

    def forecast(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    return ControllerRegistry(
        gateway=gateway,
        assistant=assistant or FakeAssistant(),
        sensor_client=httpx.AsyncClient(transport=httpx.MockTransport(sensor_feed or default_feed)),
        weather_client=OpenMeteoClient(client=httpx.AsyncClient(transport=httpx.MockTransport(forecast))),
    )


def test_sensors_are_started_once_per_user(context, gateway, identity):
    gateway.save_profile(identity, {"script_url": "https://sensors.example.com/exec"})
    registry = make_registry(gateway)

    async def scenario():
        first = await registry.sensors(context)
        second = await registry.sensors(context)
        reading = registry.latest_reading(context)
        await registry.shutdown()
        return first, second, reading

    first, second, reading = asyncio.run(scenario())

    assert first is second
    assert reading.nitrogen == 42
    assert first.closed


def test_leaving_a_screen_tears_down_its_controller(context, gateway, identity):
    gateway.save_profile(identity, {"script_url": "https://sensors.example.com/exec"})
    registry = make_registry(gateway)

    async def scenario():
        poller = await registry.sensors(context)
        registry.router(context).navigate(View.WEATHER)
        stopped = poller.closed
        registry.router(context).navigate(View.DASHBOARD)
        replacement = await registry.sensors(context)
        await registry.shutdown()
        return poller, stopped, replacement

    poller, stopped, replacement = asyncio.run(scenario())

    assert stopped is True
    assert replacement is not poller


def test_weather_failure_is_visible_state(context, gateway, identity):
    gateway.save_profile(identity, {"farm_location": {"lat": 12.9716, "lon": 77.5946}})
    registry = make_registry(gateway)

    async def scenario():
        refresher = await registry.weather(context)
        await registry.shutdown()
        return refresher

    refresher = asyncio.run(scenario())

    assert refresher.state.error_kind == "network_failure"
    assert refresher.state.value is None


def test_chat_sessions_lifecycle(context, gateway):
    registry = make_registry(gateway)

    async def scenario():
        session_id, controller = await registry.open_chat(context)
        chat_open = registry.router(context).chat_open
        await controller.send("hello")
        registry.close_chat(context, session_id)
        return session_id, controller, chat_open

    session_id, controller, chat_open = asyncio.run(scenario())

    assert chat_open is True
    assert controller.closed
    assert registry.router(context).chat_open is False
    with pytest.raises(NotFound):
        registry.get_chat(context, session_id)


def test_language_change_rebuilds_controllers(context, gateway):
    registry = make_registry(gateway)

    async def scenario():
        _, controller = await registry.open_chat(context)
        return controller

    controller = asyncio.run(scenario())
    router = registry.router(context.with_language("hi"))

    assert controller.closed
    assert router is not None
    assert registry.router(context.with_language("hi")) is router


def test_anonymous_context_is_rejected(gateway):
    with pytest.raises(NotAuthenticated):
        make_registry(gateway).router(SessionContext(identity=None))


def test_idle_poller_picks_up_saved_url(context, gateway, identity):
    registry = make_registry(gateway)

    async def scenario():
        idle = await registry.sensors(context)
        error = idle.state.error
        gateway.save_profile(identity, {"script_url": "https://sensors.example.com/exec"})
        resumed = await registry.sensors(context)
        await registry.shutdown()
        return idle, error, resumed

    idle, error, resumed = asyncio.run(scenario())

    assert error == "URL is not configured."
    assert resumed is idle
    assert resumed.state.value.nitrogen == 42
    assert resumed.state.error is None


def test_reset_feeds_keeps_chat_sessions(context, gateway, identity):
    gateway.save_profile(identity, {"script_url": "https://sensors.example.com/exec"})
    registry = make_registry(gateway)

    async def scenario():
        poller = await registry.sensors(context)
        session_id, _ = await registry.open_chat(context)
        registry.reset_feeds(identity.uid)
        chat = registry.get_chat(context, session_id)
        replacement = await registry.sensors(context)
        await registry.shutdown()
        return poller, chat, replacement

    poller, chat, replacement = asyncio.run(scenario())

    assert poller.closed
    assert replacement is not poller
    assert chat is not None


def test_slow_endpoint_does_not_block_other_users(context, gateway, auth, identity):
    other = auth.sign_up("ravi@example.com", "Ravi", "harvest42")
    gateway.save_profile(identity, {"script_url": "https://slow.example.com/exec"})
    gateway.save_profile(other, {"script_url": "https://sensors.example.com/exec"})

    async def scenario():
        release = asyncio.Event()

        async def feed(request: httpx.Request) -> httpx.Response:
            if request.url.host == "slow.example.com":
                await release.wait()
            return httpx.Response(200, json=FEED)

        registry = make_registry(gateway, sensor_feed=feed)
        slow = asyncio.create_task(registry.sensors(context))
        await asyncio.sleep(0.01)
        fast = await asyncio.wait_for(
            registry.sensors(SessionContext(identity=other, language="en")), timeout=1
        )
        slow_done = slow.done()
        release.set()
        await slow
        await registry.shutdown()
        return fast, slow_done

    fast, slow_done = asyncio.run(scenario())

    assert slow_done is False
    assert fast.state.value.nitrogen == 42
