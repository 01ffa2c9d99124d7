from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from agrigenius import create_app
from agrigenius.api.deps import (
    get_auth_service,
    get_controller_registry,
    get_gateway,
    get_language_service,
)
from agrigenius.core.preferences import LocalPreferences
from agrigenius.services.language import LanguageService
from agrigenius.services.registry import ControllerRegistry

from fakes import FakeAssistant


SENSOR_URL = "https://sensors.example.com/exec"
FEED = {"Nitrogen": 42, "Phosphorus": 31, "Potassium": 55, "Temp": 27.5, "Humidity": 64, "Moisture": 38}


@pytest.fixture
def sensor_requests():
    return []


@pytest.fixture
def client(gateway, auth, tmp_path, sensor_requests, monkeypatch):
    for var in ("LC_ALL", "LC_MESSAGES"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("LANG", "C")

    def feed(request: httpx.Request) -> httpx.Response:
        sensor_requests.append(str(request.url))
        return httpx.Response(200, json=FEED)

    app = create_app()
    registry = ControllerRegistry(
        gateway=gateway,
        assistant=FakeAssistant(),
        sensor_client=httpx.AsyncClient(transport=httpx.MockTransport(feed)),
    )
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_auth_service] = lambda: auth
    app.dependency_overrides[get_language_service] = lambda: LanguageService(
        gateway, LocalPreferences(tmp_path / "prefs.yml")
    )
    app.dependency_overrides[get_controller_registry] = lambda: registry
    return TestClient(app)


@pytest.fixture
def headers(client):
    response = client.post(
        "/api/auth/signup",
        json={"email": "ravi@example.com", "name": "Ravi", "password": "harvest42"},
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_login_errors(client, headers):
    bad = client.post("/api/auth/login", json={"email": "ravi@example.com", "password": "wrong"})
    empty = client.post("/api/auth/login", json={"email": "", "password": ""})
    good = client.post("/api/auth/login", json={"email": "ravi@example.com", "password": "harvest42"})

    assert bad.status_code == 401
    assert bad.json()["detail"]["message"] == "Error: Invalid Credentials"
    assert empty.status_code == 422
    assert empty.json()["detail"]["message"] == "Please enter email and password."
    assert good.status_code == 200
    assert good.json()["token_type"] == "bearer"


def test_signup_requires_all_fields(client):
    response = client.post("/api/auth/signup", json={"email": "a@b.c", "password": "harvest42"})

    assert response.status_code == 422
    assert response.json()["detail"]["message"] == "Please fill in all fields."


def test_endpoints_require_token(client):
    assert client.get("/api/profile").status_code == 401
    assert client.get("/api/sensors", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_profile_edit_flow(client, headers):
    patched = client.patch(
        "/api/profile",
        json={"farm_size": "4 acres", "farm_location": {"lat": 40.0, "lon": -75.0}},
        headers=headers,
    )
    assert patched.status_code == 200
    assert patched.json()["farm_location"] == {"lat": 40.0, "lon": -75.0}

    invalid = client.put("/api/profile/location", json={"lat": "100", "lon": "0"}, headers=headers)
    assert invalid.status_code == 422
    assert invalid.json()["detail"]["kind"] == "invalid_coordinates"

    moved = client.put("/api/profile/location", json={"lat": "12.9716", "lon": "77.5946"}, headers=headers)
    assert moved.json()["farm_location"] == {"lat": 12.9716, "lon": 77.5946}

    profile = client.get("/api/profile", headers=headers).json()
    assert profile["name"] == "Ravi"
    assert profile["farm_size"] == "4 acres"


def test_profile_image_upload(client, headers):
    response = client.post(
        "/api/profile/image",
        files={"file": ("me.png", b"png-bytes", "image/png")},
        data={"name": "Ravi Kumar"},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Ravi Kumar"
    assert body["profile_image"].startswith("/media/profile_images/")


def test_language_switch_localizes_responses(client, headers):
    assert client.put("/api/profile/language", json={"language": "xx"}, headers=headers).status_code == 422

    response = client.put("/api/profile/language", json={"language": "hi"}, headers=headers)
    assert response.json() == {"language": "hi"}

    prices = client.get("/api/market/prices", headers=headers).json()
    assert prices["items"][0]["name"] == "गेहूं"
    assert client.get("/api/profile", headers=headers).json()["language"] == "hi"


def test_market_sections(client, headers):
    sections = client.get("/api/market", headers=headers).json()["sections"]

    assert [section["id"] for section in sections] == ["prices", "inputs", "schemes"]
    assert client.get("/api/market/sell", headers=headers).status_code == 404


def test_unconfigured_sensors_and_weather(client, headers):
    sensors = client.get("/api/sensors", headers=headers).json()
    advice = client.get("/api/sensors/advice", headers=headers).json()
    weather = client.get("/api/weather", headers=headers).json()

    assert sensors["error"] == "URL is not configured."
    assert sensors["is_loading"] is False
    assert advice["keys"] == ["adviceWaiting"]
    assert weather["error"] == "Farm location is not set."


def test_saved_sensor_url_reaches_dashboard(client, headers, sensor_requests):
    before = client.get("/api/sensors", headers=headers).json()
    assert before["error"] == "URL is not configured."

    saved = client.patch("/api/profile", json={"script_url": SENSOR_URL}, headers=headers)
    assert saved.status_code == 200

    after = client.get("/api/sensors", headers=headers).json()
    assert after["error"] is None
    assert after["value"]["nitrogen"] == 42
    assert sensor_requests == [SENSOR_URL]

    client.patch("/api/profile", json={"script_url": ""}, headers=headers)
    cleared = client.get("/api/sensors", headers=headers).json()
    assert cleared["error"] == "URL is not configured."
    assert cleared["value"] is None
    assert len(sensor_requests) == 1


def test_navigation(client, headers):
    assert client.get("/api/navigation", headers=headers).json()["active"] == "dashboard"

    moved = client.post("/api/navigation/weather", headers=headers).json()
    assert moved["active"] == "weather"
    assert client.post("/api/navigation/unknown", headers=headers).json()["active"] == "dashboard"
    assert client.post("/api/navigation/chat", headers=headers).json()["chat_open"] is True


def test_chat_session_round_trip(client, headers):
    opened = client.post("/api/chat/sessions", headers=headers)
    assert opened.status_code == 201
    session_id = opened.json()["session_id"]
    assert len(opened.json()["messages"]) == 1

    sent = client.post(
        f"/api/chat/sessions/{session_id}/messages",
        json={"text": "How much urea per acre?"},
        headers=headers,
    ).json()
    assert sent["result"] == "delivered"
    assert [message["sender"] for message in sent["messages"]] == ["bot", "user", "bot"]
    assert sent["messages"][1]["status"] == "delivered"

    skipped = client.post(f"/api/chat/sessions/{session_id}/messages", json={"text": " "}, headers=headers)
    assert skipped.json()["result"] == "skipped"

    assert client.delete(f"/api/chat/sessions/{session_id}", headers=headers).status_code == 204
    assert client.get(f"/api/chat/sessions/{session_id}", headers=headers).status_code == 404


def test_logs_endpoint(client):
    response = client.get("/api/logs", params={"limit": 5})

    assert response.status_code == 200
    assert isinstance(response.json()["logs"], list)
