from __future__ import annotations

import asyncio
import json

import pytest

from agrigenius.models import FarmLocation
from agrigenius.services.assistant import (
    API_KEY_MISSING_TEXT,
    EMPTY_RESPONSE_TEXT,
    INVALID_RESPONSE_TEXT,
    AgriAssistant,
    ImageAttachment,
    build_context,
    build_prompt,
    parse_reply,
)
from agrigenius.services.errors import InferenceFailure
from agrigenius.services.sensors import SensorReading
from agrigenius.services.weather import build_snapshot

from fakes import fake_genai_client, forecast_payload

READING = SensorReading(nitrogen=40, phosphorus=30, potassium=45, temperature=33.0, humidity=80, moisture=25)


def test_parse_reply_reads_both_fields():
    reply = parse_reply(json.dumps({"responseText": "**Disease:** Blight", "languageCode": "ta-IN"}))

    assert reply.text == "**Disease:** Blight"
    assert reply.lang == "ta-IN"


@pytest.mark.parametrize("raw", ["not json at all", "", None, "[1, 2]"])
def test_parse_reply_degrades_on_garbage(raw):
    reply = parse_reply(raw)

    assert reply.text == INVALID_RESPONSE_TEXT
    assert reply.lang == "en-US"


def test_parse_reply_fills_missing_fields():
    reply = parse_reply("{}")

    assert reply.text == EMPTY_RESPONSE_TEXT
    assert reply.lang == "en-US"


def test_build_context_mentions_every_source(clock):
    weather = build_snapshot(forecast_payload(), now=clock())
    context = build_context(READING, FarmLocation(lat=12.9716, lon=77.5946), weather)

    assert "- Nitrogen (N): 40" in context
    assert "- Temperature: 33.0°C" in context
    assert "- Latitude: 12.9716" in context
    assert "Current Condition: Slight Rain" in context
    assert "Next 5 Days Summary" in context


def test_build_prompt_defaults():
    assert build_prompt("", True, "") == "Please analyze this crop image."
    assert build_prompt("", False, "") == "Hello!"
    assert "**User's Question:** Why?" in build_prompt("Why?", False, "\n**Farm Location:**\n")


def test_missing_api_key_short_circuits():
    assistant = AgriAssistant(api_key="")

    reply = asyncio.run(assistant.analyze("hello"))

    assert reply.text == API_KEY_MISSING_TEXT
    assert reply.lang == "en-US"


def test_analyze_sends_image_and_context():
    client, models = fake_genai_client(text='{"responseText": "Use copper fungicide.", "languageCode": "hi-IN"}')
    assistant = AgriAssistant(client=client, model="test-model")

    reply = asyncio.run(
        assistant.analyze("पत्ते पीले हैं", image=ImageAttachment(b"jpeg"), sensor=READING, language="hi")
    )

    assert reply.text == "Use copper fungicide."
    assert reply.lang == "hi-IN"
    request = models.requests[0]
    assert request["model"] == "test-model"
    parts = request["contents"][0].parts
    assert parts[0].inline_data.data == b"jpeg"
    assert "Live Sensor Data" in parts[1].text
    assert "पत्ते पीले हैं" in parts[1].text
    assert "preferred language is hi-IN" in request["config"].system_instruction
    assert request["config"].response_mime_type == "application/json"


def test_analyze_wraps_transport_errors():
    client, _ = fake_genai_client(error=RuntimeError("503 UNAVAILABLE"))

    with pytest.raises(InferenceFailure):
        asyncio.run(AgriAssistant(client=client).analyze("hello"))


def test_analyze_tolerates_non_json_text():
    client, _ = fake_genai_client(text="Sure! Here's some advice.")

    reply = asyncio.run(AgriAssistant(client=client).analyze("hello"))

    assert reply.text == INVALID_RESPONSE_TEXT
