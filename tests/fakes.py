"""Injected collaborators shared by the test modules."""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta
from types import SimpleNamespace

from agrigenius.services.assistant import AssistantReply
from agrigenius.services.speech import Voice


class FakeAssistant:
    def __init__(self, reply=None, error=None):
        self.reply = reply or AssistantReply("Apply neem oil weekly.", "en-US")
        self.error = error
        self.calls = []
        self.gates: dict[str, asyncio.Event] = {}
        self.replies: dict[str, str] = {}

    async def analyze(self, prompt, image=None, sensor=None, location=None, weather=None, language="en"):
        self.calls.append(
            {"prompt": prompt, "image": image, "sensor": sensor, "location": location, "weather": weather, "language": language}
        )
        gate = self.gates.get(prompt)
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        return AssistantReply(self.replies.get(prompt, self.reply.text), self.reply.lang)


class FakeRecognizer:
    def __init__(self, language, listener, fail_on_start=0):
        self.language = language
        self.listener = listener
        self.fail_on_start = fail_on_start
        self.starts = 0
        self.stops = 0

    def start(self):
        self.starts += 1
        if self.fail_on_start and self.starts >= self.fail_on_start:
            raise RuntimeError("recognizer busy")

    def stop(self):
        self.stops += 1


class RecognizerFactory:
    def __init__(self, fail_on_start=0):
        self.fail_on_start = fail_on_start
        self.instance = None

    def __call__(self, language, listener):
        self.instance = FakeRecognizer(language, listener, self.fail_on_start)
        return self.instance


class FakeSynthesizer:
    def __init__(self, voices=None):
        self._voices = voices if voices is not None else [Voice("Google US English", "en-US"), Voice("Lekha", "hi-IN")]
        self.spoken = []
        self.cancels = 0

    @property
    def speaking(self):
        return bool(self.spoken) and self.spoken[-1].active

    def voices(self):
        return self._voices

    def speak(self, utterance):
        self.spoken.append(SimpleNamespace(utterance=utterance, active=True))

    def cancel(self):
        self.cancels += 1
        for entry in self.spoken:
            if entry.active:
                entry.active = False
                if entry.utterance.on_error:
                    entry.utterance.on_error("interrupted")

    def finish(self):
        entry = self.spoken[-1]
        entry.active = False
        entry.utterance.on_end()

    def fail(self, code):
        entry = self.spoken[-1]
        entry.active = False
        entry.utterance.on_error(code)


class FakeGenaiModels:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.requests = []

    async def generate_content(self, model, contents, config=None):
        self.requests.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def fake_genai_client(text=None, error=None):
    models = FakeGenaiModels(text=text, error=error)
    return SimpleNamespace(aio=SimpleNamespace(models=models)), models


IST_OFFSET = 19800


def forecast_payload(start=date(2024, 6, 3), days=5, offset=IST_OFFSET):
    base = datetime(start.year, start.month, start.day)
    hours = [base + timedelta(hours=step) for step in range(days * 24)]
    return {
        "latitude": 12.97,
        "longitude": 77.59,
        "utc_offset_seconds": offset,
        "hourly": {
            "time": [moment.strftime("%Y-%m-%dT%H:%M") for moment in hours],
            "temperature_2m": [20.0 + step % 24 * 0.5 for step in range(len(hours))],
            "relative_humidity_2m": [60 + step % 10 for step in range(len(hours))],
            "weather_code": [61 if step % 24 >= 12 else 0 for step in range(len(hours))],
            "wind_speed_10m": [5.5 for _ in hours],
        },
        "daily": {
            "time": [(start + timedelta(days=day)).isoformat() for day in range(days)],
            "weather_code": [3, 61, 0, 95, 999][:days],
            "temperature_2m_max": [31.0 + day for day in range(days)],
            "temperature_2m_min": [19.0 + day for day in range(days)],
        },
    }
