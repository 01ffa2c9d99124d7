"""Crop diagnosis assistant backed by the Gemini API."""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any

from google import genai
from google.genai import types
from prometheus_client import Counter

from agrigenius.core.config import settings
from agrigenius.core.i18n import to_bcp47
from agrigenius.models import FarmLocation
from agrigenius.services.errors import InferenceFailure
from agrigenius.services.sensors import SensorReading
from agrigenius.services.weather import WeatherSnapshot

logger = logging.getLogger(__name__)

API_KEY_MISSING_TEXT = "API Key is not configured. Please contact support."
INVALID_RESPONSE_TEXT = "Sorry, I received an invalid response from the server. Please try again."
EMPTY_RESPONSE_TEXT = "I couldn't generate a proper response."
DEFAULT_REPLY_LANGUAGE = "en-US"

ASSISTANT_REQUESTS = Counter(
    "agrigenius_assistant_requests_total",
    "Assistant requests by outcome.",
    ["outcome"],
)

SYSTEM_INSTRUCTION_TEMPLATE = """You are AgriGenius, a world-class AI agricultural expert specializing in plant pathology and crop management for farmers.

**Core Instructions:**
1.  **Analyze Image:** If an image is provided, identify diseases, pests, or nutrient deficiencies. Provide clear, simple names. If uncertain, state the most likely possibilities.
2.  **Provide Solutions:**
    *   **Chemical Solution:** Recommend a specific, common pesticide or treatment.
    *   **Organic Solution:** Describe a practical organic remedy if available.
3.  **Give Recommendations:** Suggest fertilizers or care changes for recovery and prevention.
4.  **Use Sensor Data:** If sensor data is provided, it is a **primary context**. Your advice MUST be based on these readings (e.g., "Nitrogen is low, so plant legumes," or "High humidity increases fungal risk, so improve air circulation.").
5.  **Incorporate Location and Weather:** If location and weather data are provided, use them to tailor your advice. For example, if it's rainy, suggest fungicide applications. If a heatwave is forecasted, recommend irrigation.
6.  **General Advice:** If no image or specific query is given, provide a helpful, relevant tip based on the sensor data, location, and weather.

**Language and Formatting Rules:**
- **CRITICAL:** Your final output must be a single, valid JSON object with no text or markdown before or after it.
- The JSON object must have two keys: "responseText" and "languageCode".
- **"responseText":** your complete, user-facing answer, formatted with headings (e.g., '**Disease:**') and bullet points.
- **"languageCode":** the BCP 47 code for the language you used in "responseText".
- **IMPORTANT:** The user's preferred language is {preferred}. Always respond in the same language as the user's prompt. If the prompt's language is unclear, default to the user's preferred language.
- Use these codes for common Indian languages: Hindi: 'hi-IN', Bengali: 'bn-IN', Tamil: 'ta-IN', Telugu: 'te-IN', Marathi: 'mr-IN', Gujarati: 'gu-IN', Kannada: 'kn-IN', Punjabi: 'pa-IN', Malayalam: 'ml-IN'. For English, use 'en-US'.
"""

RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "responseText": types.Schema(type=types.Type.STRING),
        "languageCode": types.Schema(type=types.Type.STRING),
    },
    required=["responseText", "languageCode"],
)


@dataclass(frozen=True)
class ImageAttachment:
    data: bytes
    mime_type: str = "image/jpeg"

    @property
    def preview(self) -> str:
        """``data:`` URL suitable for rendering the staged image."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass(frozen=True)
class AssistantReply:
    text: str
    lang: str


def build_context(
    sensor: SensorReading | None,
    location: FarmLocation | None,
    weather: WeatherSnapshot | None,
) -> str:
    context = ""
    if sensor:
        context += (
            "\n**Live Sensor Data:**\n"
            f"- Nitrogen (N): {sensor.nitrogen:g}\n"
            f"- Phosphorus (P): {sensor.phosphorus:g}\n"
            f"- Potassium (K): {sensor.potassium:g}\n"
            f"- Temperature: {sensor.temperature:.1f}°C\n"
            f"- Humidity: {sensor.humidity:.1f}%\n"
            f"- Soil Moisture: {sensor.moisture:.1f}%\n"
        )
    if location:
        context += (
            "\n**Farm Location:**\n"
            f"- Latitude: {location.lat:.4f}\n"
            f"- Longitude: {location.lon:.4f}\n"
        )
    if weather:
        context += (
            "\n**Current & Forecasted Weather:**\n"
            f"- Current Condition: {weather.current.condition} at {weather.current.temperature:.1f}°C\n"
        )
        if weather.daily:
            today = weather.daily[0]
            conditions = list(dict.fromkeys(day.condition.lower() for day in weather.daily))
            context += (
                f"- Today's Forecast: High of {today.max_temp:.1f}°C, Low of {today.min_temp:.1f}°C. "
                f"Condition: {today.condition}.\n"
                f"- Next {len(weather.daily)} Days Summary: Conditions will generally be "
                f"{', '.join(conditions)}.\n"
            )
    return context


def build_prompt(prompt: str, has_image: bool, context: str) -> str:
    full_prompt = prompt or ("Please analyze this crop image." if has_image else "Hello!")
    if context:
        full_prompt = (
            "\nHere is the context for my farm. Use this to provide the most relevant and tailored advice.\n"
            f"{context}\n\n**User's Question:** {full_prompt}\n"
        )
    return full_prompt


def parse_reply(raw: Any) -> AssistantReply:
    """Parse the model's two-field JSON; anything unparseable degrades to a fixed reply."""

    try:
        data = json.loads((raw or "").strip())
    except (TypeError, ValueError):
        logger.warning("Assistant returned non-JSON content")
        return AssistantReply(INVALID_RESPONSE_TEXT, DEFAULT_REPLY_LANGUAGE)
    if not isinstance(data, dict):
        return AssistantReply(INVALID_RESPONSE_TEXT, DEFAULT_REPLY_LANGUAGE)
    text = data.get("responseText")
    lang = data.get("languageCode")
    return AssistantReply(
        text=str(text) if text else EMPTY_RESPONSE_TEXT,
        lang=str(lang) if lang else DEFAULT_REPLY_LANGUAGE,
    )


class AgriAssistant:
    """Send a prompt plus farm context to the model and parse its reply."""

    def __init__(self, client: Any | None = None, api_key: str | None = None, model: str | None = None) -> None:
        self.api_key = settings.gemini_api_key if api_key is None else api_key
        self.model = model or settings.gemini_model
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=int(settings.gemini_timeout_seconds * 1000)),
            )
        return self._client

    async def analyze(
        self,
        prompt: str,
        image: ImageAttachment | None = None,
        sensor: SensorReading | None = None,
        location: FarmLocation | None = None,
        weather: WeatherSnapshot | None = None,
        language: str = "en",
    ) -> AssistantReply:
        if not self.configured:
            logger.warning("Gemini API key is not set")
            return AssistantReply(API_KEY_MISSING_TEXT, DEFAULT_REPLY_LANGUAGE)

        parts: list[types.Part] = []
        if image is not None:
            parts.append(types.Part.from_bytes(data=image.data, mime_type=image.mime_type))
        full_prompt = build_prompt(prompt, image is not None, build_context(sensor, location, weather))
        parts.append(types.Part.from_text(text=full_prompt))

        config = types.GenerateContentConfig(
            system_instruction=SYSTEM_INSTRUCTION_TEMPLATE.format(preferred=to_bcp47(language)),
            response_mime_type="application/json",
            response_schema=RESPONSE_SCHEMA,
        )
        try:
            response = await self._get_client().aio.models.generate_content(
                model=self.model,
                contents=[types.Content(role="user", parts=parts)],
                config=config,
            )
        except Exception as exc:
            logger.error("Gemini API call failed: %s", exc, exc_info=True)
            if settings.metrics_enabled:
                ASSISTANT_REQUESTS.labels("failure").inc()
            raise InferenceFailure("Failed to get a response from the AI model.") from exc

        if settings.metrics_enabled:
            ASSISTANT_REQUESTS.labels("success").inc()
        return parse_reply(getattr(response, "text", None))


__all__ = [
    "API_KEY_MISSING_TEXT",
    "AgriAssistant",
    "AssistantReply",
    "EMPTY_RESPONSE_TEXT",
    "INVALID_RESPONSE_TEXT",
    "ImageAttachment",
    "build_context",
    "build_prompt",
    "parse_reply",
]
