"""Chat session state for the AI farm assistant."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from agrigenius.core.context import SessionContext
from agrigenius.models import FarmLocation
from agrigenius.services.assistant import AgriAssistant, ImageAttachment
from agrigenius.services.errors import AgriGeniusError, UnsupportedCapability
from agrigenius.services.gateway import ProfileGateway
from agrigenius.services.refresher import utc_now
from agrigenius.services.sensors import SensorReading
from agrigenius.services.speech import (
    ERROR_NOT_ALLOWED,
    SILENT_ERRORS,
    Available,
    RecognizerFactory,
    SpeechRecognizer,
    SpeechSynthesizer,
    Utterance,
    detect,
    recognition_language,
    require,
    select_voice,
)
from agrigenius.services.weather import OpenMeteoClient, WeatherSnapshot

logger = logging.getLogger(__name__)

# Synthesis errors raised by our own cancel() calls.
_CANCEL_ERRORS = frozenset({"interrupted", "canceled"})


class Sender(str, Enum):
    USER = "user"
    BOT = "bot"


class DeliveryStatus(str, Enum):
    SENT = "sent"
    DELIVERED = "delivered"


class SendResult(str, Enum):
    """Terminal state of one send; the controller is idle again afterwards."""

    SKIPPED = "skipped"
    DELIVERED = "delivered"
    FAILED = "failed"
    DISCARDED = "discarded"


@dataclass
class ChatMessage:
    id: str
    sender: Sender
    text: str
    image: Optional[str] = None
    lang: Optional[str] = None
    timestamp: datetime = field(default_factory=utc_now)
    status: Optional[DeliveryStatus] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sender": self.sender.value,
            "text": self.text,
            "image": self.image,
            "lang": self.lang,
            "timestamp": self.timestamp.isoformat(),
            "status": self.status.value if self.status else None,
        }


class _RecognitionEvents:
    """Forward engine callbacks to the owning controller."""

    def __init__(self, controller: "ConversationController") -> None:
        self._controller = controller

    def on_result(self, transcript: str) -> None:
        self._controller._handle_transcript(transcript)

    def on_error(self, code: str) -> None:
        self._controller._handle_capture_error(code)

    def on_end(self) -> None:
        self._controller._handle_capture_end()


class ConversationController:
    """One chat session: message log, pending sends, attachment and voice toggles.

    Overlapping sends are allowed. Each completion marks the user message
    that triggered it as delivered and appends its reply in completion order.
    """

    def __init__(
        self,
        context: SessionContext,
        assistant: AgriAssistant,
        gateway: ProfileGateway | None = None,
        weather_client: OpenMeteoClient | None = None,
        sensor_source: Callable[[], SensorReading | None] | None = None,
        recognizer_factory: RecognizerFactory | None = None,
        synthesizer: SpeechSynthesizer | None = None,
    ) -> None:
        self.context = context
        self.translator = context.translator
        self.assistant = assistant
        self.gateway = gateway
        self.weather_client = weather_client
        self.sensor_source = sensor_source

        self.messages: list[ChatMessage] = [
            ChatMessage(
                id="initial-welcome",
                sender=Sender.BOT,
                text=self.translator.t("yourAIFarmAssistant"),
                lang=recognition_language(context.language),
            )
        ]
        self.input_text = ""
        self.attachment: ImageAttachment | None = None
        self.location: FarmLocation | None = None
        self.weather: WeatherSnapshot | None = None
        self.closed = False
        self._in_flight = 0

        self.is_listening = False
        self.is_detecting_speech = False
        self._wants_listening = False
        self.speech_error: str | None = None
        self.tts_error: str | None = None
        self.speaking_message_id: str | None = None

        self._recognizer: SpeechRecognizer | None = None
        try:
            factory = require(detect(recognizer_factory))
        except UnsupportedCapability:
            self.speech_error = self.translator.t("speechNotSupported")
        else:
            self._recognizer = factory(recognition_language(context.language), _RecognitionEvents(self))

        synthesis = detect(synthesizer)
        self._synthesizer: SpeechSynthesizer | None = (
            synthesis.engine if isinstance(synthesis, Available) else None
        )

    # -- context ----------------------------------------------------------

    async def load_context(self) -> None:
        """Fetch the farm location and a forecast to enrich requests (best effort)."""

        if self.gateway is None or not self.context.is_authenticated:
            return
        try:
            profile = self.gateway.find_profile(self.context.identity)
        except AgriGeniusError as exc:
            logger.warning("Could not load profile for chat context: %s", exc)
            return
        self.location = profile.farm_location if profile else None
        if self.location is None or self.weather_client is None:
            return
        try:
            self.weather = await self.weather_client.fetch(self.location, self.context.language)
        except AgriGeniusError as exc:
            logger.error("Failed to fetch weather for chat: %s", exc)

    # -- sending ----------------------------------------------------------

    @property
    def is_pending(self) -> bool:
        return self._in_flight > 0

    def suggested_questions(self) -> list[str]:
        return [
            self.translator.t("bestCropSuggestion"),
            "How do I treat powdery mildew on my plants?",
            "What do my current sensor readings indicate for my farm?",
        ]

    def attach_image(self, data: bytes, mime_type: str = "image/jpeg") -> ImageAttachment:
        self.attachment = ImageAttachment(data=data, mime_type=mime_type)
        return self.attachment

    def clear_image(self) -> None:
        self.attachment = None

    @property
    def image_preview(self) -> str | None:
        return self.attachment.preview if self.attachment else None

    async def send(self, text: str | None = None) -> SendResult:
        """Send ``text`` (or the input field) plus any staged image."""

        trimmed = (self.input_text if text is None else text).strip()
        attachment = self.attachment
        if self.closed or (not trimmed and attachment is None):
            return SendResult.SKIPPED

        user_message = ChatMessage(
            id=uuid.uuid4().hex,
            sender=Sender.USER,
            text=trimmed,
            image=attachment.preview if attachment else None,
            status=DeliveryStatus.SENT,
        )
        self.messages.append(user_message)
        self.input_text = ""
        self.attachment = None
        self._in_flight += 1

        try:
            sensor = self.sensor_source() if self.sensor_source else None
            reply = await self.assistant.analyze(
                trimmed,
                image=attachment,
                sensor=sensor,
                location=self.location,
                weather=self.weather,
                language=self.context.language,
            )
        except Exception as exc:
            logger.error("Assistant request failed: %s", exc)
            if self.closed:
                return SendResult.DISCARDED
            self.messages.append(
                ChatMessage(id=uuid.uuid4().hex, sender=Sender.BOT, text=self.translator.t("genericError"))
            )
            return SendResult.FAILED
        finally:
            self._in_flight -= 1

        if self.closed:
            logger.debug("Discarding assistant reply for closed session")
            return SendResult.DISCARDED
        user_message.status = DeliveryStatus.DELIVERED
        self.messages.append(
            ChatMessage(id=uuid.uuid4().hex, sender=Sender.BOT, text=reply.text, lang=reply.lang)
        )
        return SendResult.DELIVERED

    # -- speech capture ---------------------------------------------------

    @property
    def can_listen(self) -> bool:
        return self._recognizer is not None

    def toggle_listening(self) -> bool:
        """Start or stop continuous capture; returns the new listening state."""

        if self._recognizer is None or self.closed:
            return False
        if self.is_listening:
            self._wants_listening = False
            self.is_listening = False
            self._recognizer.stop()
            return False

        self.speech_error = None
        try:
            self._wants_listening = True
            self._recognizer.start()
            self.is_listening = True
            self.is_detecting_speech = True
        except Exception as exc:
            logger.error("Error starting speech recognition: %s", exc)
            self.speech_error = self.translator.t("speechStartError")
            self._force_capture_off()
        return self.is_listening

    def _handle_transcript(self, transcript: str) -> None:
        if not self.is_listening or self.closed:
            return
        self.input_text = transcript
        self.speech_error = None

    def _handle_capture_error(self, code: str) -> None:
        logger.warning("Speech recognition error: %s", code)
        if code == ERROR_NOT_ALLOWED:
            self.speech_error = self.translator.t("speechPermissionError")
        elif code not in SILENT_ERRORS:
            self.speech_error = self.translator.t("speechRecognitionError", error=code)
        self._force_capture_off()

    def _handle_capture_end(self) -> None:
        if not self._wants_listening or self._recognizer is None:
            self.is_detecting_speech = False
            return
        try:
            self._recognizer.start()
        except Exception as exc:
            logger.error("Error restarting speech recognition: %s", exc)
            self._force_capture_off()

    def _force_capture_off(self) -> None:
        self._wants_listening = False
        self.is_listening = False
        self.is_detecting_speech = False

    # -- speech playback --------------------------------------------------

    @property
    def can_speak(self) -> bool:
        return self._synthesizer is not None

    def toggle_speech(self, message_id: str) -> bool:
        """Speak a message, or stop it if it is the one playing; returns True when playing."""

        synthesizer = self._synthesizer
        if synthesizer is None or self.closed:
            return False
        message = next((m for m in self.messages if m.id == message_id), None)
        if message is None:
            return False

        if self.speaking_message_id == message.id:
            synthesizer.cancel()
            self.speaking_message_id = None
            return False

        if synthesizer.speaking or self.speaking_message_id is not None:
            synthesizer.cancel()
        self.tts_error = None

        lang = message.lang or "en-US"
        utterance = Utterance(
            text=message.text,
            lang=lang,
            voice=select_voice(synthesizer.voices(), lang),
            on_end=lambda: self._finish_playback(message.id),
            on_error=lambda code: self._finish_playback(message.id, code),
        )
        self.speaking_message_id = message.id
        synthesizer.speak(utterance)
        return self.speaking_message_id == message.id

    def _finish_playback(self, message_id: str, error: str | None = None) -> None:
        if self.speaking_message_id != message_id:
            return
        if error and error not in _CANCEL_ERRORS:
            logger.error("SpeechSynthesis error: %s", error)
            self.tts_error = self.translator.t("ttsError", error=error)
        self.speaking_message_id = None

    # -- teardown ---------------------------------------------------------

    def close(self) -> None:
        """Release voice resources; replies that arrive later are dropped."""

        if self.closed:
            return
        self.closed = True
        if self._synthesizer is not None and (
            self._synthesizer.speaking or self.speaking_message_id is not None
        ):
            self._synthesizer.cancel()
        self.speaking_message_id = None
        if self._recognizer is not None:
            self._wants_listening = False
            if self.is_listening:
                self._recognizer.stop()
        self.is_listening = False
        self.is_detecting_speech = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "messages": [message.to_dict() for message in self.messages],
            "input": self.input_text,
            "image_preview": self.image_preview,
            "is_pending": self.is_pending,
            "is_listening": self.is_listening,
            "speaking_message_id": self.speaking_message_id,
            "speech_error": self.speech_error,
            "tts_error": self.tts_error,
            "suggestions": self.suggested_questions() if len(self.messages) == 1 else [],
            "closed": self.closed,
        }


__all__ = [
    "ChatMessage",
    "ConversationController",
    "DeliveryStatus",
    "SendResult",
    "Sender",
]
