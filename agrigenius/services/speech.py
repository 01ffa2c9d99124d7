"""Speech capture / playback capabilities.

Speech engines live on the client device. Controllers only see these
protocols, and availability is decided once when a controller is built.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, Protocol, Sequence, TypeVar, Union

from agrigenius.core.i18n import normalize_language
from agrigenius.services.errors import UnsupportedCapability

E = TypeVar("E")

# Engine error codes, mirroring the Web Speech API vocabulary.
ERROR_NOT_ALLOWED = "not-allowed"
SILENT_ERRORS = frozenset({"no-speech", "audio-capture"})


class RecognitionListener(Protocol):
    def on_result(self, transcript: str) -> None: ...

    def on_error(self, code: str) -> None: ...

    def on_end(self) -> None: ...


class SpeechRecognizer(Protocol):
    """Continuous speech-to-text engine bound to one language."""

    language: str

    def start(self) -> None: ...

    def stop(self) -> None: ...


RecognizerFactory = Callable[[str, RecognitionListener], SpeechRecognizer]


@dataclass(frozen=True)
class Voice:
    name: str
    lang: str


@dataclass
class Utterance:
    text: str
    lang: str
    voice: Optional[Voice] = None
    on_end: Optional[Callable[[], None]] = None
    on_error: Optional[Callable[[str], None]] = None


class SpeechSynthesizer(Protocol):
    @property
    def speaking(self) -> bool: ...

    def voices(self) -> Sequence[Voice]: ...

    def speak(self, utterance: Utterance) -> None: ...

    def cancel(self) -> None: ...


@dataclass(frozen=True)
class Available(Generic[E]):
    engine: E


@dataclass(frozen=True)
class Unavailable:
    reason: str = "unsupported"


Capability = Union[Available[E], Unavailable]


def detect(engine: Optional[E]) -> "Capability[E]":
    """Tag an optional engine (or factory) as available or not."""
    if engine is None:
        return Unavailable()
    return Available(engine)


def require(capability: "Capability[E]") -> E:
    """Unwrap an available engine or raise ``UnsupportedCapability``."""
    if isinstance(capability, Unavailable):
        raise UnsupportedCapability(f"Speech engine unavailable: {capability.reason}")
    return capability.engine


def recognition_language(code: str) -> str:
    """BCP-47 tag used for speech capture in the active display language."""
    base = normalize_language(code)
    return "en-US" if base == "en" else f"{base}-IN"


def select_voice(voices: Sequence[Voice], lang: str | None) -> Voice | None:
    """Exact language match, else same language family, else engine default."""

    target = lang or "en-US"
    for voice in voices:
        if voice.lang == target:
            return voice
    family = target.split("-")[0]
    for voice in voices:
        if voice.lang.startswith(family):
            return voice
    return None


__all__ = [
    "Available",
    "Capability",
    "ERROR_NOT_ALLOWED",
    "RecognitionListener",
    "RecognizerFactory",
    "SILENT_ERRORS",
    "SpeechRecognizer",
    "SpeechSynthesizer",
    "Unavailable",
    "Utterance",
    "Voice",
    "detect",
    "recognition_language",
    "require",
    "select_voice",
]
