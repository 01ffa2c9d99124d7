"""Supported languages and translation lookup."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from agrigenius.core.config import settings

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).resolve().parent.parent / "locales"
FALLBACK_LANGUAGE = "en"

SUPPORTED_LANGUAGES: dict[str, str] = {
    "en": "English",
    "hi": "हिन्दी",
    "bn": "বাংলা",
    "ta": "தமிழ்",
    "te": "తెలుగు",
    "mr": "मराठी",
    "gu": "ગુજરાતી",
    "kn": "ಕನ್ನಡ",
    "pa": "ਪੰਜਾਬੀ",
    "ml": "മലയാളം",
}

BCP47_MAP: dict[str, str] = {
    code: ("en-US" if code == "en" else f"{code}-IN") for code in SUPPORTED_LANGUAGES
}


def is_supported(code: str | None) -> bool:
    return bool(code) and code in SUPPORTED_LANGUAGES


def normalize_language(code: str | None) -> str:
    """Reduce ``hi-IN`` / ``hi_IN`` style tags to a supported two-letter code."""

    if not code:
        return FALLBACK_LANGUAGE
    base = code.replace("_", "-").split("-")[0].lower()
    return base if base in SUPPORTED_LANGUAGES else FALLBACK_LANGUAGE


def to_bcp47(code: str | None) -> str:
    return BCP47_MAP.get(normalize_language(code), "en-US")


def system_language() -> str | None:
    """Best guess at the host's preferred language, if it is one we support."""

    for var in ("LC_ALL", "LC_MESSAGES", "LANG"):
        value = os.environ.get(var)
        if value:
            base = value.split(".")[0].replace("_", "-").split("-")[0].lower()
            if base in SUPPORTED_LANGUAGES:
                return base
    return None


def resolve_language(
    profile_language: str | None = None,
    stored_language: str | None = None,
    system: str | None = None,
) -> str:
    """Pick the display language: profile, then local preference, then host locale."""

    for candidate in (profile_language, stored_language, system):
        if is_supported(candidate):
            return candidate  # type: ignore[return-value]
    return normalize_language(settings.default_language)


@lru_cache(maxsize=None)
def load_table(code: str) -> dict[str, str]:
    path = LOCALES_DIR / f"{code}.yml"
    if not path.exists():
        return {}
    data: Any = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        logger.warning("Ignoring malformed translation table %s", path)
        return {}
    return {str(key): str(value) for key, value in data.items()}


class Translator:
    """Key lookup with ``{placeholder}`` substitution and English fallback."""

    def __init__(self, language: str) -> None:
        self.language = normalize_language(language)
        table = load_table(self.language)
        if not table and self.language != FALLBACK_LANGUAGE:
            logger.warning(
                "Could not load translations for '%s'. Falling back to English.", self.language
            )
        self._table = table
        self._fallback = load_table(FALLBACK_LANGUAGE)

    def t(self, key: str, **replacements: Any) -> str:
        text = self._table.get(key) or self._fallback.get(key) or key
        for placeholder, value in replacements.items():
            text = text.replace(f"{{{placeholder}}}", str(value))
        return text

    __call__ = t


@lru_cache(maxsize=None)
def get_translator(language: str) -> Translator:
    return Translator(language)


__all__ = [
    "BCP47_MAP",
    "FALLBACK_LANGUAGE",
    "SUPPORTED_LANGUAGES",
    "Translator",
    "get_translator",
    "is_supported",
    "normalize_language",
    "resolve_language",
    "system_language",
    "to_bcp47",
]
