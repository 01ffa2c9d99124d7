"""WMO weather interpretation codes mapped to readable condition labels."""

from __future__ import annotations

from agrigenius.core.i18n import FALLBACK_LANGUAGE, normalize_language

WMO_DESCRIPTIONS: dict[int, dict[str, str]] = {
    0: {"en": "Clear sky", "hi": "साफ आसमान"},
    1: {"en": "Mainly clear", "hi": "मुख्य रूप से साफ"},
    2: {"en": "Partly cloudy", "hi": "आंशिक रूप से बादल"},
    3: {"en": "Overcast", "hi": "घने बादल"},
    45: {"en": "Fog", "hi": "कोहरा"},
    48: {"en": "Rime fog", "hi": "जमने वाला कोहरा"},
    51: {"en": "Light Drizzle", "hi": "हलकी बूंदाबांदी"},
    53: {"en": "Moderate Drizzle", "hi": "मध्यम बूंदाबांदी"},
    55: {"en": "Dense Drizzle", "hi": "घनी बूंदाबांदी"},
    61: {"en": "Slight Rain", "hi": "हलकी बारिश"},
    63: {"en": "Moderate Rain", "hi": "मध्यम बारिश"},
    65: {"en": "Heavy Rain", "hi": "भारी बारिश"},
    71: {"en": "Slight Snow", "hi": "हलकी बर्फबारी"},
    73: {"en": "Moderate Snow", "hi": "मध्यम बर्फबारी"},
    75: {"en": "Heavy Snow", "hi": "भारी बर्फबारी"},
    80: {"en": "Slight Rain Showers", "hi": "हलकी बौछारें"},
    81: {"en": "Moderate Rain Showers", "hi": "मध्यम बौछारें"},
    82: {"en": "Violent Rain Showers", "hi": "तेज बौछारें"},
    95: {"en": "Thunderstorm", "hi": "आंधी-तूफान"},
    96: {"en": "Thunderstorm with Hail", "hi": "ओलावृष्टि के साथ आंधी"},
    99: {"en": "Thunderstorm with Hail", "hi": "ओलावृष्टि के साथ आंधी"},
}

# Generic label for codes missing from the table.
UNKNOWN_CONDITION: dict[str, str] = {"en": "Cloudy", "hi": "बादल"}


def describe(code: int | float | None, language: str = FALLBACK_LANGUAGE) -> str:
    """Return the condition label for ``code`` in ``language`` (English fallback)."""

    lang = normalize_language(language)
    try:
        entry = WMO_DESCRIPTIONS.get(int(code)) if code is not None else None
    except (TypeError, ValueError):
        entry = None
    table = entry or UNKNOWN_CONDITION
    return table.get(lang) or table[FALLBACK_LANGUAGE]


__all__ = ["UNKNOWN_CONDITION", "WMO_DESCRIPTIONS", "describe"]
