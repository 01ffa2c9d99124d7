"""Rule-of-thumb farm advice derived from the latest sensor reading."""

from __future__ import annotations

from agrigenius.core.i18n import Translator
from agrigenius.services.sensors import SensorReading

HIGH_HUMIDITY = 75.0
LOW_MOISTURE = 30.0
HIGH_TEMPERATURE = 30.0
LOW_NITROGEN = 50.0
LOW_POTASSIUM = 50.0


def advice_keys(reading: SensorReading | None) -> list[str]:
    if reading is None:
        return ["adviceWaiting"]
    keys: list[str] = []
    if reading.humidity > HIGH_HUMIDITY:
        keys.append("adviceHighHumidity")
    if reading.moisture < LOW_MOISTURE:
        keys.append("adviceLowMoisture")
    if reading.temperature > HIGH_TEMPERATURE:
        keys.append("adviceHighTemp")
    if reading.nitrogen < LOW_NITROGEN:
        keys.append("adviceLowNitro")
    if reading.potassium < LOW_POTASSIUM:
        keys.append("adviceLowPotassium")
    return keys or ["adviceOptimal"]


def todays_advice(reading: SensorReading | None, translator: Translator) -> str:
    return " ".join(translator.t(key) for key in advice_keys(reading))


__all__ = ["advice_keys", "todays_advice"]
