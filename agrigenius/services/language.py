"""Display language resolution and persistence."""

from __future__ import annotations

import logging

from agrigenius.core.context import Identity, SessionContext
from agrigenius.core.i18n import is_supported, resolve_language, system_language
from agrigenius.core.preferences import LocalPreferences
from agrigenius.services.errors import AgriGeniusError
from agrigenius.services.gateway import ProfileGateway

logger = logging.getLogger(__name__)


class LanguageService:
    """Profile language, then local preference, then host locale, then English."""

    def __init__(self, gateway: ProfileGateway, preferences: LocalPreferences | None = None) -> None:
        self.gateway = gateway
        self.preferences = preferences or LocalPreferences()

    def resolve(self, identity: Identity | None) -> str:
        profile_language = None
        if identity is not None:
            try:
                profile = self.gateway.find_profile(identity)
            except AgriGeniusError as exc:
                logger.warning("Could not read profile language for %s: %s", identity.uid, exc)
                profile = None
            profile_language = profile.language if profile else None
        uid = identity.uid if identity is not None else None
        return resolve_language(profile_language, self.preferences.get_language(uid), system_language())

    def context_for(self, identity: Identity | None) -> SessionContext:
        return SessionContext(identity=identity, language=self.resolve(identity))

    def set_language(self, identity: Identity | None, code: str) -> SessionContext:
        """Persist ``code`` locally and on the profile; returns the new context."""

        if not is_supported(code):
            raise ValueError(f"Unsupported language code: {code}")
        self.preferences.set_language(code, identity.uid if identity is not None else None)
        if identity is not None:
            try:
                self.gateway.save_profile(identity, {"language": code})
            except AgriGeniusError as exc:
                logger.error("Failed to save language for %s: %s", identity.uid, exc)
        return SessionContext(identity=identity, language=code)


__all__ = ["LanguageService"]
