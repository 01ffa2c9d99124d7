"""Explicit session context handed to every controller."""

from __future__ import annotations

from dataclasses import dataclass

from agrigenius.core.i18n import Translator, get_translator, normalize_language


@dataclass(frozen=True)
class Identity:
    """Authenticated user identity as issued by the auth backend."""

    uid: str
    email: str


@dataclass(frozen=True)
class SessionContext:
    """Authenticated identity plus the active display language.

    Controllers receive one of these at construction. A language change
    produces a new context, and controllers bound to the old one are torn
    down and re-created.
    """

    identity: Identity | None
    language: str = "en"

    def __post_init__(self) -> None:
        object.__setattr__(self, "language", normalize_language(self.language))

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def translator(self) -> Translator:
        return get_translator(self.language)

    def with_language(self, language: str) -> "SessionContext":
        return SessionContext(identity=self.identity, language=language)


__all__ = ["Identity", "SessionContext"]
