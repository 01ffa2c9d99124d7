"""Locally persisted preferences that survive across sessions."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from agrigenius.core.config import settings
from agrigenius.core.i18n import is_supported

logger = logging.getLogger(__name__)


class LocalPreferences:
    """Tiny YAML-backed store; readable before any remote profile is loaded.

    The top-level language is the deployment default, used before sign-in and
    for new profiles. Signed-in users get their own entry under ``users``.
    """

    LANGUAGE_KEY = "language"
    USERS_KEY = "users"

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path or settings.preferences_path).expanduser()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Failed to read preferences from %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def get_language(self, uid: str | None = None) -> str | None:
        data = self._read()
        users = data.get(self.USERS_KEY)
        if uid is not None and isinstance(users, dict) and is_supported(users.get(uid)):
            return users[uid]
        value = data.get(self.LANGUAGE_KEY)
        return value if is_supported(value) else None

    def set_language(self, code: str, uid: str | None = None) -> None:
        if not is_supported(code):
            raise ValueError(f"Unsupported language code: {code}")
        data = self._read()
        if uid is None:
            data[self.LANGUAGE_KEY] = code
        else:
            users = data.get(self.USERS_KEY)
            if not isinstance(users, dict):
                users = data[self.USERS_KEY] = {}
            users[uid] = code
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(yaml.safe_dump(data, allow_unicode=True), encoding="utf-8")


__all__ = ["LocalPreferences"]
