"""Remote data gateway: profile records and profile image storage."""

from __future__ import annotations

import logging
import re
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from agrigenius.core.config import settings
from agrigenius.core.context import Identity
from agrigenius.db.session import get_session
from agrigenius.models import Account, ProfileUpdate, UserProfile
from agrigenius.services.errors import (
    NetworkFailure,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    StorageFailure,
)

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


@contextmanager
def translate_db_errors() -> Iterator[None]:
    """Surface connectivity problems as ``NetworkFailure``."""
    try:
        yield
    except OperationalError as exc:
        logger.warning("Profile store unreachable: %s", exc)
        raise NetworkFailure(f"Profile store unreachable: {exc.orig}") from exc


class ProfileGateway:
    """Pass-through access to profiles; no retries are performed here."""

    def __init__(
        self,
        bind: Engine | None = None,
        data_root: str | Path | None = None,
        media_url_prefix: str | None = None,
    ) -> None:
        self.bind = bind
        self.data_root = Path(data_root or settings.data_root)
        self.media_url_prefix = (media_url_prefix or settings.media_url_prefix).rstrip("/")

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with translate_db_errors(), get_session(self.bind) as session:
            yield session

    def get_profile(self, identity: Identity | None) -> UserProfile:
        if identity is None:
            raise NotAuthenticated("No user is logged in.")
        with self._session() as session:
            record = session.get(UserProfile, identity.uid)
        if record is None:
            logger.warning("No user data found for UID: %s", identity.uid)
            raise NotFound(f"No profile for {identity.uid}")
        return record

    def find_profile(self, identity: Identity | None) -> UserProfile | None:
        try:
            return self.get_profile(identity)
        except NotFound:
            return None

    def save_profile(
        self, identity: Identity | None, update: ProfileUpdate | dict[str, Any]
    ) -> UserProfile:
        """Merge the explicitly provided fields into the stored profile."""

        if identity is None:
            raise NotAuthenticated("No user is logged in.")
        if isinstance(update, dict):
            update = ProfileUpdate.model_validate(update)
        changes = update.model_dump(exclude_unset=True)

        with self._session() as session:
            account = session.get(Account, identity.uid)
            if account is None or account.disabled:
                raise PermissionDenied(f"Profile of {identity.uid} is not writable")

            record = session.get(UserProfile, identity.uid)
            if record is None:
                record = UserProfile(uid=identity.uid, email=identity.email)

            if "farm_location" in changes:
                location = update.farm_location
                record.farm_lat = location.lat if location else None
                record.farm_lon = location.lon if location else None
            for field in ("name", "farm_size", "script_url", "profile_image"):
                if field in changes:
                    setattr(record, field, changes[field] or "")
            if changes.get("language"):
                record.language = changes["language"]
            record.updated_at = datetime.now(timezone.utc)

            session.add(record)
            session.commit()
            session.refresh(record)
            logger.info("Saved profile %s (fields=%s)", identity.uid, sorted(changes))
            return record

    def upload_image(self, identity: Identity | None, data: bytes, filename: str = "image") -> str:
        """Store an image for ``identity`` and return its public URL."""

        if identity is None:
            raise NotAuthenticated("No user is logged in.")
        if not data:
            raise StorageFailure("Empty image payload")

        safe_name = _UNSAFE_FILENAME.sub("_", Path(filename).name) or "image"
        relative = Path("profile_images") / identity.uid / f"{int(time.time() * 1000)}_{safe_name}"
        target = self.data_root / relative
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            logger.error("Failed to store image for %s: %s", identity.uid, exc)
            raise StorageFailure(f"Failed to store image: {exc}") from exc
        return f"{self.media_url_prefix}/{relative.as_posix()}"


__all__ = ["ProfileGateway", "translate_db_errors"]
