"""Profile edit flow: coordinate entry, staged image upload and save."""

from __future__ import annotations

import logging
import math
from typing import Any

from pydantic import ValidationError

from agrigenius.core.context import Identity
from agrigenius.core.i18n import Translator
from agrigenius.models import FarmLocation, ProfileUpdate, UserProfile
from agrigenius.services.errors import InvalidCoordinates
from agrigenius.services.gateway import ProfileGateway

logger = logging.getLogger(__name__)


def parse_coordinates(lat: Any, lon: Any, translator: Translator) -> FarmLocation:
    """Validate manually entered coordinates."""

    try:
        lat_value = float(str(lat).strip())
        lon_value = float(str(lon).strip())
    except (TypeError, ValueError) as exc:
        raise InvalidCoordinates(translator.t("invalidCoordinates")) from exc
    if math.isnan(lat_value) or math.isnan(lon_value):
        raise InvalidCoordinates(translator.t("invalidCoordinates"))
    try:
        return FarmLocation(lat=lat_value, lon=lon_value)
    except ValidationError as exc:
        raise InvalidCoordinates(translator.t("invalidCoordinates")) from exc


class ProfileEditor:
    def __init__(self, gateway: ProfileGateway) -> None:
        self.gateway = gateway

    def save(
        self,
        identity: Identity | None,
        update: ProfileUpdate | dict[str, Any],
        image: bytes | None = None,
        filename: str = "image",
    ) -> UserProfile:
        """Upload a staged image first, then merge the edit with its URL."""

        if isinstance(update, dict):
            update = ProfileUpdate.model_validate(update)
        if image:
            url = self.gateway.upload_image(identity, image, filename)
            logger.info("Uploaded profile image for %s", identity.uid if identity else None)
            update = update.model_copy(update={"profile_image": url})
        return self.gateway.save_profile(identity, update)


__all__ = ["ProfileEditor", "parse_coordinates"]
