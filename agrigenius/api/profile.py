"""Profile read/edit endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel

from agrigenius.api.deps import (
    get_context,
    get_controller_registry,
    get_gateway,
    get_identity,
    get_language_service,
    http_error,
)
from agrigenius.core.context import Identity, SessionContext
from agrigenius.core.i18n import SUPPORTED_LANGUAGES
from agrigenius.models import ProfileRead, ProfileUpdate
from agrigenius.services.errors import AgriGeniusError
from agrigenius.services.gateway import ProfileGateway
from agrigenius.services.language import LanguageService
from agrigenius.services.profile import ProfileEditor, parse_coordinates
from agrigenius.services.registry import ControllerRegistry

router = APIRouter(prefix="/profile", tags=["profile"])


class LanguagePayload(BaseModel):
    language: str


class CoordinatesPayload(BaseModel):
    lat: str | float
    lon: str | float


@router.get("", response_model=ProfileRead)
def read_profile(
    identity: Identity = Depends(get_identity),
    gateway: ProfileGateway = Depends(get_gateway),
) -> Any:
    try:
        return ProfileRead.from_record(gateway.get_profile(identity))
    except AgriGeniusError as exc:
        raise http_error(exc) from exc


@router.patch("", response_model=ProfileRead)
async def update_profile(
    payload: ProfileUpdate,
    identity: Identity = Depends(get_identity),
    gateway: ProfileGateway = Depends(get_gateway),
    registry: ControllerRegistry = Depends(get_controller_registry),
) -> Any:
    try:
        record = ProfileEditor(gateway).save(identity, payload)
    except AgriGeniusError as exc:
        raise http_error(exc) from exc
    # Endpoint or location may have changed.
    registry.reset_feeds(identity.uid)
    return ProfileRead.from_record(record)


@router.put("/location", response_model=ProfileRead)
async def set_location(
    payload: CoordinatesPayload,
    context: SessionContext = Depends(get_context),
    gateway: ProfileGateway = Depends(get_gateway),
    registry: ControllerRegistry = Depends(get_controller_registry),
) -> Any:
    try:
        location = parse_coordinates(payload.lat, payload.lon, context.translator)
    except AgriGeniusError as exc:
        raise HTTPException(status_code=422, detail={"kind": exc.kind, "message": str(exc)}) from exc
    update = ProfileUpdate(farm_location=location)
    try:
        record = gateway.save_profile(context.identity, update)
    except AgriGeniusError as exc:
        raise http_error(exc) from exc
    registry.reset_feeds(context.identity.uid)
    return ProfileRead.from_record(record)


@router.post("/image", response_model=ProfileRead)
async def upload_profile_image(
    file: UploadFile = File(...),
    name: str | None = Form(None),
    farm_size: str | None = Form(None),
    identity: Identity = Depends(get_identity),
    gateway: ProfileGateway = Depends(get_gateway),
) -> Any:
    data = await file.read()
    fields = {key: value for key, value in {"name": name, "farm_size": farm_size}.items() if value is not None}
    try:
        record = ProfileEditor(gateway).save(
            identity, ProfileUpdate(**fields), image=data, filename=file.filename or "image"
        )
    except AgriGeniusError as exc:
        raise http_error(exc) from exc
    return ProfileRead.from_record(record)


@router.get("/languages")
def list_languages() -> dict[str, dict[str, str]]:
    return {"languages": SUPPORTED_LANGUAGES}


@router.put("/language")
async def set_language(
    payload: LanguagePayload,
    identity: Identity = Depends(get_identity),
    languages: LanguageService = Depends(get_language_service),
    registry: ControllerRegistry = Depends(get_controller_registry),
) -> dict[str, str]:
    try:
        context = languages.set_language(identity, payload.language)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail="unsupported_language") from exc
    # Controllers bound to the previous language are rebuilt on next use.
    registry.forget(identity.uid)
    return {"language": context.language}


__all__ = ["router"]
