"""Chat session endpoints for the AI assistant."""

from __future__ import annotations

import base64
import binascii
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from agrigenius.api.deps import get_context, get_controller_registry, http_error
from agrigenius.core.context import SessionContext
from agrigenius.services.errors import AgriGeniusError
from agrigenius.services.registry import ControllerRegistry

router = APIRouter(prefix="/chat", tags=["chat"])


class MessagePayload(BaseModel):
    text: str | None = None
    image_base64: str | None = None
    image_mime_type: str = "image/jpeg"


@router.post("/sessions", status_code=201)
async def open_session(
    context: SessionContext = Depends(get_context),
    registry: ControllerRegistry = Depends(get_controller_registry),
) -> dict[str, Any]:
    session_id, controller = await registry.open_chat(context)
    return {"session_id": session_id, **controller.to_dict()}


@router.get("/sessions/{session_id}")
def read_session(
    session_id: str,
    context: SessionContext = Depends(get_context),
    registry: ControllerRegistry = Depends(get_controller_registry),
) -> dict[str, Any]:
    try:
        controller = registry.get_chat(context, session_id)
    except AgriGeniusError as exc:
        raise http_error(exc) from exc
    return {"session_id": session_id, **controller.to_dict()}


@router.post("/sessions/{session_id}/messages")
async def send_message(
    session_id: str,
    payload: MessagePayload,
    context: SessionContext = Depends(get_context),
    registry: ControllerRegistry = Depends(get_controller_registry),
) -> dict[str, Any]:
    try:
        controller = registry.get_chat(context, session_id)
    except AgriGeniusError as exc:
        raise http_error(exc) from exc
    if payload.image_base64:
        try:
            data = base64.b64decode(payload.image_base64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise HTTPException(status_code=422, detail="invalid_image") from exc
        controller.attach_image(data, payload.image_mime_type)
    result = await controller.send(payload.text)
    return {"session_id": session_id, "result": result.value, **controller.to_dict()}


@router.delete("/sessions/{session_id}", status_code=204)
def close_session(
    session_id: str,
    context: SessionContext = Depends(get_context),
    registry: ControllerRegistry = Depends(get_controller_registry),
) -> None:
    try:
        registry.close_chat(context, session_id)
    except AgriGeniusError as exc:
        raise http_error(exc) from exc


__all__ = ["router"]
