"""Farm weather forecast endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from agrigenius.api.deps import get_context, get_controller_registry
from agrigenius.core.context import SessionContext
from agrigenius.services.registry import ControllerRegistry

router = APIRouter(prefix="/weather", tags=["weather"])


@router.get("")
async def read_weather(
    context: SessionContext = Depends(get_context),
    registry: ControllerRegistry = Depends(get_controller_registry),
) -> dict[str, Any]:
    refresher = await registry.weather(context)
    return refresher.state.to_dict()


@router.post("/refetch")
async def refetch_weather(
    context: SessionContext = Depends(get_context),
    registry: ControllerRegistry = Depends(get_controller_registry),
) -> dict[str, Any]:
    refresher = await registry.weather(context)
    await refresher.refetch()
    return refresher.state.to_dict()


__all__ = ["router"]
