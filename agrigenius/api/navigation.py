"""Active screen and chat overlay state."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from agrigenius.api.deps import get_context, get_controller_registry
from agrigenius.core.context import SessionContext
from agrigenius.services.registry import ControllerRegistry

router = APIRouter(prefix="/navigation", tags=["navigation"])


@router.get("")
def read_navigation(
    context: SessionContext = Depends(get_context),
    registry: ControllerRegistry = Depends(get_controller_registry),
) -> dict[str, Any]:
    return registry.router(context).to_dict()


@router.post("/chat")
def toggle_chat(
    context: SessionContext = Depends(get_context),
    registry: ControllerRegistry = Depends(get_controller_registry),
) -> dict[str, Any]:
    router_state = registry.router(context)
    router_state.toggle_chat()
    return router_state.to_dict()


@router.post("/{view}")
def navigate(
    view: str,
    context: SessionContext = Depends(get_context),
    registry: ControllerRegistry = Depends(get_controller_registry),
) -> dict[str, Any]:
    router_state = registry.router(context)
    router_state.navigate(view)
    return router_state.to_dict()


__all__ = ["router"]
