"""Live sensor telemetry endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from agrigenius.api.deps import get_context, get_controller_registry
from agrigenius.core.context import SessionContext
from agrigenius.services.advice import advice_keys, todays_advice
from agrigenius.services.registry import ControllerRegistry
from agrigenius.services.sensors import SensorPoller, describe_status

router = APIRouter(prefix="/sensors", tags=["sensors"])


def _payload(poller: SensorPoller, context: SessionContext) -> dict[str, Any]:
    body = poller.state.to_dict()
    body["status"] = describe_status(poller.state, context.translator)
    return body


@router.get("")
async def read_sensors(
    context: SessionContext = Depends(get_context),
    registry: ControllerRegistry = Depends(get_controller_registry),
) -> dict[str, Any]:
    poller = await registry.sensors(context)
    return _payload(poller, context)


@router.post("/refetch")
async def refetch_sensors(
    context: SessionContext = Depends(get_context),
    registry: ControllerRegistry = Depends(get_controller_registry),
) -> dict[str, Any]:
    poller = await registry.sensors(context)
    await poller.refetch()
    return _payload(poller, context)


@router.get("/advice")
async def read_advice(
    context: SessionContext = Depends(get_context),
    registry: ControllerRegistry = Depends(get_controller_registry),
) -> dict[str, Any]:
    poller = await registry.sensors(context)
    reading = poller.state.value
    return {"keys": advice_keys(reading), "advice": todays_advice(reading, context.translator)}


__all__ = ["router"]
