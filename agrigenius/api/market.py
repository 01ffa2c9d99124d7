"""Market hub endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from agrigenius.api.deps import get_context, http_error
from agrigenius.core.context import SessionContext
from agrigenius.services.errors import AgriGeniusError
from agrigenius.services.market import MarketSection, market_section

router = APIRouter(prefix="/market", tags=["market"])


@router.get("")
def list_sections(context: SessionContext = Depends(get_context)) -> dict[str, Any]:
    titles = {
        MarketSection.PRICES: "marketPrices",
        MarketSection.INPUTS: "buyInputs",
        MarketSection.SCHEMES: "govSeeds",
    }
    return {
        "sections": [
            {"id": section.value, "title": context.translator.t(key)} for section, key in titles.items()
        ]
    }


@router.get("/{section}")
def read_section(section: str, context: SessionContext = Depends(get_context)) -> dict[str, Any]:
    try:
        items = market_section(section, context.translator)
    except AgriGeniusError as exc:
        raise http_error(exc) from exc
    return {"section": section, "items": items}


__all__ = ["router"]
