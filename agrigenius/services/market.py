"""Market information hub: crop prices, input shopping links and seed schemes."""

from __future__ import annotations

import logging
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from agrigenius.core.i18n import Translator
from agrigenius.services.errors import NotFound

logger = logging.getLogger(__name__)

CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "market.yml"


class MarketSection(str, Enum):
    PRICES = "prices"
    INPUTS = "inputs"
    SCHEMES = "schemes"


class CropPrice(BaseModel):
    name: str
    price: str
    trend: Literal["up", "stable", "down"] = "stable"


class AgriInput(BaseModel):
    name: str
    link: str


class SeedScheme(BaseModel):
    name: str
    scheme: str


class MarketCatalog(BaseModel):
    """Representation of data/market.yml."""

    crop_prices: list[CropPrice] = Field(default_factory=list)
    agri_inputs: list[AgriInput] = Field(default_factory=list)
    seed_schemes: list[SeedScheme] = Field(default_factory=list)


def load_catalog(path: str | Path | None = None) -> MarketCatalog:
    target = Path(path) if path else CATALOG_PATH
    with target.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return MarketCatalog.model_validate(data)


@lru_cache
def default_catalog() -> MarketCatalog:
    return load_catalog()


def market_section(
    section: MarketSection | str,
    translator: Translator,
    catalog: MarketCatalog | None = None,
) -> list[dict[str, Any]]:
    """Entries of one hub section with their names localized."""

    try:
        kind = MarketSection(section)
    except ValueError as exc:
        raise NotFound(f"Unknown market section: {section}") from exc
    catalog = catalog or default_catalog()
    items: list[BaseModel]
    if kind is MarketSection.PRICES:
        items = list(catalog.crop_prices)
    elif kind is MarketSection.INPUTS:
        items = list(catalog.agri_inputs)
    else:
        items = list(catalog.seed_schemes)
    entries = []
    for item in items:
        entry = item.model_dump()
        entry["key"] = entry["name"]
        entry["name"] = translator.t(entry["key"])
        entries.append(entry)
    return entries


__all__ = [
    "AgriInput",
    "CropPrice",
    "MarketCatalog",
    "MarketSection",
    "SeedScheme",
    "default_catalog",
    "load_catalog",
    "market_section",
]
