"""
Catalog loaders.

The product catalog, seller profiles and market price rows are local JSON files (default:
`data/catalogs/*.json`) standing in for the marketplace backend. We validate each record into
typed Pydantic models so downstream filtering and projection code can assume a consistent shape.

A record that fails validation is skipped with a warning instead of failing the whole file:
one broken listing must not take the map down. A missing or non-JSON file still raises.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from harvestmap.core.env import resolve_project_path
from harvestmap.domain.models import MarketPrice, Product, Seller

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _read_records(path: str | Path) -> list[Any]:
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        # Allow {id: {...}} shape.
        return [{"id": k, **v} for k, v in payload.items() if isinstance(v, dict)]
    if not isinstance(payload, list):
        raise ValueError(f"Invalid JSON root object for {resolved}; expected a list or mapping.")
    return payload


def validate_records(model: type[M], records: list[Any], *, source: str = "<memory>") -> list[M]:
    """Validate raw dicts into `model`, dropping (and logging) the ones that do not fit."""
    out: list[M] = []
    skipped = 0
    for i, raw in enumerate(records):
        try:
            out.append(model.model_validate(raw))
        except ValidationError as e:
            skipped += 1
            logger.warning("Skipping invalid %s record #%d from %s: %s", model.__name__, i, source, e.errors()[:1])
    if skipped:
        logger.info("Loaded %d %s records from %s (%d skipped)", len(out), model.__name__, source, skipped)
    return out


def load_products(path: str | Path) -> list[Product]:
    """Load and validate a product catalog JSON file."""
    return validate_records(Product, _read_records(path), source=str(path))


def load_sellers(path: str | Path) -> list[Seller]:
    """Load and validate seller profiles."""
    return validate_records(Seller, _read_records(path), source=str(path))


def load_market_prices(path: str | Path | None) -> list[MarketPrice]:
    """Load market price reference rows; a missing optional file yields an empty list."""
    if not path:
        return []
    resolved = resolve_project_path(path)
    if not resolved.exists():
        logger.info("No market price file at %s", resolved)
        return []
    return validate_records(MarketPrice, _read_records(resolved), source=str(path))
