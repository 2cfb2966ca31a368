"""
Offline catalog quality report.

Goal: a deterministic, network-free view of "which records will silently drop out of discovery?"
Filtering and map projections degrade by omission, so this report is where those omissions
become visible.
Used by:
- CLI debugging (`harvestmap quality-report`)
- API status endpoint (`/api/quality`)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from harvestmap.catalog.loader import load_market_prices, load_products, load_sellers
from harvestmap.config.settings import Settings
from harvestmap.domain.models import MarketPrice, Product, Seller


@dataclass(frozen=True)
class Issue:
    severity: str  # "info" | "warning" | "error"
    code: str
    message: str
    count: int = 1
    sample: list[str] | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "code": self.code,
            "message": self.message,
            "count": int(self.count),
            "sample": list(self.sample or []),
        }


def _issue(severity: str, code: str, message: str, ids: list[str]) -> Issue:
    return Issue(severity=severity, code=code, message=message, count=len(ids), sample=ids[:8])


def catalog_issues(
    products: list[Product], sellers: list[Seller], market_prices: list[MarketPrice] | None = None
) -> list[Issue]:
    issues: list[Issue] = []

    ids = [p.id for p in products]
    dup = sorted({i for i in ids if ids.count(i) > 1})
    if dup:
        issues.append(_issue("error", "CATALOG_DUPLICATE_ID", "Duplicate product ids in catalog.", dup))

    seller_ids = {s.id for s in sellers}
    unknown_seller = [p.id for p in products if p.seller_id not in seller_ids]
    if unknown_seller:
        issues.append(
            _issue(
                "warning",
                "CATALOG_UNKNOWN_SELLER",
                "Some products reference sellers missing from the directory (hidden in seller view).",
                unknown_seller,
            )
        )

    missing_coords = [p.id for p in products if p.point() is None]
    if missing_coords:
        issues.append(
            _issue(
                "warning",
                "CATALOG_MISSING_COORDS",
                "Some products have no usable coordinates (hidden on the map and in radius search).",
                missing_coords,
            )
        )

    inactive = [p.id for p in products if not p.is_active]
    if inactive:
        issues.append(_issue("info", "CATALOG_INACTIVE", "Inactive products (never shown to buyers).", inactive))

    out_of_stock = [p.id for p in products if p.is_active and p.stock == 0]
    if out_of_stock:
        issues.append(
            _issue("info", "CATALOG_OUT_OF_STOCK", "Active products with zero stock (never shown to buyers).", out_of_stock)
        )

    unpriced = [m.id for m in market_prices or [] if m.price is None]
    if unpriced:
        issues.append(_issue("info", "MARKET_PRICE_MISSING", "Market price rows without a price.", unpriced))

    return issues


def build_quality_report(settings: Settings) -> dict[str, Any]:
    try:
        products = load_products(settings.catalog.products_path)
        sellers = load_sellers(settings.catalog.sellers_path)
        market_prices = load_market_prices(settings.catalog.market_prices_path)
    except Exception as e:
        issues = [Issue(severity="error", code="CATALOG_LOAD_FAILED", message=str(e))]
        return {"counts": {}, "issues": [i.as_dict() for i in issues]}

    issues = catalog_issues(products, sellers, market_prices)
    return {
        "counts": {
            "products": len(products),
            "sellers": len(sellers),
            "market_prices": len(market_prices),
        },
        "issues": [i.as_dict() for i in issues],
    }
