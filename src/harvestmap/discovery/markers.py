"""
Map marker projections.

Two alternate views of ONE filtered product list:
- product-centric: one marker per product
- seller-centric: one marker per seller, carrying summaries of that seller's products

Both are computed from the same list object in `project()`, so the map can never show a
seller whose products are absent from the grid.

Missing data degrades by omission, never by exception:
- products without usable coordinates are left out of both projections (they stay in the grid)
- an unknown seller keeps its products as product markers (without seller names) but
  drops the whole seller group
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from harvestmap.directory.sellers import SellerDirectory
from harvestmap.domain.models import (
    GeoPoint,
    Product,
    ProductMarker,
    ProductSummary,
    SellerMarker,
    UserMarker,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarkerProjection:
    product_markers: list[ProductMarker] = field(default_factory=list)
    seller_markers: list[SellerMarker] = field(default_factory=list)


def _summary(product: Product) -> ProductSummary:
    return ProductSummary(
        product_id=product.id,
        name=product.name,
        price=product.price,
        unit=product.unit,
        category=product.category,
        condition=product.condition,
    )


def project_product_markers(products: Iterable[Product], directory: SellerDirectory) -> list[ProductMarker]:
    markers: list[ProductMarker] = []
    for p in products:
        point = p.point()
        if point is None:
            continue
        seller = directory.lookup(p.seller_id)
        markers.append(
            ProductMarker(
                lat=point.lat,
                lng=point.lng,
                label=p.name,
                product_id=p.id,
                price=p.price,
                unit=p.unit,
                category=p.category,
                condition=p.condition,
                seller_name=seller.name if seller else None,
                business_name=seller.business_name if seller else None,
                address=p.location.address if p.location else None,
            )
        )
    return markers


def project_seller_markers(products: Iterable[Product], directory: SellerDirectory) -> list[SellerMarker]:
    # dict keeps first-seen seller order; lists keep catalog order inside a group.
    groups: dict[str, list[Product]] = {}
    for p in products:
        if p.point() is None:
            continue
        groups.setdefault(p.seller_id, []).append(p)

    markers: list[SellerMarker] = []
    dropped: list[str] = []
    for seller_id, group in groups.items():
        seller = directory.lookup(seller_id)
        if seller is None:
            dropped.append(seller_id)
            continue
        # One farm location per seller: the first listed product's.
        first = group[0]
        anchor = first.point()
        markers.append(
            SellerMarker(
                lat=anchor.lat,
                lng=anchor.lng,
                label=seller.display_name,
                seller_id=seller.id,
                seller_name=seller.name,
                business_name=seller.business_name,
                address=first.location.address if first.location else None,
                products=[_summary(p) for p in group],
                profile_image_url=seller.profile_image_url,
                email=seller.email,
                phone=seller.phone,
            )
        )
    if dropped:
        logger.debug("Dropped %d seller groups with unknown seller ids: %s", len(dropped), dropped[:8])
    return markers


def user_marker(point: GeoPoint | None, *, label: str = "Your location") -> UserMarker | None:
    if point is None:
        return None
    return UserMarker(lat=point.lat, lng=point.lng, label=label)


def project(products: list[Product], directory: SellerDirectory) -> MarkerProjection:
    """Compute both projections from the same filtered list."""
    return MarkerProjection(
        product_markers=project_product_markers(products, directory),
        seller_markers=project_seller_markers(products, directory),
    )
