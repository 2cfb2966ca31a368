from __future__ import annotations

# This module is the "orchestrator" for the browse screen.
# It wires together:
# - filter state (FilterCriteria, owned here and nowhere else)
# - the catalog query (CatalogStore.get_filtered_products)
# - both marker projections (computed once per update from the same filtered list)
# - click routing from the map into exactly one open detail view
#
# Everything runs synchronously on the caller's thread: a filter change returns only after the
# new snapshot has been published.

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

from harvestmap.catalog.store import CatalogStore
from harvestmap.config.settings import Settings, get_settings
from harvestmap.directory.sellers import SellerDirectory
from harvestmap.discovery.markers import MarkerProjection, project, user_marker
from harvestmap.domain.models import (
    FilterCriteria,
    GeoPoint,
    MapView,
    PriceRange,
    Product,
    SellerDetail,
    ViewerProfile,
    ViewMode,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoverySnapshot:
    """One update cycle's derived state: the grid list plus both marker projections."""

    products: list[Product] = field(default_factory=list)
    projection: MarkerProjection = field(default_factory=MarkerProjection)
    catalog_version: int = -1

    @property
    def is_empty(self) -> bool:
        return not self.products


@dataclass(frozen=True)
class DetailView:
    kind: Literal["product", "seller"]
    product: Product | None = None
    seller_detail: SellerDetail | None = None


def default_criteria(settings: Settings) -> FilterCriteria:
    cfg = settings.discovery
    return FilterCriteria(
        price_range=PriceRange(min=cfg.default_price_range.min, max=cfg.default_price_range.max),
        radius_km=cfg.default_radius_km,
    )


class DiscoveryController:
    def __init__(
        self,
        store: CatalogStore,
        directory: SellerDirectory,
        *,
        settings: Settings | None = None,
        criteria: FilterCriteria | None = None,
    ):
        self._store = store
        self._directory = directory
        self._settings = settings or get_settings()
        self._criteria = criteria or default_criteria(self._settings)
        self.view_mode: ViewMode = "products"
        self.detail: DetailView | None = None
        self._mounted = False
        self._snapshot = DiscoverySnapshot()
        self._recompute()

    # ---- Filter state -------------------------------------------------------------------------

    @property
    def criteria(self) -> FilterCriteria:
        """A copy of the current filters; change them through `set_filters` / `set_search_query`."""
        return self._criteria.model_copy(deep=True)

    def mount(self, viewer: ViewerProfile | None) -> None:
        """Seed `user_location` from the viewer's profile, once per controller."""
        if self._mounted:
            return
        self._mounted = True
        point = viewer.location.point() if viewer and viewer.location else None
        if point is not None:
            self._criteria.user_location = point
            self._recompute()
        else:
            logger.debug("Viewer has no usable location; radius filtering stays off")

    def set_search_query(self, query: str) -> DiscoverySnapshot:
        self._criteria.search_query = query
        return self._recompute()

    def set_filters(self, **changes: Any) -> DiscoverySnapshot:
        """Apply one or more filter field changes, then re-derive once."""
        for name, value in changes.items():
            if name not in FilterCriteria.model_fields:
                raise ValueError(f"Unknown filter field '{name}'.")
            if name == "price_range" and isinstance(value, (tuple, list)):
                value = PriceRange(min=value[0], max=value[1])
            setattr(self._criteria, name, value)
        return self._recompute()

    def reset_filters(self) -> DiscoverySnapshot:
        """Back to defaults; the synced viewer location survives a reset."""
        user_location = self._criteria.user_location
        fresh = default_criteria(self._settings)
        for name in FilterCriteria.model_fields:
            setattr(self._criteria, name, getattr(fresh, name))
        self._criteria.user_location = user_location
        return self._recompute()

    def set_view_mode(self, mode: ViewMode) -> None:
        if mode not in ("products", "sellers"):
            raise ValueError(f"Unknown view mode '{mode}'.")
        self.view_mode = mode

    def toggle_view_mode(self) -> ViewMode:
        self.view_mode = "sellers" if self.view_mode == "products" else "products"
        return self.view_mode

    # ---- Derived state ------------------------------------------------------------------------

    def refresh(self) -> DiscoverySnapshot:
        """Re-derive after a catalog mutation (no-op when the catalog did not change)."""
        if self._snapshot.catalog_version == self._store.version:
            return self._snapshot
        return self._recompute()

    def _recompute(self) -> DiscoverySnapshot:
        products = self._store.get_filtered_products(self._criteria)
        self._snapshot = DiscoverySnapshot(
            products=products,
            projection=project(products, self._directory),
            catalog_version=self._store.version,
        )
        logger.debug(
            "Discovery update: %d products, %d product markers, %d seller markers",
            len(products),
            len(self._snapshot.projection.product_markers),
            len(self._snapshot.projection.seller_markers),
        )
        return self._snapshot

    @property
    def snapshot(self) -> DiscoverySnapshot:
        return self._snapshot

    @property
    def filtered_products(self) -> list[Product]:
        return self._snapshot.products

    def map_view(self) -> MapView:
        """Input for the cluster renderer in the current view mode."""
        cfg = self._settings.discovery
        projection = self._snapshot.projection
        markers: list = list(
            projection.product_markers if self.view_mode == "products" else projection.seller_markers
        )
        pin = user_marker(self._criteria.user_location, label=cfg.user_marker_label)
        if pin is not None:
            markers.append(pin)
        center = self._criteria.user_location or GeoPoint(
            lat=cfg.map.default_center.lat, lng=cfg.map.default_center.lng
        )
        return MapView(
            center=center,
            zoom=cfg.map.zoom,
            markers=markers,
            radius_km=self._criteria.radius_km,
            view_mode=self.view_mode,
        )

    # ---- Click routing ------------------------------------------------------------------------

    def on_product_marker_click(self, product_id: str) -> Product | None:
        product = next((p for p in self._snapshot.products if p.id == product_id), None)
        if product is None:
            logger.debug("Product marker click for %s not in the current result set", product_id)
            return None
        self.detail = DetailView(kind="product", product=product)
        return product

    def on_seller_marker_click(self, seller_id: str) -> SellerDetail | None:
        seller = self._directory.lookup(seller_id)
        if seller is None:
            logger.debug("Seller marker click for unknown seller %s", seller_id)
            return None
        products = [p for p in self._snapshot.products if p.seller_id == seller_id]
        detail = SellerDetail(seller=seller, products=products)
        self.detail = DetailView(kind="seller", seller_detail=detail)
        return detail

    def select_product_from_seller(self, product_id: str) -> Product | None:
        """Swap the open seller view for the chosen product's view.

        Only products listed in the open seller view are accepted, and the record returned is the
        one in the current filtered list (it may have been updated or filtered out since the
        seller view opened).
        """
        if self.detail is None or self.detail.seller_detail is None:
            return None
        if all(p.id != product_id for p in self.detail.seller_detail.products):
            return None
        product = next((p for p in self._snapshot.products if p.id == product_id), None)
        if product is None:
            logger.debug("Product %s left the result set after the seller view opened", product_id)
            return None
        self.detail = DetailView(kind="product", product=product)
        return product

    def close_detail(self) -> None:
        self.detail = None
