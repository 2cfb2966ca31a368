"""
API routes.

Endpoints:
- GET    `/api/products`: filtered catalog for the grid view.
- GET    `/api/products/{id}`: product detail (+ seller, distance, delivery estimate).
- POST   `/api/products`, PATCH/DELETE `/api/products/{id}`: catalog CRUD.
- GET    `/api/map`: marker payload for the cluster renderer.
- GET    `/api/sellers/{id}`: seller detail with its currently filtered products.
- GET    `/api/market-prices`: reference prices, verbatim.
- GET    `/api/meta`: filter options and map defaults for the UI.
- GET    `/api/quality`: offline catalog quality report.

Each request builds its own FilterCriteria from query params; the API itself is stateless.
"""

from __future__ import annotations

import logging
from functools import lru_cache

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Response

from harvestmap.catalog.loader import load_market_prices, load_products, load_sellers
from harvestmap.catalog.remote import BackendAuthError, HttpCatalogBackend
from harvestmap.catalog.store import CatalogStore, DuplicateProductError, ProductNotFoundError
from harvestmap.config.settings import get_settings
from harvestmap.core.geo import distance_km, estimate_delivery_time
from harvestmap.directory.sellers import SellerDirectory
from harvestmap.discovery.controller import DiscoveryController, default_criteria
from harvestmap.domain.models import (
    Condition,
    FilterCriteria,
    GeoPoint,
    MapView,
    MarketPrice,
    PriceRange,
    Product,
    ProductCreate,
    ProductDetail,
    ProductUpdate,
    SellerDetail,
    ViewMode,
)
from harvestmap.quality.report import build_quality_report

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def _store() -> CatalogStore:
    settings = get_settings()
    return CatalogStore(
        load_products(settings.catalog.products_path),
        market_prices=load_market_prices(settings.catalog.market_prices_path),
        backend=HttpCatalogBackend.from_settings(settings),
    )


@lru_cache
def _directory() -> SellerDirectory:
    settings = get_settings()
    return SellerDirectory(load_sellers(settings.catalog.sellers_path))


def filter_params(
    q: str = "",
    category: str | None = None,
    location: str | None = None,
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    condition: Condition | None = None,
    radius_km: float | None = None,
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
) -> FilterCriteria:
    """Translate query params into FilterCriteria (config defaults fill the gaps)."""
    if (lat is None) != (lng is None):
        raise HTTPException(status_code=400, detail="lat and lng must be given together")
    criteria = default_criteria(get_settings())
    criteria.search_query = q
    criteria.category = category
    criteria.location = location
    criteria.condition = condition
    criteria.price_range = PriceRange(
        min=min_price if min_price is not None else criteria.price_range.min,
        max=max_price if max_price is not None else criteria.price_range.max,
    )
    if radius_km is not None:
        criteria.radius_km = radius_km
    if lat is not None and lng is not None:
        criteria.user_location = GeoPoint(lat=lat, lng=lng)
    return criteria


def _controller(criteria: FilterCriteria) -> DiscoveryController:
    return DiscoveryController(_store(), _directory(), settings=get_settings(), criteria=criteria)


@router.get("/api/products")
def get_products(criteria: FilterCriteria = Depends(filter_params)) -> dict:
    """Filtered product list; an empty list is a normal result, not an error."""
    products = _store().get_filtered_products(criteria)
    return {"count": len(products), "products": [p.model_dump(mode="json") for p in products]}


@router.get("/api/products/{product_id}", response_model=ProductDetail)
def get_product(
    product_id: str,
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
) -> ProductDetail:
    product = _store().get_product(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Unknown product id '{product_id}'")

    detail = ProductDetail(product=product, seller=_directory().lookup(product.seller_id))
    point = product.point()
    if lat is not None and lng is not None and point is not None:
        km = distance_km(GeoPoint(lat=lat, lng=lng), point)
        speed = get_settings().discovery.delivery.average_speed_kph
        detail = detail.model_copy(
            update={"distance_km": round(km, 2), "delivery_estimate": estimate_delivery_time(km, speed)}
        )
    return detail


@router.post("/api/products", response_model=Product, status_code=201)
def post_product(data: ProductCreate) -> Product:
    try:
        return _store().add_product(data)
    except DuplicateProductError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except BackendAuthError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except httpx.HTTPError as e:
        logger.warning("Backend create failed: %s", e)
        raise HTTPException(status_code=502, detail="Marketplace backend unavailable") from e


@router.patch("/api/products/{product_id}", response_model=Product)
def patch_product(product_id: str, updates: ProductUpdate) -> Product:
    try:
        return _store().update_product(product_id, updates)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except BackendAuthError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except httpx.HTTPError as e:
        logger.warning("Backend update failed: %s", e)
        raise HTTPException(status_code=502, detail="Marketplace backend unavailable") from e


@router.delete("/api/products/{product_id}", status_code=204)
def delete_product(product_id: str) -> Response:
    try:
        _store().delete_product(product_id)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except BackendAuthError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except httpx.HTTPError as e:
        logger.warning("Backend delete failed: %s", e)
        raise HTTPException(status_code=502, detail="Marketplace backend unavailable") from e
    return Response(status_code=204)


@router.get("/api/map", response_model=MapView)
def get_map(view_mode: ViewMode = "products", criteria: FilterCriteria = Depends(filter_params)) -> MapView:
    controller = _controller(criteria)
    controller.set_view_mode(view_mode)
    return controller.map_view()


@router.get("/api/sellers/{seller_id}", response_model=SellerDetail)
def get_seller(seller_id: str, criteria: FilterCriteria = Depends(filter_params)) -> SellerDetail:
    detail = _controller(criteria).on_seller_marker_click(seller_id)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"Unknown seller id '{seller_id}'")
    return detail


@router.get("/api/market-prices", response_model=list[MarketPrice])
def get_market_prices() -> list[MarketPrice]:
    return list(_store().market_prices)


@router.get("/api/meta")
def get_meta() -> dict:
    """Filter options and map defaults for the browse screen."""
    cfg = get_settings().discovery
    return {
        "categories": list(cfg.categories),
        "conditions": ["fresh", "good", "fair"],
        "default_price_range": cfg.default_price_range.model_dump(),
        "default_radius_km": cfg.default_radius_km,
        "map": cfg.map.model_dump(),
    }


@router.get("/api/quality")
def get_quality() -> dict:
    return build_quality_report(get_settings())
