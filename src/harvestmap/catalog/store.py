"""
Catalog store + discovery filtering query.

The store holds the product catalog (as an immutable tuple of frozen records) and the market
price reference rows. Mutations replace whole records and swap the tuple, so a filtering pass
started before a mutation keeps seeing the old tuple and never a half-updated record.

`filter_products()` is the buyer-facing query. Predicates (all must hold):
1. listing is active and not out of stock
2. free text matches name, category or variety (case-insensitive)
3. exact category
4. address substring
5. price within the inclusive range
6. exact condition
7. within `radius_km` of `user_location` (only when both are set)

The query never raises for malformed records; it simply does not match them on the predicate
that needs the missing field.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable

from harvestmap.catalog.remote import CatalogBackend
from harvestmap.core.geo import within_radius
from harvestmap.domain.models import FilterCriteria, MarketPrice, Product, ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


class ProductNotFoundError(LookupError):
    def __init__(self, product_id: str):
        super().__init__(f"Unknown product id '{product_id}'.")
        self.product_id = product_id


class DuplicateProductError(ValueError):
    def __init__(self, product_id: str):
        super().__init__(f"Product id '{product_id}' already exists.")
        self.product_id = product_id


def _is_available(product: Product) -> bool:
    if not product.is_active:
        return False
    return product.stock is None or product.stock > 0


def _matches_search(product: Product, needle: str) -> bool:
    if product.name and needle in product.name.lower():
        return True
    if product.category and needle in product.category.lower():
        return True
    return bool(product.variety) and needle in product.variety.lower()


def _matches_address(product: Product, needle: str) -> bool:
    address = product.location.address if product.location else None
    return bool(address) and needle in address.lower()


def filter_products(products: Iterable[Product], criteria: FilterCriteria) -> list[Product]:
    """Return the products matching `criteria`, in catalog order."""
    search = criteria.search_query.lower()
    location = criteria.location.strip().lower() if criteria.location else ""
    radius_km = criteria.radius_km
    center = criteria.user_location
    use_radius = radius_km is not None and center is not None

    out: list[Product] = []
    for p in products:
        if not _is_available(p):
            continue
        if search.strip() and not _matches_search(p, search):
            continue
        if criteria.category and p.category != criteria.category:
            continue
        if location and not _matches_address(p, location):
            continue
        if not criteria.price_range.contains(p.price):
            continue
        if criteria.condition and p.condition != criteria.condition:
            continue
        if use_radius:
            point = p.point()
            if point is None or not within_radius(center, point, radius_km):
                continue
        out.append(p)
    return out


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CatalogStore:
    def __init__(
        self,
        products: Iterable[Product] = (),
        *,
        market_prices: Iterable[MarketPrice] = (),
        backend: CatalogBackend | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._products: tuple[Product, ...] = ()
        self._market_prices: tuple[MarketPrice, ...] = tuple(market_prices)
        self._backend = backend
        self._clock = clock
        self.version = 0
        self.replace_all(products)

    @property
    def products(self) -> tuple[Product, ...]:
        return self._products

    @property
    def market_prices(self) -> tuple[MarketPrice, ...]:
        return self._market_prices

    def replace_all(self, products: Iterable[Product]) -> None:
        """Swap in a freshly loaded catalog (duplicate ids keep the first record)."""
        seen: set[str] = set()
        kept: list[Product] = []
        for p in products:
            if p.id in seen:
                logger.warning("Duplicate product id %s in catalog; keeping the first record", p.id)
                continue
            seen.add(p.id)
            kept.append(p)
        self._products = tuple(kept)
        self.version += 1

    def set_market_prices(self, rows: Iterable[MarketPrice]) -> None:
        self._market_prices = tuple(rows)

    def get_product(self, product_id: str) -> Product | None:
        return next((p for p in self._products if p.id == product_id), None)

    def get_filtered_products(self, criteria: FilterCriteria) -> list[Product]:
        return filter_products(self._products, criteria)

    def add_product(self, data: ProductCreate | Product) -> Product:
        now = self._clock()
        if isinstance(data, Product):
            if self.get_product(data.id) is not None:
                raise DuplicateProductError(data.id)
            product = data.model_copy(update={"created_at": data.created_at or now, "updated_at": now})
        elif self._backend is not None:
            product = self._backend.create_product(data)
            if self.get_product(product.id) is not None:
                # Backend record wins over the local copy.
                logger.warning("Backend returned existing product id %s; replacing the local record", product.id)
                self._products = tuple(product if p.id == product.id else p for p in self._products)
                self.version += 1
                return product
        else:
            product = Product.model_validate(
                {**data.model_dump(), "id": uuid.uuid4().hex, "created_at": now, "updated_at": now}
            )

        self._products = (*self._products, product)
        self.version += 1
        logger.info("Added product %s (%s) for seller %s", product.id, product.name, product.seller_id)
        return product

    def update_product(self, product_id: str, updates: ProductUpdate) -> Product:
        current = self.get_product(product_id)
        if current is None:
            raise ProductNotFoundError(product_id)

        if self._backend is not None:
            updated = self._backend.update_product(product_id, updates)
        else:
            changes = updates.model_dump(exclude_unset=True)
            # Re-validate the whole record so a bad update never lands half-applied.
            updated = Product.model_validate(
                {**current.model_dump(), **changes, "id": current.id, "updated_at": self._clock()}
            )

        self._products = tuple(updated if p.id == product_id else p for p in self._products)
        self.version += 1
        logger.info("Updated product %s", product_id)
        return updated

    def delete_product(self, product_id: str) -> None:
        if self.get_product(product_id) is None:
            raise ProductNotFoundError(product_id)
        if self._backend is not None:
            self._backend.delete_product(product_id)
        self._products = tuple(p for p in self._products if p.id != product_id)
        self.version += 1
        logger.info("Deleted product %s", product_id)
