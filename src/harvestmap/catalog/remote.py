"""
Marketplace backend client for the product catalog.

The REST backend owns persistence; this client only speaks its small product surface:
- `GET    /product`            list products
- `GET    /product/{id}`       one product (404 -> None)
- `POST   /product`            create
- `PATCH  /product/{id}`       partial update
- `DELETE /product/{id}`       delete (204)
- `GET    /market-prices`      reference prices

Reads send the bearer token when one is configured; writes require it.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from harvestmap.catalog.loader import validate_records
from harvestmap.config.settings import Settings
from harvestmap.core.http import get_json, send_json
from harvestmap.domain.models import MarketPrice, Product, ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


class BackendAuthError(RuntimeError):
    """Raised when a mutating call is attempted without an auth token."""


class CatalogBackend(Protocol):
    def create_product(self, data: ProductCreate) -> Product: ...

    def update_product(self, product_id: str, updates: ProductUpdate) -> Product: ...

    def delete_product(self, product_id: str) -> None: ...


class HttpCatalogBackend:
    def __init__(
        self,
        base_url: str,
        *,
        auth_token: str | None = None,
        timeout_seconds: float = 15,
        transport: httpx.BaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = auth_token
        self._timeout = float(timeout_seconds)
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpCatalogBackend | None":
        if not settings.backend.base_url:
            return None
        return cls(
            settings.backend.base_url,
            auth_token=settings.backend.auth_token,
            timeout_seconds=settings.app.http_timeout_seconds,
        )

    def _auth_headers(self, *, required: bool) -> dict[str, str]:
        if not self._token:
            if required:
                raise BackendAuthError("Authentication token not found. Set HARVESTMAP_API_TOKEN.")
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    def _get(self, path: str) -> Any:
        return get_json(
            f"{self._base_url}{path}",
            headers=self._auth_headers(required=False),
            timeout_seconds=self._timeout,
            transport=self._transport,
        )

    def _send(self, method: str, path: str, payload: Any = None) -> Any:
        return send_json(
            method,
            f"{self._base_url}{path}",
            payload=payload,
            headers=self._auth_headers(required=True),
            timeout_seconds=self._timeout,
            transport=self._transport,
        )

    def fetch_products(self) -> list[Product]:
        payload = self._get("/product")
        if not isinstance(payload, list):
            raise ValueError("Backend returned a non-list product payload.")
        return validate_records(Product, payload, source=f"{self._base_url}/product")

    def fetch_product_by_id(self, product_id: str) -> Product | None:
        try:
            payload = self._get(f"/product/{product_id}")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise
        return Product.model_validate(payload)

    def fetch_market_prices(self) -> list[MarketPrice]:
        payload = self._get("/market-prices")
        if not isinstance(payload, list):
            raise ValueError("Backend returned a non-list market price payload.")
        return validate_records(MarketPrice, payload, source=f"{self._base_url}/market-prices")

    def create_product(self, data: ProductCreate) -> Product:
        payload = self._send("POST", "/product", data.model_dump(mode="json"))
        return Product.model_validate(payload)

    def update_product(self, product_id: str, updates: ProductUpdate) -> Product:
        payload = self._send("PATCH", f"/product/{product_id}", updates.model_dump(mode="json", exclude_unset=True))
        return Product.model_validate(payload)

    def delete_product(self, product_id: str) -> None:
        self._send("DELETE", f"/product/{product_id}")
