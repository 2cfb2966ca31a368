"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- catalog entities (`Product`, `Seller`, `MarketPrice`)
- discovery input (`FilterCriteria`, `ViewerProfile`)
- map output for the cluster renderer (`ProductMarker`, `SellerMarker`, `UserMarker`, `MapView`)
- detail view payloads (`SellerDetail`, `ProductDetail`)

Catalog records are frozen: the store replaces whole records on mutation and never
patches fields in place, so any derivation sees either the old or the new record.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Condition = Literal["fresh", "good", "fair"]
ViewMode = Literal["products", "sellers"]
VerificationStatus = Literal["pending", "approved", "rejected"]
MarketTrend = Literal["up", "down", "stable", "N/A"]


class GeoPoint(BaseModel):
    """A geographic point in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Location(BaseModel):
    """A record's location; coordinates may be missing on malformed records."""

    model_config = ConfigDict(frozen=True)

    lat: float | None = None
    lng: float | None = None
    address: str | None = None

    def point(self) -> GeoPoint | None:
        """Return a usable point, or None when lat/lng are missing or out of range."""
        if self.lat is None or self.lng is None:
            return None
        if not (-90 <= self.lat <= 90 and -180 <= self.lng <= 180):
            return None
        return GeoPoint(lat=self.lat, lng=self.lng)


class Product(BaseModel):
    """A listed farm product."""

    model_config = ConfigDict(frozen=True)

    id: str
    seller_id: str
    name: str
    category: str
    variety: str | None = None
    description: str | None = None
    price: float = Field(..., ge=0)
    unit: str = "kg"
    # None means stock is not tracked for this listing.
    stock: int | None = Field(default=None, ge=0)
    images: list[str] = Field(default_factory=list)
    location: Location | None = None
    harvest_date: date | None = None
    condition: Condition | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def point(self) -> GeoPoint | None:
        return self.location.point() if self.location else None


class ProductCreate(BaseModel):
    """Payload for listing a new product; ids and timestamps are assigned by the store."""

    seller_id: str
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    variety: str | None = None
    description: str | None = None
    price: float = Field(..., ge=0)
    unit: str = "kg"
    stock: int | None = Field(default=None, ge=0)
    images: list[str] = Field(default_factory=list)
    location: Location | None = None
    harvest_date: date | None = None
    condition: Condition | None = None
    is_active: bool = True


class ProductUpdate(BaseModel):
    """Partial update; only fields explicitly set are applied."""

    name: str | None = Field(default=None, min_length=1)
    category: str | None = Field(default=None, min_length=1)
    variety: str | None = None
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    unit: str | None = None
    stock: int | None = Field(default=None, ge=0)
    images: list[str] | None = None
    location: Location | None = None
    harvest_date: date | None = None
    condition: Condition | None = None
    is_active: bool | None = None


class Seller(BaseModel):
    """A farmer/seller profile as handed over by the seller directory."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    business_name: str | None = None
    location: Location | None = None
    email: str | None = None
    phone: str | None = None
    profile_image_url: str | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    review_count: int | None = Field(default=None, ge=0)
    verification_status: VerificationStatus | None = None

    @property
    def display_name(self) -> str:
        return self.business_name or self.name


class MarketPrice(BaseModel):
    """Reference price row; displayed verbatim, never filtered."""

    model_config = ConfigDict(frozen=True)

    id: str
    product_name: str
    category: str
    region: str
    price: float | None = None
    unit: str = "kg"
    trend: MarketTrend = "N/A"
    source: str | None = None
    date: str | None = None
    specification: str | None = None


class ViewerProfile(BaseModel):
    """The signed-in viewer, as far as discovery cares about it."""

    id: str
    name: str = ""
    location: Location | None = None


class PriceRange(BaseModel):
    """Inclusive price bounds; `max=None` is unbounded above."""

    min: float = 0
    max: float | None = None

    def contains(self, price: float) -> bool:
        if price < self.min:
            return False
        return self.max is None or price <= self.max


class FilterCriteria(BaseModel):
    """Session-scoped filter state, owned and mutated by the discovery controller."""

    model_config = ConfigDict(validate_assignment=True)

    search_query: str = ""
    category: str | None = None
    location: str | None = None
    price_range: PriceRange = Field(default_factory=PriceRange)
    condition: Condition | None = None
    radius_km: float | None = None
    user_location: GeoPoint | None = None

    @field_validator("category", "location", "condition", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        # Select inputs send "" for "All".
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("search_query", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class ProductSummary(BaseModel):
    """Lightweight product entry embedded in a seller marker."""

    product_id: str
    name: str
    price: float
    unit: str
    category: str
    condition: Condition | None = None


class ProductMarker(BaseModel):
    type: Literal["product"] = "product"
    lat: float
    lng: float
    label: str
    product_id: str
    price: float
    unit: str
    category: str
    condition: Condition | None = None
    seller_name: str | None = None
    business_name: str | None = None
    address: str | None = None


class SellerMarker(BaseModel):
    type: Literal["seller"] = "seller"
    lat: float
    lng: float
    label: str
    seller_id: str
    seller_name: str
    business_name: str | None = None
    address: str | None = None
    products: list[ProductSummary] = Field(default_factory=list)
    profile_image_url: str | None = None
    email: str | None = None
    phone: str | None = None


class UserMarker(BaseModel):
    type: Literal["user"] = "user"
    lat: float
    lng: float
    label: str


MapMarker = Annotated[Union[ProductMarker, SellerMarker, UserMarker], Field(discriminator="type")]


class MapView(BaseModel):
    """Everything the cluster renderer needs for one render cycle."""

    center: GeoPoint
    zoom: int = 12
    markers: list[MapMarker] = Field(default_factory=list)
    radius_km: float | None = None
    view_mode: ViewMode = "products"


class SellerDetail(BaseModel):
    """Seller detail view: the seller plus its currently filtered products."""

    seller: Seller
    products: list[Product] = Field(default_factory=list)


class ProductDetail(BaseModel):
    """Product detail view enriched with seller and delivery info."""

    product: Product
    seller: Seller | None = None
    distance_km: float | None = None
    delivery_estimate: str | None = None
