# src/harvestmap/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/harvestmap/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `HARVESTMAP_API_BASE_URL`, `HARVESTMAP_API_TOKEN`)
- an external YAML file via `HARVESTMAP_CONFIG_PATH`

Design rule:
- Tuning knobs (categories, default price range, map center) live in YAML, not in discovery code.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any
from harvestmap.core.env import load_dotenv_if_present

import yaml
from pydantic import BaseModel, Field


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `harvestmap.config`."""
    text = resources.files("harvestmap.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "HarvestMap"
    timezone: str = "Asia/Manila"
    http_timeout_seconds: float = 15
    log_level: str = "INFO"


class CatalogSettings(BaseModel):
    products_path: str = "data/catalogs/products.json"
    sellers_path: str = "data/catalogs/sellers.json"
    market_prices_path: str | None = "data/catalogs/market_prices.json"


class BackendSettings(BaseModel):
    base_url: str | None = None
    auth_token: str | None = None


class PriceRangeSettings(BaseModel):
    min: float = Field(0, ge=0)
    max: float | None = Field(default=None, ge=0)


class MapCenterSettings(BaseModel):
    lat: float = Field(15.4865, ge=-90, le=90)
    lng: float = Field(120.9667, ge=-180, le=180)


class MapSettings(BaseModel):
    default_center: MapCenterSettings = Field(default_factory=MapCenterSettings)
    zoom: int = Field(12, ge=1, le=20)


class DeliverySettings(BaseModel):
    average_speed_kph: float = Field(30, gt=0)


class DiscoverySettings(BaseModel):
    categories: list[str] = Field(
        default_factory=lambda: ["Grains", "Vegetables", "Fruits", "Herbs", "Livestock"]
    )
    default_price_range: PriceRangeSettings = Field(default_factory=PriceRangeSettings)
    default_radius_km: float | None = None
    user_marker_label: str = "Your location"
    map: MapSettings = Field(default_factory=MapSettings)
    delivery: DeliverySettings = Field(default_factory=DeliverySettings)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    backend: BackendSettings = Field(default_factory=BackendSettings)
    discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small; the token never lives in YAML checked into git.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("HARVESTMAP_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    data_dir = os.getenv("HARVESTMAP_DATA_DIR")
    if data_dir:
        catalog = data.setdefault("catalog", {})
        catalog["products_path"] = str(Path(data_dir) / "products.json")
        catalog["sellers_path"] = str(Path(data_dir) / "sellers.json")
        catalog["market_prices_path"] = str(Path(data_dir) / "market_prices.json")

    base_url = os.getenv("HARVESTMAP_API_BASE_URL")
    token = os.getenv("HARVESTMAP_API_TOKEN")
    if base_url:
        data.setdefault("backend", {})["base_url"] = base_url
    if token:
        data.setdefault("backend", {})["auth_token"] = token

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("HARVESTMAP_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
