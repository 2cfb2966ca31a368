from __future__ import annotations

import pytest

from harvestmap.config.settings import get_settings


@pytest.fixture
def fresh_settings():
    # get_settings() is cached; clear around each test so env overrides take effect and do not leak.
    get_settings.cache_clear()
    yield get_settings
    get_settings.cache_clear()


def test_packaged_defaults_load(fresh_settings):
    settings = fresh_settings()
    assert settings.app.name == "HarvestMap"
    assert settings.discovery.default_price_range.min == 0
    assert settings.discovery.default_price_range.max is None
    assert settings.discovery.delivery.average_speed_kph == 30
    assert "Grains" in settings.discovery.categories
    assert settings.backend.base_url is None


def test_env_overrides_backend_and_data_dir(fresh_settings, monkeypatch, tmp_path):
    monkeypatch.setenv("HARVESTMAP_API_BASE_URL", "https://api.example.ph")
    monkeypatch.setenv("HARVESTMAP_API_TOKEN", "token-123")
    monkeypatch.setenv("HARVESTMAP_LOG_LEVEL", "debug")
    monkeypatch.setenv("HARVESTMAP_DATA_DIR", str(tmp_path))

    settings = fresh_settings()

    assert settings.backend.base_url == "https://api.example.ph"
    assert settings.backend.auth_token == "token-123"
    assert settings.app.log_level == "debug"
    assert settings.catalog.products_path == str(tmp_path / "products.json")


def test_external_config_file(fresh_settings, monkeypatch, tmp_path):
    cfg = tmp_path / "harvestmap.yaml"
    cfg.write_text("discovery:\n  default_radius_km: 25\n  categories: [Rice]\n", encoding="utf-8")
    monkeypatch.setenv("HARVESTMAP_CONFIG_PATH", str(cfg))

    settings = fresh_settings()

    assert settings.discovery.default_radius_km == 25
    assert settings.discovery.categories == ["Rice"]
    # Sections missing from the external file fall back to model defaults.
    assert settings.catalog.products_path == "data/catalogs/products.json"


def test_invalid_yaml_root_rejected(fresh_settings, monkeypatch, tmp_path):
    cfg = tmp_path / "bad.yaml"
    cfg.write_text("- just\n- a list\n", encoding="utf-8")
    monkeypatch.setenv("HARVESTMAP_CONFIG_PATH", str(cfg))
    with pytest.raises(ValueError, match="expected a mapping"):
        fresh_settings()
