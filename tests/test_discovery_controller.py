import pytest

from harvestmap.catalog.store import CatalogStore
from harvestmap.config.settings import get_settings
from harvestmap.directory.sellers import SellerDirectory
from harvestmap.discovery.controller import DiscoveryController
from harvestmap.domain.models import GeoPoint, PriceRange, Product, ProductUpdate, Seller, ViewerProfile


def _product(pid: str, seller_id: str, **kw) -> Product:
    data = {
        "id": pid,
        "seller_id": seller_id,
        "name": f"Product {pid}",
        "category": "Vegetables",
        "price": 10,
        "location": {"lat": 0.0, "lng": 0.05, "address": "Near"},
    }
    data.update(kw)
    return Product.model_validate(data)


def _controller(products=None) -> DiscoveryController:
    products = products or [
        _product("corn", "A", name="Sweet Corn", price=35),
        _product("rice", "A", name="Premium Rice", category="Grains", price=45),
        _product("far-tomato", "B", name="Tomatoes", price=60, location={"lat": 0.0, "lng": 1.0}),
        _product("orphan", "ghost", name="Native Chicken", category="Livestock", price=280),
    ]
    store = CatalogStore(products)
    directory = SellerDirectory([Seller(id="A", name="Juan"), Seller(id="B", name="Maria")])
    return DiscoveryController(store, directory, settings=get_settings())


def _ids(products):
    return [p.id for p in products]


def test_initial_snapshot_uses_unbounded_defaults():
    c = _controller()
    assert _ids(c.filtered_products) == ["corn", "rice", "far-tomato", "orphan"]
    assert c.criteria.user_location is None
    assert c.criteria.price_range.max is None


def test_mount_syncs_viewer_location_once():
    c = _controller()
    c.mount(ViewerProfile(id="buyer-1", location={"lat": 0.0, "lng": 0.0, "address": "Home"}))
    assert c.criteria.user_location == GeoPoint(lat=0.0, lng=0.0)

    c.mount(ViewerProfile(id="buyer-1", location={"lat": 10.0, "lng": 10.0}))
    assert c.criteria.user_location == GeoPoint(lat=0.0, lng=0.0)


def test_mount_without_location_leaves_radius_off():
    c = _controller()
    c.mount(ViewerProfile(id="buyer-1"))
    c.set_filters(radius_km=20)
    assert len(c.filtered_products) == 4


def test_filter_change_rederives_list_and_both_projections():
    c = _controller()
    c.mount(ViewerProfile(id="buyer-1", location={"lat": 0.0, "lng": 0.0}))

    snap = c.set_filters(radius_km=20)

    assert _ids(snap.products) == ["corn", "rice", "orphan"]
    assert [m.product_id for m in snap.projection.product_markers] == ["corn", "rice", "orphan"]
    assert [m.seller_id for m in snap.projection.seller_markers] == ["A"]
    assert c.snapshot is snap


def test_set_search_query_and_price_range_tuple():
    c = _controller()
    c.set_search_query("corn")
    assert _ids(c.filtered_products) == ["corn"]

    c.set_search_query("")
    c.set_filters(price_range=(40, 100))
    assert _ids(c.filtered_products) == ["rice", "far-tomato"]
    assert c.criteria.price_range == PriceRange(min=40, max=100)


def test_unknown_filter_field_rejected():
    c = _controller()
    with pytest.raises(ValueError):
        c.set_filters(colour="red")


def test_reset_keeps_viewer_location():
    c = _controller()
    c.mount(ViewerProfile(id="buyer-1", location={"lat": 0.0, "lng": 0.0}))
    c.set_filters(category="Grains", radius_km=5)
    c.reset_filters()
    assert c.criteria.category is None
    assert c.criteria.radius_km is None
    assert c.criteria.user_location == GeoPoint(lat=0.0, lng=0.0)
    assert len(c.filtered_products) == 4


def test_view_mode_switch_does_not_rerun_query():
    c = _controller()
    before = c.snapshot

    c.set_view_mode("sellers")
    view = c.map_view()

    assert c.snapshot is before
    assert view.view_mode == "sellers"
    assert {m.type for m in view.markers} == {"seller"}
    assert c.toggle_view_mode() == "products"
    assert {m.type for m in c.map_view().markers} == {"product"}


def test_invalid_view_mode_rejected():
    with pytest.raises(ValueError):
        _controller().set_view_mode("grid")


def test_map_view_includes_user_pin_radius_and_center():
    c = _controller()
    c.mount(ViewerProfile(id="buyer-1", location={"lat": 0.0, "lng": 0.0}))
    c.set_filters(radius_km=20)

    view = c.map_view()

    assert view.center == GeoPoint(lat=0.0, lng=0.0)
    assert view.radius_km == 20
    assert [m for m in view.markers if m.type == "user"][0].label == get_settings().discovery.user_marker_label


def test_map_view_without_viewer_uses_default_center_and_no_pin():
    settings = get_settings()
    view = _controller().map_view()
    assert view.center.lat == settings.discovery.map.default_center.lat
    assert all(m.type != "user" for m in view.markers)


def test_product_click_resolves_against_current_filtered_list():
    c = _controller()
    c.set_filters(category="Grains")

    assert c.on_product_marker_click("corn") is None
    assert c.detail is None

    product = c.on_product_marker_click("rice")
    assert product is c.filtered_products[0]
    assert c.detail.kind == "product"
    assert c.detail.product is product


def test_seller_click_gathers_filtered_products_then_product_swaps_view():
    c = _controller()
    c.set_filters(price_range=(0, 40))

    detail = c.on_seller_marker_click("A")
    assert detail.seller.id == "A"
    assert _ids(detail.products) == ["corn"]
    assert c.detail.kind == "seller"

    product = c.select_product_from_seller("corn")
    assert product.id == "corn"
    assert c.detail.kind == "product"
    assert c.detail.seller_detail is None


def test_select_product_outside_seller_view_is_ignored():
    c = _controller()
    assert c.select_product_from_seller("corn") is None
    c.on_seller_marker_click("A")
    assert c.select_product_from_seller("far-tomato") is None
    assert c.detail.kind == "seller"


def test_unknown_seller_click_returns_none():
    c = _controller()
    assert c.on_seller_marker_click("ghost") is None
    assert c.detail is None


def test_close_detail():
    c = _controller()
    c.on_product_marker_click("corn")
    c.close_detail()
    assert c.detail is None


def test_refresh_after_catalog_mutation():
    store = CatalogStore([_product("1", "A"), _product("2", "A")])
    c = DiscoveryController(store, SellerDirectory([Seller(id="A", name="Juan")]), settings=get_settings())
    snap = c.snapshot
    assert c.refresh() is snap

    store.update_product("1", ProductUpdate(is_active=False))
    assert _ids(c.filtered_products) == ["1", "2"]
    assert _ids(c.refresh().products) == ["2"]


def test_select_from_seller_returns_current_record_after_refresh():
    store = CatalogStore([_product("1", "A"), _product("2", "A")])
    c = DiscoveryController(store, SellerDirectory([Seller(id="A", name="Juan")]), settings=get_settings())
    c.on_seller_marker_click("A")

    store.update_product("2", ProductUpdate(price=12))
    store.update_product("1", ProductUpdate(is_active=False))
    c.refresh()

    assert c.select_product_from_seller("1") is None
    assert c.detail.kind == "seller"

    picked = c.select_product_from_seller("2")
    assert picked.price == 12
    assert any(p is picked for p in c.filtered_products)
    assert c.detail.product is picked


def test_criteria_is_a_read_only_copy():
    c = _controller()
    criteria = c.criteria
    criteria.category = "Grains"

    assert c.criteria.category is None
    assert len(c.filtered_products) == 4

    c.set_filters(category="Grains")
    assert c.criteria.category == "Grains"
    assert _ids(c.filtered_products) == ["rice"]


def test_criteria_cannot_be_reassigned():
    c = _controller()
    with pytest.raises(AttributeError):
        c.criteria = c.criteria
