from harvestmap.catalog.store import filter_products
from harvestmap.domain.models import FilterCriteria, GeoPoint, Location, PriceRange, Product


def _product(pid: str, **kw) -> Product:
    data = {
        "id": pid,
        "seller_id": "A",
        "name": f"Product {pid}",
        "category": "Vegetables",
        "price": 10,
        "location": {"lat": 0, "lng": 0, "address": "Cabanatuan, Nueva Ecija"},
        "condition": "fresh",
    }
    data.update(kw)
    return Product.model_validate(data)


def _ids(products):
    return [p.id for p in products]


def test_price_range_scenario_keeps_only_cheap_product():
    catalog = [
        _product("1", seller_id="A", price=45, category="Grains"),
        _product("2", seller_id="A", price=90, category="Vegetables"),
    ]
    criteria = FilterCriteria(price_range=PriceRange(min=0, max=50))
    assert _ids(filter_products(catalog, criteria)) == ["1"]


def test_price_range_bounds_are_inclusive():
    catalog = [_product("lo", price=10), _product("hi", price=20), _product("out", price=20.01)]
    criteria = FilterCriteria(price_range=PriceRange(min=10, max=20))
    assert _ids(filter_products(catalog, criteria)) == ["lo", "hi"]


def test_inactive_and_out_of_stock_products_never_shown():
    catalog = [
        _product("active"),
        _product("inactive", is_active=False),
        _product("sold-out", stock=0),
        _product("untracked", stock=None),
        _product("in-stock", stock=3),
    ]
    assert _ids(filter_products(catalog, FilterCriteria())) == ["active", "untracked", "in-stock"]


def test_search_matches_name_category_or_variety_case_insensitive():
    catalog = [
        _product("name", name="Sweet CORN"),
        _product("category", name="Kernels", category="Corn"),
        _product("variety", name="Maize", variety="Sweet corn"),
        _product("none", name="Tomatoes", description="goes well with corn"),
    ]
    result = filter_products(catalog, FilterCriteria(search_query="corn"))
    assert _ids(result) == ["name", "category", "variety"]


def test_category_and_search_combination():
    corn = _product("corn", name="Sweet Corn", category="Vegetables")
    assert _ids(filter_products([corn], FilterCriteria(search_query="corn", category="Vegetables"))) == ["corn"]
    assert filter_products([corn], FilterCriteria(search_query="corn", category="Grains")) == []
    assert filter_products([corn], FilterCriteria(search_query="", category="Grains")) == []


def test_blank_select_values_mean_no_filter():
    catalog = [_product("a", category="Grains"), _product("b", category="Fruits")]
    criteria = FilterCriteria(category="", condition="", location="  ")
    assert _ids(filter_products(catalog, criteria)) == ["a", "b"]


def test_location_substring_on_address():
    catalog = [
        _product("cab", location={"lat": 0, "lng": 0, "address": "Cabanatuan, Nueva Ecija"}),
        _product("sj", location={"lat": 0, "lng": 0, "address": "San Jose City"}),
        _product("no-address", location={"lat": 0, "lng": 0}),
        _product("no-location", location=None),
    ]
    assert _ids(filter_products(catalog, FilterCriteria(location="nueva ecija"))) == ["cab"]


def test_condition_exact_match():
    catalog = [_product("f", condition="fresh"), _product("g", condition="good"), _product("n", condition=None)]
    assert _ids(filter_products(catalog, FilterCriteria(condition="good"))) == ["g"]


def test_radius_filter_needs_both_radius_and_user_location():
    near = _product("near", location={"lat": 0, "lng": 0.1})
    far = _product("far", location={"lat": 0, "lng": 1.0})
    catalog = [near, far]

    assert _ids(filter_products(catalog, FilterCriteria(radius_km=20))) == ["near", "far"]
    assert _ids(filter_products(catalog, FilterCriteria(user_location=GeoPoint(lat=0, lng=0)))) == ["near", "far"]

    both = FilterCriteria(radius_km=20, user_location=GeoPoint(lat=0, lng=0))
    assert _ids(filter_products(catalog, both)) == ["near"]

    tight = FilterCriteria(radius_km=5, user_location=GeoPoint(lat=0, lng=0))
    assert filter_products(catalog, tight) == []


def test_missing_coordinates_only_matter_when_radius_active():
    catalog = [
        _product("located", location={"lat": 0, "lng": 0.05}),
        _product("address-only", location={"address": "Cabanatuan"}),
        _product("no-location", location=None),
    ]
    assert _ids(filter_products(catalog, FilterCriteria())) == ["located", "address-only", "no-location"]

    radius = FilterCriteria(radius_km=50, user_location=GeoPoint(lat=0, lng=0))
    assert _ids(filter_products(catalog, radius)) == ["located"]


def test_zero_radius_is_an_empty_search_area():
    catalog = [_product("here", location={"lat": 0, "lng": 0})]
    criteria = FilterCriteria(radius_km=0, user_location=GeoPoint(lat=0, lng=0))
    assert filter_products(catalog, criteria) == []


def test_result_is_subset_of_active_catalog_and_idempotent():
    catalog = [
        _product(str(i), price=i * 7 % 100, is_active=i % 3 != 0, category=["Grains", "Fruits"][i % 2])
        for i in range(30)
    ]
    criteria = FilterCriteria(search_query="product", category="Fruits", price_range=PriceRange(min=5, max=80))

    first = filter_products(catalog, criteria)
    second = filter_products(catalog, criteria)

    active_ids = {p.id for p in catalog if p.is_active}
    assert set(_ids(first)) <= active_ids
    assert _ids(first) == _ids(second)
    assert all(p in catalog for p in first)


def test_location_model_point_rejects_partial_coordinates():
    assert Location(lat=1.0).point() is None
    assert Location(lat=1.0, lng=2.0).point() == GeoPoint(lat=1.0, lng=2.0)
    assert Location(lat=95.0, lng=2.0).point() is None


def test_search_query_whitespace_is_part_of_the_needle():
    joined = _product("joined", name="Sweetcorn")
    spaced = _product("spaced", name="Sweet Corn")
    assert _ids(filter_products([joined, spaced], FilterCriteria(search_query="sweet "))) == ["spaced"]
    # Whitespace alone is an empty query.
    assert _ids(filter_products([joined, spaced], FilterCriteria(search_query="   "))) == ["joined", "spaced"]
