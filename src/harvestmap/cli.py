"""
HarvestMap CLI entrypoint.

This CLI is intended for quick local demos and debugging of the browse pipeline without a
frontend. It drives the same `DiscoveryController` the browse screen uses.
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from harvestmap.catalog.loader import load_market_prices, load_products, load_sellers
from harvestmap.catalog.store import CatalogStore
from harvestmap.config.settings import Settings, get_settings
from harvestmap.core.logging import configure_logging
from harvestmap.directory.sellers import SellerDirectory
from harvestmap.discovery.controller import DiscoveryController
from harvestmap.domain.models import GeoPoint, PriceRange
from harvestmap.quality.report import build_quality_report


def _build_controller(settings: Settings, args: argparse.Namespace) -> DiscoveryController:
    store = CatalogStore(load_products(settings.catalog.products_path))
    directory = SellerDirectory(load_sellers(settings.catalog.sellers_path))
    controller = DiscoveryController(store, directory, settings=settings)

    if (args.lat is None) != (args.lng is None):
        raise ValueError("--lat and --lng must be given together")

    changes: dict[str, Any] = {
        "search_query": args.q or "",
        "category": args.category,
        "location": args.location,
        "condition": args.condition,
        "price_range": PriceRange(
            min=args.min_price if args.min_price is not None else controller.criteria.price_range.min,
            max=args.max_price if args.max_price is not None else controller.criteria.price_range.max,
        ),
    }
    if args.radius_km is not None:
        changes["radius_km"] = args.radius_km
    if args.lat is not None:
        changes["user_location"] = GeoPoint(lat=args.lat, lng=args.lng)
    controller.set_filters(**changes)
    return controller


def _add_filter_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--q", type=str, default="", help="Free-text search (name, category, variety)")
    p.add_argument("--category", type=str, default=None)
    p.add_argument("--location", type=str, default=None, help="Address substring")
    p.add_argument("--min-price", type=float, default=None)
    p.add_argument("--max-price", type=float, default=None)
    p.add_argument("--condition", choices=["fresh", "good", "fair"], default=None)
    p.add_argument("--radius-km", type=float, default=None)
    p.add_argument("--lat", type=float, default=None, help="Viewer latitude (enables radius search)")
    p.add_argument("--lng", type=float, default=None, help="Viewer longitude")
    p.add_argument("--json", action="store_true", help="Output machine-readable JSON")


def _cmd_browse(args: argparse.Namespace) -> int:
    """Handle the `browse` subcommand."""
    controller = _build_controller(get_settings(), args)
    products = controller.filtered_products

    if args.json:
        print(json.dumps([p.model_dump(mode="json") for p in products], ensure_ascii=False, indent=2))
        return 0

    if not products:
        print("No products match the current filters.")
        return 0
    print(f"Available products ({len(products)}):")
    for i, p in enumerate(products, start=1):
        address = p.location.address if p.location and p.location.address else "no address"
        condition = p.condition or "-"
        print(f"{i:>2}. {p.name} [{p.category}] {p.price:.2f}/{p.unit}  {condition}  ({address})")
    return 0


def _cmd_map(args: argparse.Namespace) -> int:
    controller = _build_controller(get_settings(), args)
    controller.set_view_mode(args.view)
    view = controller.map_view()

    if args.json:
        print(json.dumps(view.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return 0

    print(f"View: {view.view_mode}  center=({view.center.lat:.4f}, {view.center.lng:.4f})  radius_km={view.radius_km}")
    for m in view.markers:
        extra = f"  products={len(m.products)}" if m.type == "seller" else ""
        print(f"  - {m.type:<7} ({m.lat:.4f}, {m.lng:.4f})  {m.label}{extra}")
    return 0


def _cmd_seller(args: argparse.Namespace) -> int:
    controller = _build_controller(get_settings(), args)
    detail = controller.on_seller_marker_click(args.seller_id)
    if detail is None:
        print(f"Unknown seller '{args.seller_id}'.")
        return 1

    if args.json:
        print(json.dumps(detail.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return 0

    print(f"{detail.seller.display_name} ({detail.seller.name})")
    if not detail.products:
        print("  No matching products.")
    for p in detail.products:
        print(f"  - {p.name} {p.price:.2f}/{p.unit}")
    return 0


def _cmd_market_prices(args: argparse.Namespace) -> int:
    settings = get_settings()
    rows = load_market_prices(settings.catalog.market_prices_path)
    if args.json:
        print(json.dumps([r.model_dump(mode="json") for r in rows], ensure_ascii=False, indent=2))
        return 0
    arrows = {"up": "↗", "down": "↘", "stable": "→"}
    for r in rows:
        price = f"{r.price:.2f}/{r.unit}" if r.price is not None else "n/a"
        print(f"{r.product_name:<24} {r.region:<20} {price:>14} {arrows.get(r.trend, '-')}")
    return 0


def _cmd_quality_report(_: argparse.Namespace) -> int:
    report = build_quality_report(get_settings())
    print(json.dumps(report, ensure_ascii=False, indent=2))
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("harvestmap.api.app:app", host=args.host, port=int(args.port), reload=bool(args.reload))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the HarvestMap CLI."""
    parser = argparse.ArgumentParser(prog="harvestmap")
    sub = parser.add_subparsers(dest="command", required=True)

    browse = sub.add_parser("browse", help="List products matching the given filters.")
    _add_filter_args(browse)
    browse.set_defaults(func=_cmd_browse)

    map_ = sub.add_parser("map", help="Print the map marker payload for the given filters.")
    _add_filter_args(map_)
    map_.add_argument("--view", choices=["products", "sellers"], default="products")
    map_.set_defaults(func=_cmd_map)

    seller = sub.add_parser("seller", help="Show a seller and its products matching the filters.")
    seller.add_argument("seller_id")
    _add_filter_args(seller)
    seller.set_defaults(func=_cmd_seller)

    prices = sub.add_parser("market-prices", help="Show market price reference rows.")
    prices.add_argument("--json", action="store_true")
    prices.set_defaults(func=_cmd_market_prices)

    q = sub.add_parser("quality-report", help="Offline data quality report for the local catalog.")
    q.set_defaults(func=_cmd_quality_report)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(func=_cmd_serve)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m harvestmap.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
