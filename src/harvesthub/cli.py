"""
HarvestHub CLI entrypoint.

Quick local lookups without the API. Ranking is delegated to
`harvesthub.locator.service.locate`.
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from harvesthub.config.settings import get_settings
from harvesthub.core.logging import configure_logging
from harvesthub.directory.loader import load_candidates, load_directory
from harvesthub.domain.models import Coordinate, LocatorQuery, normalize_sort_key
from harvesthub.locator.explain import one_line_summary, product_preview, unlocated_summary
from harvesthub.locator.pipeline import partition_located
from harvesthub.locator.service import locate, to_unlocated_farmer


def _sort_key(value: str) -> str:
    key = normalize_sort_key(value)
    if key not in {"distance", "product_count"}:
        raise argparse.ArgumentTypeError(f"invalid sort key '{value}' (choose distance or product_count)")
    return key


def _candidates(args: argparse.Namespace):
    if args.directory:
        return load_directory(args.directory)
    return load_candidates(get_settings())


def _cmd_nearby(args: argparse.Namespace) -> int:
    """Handle the `nearby` subcommand."""
    settings = get_settings()

    if (args.lat is None) != (args.lon is None):
        raise SystemExit("--lat and --lon must be given together")
    if args.lat is None:
        fallback = settings.locator.fallback_buyer_location
        buyer = Coordinate(lat=fallback.lat, lon=fallback.lon)
    else:
        buyer = Coordinate(lat=float(args.lat), lon=float(args.lon))

    query = LocatorQuery(
        buyer=buyer,
        radius_km=float(args.radius) if args.radius is not None else None,
        sort_by=args.sort_by,
        max_results=int(args.max_results) if args.max_results is not None else None,
    )
    result = locate(query, settings=settings, candidates=_candidates(args))

    if args.json:
        print(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return 0

    q = result.query
    print(f"Buyer: ({q.buyer.lat:.4f}, {q.buyer.lon:.4f})  radius={q.radius_km:g} km  sort={q.sort_by}")
    if not result.results:
        print("No farmers found within the radius. Try increasing the search radius.")
    for i, item in enumerate(result.results, start=1):
        print(f"{i:>2}. {item.farmer.name}  {one_line_summary(item)}")
        preview = product_preview(item.farmer.product_names, settings.locator.product_preview_limit)
        if preview:
            print(f"    - {preview}")
    if result.unlocated:
        print(f"Farmers without location: {len(result.unlocated)}")
    return 0


def _cmd_unlocated(args: argparse.Namespace) -> int:
    """Handle the `unlocated` subcommand."""
    _, unlocated = partition_located(_candidates(args))
    items = [to_unlocated_farmer(c) for c in unlocated]

    if args.json:
        print(json.dumps([i.model_dump(mode="json") for i in items], ensure_ascii=False, indent=2))
        return 0

    print(f"Farmers without location: {len(items)}")
    for item in items:
        print(f"  - {item.name} ({item.id})  {unlocated_summary(item)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the HarvestHub CLI."""
    parser = argparse.ArgumentParser(prog="harvesthub")
    sub = parser.add_subparsers(dest="command", required=True)

    near = sub.add_parser("nearby", help="List farmers near a buyer location, nearest first by default.")
    near.add_argument("--lat", type=float, default=None, help="Buyer latitude (defaults to the configured fallback)")
    near.add_argument("--lon", type=float, default=None, help="Buyer longitude")
    near.add_argument("--radius", type=float, default=None, help="Search radius in km")
    near.add_argument(
        "--sort-by",
        dest="sort_by",
        type=_sort_key,
        default=None,
        help="distance | product_count (alias: products)",
    )
    near.add_argument("--max-results", type=int, default=None)
    near.add_argument("--directory", type=str, default=None, help="Farmer directory JSON file")
    near.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    near.set_defaults(func=_cmd_nearby)

    un = sub.add_parser("unlocated", help="List farmers that still need to set a location.")
    un.add_argument("--directory", type=str, default=None, help="Farmer directory JSON file")
    un.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    un.set_defaults(func=_cmd_unlocated)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m harvesthub.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
