"""CLI tool for restaurant chain detection and chain management."""

import argparse
import sys

import pandas as pd
import structlog

from chaindetect.config import ChainConfig, load_config
from chaindetect.errors import ChainDetectionError
from chaindetect.logging import configure_logging
from chaindetect.service import ChainDetectionService
from chaindetect.store import ChainStore, InMemoryChainStore
from chaindetect.types import DetectionResult


def _build_store(config: ChainConfig, input_path: str | None = None) -> ChainStore:
    """Build the store: an exported file when given, the database otherwise."""
    log = structlog.get_logger()
    if input_path:
        from chaindetect.io import read_restaurants

        restaurants = read_restaurants(input_path)
        log.info("restaurants_loaded", path=input_path, count=len(restaurants))
        return InMemoryChainStore(restaurants)

    from chaindetect.db import PostgresChainStore

    return PostgresChainStore(config.database)


def _build_service(args: argparse.Namespace, input_path: str | None = None) -> ChainDetectionService:
    config = load_config(args.config)
    return ChainDetectionService(_build_store(config, input_path), config)


def cmd_scan(args: argparse.Namespace) -> None:
    service = _build_service(args, args.input)
    if args.workers is not None:
        service.config.detection.workers = args.workers

    result = service.find_potential_chains(
        similarity_threshold=args.threshold,
        min_locations=args.min_locations,
        max_results=args.max_results,
    )

    if args.show:
        _show_clusters(result)
    _print_summary(result)
    _print_stats(service)

    if args.output:
        from chaindetect.io import write_clusters

        write_clusters(result.chains, args.output)
        print(f"\nSaved to: {args.output}")


def _show_clusters(result: DetectionResult) -> None:
    """Display clusters on screen, one line per cluster."""
    if not result.chains:
        print("\n=== No potential chains found ===")
        return

    df = pd.DataFrame([
        {
            "suggested_name": c.suggested_name,
            "locations": c.location_count,
            "confidence": c.confidence,
            "cities": len(c.cities),
            "avg_similarity": c.average_similarity,
            "restaurant_ids": ",".join(str(i) for i in c.restaurant_ids),
        }
        for c in result.chains
    ])
    print(f"\n=== Potential chains ({len(df)}) ===")
    print(df.to_string(index=False))


def _print_summary(result: DetectionResult) -> None:
    summary = result.summary
    print(f"\nRestaurants analyzed: {summary.restaurants_analyzed}")
    print(f"Potential chains: {result.total_potential_chains}")
    print(f"Average locations per chain: {summary.average_locations_per_chain:.2f}")
    if summary.top_chain is not None:
        top = summary.top_chain
        print(f"Top chain: {top.suggested_name} (confidence {top.confidence}, {top.location_count} locations)")


def _print_stats(service: ChainDetectionService) -> None:
    """Print clustering statistics."""
    s = service.last_stats
    if s is None:
        return
    print("\n--- Statistics ---")
    print(f"Comparisons: {s.comparisons}")
    print(f"Empty names skipped: {s.empty_keys}")
    print(f"Clusters below minimum: {s.clusters_discarded}")


def cmd_create(args: argparse.Namespace) -> None:
    service = _build_service(args)
    assignment = service.create_chain_from_suggestion(
        name=args.name,
        restaurant_ids=args.ids,
        website=args.website,
        description=args.description,
    )
    chain = assignment.chain
    print(f"Created chain {chain.id}: {chain.name}")
    for r in assignment.assigned_restaurants:
        print(f"  - {r.id} {r.name}")
    skipped = set(args.ids) - {r.id for r in assignment.assigned_restaurants}
    if skipped:
        print(f"Unknown restaurant ids skipped: {', '.join(str(i) for i in sorted(skipped))}")


def cmd_remove(args: argparse.Namespace) -> None:
    service = _build_service(args)
    restaurant = service.remove_restaurant_from_chain(args.restaurant_id)
    print(f"Restaurant {restaurant.id} ({restaurant.name}) no longer belongs to a chain")


def cmd_list(args: argparse.Namespace) -> None:
    service = _build_service(args)
    summaries = service.get_all_chains()
    if not summaries:
        print("No chains.")
        return

    df = pd.DataFrame([
        {
            "id": s.chain.id,
            "name": s.chain.name,
            "locations": s.location_count,
            "cities": ", ".join(str(c) for c in s.cities),
            "website": s.chain.website or "",
        }
        for s in summaries
    ])
    print(df.to_string(index=False))


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the admin API."""
    import uvicorn

    from chaindetect.server import create_app

    log = structlog.get_logger()
    log.info("chain_api_start", port=args.port)
    app = create_app(_build_service(args))
    uvicorn.run(app, host=args.host, port=args.port, log_level="warning")


def _global_options(defaults: bool) -> argparse.ArgumentParser:
    """Options accepted both before and after the subcommand.

    Only the top-level copy carries defaults; the subcommand copy uses
    SUPPRESS so it does not overwrite a value given before the subcommand.
    """
    def default(value):
        return value if defaults else argparse.SUPPRESS

    options = argparse.ArgumentParser(add_help=False)
    options.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=default("INFO"),
        help="Set logging level (default: INFO)",
    )
    options.add_argument(
        "--config",
        default=default(None),
        help="JSON file overriding thresholds and confidence weights (default: $CHAINDETECT_CONFIG)",
    )
    options.add_argument(
        "--json-logs",
        action="store_true",
        default=default(False),
        help="Render logs as JSON lines (for serve behind a log collector)",
    )
    return options


def main() -> None:
    # Parent parser with global options (inherited by all subcommands)
    parent_parser = _global_options(defaults=False)

    parser = argparse.ArgumentParser(
        description="Restaurant chain detection CLI",
        parents=[_global_options(defaults=True)],
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", parents=[parent_parser], help="Find potential chains")
    scan_parser.add_argument("--input", help="Scan an exported restaurants file (CSV/XLSX/JSONL) instead of the database")
    scan_parser.add_argument("--output", help="Write clusters to this file (.csv, .xlsx or .jsonl)")
    scan_parser.add_argument("--threshold", type=float, help="Similarity threshold (default: 0.8)")
    scan_parser.add_argument("--min-locations", type=int, help="Minimum locations per chain (default: 2)")
    scan_parser.add_argument("--max-results", type=int, help="Maximum clusters returned (default: 100)")
    scan_parser.add_argument("--workers", type=int, help="Threads for similarity scoring (-1 for all cores)")
    scan_parser.add_argument("--show", action="store_true", help="Display clusters on screen")
    scan_parser.set_defaults(func=cmd_scan)

    create_parser = subparsers.add_parser("create", parents=[parent_parser], help="Create a chain from restaurant ids")
    create_parser.add_argument("--name", required=True, help="Chain name")
    create_parser.add_argument("--ids", type=int, nargs="+", required=True, help="Member restaurant ids (at least 2)")
    create_parser.add_argument("--website", help="Chain website")
    create_parser.add_argument("--description", help="Chain description")
    create_parser.set_defaults(func=cmd_create)

    remove_parser = subparsers.add_parser("remove", parents=[parent_parser], help="Detach a restaurant from its chain")
    remove_parser.add_argument("restaurant_id", type=int, help="Restaurant id")
    remove_parser.set_defaults(func=cmd_remove)

    list_parser = subparsers.add_parser("list", parents=[parent_parser], help="List existing chains")
    list_parser.set_defaults(func=cmd_list)

    serve_parser = subparsers.add_parser("serve", parents=[parent_parser], help="Run the admin API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8765, help="Server port (default: 8765)")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args()
    configure_logging(args.log_level, json_output=args.json_logs)
    try:
        args.func(args)
    except ChainDetectionError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
