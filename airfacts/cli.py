"""Command-line access to the airport service.

Usage:
    python -m airfacts.cli lookup EGKK
    python -m airfacts.cli batch EGKK LFPG KJFK
    python -m airfacts.cli search "gatwick" --limit 5
    python -m airfacts.cli stats
    python -m airfacts.cli cleanup
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

from airfacts.config import Settings
from airfacts.services.airport_service import AirportService, create_airport_service
from airfacts.services.airportdb.errors import InvalidRequestError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="airfacts airport lookup")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    lookup = sub.add_parser("lookup", help="Look up one airport")
    lookup.add_argument("icao")
    lookup.add_argument("--refresh", action="store_true", help="Bypass and rewrite the cached entry")

    batch = sub.add_parser("batch", help="Look up several airports")
    batch.add_argument("icaos", nargs="+")

    search = sub.add_parser("search", help="Free-text search")
    search.add_argument("query")
    search.add_argument("--limit", type=int, default=10)
    search.add_argument("--type", default="all", choices=["icao", "iata", "name", "all"])

    sub.add_parser("stats", help="Cache and rate limit statistics")
    sub.add_parser("cleanup", help="Remove unusable cache entries")
    return parser


async def run(args: argparse.Namespace, service: AirportService) -> dict | list:
    if args.command == "lookup":
        result = await (service.refresh(args.icao) if args.refresh else service.get(args.icao))
        return result.model_dump(mode="json")
    if args.command == "batch":
        return (await service.get_batch(args.icaos)).model_dump(mode="json")
    if args.command == "search":
        results = await service.search(args.query, limit=args.limit, search_type=args.type)
        return [a.model_dump(mode="json") for a in results]
    if args.command == "stats":
        usage = await service.rate_limit_stats()
        return {
            "cache": (await service.cache_stats()).model_dump(mode="json"),
            "rate_limit": usage.model_dump(mode="json") if usage else None,
        }
    if args.command == "cleanup":
        return {"removed": await service.cleanup_cache()}
    raise ValueError(f"Unknown command: {args.command}")


async def execute(args: argparse.Namespace, service: AirportService) -> int:
    """Print the command output as JSON and return the exit status."""
    try:
        output = await run(args, service)
    except InvalidRequestError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    print(json.dumps(output, indent=2))
    return 0


async def _main(args: argparse.Namespace) -> int:
    service = create_airport_service(Settings.from_env())
    try:
        return await execute(args, service)
    finally:
        await service.aclose()


def main() -> None:
    args = build_parser().parse_args()
    load_dotenv()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(asyncio.run(_main(args)))


if __name__ == "__main__":
    main()
