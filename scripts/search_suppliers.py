"""Manual supplier search runner for testing and debugging adapters.

Runs the full aggregator, or a single adapter, and prints the ranked
results with their price provenance.

Usage:
    python scripts/search_suppliers.py --query "no more nails"
    python scripts/search_suppliers.py --query "decking oil" --limit 10
    python scripts/search_suppliers.py --query "caulk" --adapter serpapi --adapter diy
    python scripts/search_suppliers.py --query "caulk" --json
    python scripts/search_suppliers.py --status
"""

import argparse
import asyncio
import json
import os
import sys
from decimal import Decimal
from typing import List, Optional

# Add backend to path so we can run without installing the package
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from supplier_search import (  # noqa: E402
    get_search_source_status,
    search_suppliers,
    shutdown,
)
from supplier_search.core.logging import configure_logging  # noqa: E402


def _format_price(price: Optional[Decimal], currency: str) -> str:
    if price is None:
        return "N/A"
    if currency == "GBP":
        return f"£{price:,.2f}"
    return f"{price:,.2f} {currency}"


def print_status() -> None:
    """Print which sources are configured."""
    print(f"\n{'='*70}")
    print("  Supplier Sources")
    print(f"{'='*70}\n")
    for status in get_search_source_status():
        marker = "✅" if status["configured"] else "⚪"
        kind = "real price" if status["real_price"] else "estimate"
        print(f"{marker} {status['source']:<10} {status['name']:<20} ({status['type']}, {kind})")
    print()


async def run_search(
    query: str,
    limit: int,
    adapters: Optional[List[str]] = None,
    as_json: bool = False,
) -> None:
    """Run a search and display the results.

    Args:
        query: Product query
        limit: Maximum number of results
        adapters: Optional adapter slugs to restrict the search to
        as_json: Print JSON instead of a table
    """
    try:
        results = await search_suppliers(query, limit=limit, adapter_filter=adapters)
    finally:
        await shutdown()

    if as_json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
        return

    print(f"\n{'='*70}")
    print(f"  Results for \"{query}\"")
    print(f"{'='*70}\n")

    if not results:
        print("⚠️  No results found.\n")
        return

    if all(r.is_estimate for r in results):
        print("⚠️  No real prices found; all results below are AI estimates.\n")

    for i, result in enumerate(results, 1):
        label = "REAL" if result.is_real_price else "ESTIMATE"
        print(f"[{i}] {result.product_name}")
        print(f"    💰 {_format_price(result.price, result.currency)}  [{label}: {result.source.value}]")
        print(f"    🏪 {result.store_name}")
        if result.size_label:
            print(f"    📦 {result.size_label}")
        if result.product_url:
            print(f"    🔗 {result.product_url}")
        print()


def main() -> None:
    parser = argparse.ArgumentParser(description="Search supplier prices")
    parser.add_argument("--query", "-q", help="Product search query")
    parser.add_argument("--limit", "-l", type=int, default=5, help="Maximum results (default: 5)")
    parser.add_argument(
        "--adapter",
        "-a",
        action="append",
        dest="adapters",
        help="Restrict to an adapter slug (repeatable)",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--status", action="store_true", help="Show source configuration and exit")
    parser.add_argument("--log-level", default=None, help="Log level (default: settings.LOG_LEVEL)")
    args = parser.parse_args()

    configure_logging(level=args.log_level)

    if args.status:
        print_status()
        return

    if not args.query:
        parser.error("--query is required unless --status is given")

    asyncio.run(run_search(args.query, args.limit, args.adapters, args.json))


if __name__ == "__main__":
    main()
