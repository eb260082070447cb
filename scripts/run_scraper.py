"""Manual scraper runner for testing and debugging adapters.

Fetches one source for a search term and prints what the adapter returned
and what survives relevance filtering and deduplication. Nothing is written
to the database.

Usage:
    python scripts/run_scraper.py --source mercadolibre --query "iphone 15"
    python scripts/run_scraper.py --source exito --query "televisor 55" --raw
    python scripts/run_scraper.py --source alkosto --query "nevera" --limit 5
"""

import asyncio
import argparse
import sys
import os
from decimal import Decimal
from typing import List

# Add backend to path so we can import pricedrop modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from pricedrop.core.exceptions import PriceDropException
from pricedrop.scrapers.base import RawListing
from pricedrop.scrapers.factory import get_adapter_factory
from pricedrop.scrapers.register_adapters import register_all_adapters
from pricedrop.scrapers.scraper_service import normalize_search_term
from pricedrop.scrapers.utils.browser_manager import get_browser_manager
from pricedrop.services.deduplicator import deduplicate_listings
from pricedrop.services.listing_filter import ListingFilter


async def run_scraper(source_code: str, query: str, raw: bool = False, limit: int = 10):
    """Run a source adapter and display the results.

    Args:
        source_code: The source code (e.g., "mercadolibre", "exito")
        query: Search term
        raw: Skip filtering and deduplication
        limit: Maximum number of listings to display (default: 10)
    """
    factory = get_adapter_factory()
    register_all_adapters(factory)

    adapter = factory.create_adapter(source_code)
    if not adapter:
        print(f"\nError: Unknown source '{source_code}'")
        print("\nAvailable sources:")
        for code in factory.get_registered_sources():
            print(f"   - {code}")
        return

    term = normalize_search_term(query)

    print(f"\n{'='*70}")
    print(f"  Running {adapter.config.name} Scraper")
    print(f"{'='*70}")
    print(f"  Query: {term}")
    print(f"  Type: {adapter.config.scrape_type}")
    print(f"  Mode: {'raw' if raw else 'filtered'}")
    print(f"  Display Limit: {limit}")
    print(f"{'='*70}\n")

    try:
        listings = await adapter.fetch(term)
        print(f"Fetched {len(listings)} listings\n")

        if not raw:
            usable = [listing for listing in listings if listing.is_usable]
            filtered = ListingFilter().apply(usable, term, adapter.config.price_quantile)
            listings = deduplicate_listings(filtered)
            print(f"{len(listings)} listings survive filtering and dedup\n")

        if not listings:
            print("No listings found.\n")
            return

        _print_listings(sorted(listings, key=lambda l: l.price), limit)

    except PriceDropException as e:
        print(f"\nError: {e.message}\n")

    finally:
        await get_browser_manager().stop()


def _print_listings(listings: List[RawListing], limit: int) -> None:
    for i, listing in enumerate(listings[:limit], 1):
        print(f"[{i}] {listing.name}")
        print(f"    Price: {_format_price(listing.price, listing.currency)}")
        if listing.seller:
            print(f"    Seller: {listing.seller}")
        if listing.brand:
            print(f"    Brand: {listing.brand}")
        print(f"    URL: {listing.url[:80]}")
        print()

    prices = [listing.price for listing in listings]
    print(f"{'='*70}")
    print(f"  Total: {len(listings)}  Displayed: {min(limit, len(listings))}")
    print(f"  Min: {_format_price(min(prices), listings[0].currency)}")
    print(f"  Max: {_format_price(max(prices), listings[0].currency)}")
    print(f"{'='*70}\n")


def _format_price(price: Decimal, currency: str) -> str:
    """Format price with currency symbol."""
    if currency == "COP":
        return f"${price:,.0f} COP"
    elif currency == "USD":
        return f"${price:,.2f}"
    else:
        return f"{price:,.2f} {currency}"


def main():
    """Parse arguments and run the scraper."""
    parser = argparse.ArgumentParser(
        description="Run a source adapter for testing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_scraper.py --source mercadolibre --query "iphone 15"
  python scripts/run_scraper.py --source exito --query "televisor 55" --raw
        """,
    )

    parser.add_argument(
        "--source",
        required=True,
        help="Source code (e.g., 'mercadolibre', 'falabella', 'exito', 'alkosto')",
    )

    parser.add_argument(
        "--query",
        required=True,
        help="Search term",
    )

    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print adapter output without filtering or dedup",
    )

    parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Maximum number of listings to display (default: 10)",
    )

    args = parser.parse_args()

    asyncio.run(run_scraper(args.source.lower(), args.query, args.raw, args.limit))


if __name__ == "__main__":
    main()
