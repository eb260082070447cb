"""Collapse near-identical offers within one source's filtered batch."""

from typing import Dict, List, Optional, Tuple

from pricedrop.scrapers.base import RawListing
from pricedrop.scrapers.utils.normalizer import normalize_key

DedupKey = Tuple[str, str, Optional[str]]


def dedup_key(listing: RawListing) -> DedupKey:
    """(source code, name reduced to ``[a-z0-9]``, seller)."""
    return (listing.source, normalize_key(listing.name), listing.seller)


def deduplicate_listings(listings: List[RawListing]) -> List[RawListing]:
    """Keep the cheapest listing per dedup key.

    A pure min-reduction: equally cheap listings are ordered by URL, so the
    kept set does not depend on input order.
    """
    cheapest: Dict[DedupKey, RawListing] = {}
    for listing in listings:
        key = dedup_key(listing)
        kept = cheapest.get(key)
        if kept is None or (listing.price, listing.url) < (kept.price, kept.url):
            cheapest[key] = listing
    return list(cheapest.values())
