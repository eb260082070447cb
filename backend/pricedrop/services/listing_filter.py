"""Relevance and outlier filtering of raw search results.

A naive text search on a marketplace mixes the product that was asked for
with accessories, spare parts and bundles that share keywords. This module
keeps the listings that plausibly *are* the queried product at a realistic
price:

1. Relevance: token/substring matching between listing name and query.
2. Price floor: when the relevant prices are bimodal (IQR larger than half
   of the maximum price) a seeded 1-D k-means with k=2 keeps the expensive
   group; otherwise, or when clustering cannot produce two groups, only
   listings at or above a fixed price quantile survive.
"""

import math
import random
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

import structlog

from pricedrop.scrapers.base import RawListing
from pricedrop.scrapers.utils.normalizer import normalize_text

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Filter parameters
# ---------------------------------------------------------------------------
RELEVANCE_TOKEN_RATIO = 0.6        # Share of query tokens that must appear in the name
BIMODAL_IQR_RATIO = Decimal("0.5") # IQR above this share of the max price => bimodal
MIN_LISTINGS_FOR_CLUSTERING = 3
DEFAULT_PRICE_QUANTILE = 0.75
KMEANS_SEED = 42
KMEANS_MAX_ITERATIONS = 100


def is_relevant(name: str, search_term: str) -> bool:
    """Whether a listing name plausibly matches the search term.

    Relevant when, after normalization, the name contains the term, the term
    contains the name, or at least 60% of the term's tokens appear as whole
    tokens in the name. A name sharing no token with the term is never
    relevant, even when one string happens to contain the other.
    """
    norm_name = normalize_text(name)
    norm_term = normalize_text(search_term)
    if not norm_name or not norm_term:
        return False

    term_tokens = norm_term.split()
    name_tokens = set(norm_name.split())
    matched = sum(1 for token in term_tokens if token in name_tokens)
    if matched == 0:
        return False

    if norm_term in norm_name or norm_name in norm_term:
        return True

    return matched / len(term_tokens) >= RELEVANCE_TOKEN_RATIO


def price_quantile(sorted_prices: Sequence[Decimal], q: float) -> Decimal:
    """Quantile by sorted-order index ``floor(n * q)``, clamped to the last element."""
    n = len(sorted_prices)
    index = min(int(math.floor(n * q)), n - 1)
    return sorted_prices[max(index, 0)]


def interquartile_range(sorted_prices: Sequence[Decimal]) -> Decimal:
    return price_quantile(sorted_prices, 0.75) - price_quantile(sorted_prices, 0.25)


@dataclass
class ClusterResult:
    """Outcome of a 1-D k-means run.

    Attributes:
        centroids: Final centroid per cluster
        labels: Cluster index assigned to each input value, in input order
    """

    centroids: List[float]
    labels: List[int]

    @property
    def highest_cluster(self) -> int:
        return max(range(len(self.centroids)), key=lambda c: self.centroids[c])


def kmeans_1d(
    values: Sequence[float],
    k: int = 2,
    seed: int = KMEANS_SEED,
    max_iterations: int = KMEANS_MAX_ITERATIONS,
) -> Optional[ClusterResult]:
    """Lloyd's k-means on scalar values with seeded initialization.

    Returns None when the data cannot be split into ``k`` non-empty groups
    (too few distinct values, or a cluster empties out).
    """
    distinct = sorted(set(values))
    if len(distinct) < k:
        return None

    rng = random.Random(seed)
    centroids = sorted(rng.sample(distinct, k))
    labels: List[int] = []

    for _ in range(max_iterations):
        labels = [
            min(range(k), key=lambda c: abs(value - centroids[c]))
            for value in values
        ]

        updated = []
        for cluster in range(k):
            members = [v for v, label in zip(values, labels) if label == cluster]
            if not members:
                return None
            updated.append(sum(members) / len(members))

        if updated == centroids:
            break
        centroids = updated

    return ClusterResult(centroids=centroids, labels=labels)


class ListingFilter:
    """Applies relevance and price-floor filtering to one source's batch."""

    def __init__(self, seed: int = KMEANS_SEED):
        self.seed = seed
        self.logger = logger.bind(service="listing_filter")

    def apply(
        self,
        listings: List[RawListing],
        search_term: str,
        price_quantile_floor: float = DEFAULT_PRICE_QUANTILE,
    ) -> List[RawListing]:
        """Return the listings that plausibly are the queried product.

        Args:
            listings: Raw listings for one source and one search term
            search_term: The query the listings were fetched for
            price_quantile_floor: Quantile used by the fallback price floor

        Returns:
            Surviving listings, possibly empty
        """
        relevant = [listing for listing in listings if is_relevant(listing.name, search_term)]

        self.logger.info(
            "relevance_filtered",
            search_term=search_term,
            total=len(listings),
            relevant=len(relevant),
        )

        if not relevant:
            return []

        return self.filter_outliers(relevant, price_quantile_floor)

    def filter_outliers(
        self,
        listings: List[RawListing],
        price_quantile_floor: float = DEFAULT_PRICE_QUANTILE,
    ) -> List[RawListing]:
        """Drop low-priced accessories and bundles from relevant listings.

        The most expensive listing always survives either branch.
        """
        if not listings:
            return []

        prices = sorted(listing.price for listing in listings)
        iqr = interquartile_range(prices)
        max_price = prices[-1]
        bimodal = iqr > max_price * BIMODAL_IQR_RATIO

        if bimodal and len(listings) >= MIN_LISTINGS_FOR_CLUSTERING:
            clusters = kmeans_1d([float(listing.price) for listing in listings], seed=self.seed)
            if clusters is not None:
                high = clusters.highest_cluster
                kept = [
                    listing for listing, label in zip(listings, clusters.labels)
                    if label == high
                ]
                self.logger.info(
                    "bimodal_prices_clustered",
                    iqr=float(iqr),
                    kept=len(kept),
                    dropped=len(listings) - len(kept),
                    high_centroid=clusters.centroids[high],
                )
                return kept

            self.logger.info("clustering_unavailable", listings=len(listings))

        floor = price_quantile(prices, price_quantile_floor)
        kept = [listing for listing in listings if listing.price >= floor]

        self.logger.info(
            "price_floor_applied",
            quantile=price_quantile_floor,
            floor=float(floor),
            kept=len(kept),
            dropped=len(listings) - len(kept),
        )
        return kept
