"""Alkosto adapter.

Alkosto's storefront search is backed by Algolia; this adapter posts the
same multi-query payload the site sends and reads up to ``MAX_PAGES`` pages
of hits.
"""

from typing import Any, Dict, List

import httpx
import structlog

from pricedrop.config import settings
from pricedrop.scrapers.base import BaseHTTPAdapter, RawListing
from pricedrop.scrapers.utils.normalizer import to_decimal

logger = structlog.get_logger()


class AlkostoAdapter(BaseHTTPAdapter):
    """Algolia search API adapter for Alkosto."""

    INDEX_NAME = "alkostoIndexAlgoliaPRD"
    HITS_PER_PAGE = 25
    MAX_PAGES = 2
    SELLER = "Alkosto"

    @property
    def api_url(self) -> str:
        app_id = settings.ALKOSTO_ALGOLIA_APP_ID.lower()
        return f"https://{app_id}-dsn.algolia.net/1/indexes/*/queries"

    def create_search_payload(self, search_term: str, page: int = 0) -> Dict[str, Any]:
        return {
            "requests": [
                {
                    "indexName": self.INDEX_NAME,
                    "facets": ["*"],
                    "hitsPerPage": self.HITS_PER_PAGE,
                    "page": page,
                    "query": search_term,
                    "removeWordsIfNoResults": "allOptional",
                }
            ]
        }

    async def _fetch_listings(self, search_term: str) -> List[RawListing]:
        if not settings.ALKOSTO_ALGOLIA_API_KEY:
            logger.warning(
                "alkosto_fetch_skipped",
                message="ALKOSTO_ALGOLIA_API_KEY not configured",
            )
            return []

        headers = {
            "x-algolia-api-key": settings.ALKOSTO_ALGOLIA_API_KEY,
            "x-algolia-application-id": settings.ALKOSTO_ALGOLIA_APP_ID,
            "Accept": "application/json",
            "Content-Type": "text/plain",
            "Origin": self.config.base_url,
            "Referer": f"{self.config.base_url}/",
        }

        listings: List[RawListing] = []
        page = 0
        while page < self.MAX_PAGES:
            try:
                response = await self._request(
                    "POST",
                    self.api_url,
                    headers=headers,
                    json=self.create_search_payload(search_term, page),
                )
            except httpx.HTTPError as e:
                if page == 0:
                    raise
                # Later pages are best effort; keep what the first pages returned
                self.logger.warning("page_fetch_failed", page=page, error=str(e))
                break

            result = response.json()["results"][0]
            listings.extend(self.parse_hits(result.get("hits") or [], search_term))

            if page + 1 >= (result.get("nbPages") or 1):
                break
            page += 1

        return listings

    def parse_hits(self, hits: List[Dict[str, Any]], search_term: str) -> List[RawListing]:
        """Convert Algolia hits into listings."""
        listings: List[RawListing] = []
        for hit in hits:
            name = hit.get("name_text_es")
            price = to_decimal(hit.get("lowestprice_double"))
            path = hit.get("url_es_string")
            if not name or price is None or price <= 0 or not path:
                continue

            brands = hit.get("brand_string_mv") or []
            image_path = hit.get("img-310wx310h_string")

            listings.append(
                self._make_listing(
                    search_term,
                    name=name,
                    price=price,
                    url=f"{self.config.base_url}{path}",
                    seller=self.SELLER,
                    brand=brands[0] if brands else None,
                    sku=hit.get("code_string"),
                    category=hit.get("categoryname_text_es"),
                    image=f"{self.config.base_url}{image_path}" if image_path else None,
                )
            )
        return listings
