"""Éxito adapter.

Queries the storefront's GraphQL ``SearchQuery`` operation. Responses are
cached per term by ETag so an unchanged result set answers 304.
"""

import json
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

from pricedrop.scrapers.base import BaseHTTPAdapter, RawListing
from pricedrop.scrapers.utils.normalizer import to_decimal


class ExitoAdapter(BaseHTTPAdapter):
    """JSON API adapter for Éxito search."""

    PAGE_SIZE = 16
    DEFAULT_SELLER = "Exito"

    ETAG_CACHE_SIZE = 128

    # search term -> (etag, parsed JSON body), least recently used first;
    # shared by all instances since the factory builds one per request
    _etag_cache: "OrderedDict[str, Tuple[str, Dict[str, Any]]]" = OrderedDict()

    def create_search_url(self, search_term: str) -> str:
        variables = {
            "first": self.PAGE_SIZE,
            "after": "0",
            "sort": "score_desc",
            "term": search_term,
            "selectedFacets": [
                {"key": "channel", "value": '{"salesChannel":"1","regionId":""}'},
                {"key": "locale", "value": "es-CO"},
            ],
        }
        encoded = quote(json.dumps(variables, separators=(",", ":")), safe="")
        return f"{self.config.base_url}api/graphql?operationName=SearchQuery&variables={encoded}"

    async def _fetch_listings(self, search_term: str) -> List[RawListing]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Cache-Control": "no-cache",
        }
        cached = self._cached_response(search_term)
        if cached:
            headers["If-None-Match"] = cached[0]

        response = await self._request("GET", self.create_search_url(search_term), headers=headers)

        if response.status_code == 304 and cached:
            self.logger.debug("using_cached_response", search_term=search_term)
            return self.parse_listings(cached[1], search_term)

        data = response.json()
        etag = response.headers.get("etag")
        if etag:
            self._store_response(search_term, etag, data)

        return self.parse_listings(data, search_term)

    def _cached_response(self, search_term: str) -> Optional[Tuple[str, Dict[str, Any]]]:
        cached = self._etag_cache.get(search_term)
        if cached is not None:
            self._etag_cache.move_to_end(search_term)
        return cached

    def _store_response(self, search_term: str, etag: str, data: Dict[str, Any]) -> None:
        self._etag_cache[search_term] = (etag, data)
        self._etag_cache.move_to_end(search_term)
        while len(self._etag_cache) > self.ETAG_CACHE_SIZE:
            self._etag_cache.popitem(last=False)

    def parse_listings(self, data: Dict[str, Any], search_term: str) -> List[RawListing]:
        """Extract listings from a GraphQL search response."""
        edges = (((data or {}).get("data") or {}).get("search") or {}).get("products", {}).get("edges") or []
        listings: List[RawListing] = []

        for edge in edges:
            node = edge.get("node") or {}
            name = node.get("name")
            price = to_decimal((node.get("offers") or {}).get("lowPrice"))
            slug = node.get("slug")
            if not name or price is None or not slug:
                continue

            sellers = node.get("sellers") or []
            seller = sellers[0].get("sellerName") if sellers else None

            images = ((node.get("items") or [{}])[0].get("images") or [])
            image = images[0].get("imageUrl") if images else None

            listings.append(
                self._make_listing(
                    search_term,
                    name=name,
                    price=price,
                    url=f"{self.config.base_url}{slug}/p",
                    seller=seller or self.DEFAULT_SELLER,
                    brand=(node.get("brand") or {}).get("brandName"),
                    sku=node.get("sku"),
                    ean=node.get("gtin"),
                    image=image,
                )
            )

        self.logger.info("parsed_products", count=len(listings))
        return listings
