"""Mercado Libre Colombia adapter.

Parses the server-rendered search listing page
(``listado.mercadolibre.com.co/<term-with-dashes>``).
"""

from typing import List

from bs4 import BeautifulSoup

from pricedrop.scrapers.base import BaseHTTPAdapter, RawListing
from pricedrop.scrapers.utils.normalizer import clean_price_string


class MercadoLibreAdapter(BaseHTTPAdapter):
    """Static-HTML adapter for Mercado Libre search results."""

    DEFAULT_SELLER = "MercadoLibre"

    async def _fetch_listings(self, search_term: str) -> List[RawListing]:
        url = self.create_search_url(search_term)
        response = await self._request(
            "GET",
            url,
            headers={
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            },
        )
        return self.parse_listings(response.text, search_term)

    def parse_listings(self, html: str, search_term: str) -> List[RawListing]:
        """Extract listings from a search results page."""
        soup = BeautifulSoup(html, "html.parser")
        listings: List[RawListing] = []

        for item in soup.select(".ui-search-layout__item"):
            title = item.select_one(".poly-component__title")
            price_el = item.select_one(".poly-price__current .andes-money-amount__fraction")
            if not title or not price_el:
                continue

            name = title.get_text(strip=True)
            href = title.get("href")
            price = clean_price_string(price_el.get_text(strip=True))
            if not name or not href or price is None:
                continue

            seller_el = item.select_one(".poly-component__seller")
            seller = seller_el.get_text(strip=True).replace("Por ", "") if seller_el else ""

            picture = item.select_one(".poly-component__picture")
            image = None
            if picture:
                image = picture.get("data-src") or picture.get("src")

            listings.append(
                self._make_listing(
                    search_term,
                    name=name,
                    price=price,
                    url=href,
                    seller=seller or self.DEFAULT_SELLER,
                    image=image,
                )
            )

        return listings
