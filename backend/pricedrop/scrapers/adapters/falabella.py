"""Falabella Colombia adapter.

The search grid is rendered client-side, so the page is loaded through
Playwright and the resulting markup parsed with BeautifulSoup.
"""

from typing import List, Optional

from bs4 import BeautifulSoup

from pricedrop.scrapers.base import BaseBrowserAdapter, RawListing
from pricedrop.scrapers.utils.normalizer import absolute_url, clean_price_string


class FalabellaAdapter(BaseBrowserAdapter):
    """Browser-rendered adapter for Falabella search results."""

    MAIN_URL = "https://www.falabella.com.co"
    GRID_SELECTOR = '[class*="search-results-"][class*="grid"] .grid-pod'
    DEFAULT_SELLER = "Falabella"

    async def _fetch_listings(self, search_term: str) -> List[RawListing]:
        html = await self._render(self.create_search_url(search_term), wait_selector=self.GRID_SELECTOR)
        listings = self.parse_listings(html, search_term)
        if not listings:
            self.logger.debug("no_products_found", search_term=search_term)
        return listings

    @staticmethod
    def _parse_srcset(srcset: str) -> Optional[str]:
        """Pick the 2x candidate from a srcset attribute."""
        for candidate in srcset.split(","):
            parts = candidate.split()
            if len(parts) == 2 and parts[1] == "2x":
                return parts[0]
        return None

    def parse_listings(self, html: str, search_term: str) -> List[RawListing]:
        """Extract listings from the rendered search page."""
        soup = BeautifulSoup(html, "html.parser")
        listings: List[RawListing] = []

        for pod in soup.select("#testId-searchResults-products .grid-pod"):
            name_el = pod.select_one(".subTitle-rebrand")
            price_el = pod.select_one(".copy10.primary.high")
            link = pod.select_one("a.pod-link")
            if not name_el or not price_el or not link:
                continue

            name = name_el.get_text(strip=True)
            price = clean_price_string(price_el.get_text(strip=True))
            url = absolute_url(self.MAIN_URL, link.get("href"))
            if not name or price is None or not url:
                continue

            brand_el = pod.select_one(".title-rebrand")
            seller_el = pod.select_one(".pod-sellerText-rebrand")
            seller = seller_el.get_text(strip=True).replace("Por ", "") if seller_el else ""

            img = pod.select_one(".image-slider picture:first-child img")
            image = None
            if img:
                image = self._parse_srcset(img.get("srcset") or "") or img.get("src")

            listings.append(
                self._make_listing(
                    search_term,
                    name=name,
                    price=price,
                    url=url,
                    seller=seller or self.DEFAULT_SELLER,
                    brand=brand_el.get_text(strip=True) if brand_el else None,
                    image=image,
                )
            )

        return listings
