"""Source adapter capability contract.

Every e-commerce source is served by one ``SourceAdapter`` subclass selected
by its source code. Adapters only fetch and extract: filtering, dedup and
persistence happen in the scraper service.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional
import structlog

import httpx
from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from pricedrop.core.exceptions import FetchError
from pricedrop.scrapers.utils.retry import browser_retry, http_retry


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SourceConfig:
    """Static configuration for one source."""

    code: str
    name: str
    base_url: str
    scrape_type: str  # 'html', 'api' or 'headless'
    country: str = "CO"
    currency: str = "COP"
    separator: str = "%20"  # Joins search-term tokens in the query string
    price_quantile: float = 0.75  # Price floor used by the outlier filter fallback
    timeout: float = 10.0


@dataclass
class RawListing:
    """Unprocessed listing returned by an adapter for a search term."""

    name: str
    price: Decimal
    url: str
    source: str
    currency: str = "COP"
    search_term: Optional[str] = None
    scraped_at: datetime = field(default_factory=_utcnow)
    image: Optional[str] = None
    brand: Optional[str] = None
    seller: Optional[str] = None
    sku: Optional[str] = None
    ean: Optional[str] = None
    category: Optional[str] = None
    country: Optional[str] = None

    @property
    def is_usable(self) -> bool:
        """Whether the listing carries a name, URL and finite positive price."""
        if not self.name or not self.name.strip() or not self.url:
            return False
        if not isinstance(self.price, Decimal) or not self.price.is_finite():
            return False
        return self.price > 0


class SourceAdapter(ABC):
    """Abstract base class for all source adapters.

    Subclasses implement ``_fetch_listings``; ``fetch`` wraps transport and
    parse failures into ``FetchError`` so callers see one error type.
    """

    def __init__(self, config: SourceConfig):
        self.config = config
        self.logger = structlog.get_logger(adapter=config.code)

    @property
    def code(self) -> str:
        return self.config.code

    async def fetch(self, search_term: str) -> List[RawListing]:
        """Fetch raw listings for a search term.

        Args:
            search_term: Free-text query as typed by the user

        Returns:
            List of RawListing, empty when the source has no results

        Raises:
            FetchError: On network or parse failure
        """
        try:
            listings = await self._fetch_listings(search_term)
        except FetchError:
            raise
        except (httpx.HTTPError, PlaywrightError, ValueError, KeyError, TypeError) as e:
            self.logger.error("fetch_failed", search_term=search_term, error=str(e))
            raise FetchError(self.code, str(e)) from e

        self.logger.info("listings_fetched", search_term=search_term, count=len(listings))
        return listings

    @abstractmethod
    async def _fetch_listings(self, search_term: str) -> List[RawListing]:
        """Source-specific fetch and extraction."""

    def create_search_url(self, search_term: str) -> str:
        """Build the search URL by joining the term's tokens with the source separator."""
        query = self.config.separator.join(search_term.split())
        return f"{self.config.base_url}{query}"

    def _make_listing(
        self,
        search_term: str,
        name: str,
        price: Decimal,
        url: str,
        **extra,
    ) -> RawListing:
        """Build a RawListing stamped with this source's code, currency and country."""
        return RawListing(
            name=name.strip(),
            price=price,
            url=url,
            source=self.code,
            currency=self.config.currency,
            country=self.config.country,
            search_term=search_term,
            **extra,
        )


class BaseHTTPAdapter(SourceAdapter):
    """Base class for adapters that talk plain HTTP (HTML pages or JSON APIs)."""

    DEFAULT_HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        "Accept-Language": "es-CO,es;q=0.9,en-US;q=0.8,en;q=0.7",
    }

    @http_retry
    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send one HTTP request, retrying on transport errors and error statuses."""
        headers = {**self.DEFAULT_HEADERS, **kwargs.pop("headers", {})}
        async with httpx.AsyncClient(
            timeout=self.config.timeout,
            follow_redirects=True,
        ) as client:
            response = await client.request(method, url, headers=headers, **kwargs)
            # 304 answers a conditional request; callers fall back to their cache
            if response.status_code != 304:
                response.raise_for_status()
            return response


class BaseBrowserAdapter(SourceAdapter):
    """Base class for sources that only render their results in a browser."""

    def __init__(self, config: SourceConfig):
        super().__init__(config)
        self.browser_manager = None  # Injected by the factory

    @browser_retry
    async def _render(self, url: str, wait_selector: Optional[str] = None) -> str:
        """Load a page in the source's browser context and return its HTML."""
        if self.browser_manager is None:
            raise FetchError(self.code, "browser manager not configured")

        context = await self.browser_manager.get_context(self.code)
        page = await context.new_page()
        try:
            self.logger.info("rendering_url", url=url)
            await page.goto(url, wait_until="domcontentloaded", timeout=self.config.timeout * 3000)

            if wait_selector:
                try:
                    await page.wait_for_selector(wait_selector, timeout=self.config.timeout * 1000)
                except PlaywrightTimeoutError:
                    self.logger.warning("wait_selector_timeout", url=url, selector=wait_selector)

            return await page.content()
        finally:
            await page.close()
