"""Periodic evaluation of price alerts.

One pass visits every active alert: it reads the lowest price ever observed
for the alert's search term, scrapes every configured source for that term
(pausing between source calls), and fires when the new lowest price is at or
below the alert threshold and strictly below that earlier minimum.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Awaitable, Callable, Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pricedrop.config import settings
from pricedrop.core.exceptions import PriceDropException
from pricedrop.scrapers.factory import AdapterFactory, get_adapter_factory
from pricedrop.scrapers.scraper_service import ScraperService
from pricedrop.services.alert_service import AlertService
from pricedrop.services.listing_filter import ListingFilter
from pricedrop.services.notifier import AlertEvent, Notifier, get_notifier
from pricedrop.services.product_service import ProductService
from pricedrop.services.source_registry import SourceRegistry, get_source_registry

logger = structlog.get_logger(__name__)


@dataclass
class EvaluationReport:
    """Summary of one evaluation pass."""

    alerts_checked: int = 0
    alerts_fired: int = 0
    alerts_failed: int = 0
    source_failures: int = 0


@dataclass
class AlertOutcome:
    """Result of evaluating a single alert."""

    alert_id: UUID
    fired: bool
    lowest_price: Optional[Decimal]
    previous_min: Optional[Decimal]
    source_failures: int = 0


def should_fire(
    lowest_price: Optional[Decimal],
    threshold: Decimal,
    previous_min: Optional[Decimal],
) -> bool:
    """Fire on a price at or under the threshold that also beats the historical low."""
    if lowest_price is None or lowest_price > threshold:
        return False
    return previous_min is None or lowest_price < previous_min


class AlertEvaluator:
    """Runs the alert evaluation pass.

    ``run_once`` is safe to call while a pass is still running: the second
    call returns immediately with None.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: Optional[Notifier] = None,
        adapter_factory: Optional[AdapterFactory] = None,
        source_registry: Optional[SourceRegistry] = None,
        listing_filter: Optional[ListingFilter] = None,
        pacing_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize alert evaluator.

        Args:
            session_factory: Async session factory; one session per alert
            notifier: Delivery for fired alerts (logging stub by default)
            adapter_factory: Source code to adapter mapping
            source_registry: Process-scoped Source cache
            listing_filter: Relevance and outlier filter handed to the scraper
            pacing_seconds: Pause between consecutive source calls
            sleep: Awaitable sleep, replaceable in tests
        """
        self.session_factory = session_factory
        self.notifier = notifier or get_notifier()
        self.adapter_factory = adapter_factory or get_adapter_factory()
        self.source_registry = source_registry or get_source_registry()
        self.listing_filter = listing_filter or ListingFilter()
        self.pacing_seconds = (
            settings.ALERT_PACING_SECONDS if pacing_seconds is None else pacing_seconds
        )
        self._sleep = sleep
        self._running = False
        self._source_calls = 0
        self.logger = logger.bind(service="alert_evaluator")

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_once(self) -> Optional[EvaluationReport]:
        """Evaluate every active alert once.

        Returns:
            The pass summary, or None if a pass was already in progress
        """
        # Check and set with no await in between
        if self._running:
            self.logger.warning("evaluation_skipped", reason="run_in_progress")
            return None
        self._running = True

        try:
            return await self._run_pass()
        finally:
            self._running = False

    async def _run_pass(self) -> EvaluationReport:
        report = EvaluationReport()
        self._source_calls = 0

        async with self.session_factory() as db:
            alerts = await AlertService(db).get_active_alerts()
            alert_ids = [alert.id for alert in alerts]

        self.logger.info("evaluation_started", alerts=len(alert_ids))

        for alert_id in alert_ids:
            try:
                outcome = await self.evaluate_alert(alert_id)
            except Exception as e:
                report.alerts_failed += 1
                self.logger.error(
                    "alert_evaluation_failed",
                    alert_id=str(alert_id),
                    error=str(e),
                    exc_info=True,
                )
                continue

            if outcome is None:
                continue
            report.alerts_checked += 1
            report.source_failures += outcome.source_failures
            if outcome.fired:
                report.alerts_fired += 1

        self.logger.info(
            "evaluation_completed",
            alerts_checked=report.alerts_checked,
            alerts_fired=report.alerts_fired,
            alerts_failed=report.alerts_failed,
            source_failures=report.source_failures,
        )
        return report

    async def _pace(self) -> None:
        if self._source_calls > 0 and self.pacing_seconds > 0:
            await self._sleep(self.pacing_seconds)
        self._source_calls += 1

    async def evaluate_alert(self, alert_id: UUID) -> Optional[AlertOutcome]:
        """Scrape every source for one alert's term and fire if warranted.

        Returns:
            The outcome, or None if the alert vanished or was deactivated
        """
        async with self.session_factory() as db:
            alert_service = AlertService(db)
            product_service = ProductService(db)

            alert = await alert_service.get_alert(alert_id)
            if alert is None or not alert.is_active:
                return None

            search_term = alert.search_term
            threshold = alert.price_threshold
            email = alert.email

            # Read before scraping: this pass's own observations must not count
            previous_min = await product_service.get_historical_min_price(search_term)

            scraper = ScraperService(
                db,
                adapter_factory=self.adapter_factory,
                source_registry=self.source_registry,
                listing_filter=self.listing_filter,
            )

            lowest_price: Optional[Decimal] = None
            lowest_product_id: Optional[UUID] = None
            source_failures = 0

            for code in scraper.configured_sources:
                await self._pace()
                try:
                    products = await scraper.scrape(search_term, code)
                except Exception as e:
                    source_failures += 1
                    if not isinstance(e, PriceDropException):
                        await db.rollback()
                    self.logger.warning(
                        "alert_source_failed",
                        alert_id=str(alert_id),
                        source=code,
                        search_term=search_term,
                        error=str(e),
                        exc_info=not isinstance(e, PriceDropException),
                    )
                    continue

                for product in products:
                    if lowest_price is None or product.price < lowest_price:
                        lowest_price = product.price
                        lowest_product_id = product.id

            fired = should_fire(lowest_price, threshold, previous_min)
            if fired:
                product = (await product_service.get_products_by_ids([lowest_product_id]))[0]
                await self.notifier.notify(
                    AlertEvent(
                        email=email,
                        product_name=product.name,
                        price=product.price,
                        currency=product.currency,
                        source=product.source.code,
                        seller=product.seller,
                        product_url=product.url,
                        search_term=search_term,
                    )
                )

            self.logger.info(
                "alert_evaluated",
                alert_id=str(alert_id),
                search_term=search_term,
                lowest_price=str(lowest_price) if lowest_price is not None else None,
                previous_min=str(previous_min) if previous_min is not None else None,
                threshold=str(threshold),
                fired=fired,
            )

            # Reloaded since a failed source may have rolled the session back
            alert = await alert_service.get_alert(alert_id)
            await alert_service.record_check(
                alert,
                checked_at=datetime.now(timezone.utc),
                triggered_price=lowest_price if fired else None,
            )

            return AlertOutcome(
                alert_id=alert_id,
                fired=fired,
                lowest_price=lowest_price,
                previous_min=previous_min,
                source_failures=source_failures,
            )
