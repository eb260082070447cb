"""Alert notification delivery.

Only the interface and a logging implementation ship here; real e-mail or
chat delivery plugs in by subclassing ``Notifier``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AlertEvent:
    """Payload describing one fired price alert."""

    email: str
    product_name: str
    price: Decimal
    currency: str
    source: str
    seller: Optional[str]
    product_url: str
    search_term: str


class Notifier(ABC):
    """Delivers fired alerts to their subscriber."""

    @abstractmethod
    async def notify(self, event: AlertEvent) -> None:
        """Send one alert event."""


class LoggingNotifier(Notifier):
    """Writes alert events to the structured log instead of sending them."""

    def __init__(self):
        self.logger = logger.bind(service="notifier")

    async def notify(self, event: AlertEvent) -> None:
        payload = asdict(event)
        payload["price"] = str(event.price)
        self.logger.info("alert_notification", **payload)


_notifier: Optional[Notifier] = None


def get_notifier() -> Notifier:
    """Get the process-wide notifier (logging stub unless replaced)."""
    global _notifier
    if _notifier is None:
        _notifier = LoggingNotifier()
    return _notifier


def set_notifier(notifier: Notifier) -> None:
    global _notifier
    _notifier = notifier
