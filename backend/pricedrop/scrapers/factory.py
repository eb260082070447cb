"""Factory for creating source adapter instances by source code."""

from typing import Dict, List, Optional, Tuple, Type
import structlog

from pricedrop.scrapers.base import SourceAdapter, BaseBrowserAdapter, SourceConfig
from pricedrop.scrapers.utils.browser_manager import get_browser_manager


logger = structlog.get_logger(__name__)


class AdapterFactory:
    """Maps source codes to (adapter class, config) pairs.

    Injects shared services (the browser manager) into the adapters it
    creates.
    """

    def __init__(self):
        self._adapter_registry: Dict[str, Tuple[Type[SourceAdapter], SourceConfig]] = {}

    def register_adapter(
        self,
        code: str,
        adapter_class: Type[SourceAdapter],
        config: SourceConfig,
    ) -> None:
        """Register an adapter class for a source.

        Args:
            code: Source code (e.g., "exito")
            adapter_class: Adapter class (must inherit from SourceAdapter)
            config: Static configuration handed to each adapter instance
        """
        if not issubclass(adapter_class, SourceAdapter):
            raise ValueError(f"Adapter class must inherit from SourceAdapter: {adapter_class}")

        self._adapter_registry[code] = (adapter_class, config)
        logger.info("adapter_registered", source=code, scrape_type=config.scrape_type)

    def create_adapter(self, code: str) -> Optional[SourceAdapter]:
        """Create and configure an adapter instance.

        Args:
            code: Source code

        Returns:
            Configured adapter instance, or None if not registered
        """
        entry = self._adapter_registry.get(code)
        if not entry:
            logger.warning("adapter_not_found", source=code)
            return None

        adapter_class, config = entry
        adapter = adapter_class(config)

        if isinstance(adapter, BaseBrowserAdapter):
            adapter.browser_manager = get_browser_manager()

        return adapter

    def get_config(self, code: str) -> Optional[SourceConfig]:
        entry = self._adapter_registry.get(code)
        return entry[1] if entry else None

    def get_registered_sources(self) -> List[str]:
        """Get registered source codes in registration order."""
        return list(self._adapter_registry.keys())

    def has_adapter(self, code: str) -> bool:
        return code in self._adapter_registry


# Global factory instance
adapter_factory = AdapterFactory()


def get_adapter_factory() -> AdapterFactory:
    """Get the global adapter factory instance."""
    return adapter_factory
