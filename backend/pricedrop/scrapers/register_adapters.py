"""Register all source adapters with the factory.

Called once during application startup.
"""

import structlog

from pricedrop.scrapers.factory import AdapterFactory, get_adapter_factory
from pricedrop.scrapers.sources import SOURCE_CONFIGS, MERCADO_LIBRE, FALABELLA, EXITO, ALKOSTO
from pricedrop.scrapers.adapters import (
    MercadoLibreAdapter,
    FalabellaAdapter,
    ExitoAdapter,
    AlkostoAdapter,
)

logger = structlog.get_logger(__name__)

# Registration order is the order sources are visited in a multi-source pass
ADAPTER_CLASSES = {
    MERCADO_LIBRE: MercadoLibreAdapter,
    FALABELLA: FalabellaAdapter,
    EXITO: ExitoAdapter,
    ALKOSTO: AlkostoAdapter,
}


def register_all_adapters(factory: AdapterFactory | None = None) -> None:
    """Register every bundled adapter with the factory."""
    factory = factory or get_adapter_factory()

    for code, adapter_class in ADAPTER_CLASSES.items():
        factory.register_adapter(code, adapter_class, SOURCE_CONFIGS[code])

    logger.info(
        "all_adapters_registered",
        count=len(factory.get_registered_sources()),
        sources=factory.get_registered_sources(),
    )
