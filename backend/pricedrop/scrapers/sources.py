"""Static catalogue of supported sources.

Kept as plain data: adding a source means adding a ``SourceConfig`` here and
registering its adapter class in ``register_adapters``.
"""

from typing import Dict

from pricedrop.config import settings
from pricedrop.scrapers.base import SourceConfig

MERCADO_LIBRE = "mercadolibre"
FALABELLA = "falabella"
EXITO = "exito"
ALKOSTO = "alkosto"

SOURCE_CONFIGS: Dict[str, SourceConfig] = {
    MERCADO_LIBRE: SourceConfig(
        code=MERCADO_LIBRE,
        name="Mercado Libre",
        base_url="https://listado.mercadolibre.com.co/",
        scrape_type="html",
        separator="-",
        price_quantile=settings.DEFAULT_PRICE_QUANTILE,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    ),
    FALABELLA: SourceConfig(
        code=FALABELLA,
        name="Falabella",
        base_url="https://www.falabella.com.co/falabella-co/search?Ntt=",
        scrape_type="headless",
        separator="+",
        price_quantile=settings.DEFAULT_PRICE_QUANTILE,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    ),
    EXITO: SourceConfig(
        code=EXITO,
        name="Éxito",
        base_url="https://www.exito.com/",
        scrape_type="api",
        price_quantile=settings.DEFAULT_PRICE_QUANTILE,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    ),
    ALKOSTO: SourceConfig(
        code=ALKOSTO,
        name="Alkosto",
        base_url="https://www.alkosto.com",
        scrape_type="api",
        price_quantile=settings.DEFAULT_PRICE_QUANTILE,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    ),
}
