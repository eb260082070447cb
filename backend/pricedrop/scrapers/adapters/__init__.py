"""Source-specific adapter implementations.

Each module implements a class inheriting from BaseHTTPAdapter (static HTML
or JSON APIs) or BaseBrowserAdapter (browser-rendered pages).
"""

from .mercadolibre import MercadoLibreAdapter
from .exito import ExitoAdapter
from .alkosto import AlkostoAdapter
from .falabella import FalabellaAdapter

__all__ = [
    "MercadoLibreAdapter",
    "ExitoAdapter",
    "AlkostoAdapter",
    "FalabellaAdapter",
]
