"""
Stock Data Provider Registry

Multi-provider architecture supporting:
- Financial Modeling Prep (primary)
- Finnhub (secondary)
"""
from .base import (
    BaseStockProvider,
    ProviderType,
    StockProviderError,
    UpstreamRequestFailed,
    UpstreamRateLimited,
    StockNotFound,
    ServiceUnavailable,
    ConfigurationError,
)
from .fmp import FMPStockProvider
from .finnhub import FinnhubStockProvider
from .registry import ProviderRegistry

__all__ = [
    "BaseStockProvider",
    "ProviderType",
    "StockProviderError",
    "UpstreamRequestFailed",
    "UpstreamRateLimited",
    "StockNotFound",
    "ServiceUnavailable",
    "ConfigurationError",
    "FMPStockProvider",
    "FinnhubStockProvider",
    "ProviderRegistry",
]
