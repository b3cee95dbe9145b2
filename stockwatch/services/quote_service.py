"""
Quote Service

Search, detail and quote operations for the API layer. Callers never see
provider failover: the registry picks a provider, and when none is
available the mock catalog answers instead.
"""
from typing import List

import structlog

from stockwatch.providers.base import BaseStockProvider, ServiceUnavailable
from stockwatch.providers.registry import ProviderRegistry
from stockwatch.schemas.stock import ProviderStatus, Quote, QuoteDetail
from stockwatch.services.mock_data import get_mock_detail, get_mock_quote, search_mock_stocks
from stockwatch.telemetry import mock_fallbacks_total

logger = structlog.get_logger()


class QuoteService:
    """
    Stock data facade over the provider registry.

    Only ServiceUnavailable is recovered (with mock data). Not-found and
    upstream errors from the chosen provider propagate unchanged.
    """

    def __init__(self, registry: ProviderRegistry):
        self.registry = registry

    async def search_stocks(self, query: str) -> List[Quote]:
        try:
            provider = await self.registry.get_current_provider()
        except ServiceUnavailable:
            self._log_mock_fallback("search", query=query)
            return search_mock_stocks(query)

        logger.info("stock_search", provider=provider.provider_name, query=query)
        return await provider.search_stocks(query)

    async def get_stock_detail(self, symbol: str) -> QuoteDetail:
        try:
            provider = await self.registry.get_current_provider()
        except ServiceUnavailable:
            self._log_mock_fallback("detail", symbol=symbol)
            return get_mock_detail(symbol)

        logger.info("stock_detail", provider=provider.provider_name, symbol=symbol)
        return await provider.get_stock_detail(symbol)

    async def get_stock_quote(self, symbol: str) -> Quote:
        try:
            provider = await self.registry.get_current_provider()
        except ServiceUnavailable:
            self._log_mock_fallback("quote", symbol=symbol)
            return get_mock_quote(symbol)

        logger.info("stock_quote", provider=provider.provider_name, symbol=symbol)
        return await provider.get_stock_quote(symbol)

    async def get_provider_status(self) -> List[ProviderStatus]:
        return await self.registry.get_provider_status()

    def switch_provider(self) -> BaseStockProvider:
        return self.registry.switch_to_next_provider()

    @staticmethod
    def _log_mock_fallback(operation: str, **context) -> None:
        mock_fallbacks_total.labels(operation=operation).inc()
        logger.warning("all_providers_unavailable_serving_mock_data", operation=operation, **context)
