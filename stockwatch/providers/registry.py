"""
Stock Provider Registry

Holds the configured providers in preference order and decides which one
serves the next request.

Selection policy:
- Probe the provider under the cursor; keep it while it answers
- Otherwise scan every provider from index 0 and pin the cursor to the
  first one that answers
- No weighting, backoff or cool-down: a failed provider is probed again
  on the very next request

Usage:
    from stockwatch.providers.registry import ProviderRegistry

    registry = ProviderRegistry.from_configs(settings.provider_configs())
    provider = await registry.get_current_provider()
    quote = await provider.get_stock_quote("AAPL")
"""
import asyncio
from typing import Dict, List, Mapping, Optional, Sequence, Type

import httpx
import structlog

from stockwatch.providers.base import BaseStockProvider, ConfigurationError, ServiceUnavailable
from stockwatch.providers.finnhub import FinnhubStockProvider
from stockwatch.providers.fmp import FMPStockProvider
from stockwatch.schemas.stock import ProviderConfig, ProviderStatus
from stockwatch.telemetry import provider_switches_total

logger = structlog.get_logger()


class ProviderRegistry:
    """
    Ordered set of stock providers with a shared cursor.

    The provider list is fixed at construction. The cursor is the only
    mutable state and is shared by every caller of this instance.
    """

    _provider_classes: Dict[str, Type[BaseStockProvider]] = {
        "fmp": FMPStockProvider,
        "finnhub": FinnhubStockProvider,
    }

    def __init__(self, providers: Sequence[BaseStockProvider]):
        if not providers:
            raise ConfigurationError(
                "No stock providers configured. "
                "Set FMP_API_KEY or FINNHUB_API_KEY to configure at least one provider."
            )
        self._providers = tuple(providers)
        self._cursor = 0

        logger.info(
            "provider_registry_initialized",
            providers=self.available_providers,
            current=self._providers[0].provider_name
        )

    @classmethod
    def from_configs(
        cls,
        configs: Mapping[str, ProviderConfig],
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "ProviderRegistry":
        """
        Create providers from a name -> config mapping, in mapping order.

        Providers whose config has no API key are skipped.

        Raises:
            ConfigurationError: If a name is unknown or no provider has a key
        """
        providers: List[BaseStockProvider] = []
        for name, config in configs.items():
            provider_class = cls._provider_classes.get(name.lower())
            if not provider_class:
                raise ConfigurationError(
                    f"Unknown provider type: {name}. "
                    f"Supported types: {', '.join(cls._provider_classes.keys())}"
                )
            if not config.api_key:
                logger.info("provider_skipped_no_api_key", provider=name)
                continue
            providers.append(provider_class(config, transport=transport))

        return cls(providers)

    @property
    def providers(self) -> Sequence[BaseStockProvider]:
        return self._providers

    @property
    def cursor(self) -> int:
        """Index of the currently preferred provider."""
        return self._cursor

    @property
    def current_provider(self) -> BaseStockProvider:
        """Provider under the cursor, without probing it."""
        return self._providers[self._cursor]

    @property
    def available_providers(self) -> List[str]:
        """Names of all configured providers, in preference order."""
        return [provider.provider_name for provider in self._providers]

    async def get_current_provider(self) -> BaseStockProvider:
        """
        Return a provider that currently passes its probe.

        Raises:
            ServiceUnavailable: If no configured provider is available
        """
        current = self._providers[self._cursor]
        if await current.is_available():
            return current

        for index, provider in enumerate(self._providers):
            if await provider.is_available():
                if index != self._cursor:
                    logger.warning(
                        "provider_switched",
                        previous=current.provider_name,
                        provider=provider.provider_name,
                        reason="failover"
                    )
                    provider_switches_total.labels(provider=provider.provider_type.value, reason="failover").inc()
                self._cursor = index
                return provider

        logger.error("all_providers_unavailable", providers=self.available_providers)
        raise ServiceUnavailable("All stock providers are currently unavailable")

    async def get_provider_with_fallback(self) -> BaseStockProvider:
        """
        Like get_current_provider, but never fails.

        When every probe fails, the first configured provider is returned so
        the caller surfaces that provider's own error on the real call.
        """
        try:
            return await self.get_current_provider()
        except ServiceUnavailable:
            logger.warning("provider_fallback_to_first", provider=self._providers[0].provider_name)
            return self._providers[0]

    def switch_to_next_provider(self) -> BaseStockProvider:
        """Advance the cursor cyclically, regardless of availability."""
        if len(self._providers) > 1:
            self._cursor = (self._cursor + 1) % len(self._providers)
            provider = self._providers[self._cursor]
            provider_switches_total.labels(provider=provider.provider_type.value, reason="manual").inc()
            logger.info("provider_switched", provider=provider.provider_name, reason="manual")
        return self._providers[self._cursor]

    async def get_provider_status(self) -> List[ProviderStatus]:
        """Probe every provider concurrently. The cursor is left untouched."""
        results = await asyncio.gather(*(provider.is_available() for provider in self._providers))
        return [
            ProviderStatus(name=provider.provider_name, available=available)
            for provider, available in zip(self._providers, results)
        ]
