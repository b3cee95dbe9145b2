"""
Provider Registry Tests

Selection, failover, manual rotation and status probing.
"""
import pytest

from stockwatch.providers.base import ConfigurationError, ProviderType, ServiceUnavailable
from stockwatch.providers.finnhub import FinnhubStockProvider
from stockwatch.providers.fmp import FMPStockProvider
from stockwatch.providers.registry import ProviderRegistry
from stockwatch.schemas.stock import ProviderConfig


class TestRegistryConstruction:
    """Tests for building the registry from configuration."""

    def test_builds_providers_in_config_order(self, fmp_config, finnhub_config):
        registry = ProviderRegistry.from_configs({"fmp": fmp_config, "finnhub": finnhub_config})

        assert [type(p) for p in registry.providers] == [FMPStockProvider, FinnhubStockProvider]
        assert registry.available_providers == ["Financial Modeling Prep", "Finnhub"]
        assert registry.cursor == 0

    def test_skips_providers_without_api_key(self, finnhub_config):
        configs = {
            "fmp": ProviderConfig(api_key="", base_url="https://fmp.test/api/v3"),
            "finnhub": finnhub_config,
        }

        registry = ProviderRegistry.from_configs(configs)

        assert registry.available_providers == ["Finnhub"]

    def test_no_api_keys_is_configuration_error(self):
        configs = {
            "fmp": ProviderConfig(api_key="", base_url="https://fmp.test/api/v3"),
            "finnhub": ProviderConfig(api_key="", base_url="https://finnhub.test/api/v1"),
        }

        with pytest.raises(ConfigurationError):
            ProviderRegistry.from_configs(configs)

    def test_empty_provider_list_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            ProviderRegistry([])

    def test_unknown_provider_name(self, fmp_config):
        with pytest.raises(ConfigurationError):
            ProviderRegistry.from_configs({"polygon": fmp_config})


class TestGetCurrentProvider:
    """Tests for probe-based selection and failover."""

    @pytest.mark.asyncio
    async def test_returns_current_without_scan_when_available(self, fake_provider):
        primary = fake_provider("Primary", available=True)
        secondary = fake_provider("Secondary", available=True)
        registry = ProviderRegistry([primary, secondary])

        provider = await registry.get_current_provider()

        assert provider is primary
        primary.is_available.assert_awaited_once()
        secondary.is_available.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fails_over_to_next_available(self, fake_provider):
        primary = fake_provider("Primary", available=False)
        secondary = fake_provider("Secondary", available=True, provider_type=ProviderType.FINNHUB)
        registry = ProviderRegistry([primary, secondary])

        provider = await registry.get_current_provider()

        assert provider is secondary
        assert registry.cursor == 1

    @pytest.mark.asyncio
    async def test_scan_starts_from_index_zero(self, fake_provider):
        first = fake_provider("First", available=True)
        second = fake_provider("Second", available=True)
        third = fake_provider("Third", available=True)
        registry = ProviderRegistry([first, second, third])
        registry.switch_to_next_provider()
        registry.switch_to_next_provider()
        third.is_available.return_value = False

        provider = await registry.get_current_provider()

        assert provider is first
        assert registry.cursor == 0
        second.is_available.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_all_unavailable_raises(self, fake_provider):
        registry = ProviderRegistry([
            fake_provider("Primary", available=False),
            fake_provider("Secondary", available=False),
        ])

        with pytest.raises(ServiceUnavailable):
            await registry.get_current_provider()

        assert registry.cursor == 0

    @pytest.mark.asyncio
    async def test_failed_provider_is_probed_again_next_request(self, fake_provider):
        primary = fake_provider("Primary", available=False)
        secondary = fake_provider("Secondary", available=True)
        registry = ProviderRegistry([primary, secondary])

        await registry.get_current_provider()
        await registry.get_current_provider()

        # Second request stays on the healthy secondary without probing primary
        assert primary.is_available.await_count == 2
        assert secondary.is_available.await_count == 2

        secondary.is_available.return_value = False
        primary.is_available.return_value = True

        provider = await registry.get_current_provider()

        assert provider is primary
        assert registry.cursor == 0

    @pytest.mark.asyncio
    async def test_flapping_provider_probed_on_every_request(self, fake_provider):
        primary = fake_provider("Primary", available=False)
        registry = ProviderRegistry([primary])

        for _ in range(3):
            with pytest.raises(ServiceUnavailable):
                await registry.get_current_provider()

        # Current probe plus the scan probe, every time
        assert primary.is_available.await_count == 6


class TestProviderWithFallback:
    """Tests for get_provider_with_fallback."""

    @pytest.mark.asyncio
    async def test_returns_first_provider_when_all_down(self, fake_provider):
        primary = fake_provider("Primary", available=False)
        secondary = fake_provider("Secondary", available=False)
        registry = ProviderRegistry([primary, secondary])
        registry.switch_to_next_provider()

        provider = await registry.get_provider_with_fallback()

        assert provider is primary

    @pytest.mark.asyncio
    async def test_returns_available_provider(self, fake_provider):
        primary = fake_provider("Primary", available=False)
        secondary = fake_provider("Secondary", available=True)
        registry = ProviderRegistry([primary, secondary])

        assert await registry.get_provider_with_fallback() is secondary


class TestSwitchToNextProvider:
    """Tests for manual rotation."""

    def test_cycles_through_providers(self, fake_provider):
        providers = [fake_provider(f"P{i}") for i in range(3)]
        registry = ProviderRegistry(providers)

        assert registry.switch_to_next_provider() is providers[1]
        assert registry.switch_to_next_provider() is providers[2]
        assert registry.switch_to_next_provider() is providers[0]

    def test_n_switches_restore_cursor(self, fake_provider):
        registry = ProviderRegistry([fake_provider("A"), fake_provider("B")])
        registry.switch_to_next_provider()
        start = registry.cursor

        for _ in range(len(registry.providers)):
            registry.switch_to_next_provider()

        assert registry.cursor == start

    def test_single_provider_is_noop(self, fake_provider):
        only = fake_provider("Only")
        registry = ProviderRegistry([only])

        assert registry.switch_to_next_provider() is only
        assert registry.cursor == 0

    def test_switch_ignores_availability(self, fake_provider):
        registry = ProviderRegistry([fake_provider("A"), fake_provider("B", available=False)])

        registry.switch_to_next_provider()

        assert registry.current_provider.provider_name == "B"


class TestProviderStatus:
    """Tests for status probing."""

    @pytest.mark.asyncio
    async def test_reports_each_provider(self, fake_provider):
        registry = ProviderRegistry([
            fake_provider("Financial Modeling Prep", available=False),
            fake_provider("Finnhub", available=True),
        ])

        status = await registry.get_provider_status()

        assert [(s.name, s.available) for s in status] == [
            ("Financial Modeling Prep", False),
            ("Finnhub", True),
        ]

    @pytest.mark.asyncio
    async def test_does_not_move_cursor(self, fake_provider):
        registry = ProviderRegistry([
            fake_provider("A", available=False),
            fake_provider("B", available=True),
        ])

        await registry.get_provider_status()

        assert registry.cursor == 0
