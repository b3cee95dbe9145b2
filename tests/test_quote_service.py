"""
Quote Service Tests

Delegation to the selected provider and mock-data degradation when no
provider is available.
"""
import pytest

from stockwatch.providers.base import StockNotFound, UpstreamRequestFailed
from stockwatch.providers.registry import ProviderRegistry
from stockwatch.schemas.stock import Quote, QuoteDetail
from stockwatch.services.mock_data import MOCK_STOCKS, search_mock_stocks
from stockwatch.services.quote_service import QuoteService


@pytest.fixture
def live_quote():
    return Quote(symbol="NVDA", name="NVIDIA Corp", price=880.0, change=12.0, change_percent=1.38,
                 volume=41000000, market_cap=0, pe=0, eps=0)


@pytest.fixture
def down_service(fake_provider):
    """Service whose providers all fail their probe."""
    registry = ProviderRegistry([
        fake_provider("Financial Modeling Prep", available=False),
        fake_provider("Finnhub", available=False),
    ])
    return QuoteService(registry)


class TestDelegation:
    """Tests for normal operation with a healthy provider."""

    @pytest.mark.asyncio
    async def test_quote_uses_selected_provider(self, fake_provider, live_quote):
        primary = fake_provider("Primary", available=False)
        secondary = fake_provider("Secondary", available=True, quote=live_quote)
        service = QuoteService(ProviderRegistry([primary, secondary]))

        quote = await service.get_stock_quote("NVDA")

        assert quote == live_quote
        secondary.get_stock_quote.assert_awaited_once_with("NVDA")
        primary.get_stock_quote.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_search_delegates(self, fake_provider, live_quote):
        provider = fake_provider("Primary", quote=live_quote)
        service = QuoteService(ProviderRegistry([provider]))

        results = await service.search_stocks("nvid")

        assert results == [live_quote]
        provider.search_stocks.assert_awaited_once_with("nvid")

    @pytest.mark.asyncio
    async def test_not_found_propagates(self, fake_provider):
        provider = fake_provider("Primary")
        provider.get_stock_quote.side_effect = StockNotFound("Stock not found: NOPE")
        service = QuoteService(ProviderRegistry([provider]))

        with pytest.raises(StockNotFound):
            await service.get_stock_quote("NOPE")

    @pytest.mark.asyncio
    async def test_upstream_error_propagates(self, fake_provider):
        provider = fake_provider("Primary")
        provider.get_stock_detail.side_effect = UpstreamRequestFailed("Primary returned HTTP 500")
        service = QuoteService(ProviderRegistry([provider]))

        with pytest.raises(UpstreamRequestFailed):
            await service.get_stock_detail("AAPL")

    def test_switch_provider(self, fake_provider):
        service = QuoteService(ProviderRegistry([fake_provider("A"), fake_provider("B")]))

        assert service.switch_provider().provider_name == "B"
        assert service.switch_provider().provider_name == "A"


class TestMockFallback:
    """Tests for degradation to the mock catalog when every provider is down."""

    @pytest.mark.asyncio
    async def test_search_filters_catalog(self, down_service):
        results = await down_service.search_stocks("appl")

        assert results
        for stock in results:
            assert "appl" in stock.symbol.lower() or "appl" in stock.name.lower()

    @pytest.mark.asyncio
    async def test_search_matches_name_case_insensitively(self, down_service):
        results = await down_service.search_stocks("MICROSOFT")

        assert [s.symbol for s in results] == ["MSFT"]

    @pytest.mark.asyncio
    async def test_search_without_match_returns_first_three(self, down_service):
        results = await down_service.search_stocks("zzzz")

        assert [s.symbol for s in results] == [s.symbol for s in MOCK_STOCKS[:3]]

    @pytest.mark.asyncio
    async def test_quote_from_catalog(self, down_service):
        quote = await down_service.get_stock_quote("TSLA")

        assert quote.name == "Tesla Inc."
        assert quote.price == 220.50

    @pytest.mark.asyncio
    async def test_quote_for_unknown_symbol(self, down_service):
        quote = await down_service.get_stock_quote("XYZ")

        assert quote.symbol == "XYZ"
        assert quote.name == "XYZ Company (Mock)"
        assert quote.price == 100.0

    @pytest.mark.asyncio
    async def test_detail_from_catalog(self, down_service):
        detail = await down_service.get_stock_detail("AAPL")

        assert isinstance(detail, QuoteDetail)
        assert detail.price == 150.25
        assert detail.sector == "Technology"
        assert "(Mock Data)" in detail.description

    @pytest.mark.asyncio
    async def test_provider_status_reports_outage(self, down_service):
        status = await down_service.get_provider_status()

        assert [s.available for s in status] == [False, False]


def test_mock_search_returns_copies():
    results = search_mock_stocks("aapl")
    results[0].price = 0

    assert MOCK_STOCKS[0].price == 150.25
