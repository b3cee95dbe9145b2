"""
Financial Modeling Prep Stock Provider

Provides US stock quotes, symbol search and company profiles via the
FMP v3 REST API.

Free Tier:
- 250 API calls/day
- NASDAQ, NYSE and AMEX listings

Documentation: https://site.financialmodelingprep.com/developer/docs
"""
from typing import Any, Dict, List, Optional, Tuple
import structlog

from stockwatch.providers.base import (
    BaseStockProvider,
    ProviderType,
    StockNotFound,
    UpstreamRateLimited,
    UpstreamRequestFailed,
    to_number,
)
from stockwatch.schemas.stock import Quote, QuoteDetail

logger = structlog.get_logger()

US_EXCHANGES = {"NASDAQ", "NYSE", "AMEX"}


class FMPStockProvider(BaseStockProvider):
    """
    Financial Modeling Prep stock data provider.

    Quotes come back as a one-element list per symbol; an empty list means
    the symbol is unknown. API errors (quota exhausted, bad key) come back
    as a 200 with an ``"Error Message"`` object.
    """

    api_key_param = "apikey"

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.FMP

    @property
    def provider_name(self) -> str:
        return "Financial Modeling Prep"

    def _probe_request(self) -> Tuple[str, Dict[str, Any]]:
        return f"/quote/{self.probe_symbol}", {}

    def _check_error_payload(self, payload: Any) -> None:
        if isinstance(payload, dict) and "Error Message" in payload:
            raise UpstreamRateLimited(
                f"FMP API error: {payload['Error Message']}",
                provider=self.provider_name
            )

    async def search_stocks(self, query: str) -> List[Quote]:
        """
        Search FMP and hydrate US-listed hits with live quotes.

        Example response:
        [
            {"symbol": "AAPL", "name": "Apple Inc.", "currency": "USD",
             "stockExchange": "NASDAQ Global Select", "exchangeShortName": "NASDAQ"}
        ]
        """
        data = await self._request(
            "search",
            "/search",
            {"query": query, "limit": self.max_search_results}
        )
        if not data:
            return []
        self._expect_list(data, "search")

        candidates = [
            (item.get("symbol") or "", item.get("name") or "")
            for item in data
            if isinstance(item, dict)
            and item.get("symbol")
            and item.get("exchangeShortName") in US_EXCHANGES
        ][:self.max_search_results]

        results = await self._hydrate_candidates(candidates, prefer_search_name=False)

        logger.info("fmp_symbol_search", query=query, results=len(results))
        return results

    async def get_stock_detail(self, symbol: str) -> QuoteDetail:
        quote_payload, profile_payload = await self._quote_and_profile(
            self._request("quote", f"/quote/{symbol}"),
            self._request("profile", f"/profile/{symbol}")
        )

        quote_item = self._first_item(quote_payload, symbol)

        profile = None
        if isinstance(profile_payload, list) and profile_payload and isinstance(profile_payload[0], dict):
            profile = profile_payload[0]
        elif profile_payload:
            logger.warning("fmp_unexpected_profile_payload", symbol=symbol)
        return self._to_detail(quote_item, profile, symbol)

    async def get_stock_quote(self, symbol: str) -> Quote:
        """
        Get a quote from FMP.

        Example response:
        [{"symbol": "AAPL", "name": "Apple Inc.", "price": 178.45,
          "changesPercentage": 0.54, "change": 0.95, "volume": 52000000,
          "marketCap": 2800000000000, "pe": 28.5, "eps": 6.26}]
        """
        data = await self._request("quote", f"/quote/{symbol}")
        return self._to_quote(self._first_item(data, symbol), symbol)

    def _expect_list(self, payload: Any, endpoint: str) -> None:
        if not isinstance(payload, list):
            raise UpstreamRequestFailed(
                f"{self.provider_name} returned an unexpected {endpoint} payload",
                provider=self.provider_name
            )

    def _first_item(self, payload: Any, symbol: str) -> Dict[str, Any]:
        """First quote object of a /quote response; an empty list means unknown symbol."""
        if not payload:
            raise StockNotFound(f"Stock not found: {symbol}", provider=self.provider_name)
        if not isinstance(payload, list) or not isinstance(payload[0], dict):
            raise UpstreamRequestFailed(
                f"{self.provider_name} returned an unexpected quote payload",
                provider=self.provider_name
            )
        return payload[0]

    def _to_quote(self, item: Dict[str, Any], requested_symbol: str = "") -> Quote:
        symbol = item.get("symbol") or requested_symbol
        return Quote(
            symbol=symbol,
            name=item.get("name") or symbol,
            price=to_number(item.get("price")),
            change=to_number(item.get("change")),
            change_percent=to_number(item.get("changesPercentage")),
            volume=int(to_number(item.get("volume"))),
            market_cap=to_number(item.get("marketCap")),
            pe=to_number(item.get("pe")),
            eps=to_number(item.get("eps")),
        )

    def _to_detail(self, item: Dict[str, Any], profile: Optional[Dict[str, Any]], requested_symbol: str = "") -> QuoteDetail:
        base = self._to_quote(item, requested_symbol)
        if not profile:
            return QuoteDetail(**base.model_dump())

        employees = profile.get("fullTimeEmployees")
        try:
            employees = int(employees) if employees else None
        except (TypeError, ValueError):
            employees = None

        location = [part for part in (profile.get("city"), profile.get("state")) if part]

        return QuoteDetail(
            **base.model_dump(),
            description=profile.get("description"),
            sector=profile.get("sector"),
            industry=profile.get("industry"),
            website=profile.get("website"),
            ceo=profile.get("ceo"),
            employees=employees,
            headquarters=", ".join(location) or None,
        )
