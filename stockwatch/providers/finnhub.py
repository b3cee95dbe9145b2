"""
Finnhub Stock Provider

Provides stock quotes, symbol search and company profiles via the Finnhub API.

Free Tier:
- US stocks (real-time)
- 60 API calls/minute

Documentation: https://finnhub.io/docs/api
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import structlog

from stockwatch.providers.base import (
    BaseStockProvider,
    ProviderType,
    StockNotFound,
    UpstreamRateLimited,
    to_number,
)
from stockwatch.schemas.stock import Quote, QuoteDetail

logger = structlog.get_logger()


class FinnhubStockProvider(BaseStockProvider):
    """
    Finnhub stock data provider.

    The quote endpoint carries no name, volume or fundamentals, so those
    fields are filled from the search result or the company profile where
    possible and left at 0 otherwise.
    """

    api_key_param = "token"

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.FINNHUB

    @property
    def provider_name(self) -> str:
        return "Finnhub"

    def _probe_request(self) -> Tuple[str, Dict[str, Any]]:
        return "/quote", {"symbol": self.probe_symbol}

    def _probe_succeeded(self, payload: Any) -> bool:
        return isinstance(payload, dict) and "c" in payload

    def _check_error_payload(self, payload: Any) -> None:
        if isinstance(payload, dict) and "error" in payload:
            raise UpstreamRateLimited(
                f"Finnhub error: {payload['error']}",
                provider=self.provider_name
            )

    async def search_stocks(self, query: str) -> List[Quote]:
        """
        Search Finnhub and hydrate US common stocks with live quotes.

        Example response:
        {
            "count": 4,
            "result": [
                {"description": "APPLE INC", "displaySymbol": "AAPL",
                 "symbol": "AAPL", "type": "Common Stock"}
            ]
        }
        """
        data = await self._request("search", "/search", {"q": query})
        items = (data.get("result") or []) if isinstance(data, dict) else []
        if not items:
            return []

        # Symbols with a dot are foreign listings (e.g. "AAPL.MX")
        candidates = [
            (item.get("symbol") or "", item.get("description") or "")
            for item in items
            if isinstance(item, dict)
            and item.get("type") == "Common Stock"
            and item.get("symbol")
            and "." not in item["symbol"]
        ][:self.max_search_results]

        results = await self._hydrate_candidates(candidates, prefer_search_name=True)

        logger.info("finnhub_symbol_search", query=query, results=len(results))
        return results

    async def get_stock_detail(self, symbol: str) -> QuoteDetail:
        quote_payload, profile_payload = await self._quote_and_profile(
            self._request("quote", "/quote", {"symbol": symbol}),
            self._request("profile", "/stock/profile2", {"symbol": symbol})
        )

        if not self._has_quote(quote_payload):
            raise StockNotFound(f"Stock not found: {symbol}", provider=self.provider_name)

        # Unknown symbols get an empty profile object
        profile = profile_payload if isinstance(profile_payload, dict) and profile_payload else None
        return self._to_detail(symbol, quote_payload, profile)

    async def get_stock_quote(self, symbol: str) -> Quote:
        """
        Get a quote from Finnhub.

        Example response:
        {
            "c": 178.45,  # current price
            "d": 0.95,  # change
            "dp": 0.54,  # percent change
            "h": 179.20,  # high
            "l": 177.80,  # low
            "o": 178.00,  # open
            "pc": 177.50,  # previous close
            "t": 1705329600  # timestamp
        }
        """
        data = await self._request("quote", "/quote", {"symbol": symbol})
        if not self._has_quote(data):
            raise StockNotFound(f"Stock not found: {symbol}", provider=self.provider_name)
        return self._to_quote(symbol, data)

    @staticmethod
    def _has_quote(data: Any) -> bool:
        """Finnhub answers unknown tickers with an all-zero quote instead of an error."""
        if not isinstance(data, dict) or data.get("c") is None:
            return False
        return not (to_number(data.get("c")) == 0 and not data.get("t"))

    def _to_quote(self, symbol: str, data: Dict[str, Any]) -> Quote:
        return Quote(
            symbol=symbol,
            name=symbol,
            price=to_number(data.get("c")),
            change=to_number(data.get("d")),
            change_percent=to_number(data.get("dp")),
            volume=0,  # Not included in quote endpoint
            market_cap=0.0,
            pe=0.0,
            eps=0.0,
        )

    def _to_detail(self, symbol: str, quote: Dict[str, Any], profile: Optional[Dict[str, Any]]) -> QuoteDetail:
        base = self._to_quote(symbol, quote)
        if not profile:
            return QuoteDetail(**base.model_dump())

        name = profile.get("name") or symbol
        market_cap = to_number(profile.get("marketCapitalization"))

        return QuoteDetail(
            **base.model_dump(exclude={"name", "market_cap"}),
            name=name,
            # marketCapitalization is reported in millions
            market_cap=market_cap * 1_000_000 if market_cap else base.market_cap,
            description=(
                f"{name} is a company in the {profile.get('finnhubIndustry')} industry, "
                f"based in {profile.get('country')}. Listed on {profile.get('exchange')}."
            ),
            industry=profile.get("finnhubIndustry"),
            website=profile.get("weburl"),
            headquarters=profile.get("country"),
            founded=self._ipo_year(profile.get("ipo")),
        )

    @staticmethod
    def _ipo_year(ipo: Optional[str]) -> Optional[str]:
        if not ipo:
            return None
        try:
            return str(datetime.strptime(ipo, "%Y-%m-%d").year)
        except ValueError:
            return None
