"""
Base Stock Provider Interface

All stock data providers must implement this interface. The base class owns
the upstream HTTP plumbing (API-key injection, error classification, call
metrics) so that each vendor adapter only describes its URL shapes and how
its payloads map onto the canonical records.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Awaitable, Dict, List, Optional, Tuple
import asyncio
import math
import time

import httpx
import structlog

from stockwatch.schemas.stock import ProviderConfig, Quote, QuoteDetail
from stockwatch.telemetry import api_calls_total, api_call_duration_seconds, provider_probes_total

logger = structlog.get_logger()


class ProviderType(str, Enum):
    """Supported provider types."""
    FMP = "fmp"
    FINNHUB = "finnhub"


class StockProviderError(Exception):
    """Base exception for stock provider errors."""

    status_code = 500

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.provider = provider


class UpstreamRequestFailed(StockProviderError):
    """Upstream returned a non-2xx status or the transport failed."""

    status_code = 502


class UpstreamRateLimited(StockProviderError):
    """Upstream signalled a rate-limit or API error in its payload."""

    status_code = 429


class StockNotFound(StockProviderError):
    """The call succeeded but the vendor has no data for the symbol."""

    status_code = 404


class ServiceUnavailable(StockProviderError):
    """No configured provider passes its availability probe."""

    status_code = 503


class ConfigurationError(StockProviderError):
    """No provider could be configured. Fatal at startup."""


def to_number(value: Any) -> float:
    """Coerce a vendor value to a finite float, substituting 0 for anything else."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def zero_quote(symbol: str, name: str) -> Quote:
    """Zero-valued stub used when a search candidate cannot be hydrated."""
    return Quote(
        symbol=symbol,
        name=name or symbol,
        price=0.0,
        change=0.0,
        change_percent=0.0,
        volume=0,
        market_cap=0.0,
        pe=0.0,
        eps=0.0,
    )


class BaseStockProvider(ABC):
    """
    Base class for all stock data providers.

    Providers must implement:
    - Symbol search (hydrated with live quotes)
    - Quote fetching
    - Detail fetching (quote + company profile)
    - Probe request and payload checks for ``is_available``
    """

    # Query parameter carrying the API key
    api_key_param: str = "apikey"

    # Symbol whose quote is fetched to probe availability
    probe_symbol: str = "AAPL"

    # Maximum number of search candidates hydrated with quotes
    max_search_results: int = 10

    def __init__(self, config: ProviderConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize provider.

        Args:
            config: Connection settings (API key, base URL)
            transport: Optional httpx transport, used to fake the upstream in tests
        """
        self.config = config
        self.api_key = config.api_key
        self.base_url = config.base_url.rstrip("/")
        self._transport = transport

        logger.info(
            "stock_provider_initialized",
            provider=self.provider_type.value,
            base_url=self.base_url,
            rate_limit=config.rate_limit_per_minute
        )

    @property
    @abstractmethod
    def provider_type(self) -> ProviderType:
        """Return the provider type."""
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the human-readable provider name (e.g., 'Finnhub')."""
        pass

    @abstractmethod
    async def search_stocks(self, query: str) -> List[Quote]:
        """
        Search for stocks by company name or ticker.

        Returns at most ``max_search_results`` quotes in vendor result order.
        Candidates whose quote cannot be fetched are returned as zero-valued
        stubs instead of failing the search.
        """
        pass

    @abstractmethod
    async def get_stock_detail(self, symbol: str) -> QuoteDetail:
        """
        Get a quote plus company profile for a symbol.

        The profile is best effort: if it cannot be fetched, only the quote
        fields are populated.
        """
        pass

    @abstractmethod
    async def get_stock_quote(self, symbol: str) -> Quote:
        """
        Get the latest quote for a symbol.

        Raises:
            StockNotFound: The vendor has no data for the symbol
            UpstreamRequestFailed: Non-2xx response or transport error
            UpstreamRateLimited: The vendor rejected the call
        """
        pass

    @abstractmethod
    def _probe_request(self) -> Tuple[str, Dict[str, Any]]:
        """Return (path, params) of the lightweight probe call."""
        pass

    def _probe_succeeded(self, payload: Any) -> bool:
        """Decide from a successful probe payload whether the provider is usable."""
        return True

    def _check_error_payload(self, payload: Any) -> None:
        """Raise UpstreamRateLimited if the payload is a vendor error message."""
        return None

    async def is_available(self) -> bool:
        """
        Probe the provider with a cheap quote request.

        Never raises: any failure counts as unavailable.
        """
        path, params = self._probe_request()
        try:
            payload = await self._request("probe", path, params)
            available = self._probe_succeeded(payload)
        except Exception as e:
            logger.warning(
                "provider_probe_failed",
                provider=self.provider_type.value,
                error=str(e)
            )
            available = False

        provider_probes_total.labels(
            provider=self.provider_type.value,
            available=str(available).lower()
        ).inc()
        return available

    async def _request(self, endpoint: str, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Issue an authenticated GET against the vendor API and return the JSON body.

        Args:
            endpoint: Short endpoint label for logs and metrics ("quote", "search")
            path: Path relative to the base URL
            params: Query parameters (the API key is added here)
        """
        url = f"{self.base_url}{path}"
        query = dict(params or {})
        query[self.api_key_param] = self.api_key

        start_time = time.perf_counter()
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(url, params=query)
        except httpx.HTTPError as e:
            self._track_api_call(endpoint, time.perf_counter() - start_time, "error")
            logger.error(
                "provider_transport_error",
                provider=self.provider_type.value,
                endpoint=endpoint,
                error=str(e)
            )
            raise UpstreamRequestFailed(
                f"{self.provider_name} request failed: {e}",
                provider=self.provider_name
            ) from e

        duration = time.perf_counter() - start_time

        if response.status_code == 429:
            self._track_api_call(endpoint, duration, "rate_limited")
            logger.warning("provider_rate_limited", provider=self.provider_type.value, endpoint=endpoint)
            raise UpstreamRateLimited(f"{self.provider_name} rate limit reached", provider=self.provider_name)

        if not response.is_success:
            self._track_api_call(endpoint, duration, "error")
            logger.error(
                "provider_http_error",
                provider=self.provider_type.value,
                endpoint=endpoint,
                status_code=response.status_code
            )
            raise UpstreamRequestFailed(
                f"{self.provider_name} returned HTTP {response.status_code}",
                provider=self.provider_name
            )

        try:
            payload = response.json()
        except ValueError as e:
            self._track_api_call(endpoint, duration, "error")
            raise UpstreamRequestFailed(
                f"{self.provider_name} returned invalid JSON",
                provider=self.provider_name
            ) from e

        try:
            self._check_error_payload(payload)
        except UpstreamRateLimited:
            self._track_api_call(endpoint, duration, "rate_limited")
            logger.warning("provider_api_error_payload", provider=self.provider_type.value, endpoint=endpoint)
            raise

        self._track_api_call(endpoint, duration, "success")
        return payload

    async def _hydrate_candidates(self, candidates: List[Tuple[str, str]], prefer_search_name: bool) -> List[Quote]:
        """
        Fetch a quote for every (symbol, name) search candidate concurrently.

        Args:
            candidates: Search hits in vendor order
            prefer_search_name: Replace the quote's name with the search name when set
        """
        async def hydrate(symbol: str, name: str) -> Quote:
            try:
                quote = await self.get_stock_quote(symbol)
            except StockProviderError as e:
                logger.debug(
                    "search_candidate_not_hydrated",
                    provider=self.provider_type.value,
                    symbol=symbol,
                    error=str(e)
                )
                return zero_quote(symbol, name)
            if prefer_search_name and name:
                quote = quote.model_copy(update={"name": name})
            return quote

        return list(await asyncio.gather(*(hydrate(symbol, name) for symbol, name in candidates)))

    async def _quote_and_profile(self, quote_call: Awaitable[Any], profile_call: Awaitable[Any]) -> Tuple[Any, Any]:
        """
        Run the quote and profile requests concurrently.

        A quote failure is re-raised; a profile failure yields ``None``.
        """
        quote_payload, profile_payload = await asyncio.gather(quote_call, profile_call, return_exceptions=True)

        if isinstance(quote_payload, BaseException):
            raise quote_payload

        if isinstance(profile_payload, BaseException):
            logger.warning(
                "provider_profile_unavailable",
                provider=self.provider_type.value,
                error=str(profile_payload)
            )
            profile_payload = None

        return quote_payload, profile_payload

    def _track_api_call(self, endpoint: str, duration: float, status: str) -> None:
        """
        Track API call metrics.

        Args:
            endpoint: API endpoint called (e.g., "quote", "search")
            duration: Call duration in seconds
            status: "success", "error" or "rate_limited"
        """
        api_calls_total.labels(
            provider=self.provider_type.value,
            endpoint=endpoint,
            status=status
        ).inc()

        api_call_duration_seconds.labels(
            provider=self.provider_type.value,
            endpoint=endpoint
        ).observe(duration)
