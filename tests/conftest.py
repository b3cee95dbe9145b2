"""
Test Fixtures and Utilities

Shared fixtures for provider, registry, service and API tests. Upstream
vendors are faked with httpx.MockTransport so no test touches the network.
"""
import os

# Must be set before stockwatch.config is imported
os.environ.setdefault("METRICS_ENABLED", "false")
os.environ.setdefault("FMP_API_KEY", "")
os.environ.setdefault("FINNHUB_API_KEY", "")

from typing import Callable, Dict, List, Optional
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from stockwatch.core.security import create_access_token
from stockwatch.providers.base import BaseStockProvider, ProviderType
from stockwatch.schemas.stock import ProviderConfig, Quote


FMP_BASE_URL = "https://fmp.test/api/v3"
FINNHUB_BASE_URL = "https://finnhub.test/api/v1"


@pytest.fixture
def fmp_config() -> ProviderConfig:
    return ProviderConfig(api_key="fmp-key", base_url=FMP_BASE_URL, rate_limit_per_minute=250, timeout=10000)


@pytest.fixture
def finnhub_config() -> ProviderConfig:
    return ProviderConfig(api_key="finnhub-key", base_url=FINNHUB_BASE_URL, rate_limit_per_minute=60, timeout=10000)


@pytest.fixture
def route_transport():
    """
    Build an httpx.MockTransport from a path -> response mapping.

    Values may be an httpx.Response, a JSON-serializable body (served with
    200), or an exception instance to raise. Unrouted paths return 404.
    Every request is recorded on ``transport.requests``.
    """
    def _build(routes: Dict[str, object]) -> httpx.MockTransport:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            route = routes.get(request.url.path)
            if route is None:
                return httpx.Response(404, json={"detail": "not routed"})
            if isinstance(route, Exception):
                raise route
            if isinstance(route, httpx.Response):
                return route
            return httpx.Response(200, json=route)

        transport = httpx.MockTransport(handler)
        transport.requests = requests
        return transport

    return _build


@pytest.fixture
def fake_provider() -> Callable[..., Mock]:
    """
    Create a provider double whose probe result is fixed.

    Example:
        provider = fake_provider("Primary", available=False)
    """
    def _create(name: str, available: bool = True, provider_type: ProviderType = ProviderType.FMP,
                quote: Optional[Quote] = None) -> Mock:
        provider = Mock(spec=BaseStockProvider)
        provider.provider_name = name
        provider.provider_type = provider_type
        provider.is_available = AsyncMock(return_value=available)
        provider.search_stocks = AsyncMock(return_value=[quote] if quote else [])
        provider.get_stock_quote = AsyncMock(return_value=quote)
        provider.get_stock_detail = AsyncMock()
        return provider

    return _create


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    """Bearer header carrying a valid user token."""
    token = create_access_token({"sub": "user-123", "email": "trader@example.com"})
    return {"Authorization": f"Bearer {token}"}
