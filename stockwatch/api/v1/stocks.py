"""
Stock Endpoints

Search, detail and quote lookups plus provider diagnostics. Every route
requires a JWT bearer token. Provider errors are translated to HTTP
responses by the handlers in main.
"""
from typing import List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
import structlog

from stockwatch.api.dependencies import get_current_user, get_quote_service
from stockwatch.schemas.stock import ProviderStatus, Quote, QuoteDetail
from stockwatch.services.quote_service import QuoteService

logger = structlog.get_logger()

router = APIRouter(prefix="/stocks", tags=["stocks"], dependencies=[Depends(get_current_user)])


class ProvidersResponse(BaseModel):
    """Configured providers and the one under the cursor."""
    providers: List[str]
    current: str


class SwitchProviderResponse(BaseModel):
    message: str
    provider: str


@router.get("/search", response_model=List[Quote])
async def search_stocks(
    q: str = Query("", description="Company name or ticker fragment"),
    service: QuoteService = Depends(get_quote_service)
):
    """Search stocks. A blank query returns an empty list without calling any provider."""
    query = q.strip()
    if not query:
        return []
    return await service.search_stocks(query)


@router.get("/detail/{symbol}", response_model=QuoteDetail, response_model_exclude_none=True)
async def get_stock_detail(symbol: str, service: QuoteService = Depends(get_quote_service)):
    """Quote plus company profile. Profile fields the provider lacks are omitted."""
    return await service.get_stock_detail(symbol.strip().upper())


@router.get("/quote/{symbol}", response_model=Quote)
async def get_stock_quote(symbol: str, service: QuoteService = Depends(get_quote_service)):
    return await service.get_stock_quote(symbol.strip().upper())


@router.get("/providers", response_model=ProvidersResponse)
async def list_providers(service: QuoteService = Depends(get_quote_service)):
    """List configured providers without probing them."""
    return ProvidersResponse(
        providers=service.registry.available_providers,
        current=service.registry.current_provider.provider_name
    )


@router.get("/providers/status", response_model=List[ProviderStatus])
async def get_provider_status(service: QuoteService = Depends(get_quote_service)):
    """Probe every configured provider."""
    return await service.get_provider_status()


@router.post("/providers/switch", response_model=SwitchProviderResponse)
async def switch_provider(service: QuoteService = Depends(get_quote_service)):
    """Rotate to the next configured provider regardless of availability."""
    provider = service.switch_provider()
    logger.info("provider_switch_requested", provider=provider.provider_name)
    return SwitchProviderResponse(
        message="Provider switched successfully",
        provider=provider.provider_name
    )
