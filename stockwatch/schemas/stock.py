"""
Stock Pydantic Schemas

Canonical, vendor-independent records produced by every stock provider.
Fields are snake_case in Python and camelCase on the wire, which is the
shape the browser client consumes (``changePercent``, ``marketCap``).
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Quote(BaseModel):
    """Canonical quote record shared by all providers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    symbol: str = Field(..., description="Ticker symbol, uppercase")
    name: str = Field(..., description="Company or instrument name")
    price: float = Field(0.0, description="Last traded price")
    change: float = Field(0.0, description="Absolute change since previous close")
    change_percent: float = Field(0.0, description="Percent change since previous close")
    volume: int = Field(0, description="Traded volume (shares)")
    market_cap: float = Field(0.0, description="Market capitalization")
    pe: float = Field(0.0, description="Price / earnings ratio")
    eps: float = Field(0.0, description="Earnings per share")

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return v.strip().upper()


class QuoteDetail(Quote):
    """Quote plus descriptive company fields; each one is optional per provider."""

    description: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    website: Optional[str] = None
    ceo: Optional[str] = None
    employees: Optional[int] = None
    headquarters: Optional[str] = None
    founded: Optional[str] = None


class ProviderConfig(BaseModel):
    """
    Connection settings for one upstream provider.

    ``rate_limit_per_minute`` and ``timeout`` are informational only;
    neither is enforced by the adapters.
    """

    api_key: str = Field("", description="API key sent as a query parameter")
    base_url: str = Field(..., description="Base URL of the vendor REST API")
    rate_limit_per_minute: Optional[int] = Field(None, ge=0)
    timeout: Optional[int] = Field(None, ge=0, description="Timeout in milliseconds")


class ProviderStatus(BaseModel):
    """Probe result for one configured provider."""

    name: str
    available: bool
