"""Pydantic schemas for the stockwatch service."""
from stockwatch.schemas.stock import Quote, QuoteDetail, ProviderConfig, ProviderStatus

__all__ = ["Quote", "QuoteDetail", "ProviderConfig", "ProviderStatus"]
