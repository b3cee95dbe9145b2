"""Service layer for the stockwatch API."""
from stockwatch.services.quote_service import QuoteService

__all__ = ["QuoteService"]
