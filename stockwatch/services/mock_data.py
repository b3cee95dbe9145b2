"""
Mock Stock Catalog

Static records served when every provider is down, so the search and quote
endpoints never return an outage to the browser. The records have the same
shape as live data.
"""
from typing import List

from stockwatch.schemas.stock import Quote, QuoteDetail

MOCK_STOCKS: List[Quote] = [
    Quote(symbol="AAPL", name="Apple Inc.", price=150.25, change=2.45, change_percent=1.66,
          volume=52000000, market_cap=2800000000000, pe=28.5, eps=5.27),
    Quote(symbol="GOOGL", name="Alphabet Inc.", price=2750.80, change=-12.30, change_percent=-0.44,
          volume=1200000, market_cap=1900000000000, pe=22.8, eps=120.65),
    Quote(symbol="MSFT", name="Microsoft Corporation", price=405.90, change=5.20, change_percent=1.30,
          volume=28000000, market_cap=3000000000000, pe=35.2, eps=11.53),
    Quote(symbol="TSLA", name="Tesla Inc.", price=220.50, change=-8.75, change_percent=-3.82,
          volume=45000000, market_cap=700000000000, pe=45.8, eps=4.81),
    Quote(symbol="AMZN", name="Amazon.com Inc.", price=135.25, change=3.20, change_percent=2.42,
          volume=35000000, market_cap=1400000000000, pe=55.2, eps=2.45),
]


def search_mock_stocks(query: str) -> List[Quote]:
    """
    Case-insensitive substring match on symbol or name.

    Falls back to the first three entries when nothing matches.
    """
    needle = query.lower()
    matches = [
        stock for stock in MOCK_STOCKS
        if needle in stock.symbol.lower() or needle in stock.name.lower()
    ]
    selected = matches or MOCK_STOCKS[:3]
    return [stock.model_copy() for stock in selected]


def get_mock_quote(symbol: str) -> Quote:
    for stock in MOCK_STOCKS:
        if stock.symbol == symbol:
            return stock.model_copy()

    return Quote(
        symbol=symbol,
        name=f"{symbol} Company (Mock)",
        price=100.00,
        change=1.50,
        change_percent=1.52,
        volume=1000000,
        market_cap=1000000000,
        pe=20.0,
        eps=5.00,
    )


def get_mock_detail(symbol: str) -> QuoteDetail:
    quote = get_mock_quote(symbol)
    return QuoteDetail(
        **quote.model_dump(),
        description=f"{quote.name} is a leading technology company (Mock Data)",
        sector="Technology",
        industry="Software",
        website="https://example.com",
        ceo="Mock CEO",
        employees=150000,
        headquarters="Cupertino, CA",
    )
