from __future__ import annotations

from pricetracker.providers.base import SourceAdapter, coerce_price
from pricetracker.providers.http import get_html, get_json, select_prices

_ALPHA_VANTAGE_URL = "https://www.alphavantage.co/query"
_FMP_QUOTE_URL = "https://financialmodelingprep.com/api/v3/quote/{symbol}"
_YAHOO_URL = "https://finance.yahoo.com/quote/{symbol}"
_MARKETWATCH_URL = "https://www.marketwatch.com/investing/fund/{symbol}"


class AlphaVantageAdapter(SourceAdapter):
    name = "AlphaVantage"
    reliability = 0.92
    requires_key = True

    def lookup(self, term: str) -> float | None:
        payload = get_json(
            _ALPHA_VANTAGE_URL,
            {"function": "GLOBAL_QUOTE", "symbol": term, "apikey": self.api_key or ""},
            timeout=self.timeout,
        )
        if not isinstance(payload, dict):
            return None
        quote = payload.get("Global Quote")
        if not isinstance(quote, dict):
            return None
        return coerce_price(quote.get("05. price"))


class FmpQuoteAdapter(SourceAdapter):
    name = "FinancialModelingPrep"
    reliability = 0.90
    requires_key = True

    def lookup(self, term: str) -> float | None:
        payload = get_json(
            _FMP_QUOTE_URL.format(symbol=term),
            {"apikey": self.api_key or ""},
            timeout=self.timeout,
        )
        if not isinstance(payload, list) or not payload:
            return None
        first = payload[0]
        if not isinstance(first, dict):
            return None
        return coerce_price(first.get("price"))


class YahooFinanceAdapter(SourceAdapter):
    name = "Yahoo Finance"
    reliability = 0.88
    min_price = 10.0
    max_price = 1000.0

    def lookup(self, term: str) -> float | None:
        soup = get_html(
            _YAHOO_URL.format(symbol=term), user_agent=self.user_agent, timeout=self.timeout
        )
        selectors = [
            f'fin-streamer[data-symbol="{term}"][data-field="regularMarketPrice"]',
            f'[data-symbol="{term}"] [data-field="regularMarketPrice"]',
            '[data-testid="qsp-price"]',
        ]
        for price in select_prices(soup, selectors):
            if self.within_bounds(price, term):
                return price
        return None


class MarketWatchAdapter(SourceAdapter):
    name = "MarketWatch"
    reliability = 0.86
    min_price = 10.0
    max_price = 1000.0

    def lookup(self, term: str) -> float | None:
        soup = get_html(
            _MARKETWATCH_URL.format(symbol=term.lower()),
            user_agent=self.user_agent,
            timeout=self.timeout,
        )
        selectors = [
            ".intraday__price .value",
            ".quote__price .value",
            f'bg-quote[data-symbol="{term}"] .value',
            ".last-price",
        ]
        for price in select_prices(soup, selectors):
            if self.within_bounds(price, term):
                return price
        return None
