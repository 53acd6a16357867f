from __future__ import annotations

from pricetracker.collectors.base import AssetCollector, SourceBinding, TrackedSymbol
from pricetracker.config.settings import ProviderSettings
from pricetracker.providers.stocks import (
    AlphaVantageAdapter,
    FmpQuoteAdapter,
    MarketWatchAdapter,
    YahooFinanceAdapter,
)

# Index-tracking ETFs.
STOCKS = {
    "SPY": "S&P 500",
    "QQQ": "NASDAQ-100",
    "DIA": "Dow Jones",
}


class StockCollector(AssetCollector):
    name = "Stock Index Collector"
    asset_class = "stocks"

    def build_catalog(self, providers: ProviderSettings) -> list[TrackedSymbol]:
        timeout = providers.http_timeout_seconds
        scrape_timeout = providers.scrape_timeout_seconds
        adapters = (
            AlphaVantageAdapter(api_key=providers.alpha_vantage_api_key, timeout=timeout),
            FmpQuoteAdapter(api_key=providers.fmp_api_key, timeout=timeout),
            YahooFinanceAdapter(timeout=scrape_timeout, user_agent=providers.user_agent),
            MarketWatchAdapter(timeout=scrape_timeout, user_agent=providers.user_agent),
        )
        return [
            TrackedSymbol(
                symbol=symbol,
                name=name,
                sources=tuple(SourceBinding(adapter, symbol) for adapter in adapters),
            )
            for symbol, name in STOCKS.items()
        ]
