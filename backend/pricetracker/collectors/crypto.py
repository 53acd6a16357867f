from __future__ import annotations

from pricetracker.collectors.base import AssetCollector, SourceBinding, TrackedSymbol
from pricetracker.config.settings import ProviderSettings
from pricetracker.providers.crypto import BinanceAdapter, CoinGeckoAdapter, CoinMarketCapAdapter

# symbol -> (name, CoinGecko id, Binance pair)
COINS = {
    "BTC": ("Bitcoin", "bitcoin", "BTCUSDT"),
    "ETH": ("Ethereum", "ethereum", "ETHUSDT"),
    "SOL": ("Solana", "solana", "SOLUSDT"),
    "DOGE": ("Dogecoin", "dogecoin", "DOGEUSDT"),
}


class CryptoCollector(AssetCollector):
    name = "Cryptocurrency Collector"
    asset_class = "crypto"

    def build_catalog(self, providers: ProviderSettings) -> list[TrackedSymbol]:
        timeout = providers.http_timeout_seconds
        coingecko = CoinGeckoAdapter(timeout=timeout)
        binance = BinanceAdapter(timeout=timeout)
        coinmarketcap = CoinMarketCapAdapter(api_key=providers.coinmarketcap_api_key, timeout=timeout)

        return [
            TrackedSymbol(
                symbol=symbol,
                name=name,
                sources=(
                    SourceBinding(coingecko, coingecko_id),
                    SourceBinding(binance, pair),
                    SourceBinding(coinmarketcap, symbol),
                ),
            )
            for symbol, (name, coingecko_id, pair) in COINS.items()
        ]
