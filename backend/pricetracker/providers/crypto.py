from __future__ import annotations

from pricetracker.providers.base import SourceAdapter, coerce_price
from pricetracker.providers.http import get_json

_COINGECKO_URL = "https://api.coingecko.com/api/v3/simple/price"
_BINANCE_URL = "https://api.binance.com/api/v3/ticker/price"
_COINMARKETCAP_URL = "https://pro-api.coinmarketcap.com/v1/cryptocurrency/quotes/latest"


class CoinGeckoAdapter(SourceAdapter):
    name = "CoinGecko"
    reliability = 0.9

    def lookup(self, term: str) -> float | None:
        payload = get_json(
            _COINGECKO_URL,
            {"ids": term, "vs_currencies": "usd"},
            timeout=self.timeout,
        )
        if not isinstance(payload, dict):
            return None
        entry = payload.get(term)
        if not isinstance(entry, dict):
            return None
        return coerce_price(entry.get("usd"))


class BinanceAdapter(SourceAdapter):
    name = "Binance"
    reliability = 0.95

    def lookup(self, term: str) -> float | None:
        payload = get_json(_BINANCE_URL, {"symbol": term}, timeout=self.timeout)
        if not isinstance(payload, dict):
            return None
        return coerce_price(payload.get("price"))


class CoinMarketCapAdapter(SourceAdapter):
    name = "CoinMarketCap"
    reliability = 0.92
    requires_key = True

    def lookup(self, term: str) -> float | None:
        payload = get_json(
            _COINMARKETCAP_URL,
            {"symbol": term, "convert": "USD"},
            headers={"X-CMC_PRO_API_KEY": self.api_key or ""},
            timeout=self.timeout,
        )
        if not isinstance(payload, dict):
            return None
        data = payload.get("data") or {}
        entry = data.get(term) if isinstance(data, dict) else None
        if isinstance(entry, list):
            entry = entry[0] if entry else None
        if not isinstance(entry, dict):
            return None
        usd = (entry.get("quote") or {}).get("USD") or {}
        return coerce_price(usd.get("price"))
