from __future__ import annotations

from pricetracker.providers.base import SourceAdapter, coerce_price
from pricetracker.providers.http import get_html, get_json, select_prices

_METALS_API_URL = "https://metals-api.com/api/latest"
_GOLDPRICE_URL = "https://goldprice.org/"
_APMEX_URL = "https://www.apmex.com/category/10000/{metal}"
_FMP_FX_URL = "https://financialmodelingprep.com/api/v3/fx/{symbol}USD"

METAL_NAMES = {
    "XAU": "gold",
    "XAG": "silver",
    "XPT": "platinum",
    "XPD": "palladium",
}

# Spot price per troy ounce in USD.
SPOT_RANGES = {
    "XAU": (1500.0, 6000.0),
    "XAG": (15.0, 120.0),
    "XPT": (600.0, 3000.0),
    "XPD": (600.0, 3500.0),
}


class MetalsApiAdapter(SourceAdapter):
    name = "MetalsAPI"
    reliability = 0.9
    requires_key = True

    def lookup(self, term: str) -> float | None:
        payload = get_json(
            _METALS_API_URL,
            {"access_key": self.api_key or "", "base": "USD", "symbols": term},
            timeout=self.timeout,
        )
        if not isinstance(payload, dict) or not payload.get("success"):
            return None
        rates = payload.get("rates") or {}
        rate = coerce_price(rates.get(term)) if isinstance(rates, dict) else None
        if not rate:
            return None
        # Rates are quoted as ounces per USD.
        return 1 / rate


class GoldPriceOrgAdapter(SourceAdapter):
    name = "GoldPrice.org"
    reliability = 0.85
    min_price = 1000.0
    max_price = 6000.0

    def lookup(self, term: str) -> float | None:
        soup = get_html(_GOLDPRICE_URL, user_agent=self.user_agent, timeout=self.timeout)
        candidates = select_prices(soup, ["[data-price-usd]"], attribute="data-price-usd")
        candidates += select_prices(soup, [".price-value"])
        for price in candidates:
            if self.within_bounds(price, term):
                return price
        return None


class ApmexAdapter(SourceAdapter):
    name = "APMEX"
    reliability = 0.88

    def bounds(self, term: str) -> tuple[float | None, float | None]:
        return SPOT_RANGES.get(term, (None, None))

    def lookup(self, term: str) -> float | None:
        metal = METAL_NAMES.get(term)
        if metal is None:
            return None
        soup = get_html(
            _APMEX_URL.format(metal=metal), user_agent=self.user_agent, timeout=self.timeout
        )
        prices = select_prices(
            soup,
            [".spot-price", ".metal-spot-price", "[data-spot-price]", ".current-price"],
            attribute="data-price",
        )
        return prices[0] if prices else None


class FmpFxAdapter(SourceAdapter):
    name = "FinancialModelingPrep"
    reliability = 0.92
    requires_key = True

    def lookup(self, term: str) -> float | None:
        payload = get_json(
            _FMP_FX_URL.format(symbol=term),
            {"apikey": self.api_key or ""},
            timeout=self.timeout,
        )
        if not isinstance(payload, list) or not payload:
            return None
        first = payload[0]
        if not isinstance(first, dict):
            return None
        return coerce_price(first.get("price", first.get("bid")))
