from __future__ import annotations

from pricetracker.providers.base import SourceAdapter, coerce_price
from pricetracker.providers.http import get_html, get_json, median_price, select_prices

_REDFIN_URL = "https://www.redfin.com/news/data-center/"
_CREA_URL = "https://www.crea.ca/housing-market-stats/"
_NYC_SALES_URL = "https://data.cityofnewyork.us/resource/bc8t-ecyu.json"
_STREETEASY_URL = "https://streeteasy.com/blog/data-dashboard/"

MIN_NYC_SALES = 10


class _ScrapedMetricAdapter(SourceAdapter):
    url: str = ""
    selectors: tuple[str, ...] = ()

    def lookup(self, term: str) -> float | None:
        soup = get_html(self.url, user_agent=self.user_agent, timeout=self.timeout)
        for price in select_prices(soup, self.selectors):
            if self.within_bounds(price, term):
                return price
        return None


class RedfinAdapter(_ScrapedMetricAdapter):
    name = "Redfin"
    reliability = 0.88
    min_price = 200_000.0
    max_price = 1_000_000.0
    url = _REDFIN_URL
    selectors = (".metric-value", '[data-metric="median-price"]')


class CreaAdapter(_ScrapedMetricAdapter):
    name = "CREA"
    reliability = 0.90
    min_price = 400_000.0
    max_price = 2_000_000.0
    url = _CREA_URL
    selectors = (".price-stat", ".average-price", "[data-price]")


class StreetEasyAdapter(_ScrapedMetricAdapter):
    name = "StreetEasy"
    reliability = 0.88
    min_price = 500.0
    max_price = 5_000.0
    url = _STREETEASY_URL
    selectors = (".price-per-sqft", '[data-metric="price-per-sqft"]')


class NycOpenDataAdapter(SourceAdapter):
    """Median price per square foot of recent sales in one NYC borough (the lookup term)."""

    name = "NYC Open Data"
    reliability = 0.92

    def lookup(self, term: str) -> float | None:
        payload = get_json(
            _NYC_SALES_URL,
            {"$limit": 1000, "$order": "sale_date DESC", "borough": term},
            timeout=self.timeout,
        )
        if not isinstance(payload, list):
            return None
        per_sqft: list[float] = []
        for sale in payload:
            if not isinstance(sale, dict):
                continue
            sale_price = coerce_price(sale.get("sale_price"))
            square_feet = coerce_price(sale.get("gross_square_feet"))
            if sale_price is None or square_feet is None:
                continue
            if sale_price <= 100_000 or square_feet <= 100:
                continue
            per_sqft.append(sale_price / square_feet)
        if len(per_sqft) <= MIN_NYC_SALES:
            return None
        return median_price(per_sqft)
