from __future__ import annotations

from pricetracker.providers.base import SourceAdapter
from pricetracker.providers.http import get_html, median_price, select_prices

_CHRONO24_URL = "https://www.chrono24.com/search/index.htm"
_EBAY_URL = "https://www.ebay.com/sch/i.html"

EBAY_SOLD_SAMPLE = 10


class Chrono24Adapter(SourceAdapter):
    """Median asking price of Chrono24 search results within the watch price range."""

    name = "Chrono24"
    reliability = 0.88
    min_price = 5_000.0
    max_price = 500_000.0

    def lookup(self, term: str) -> float | None:
        soup = get_html(
            _CHRONO24_URL, {"query": term}, user_agent=self.user_agent, timeout=self.timeout
        )
        prices = select_prices(soup, [".price", "[data-price]", ".article-price"])
        return median_price([price for price in prices if self.within_bounds(price, term)])


class EbaySoldAdapter(SourceAdapter):
    """Median of the most recent completed eBay sales for a search term."""

    name = "eBay Sold"
    reliability = 0.90
    min_price = 100.0

    def lookup(self, term: str) -> float | None:
        soup = get_html(
            _EBAY_URL,
            {"_nkw": term, "LH_Sold": 1, "LH_Complete": 1},
            user_agent=self.user_agent,
            timeout=self.timeout,
        )
        recent = select_prices(soup, [".sold .notranslate"])[:EBAY_SOLD_SAMPLE]
        return median_price([price for price in recent if self.within_bounds(price, term)])
