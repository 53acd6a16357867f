from __future__ import annotations

import datetime

from pricetracker.providers.base import SourceAdapter, coerce_price
from pricetracker.providers.http import get_html, get_json, select_prices

_USDA_QUICKSTATS_URL = "https://quickstats.nass.usda.gov/api/api_GET/"
_AAA_URL = "https://gasprices.aaa.com/"
_EIA_GASOLINE_URL = "https://api.eia.gov/v2/petroleum/pri/gnd/data/"


class UsdaEggsAdapter(SourceAdapter):
    """USDA NASS monthly price received for eggs, converted from cents to dollars per dozen."""

    name = "USDA"
    reliability = 0.95
    requires_key = True

    def lookup(self, term: str) -> float | None:
        payload = get_json(
            _USDA_QUICKSTATS_URL,
            {
                "key": self.api_key or "",
                "source_desc": "SURVEY",
                "sector_desc": "ANIMALS & PRODUCTS",
                "commodity_desc": term,
                "statisticcat_desc": "PRICE RECEIVED",
                "unit_desc": "CENTS / DOZEN",
                "freq_desc": "MONTHLY",
                "year": datetime.date.today().year,
                "format": "JSON",
            },
            timeout=self.timeout,
        )
        if not isinstance(payload, dict):
            return None
        rows = payload.get("data") or []
        if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict):
            return None
        cents = coerce_price(rows[0].get("Value"))
        return cents / 100 if cents is not None else None


class AaaGasAdapter(SourceAdapter):
    name = "AAA"
    reliability = 0.90
    min_price = 2.0
    max_price = 8.0

    def lookup(self, term: str) -> float | None:
        soup = get_html(_AAA_URL, user_agent=self.user_agent, timeout=self.timeout)
        for price in select_prices(soup, [".gas-price", ".price-value", "[data-price]"]):
            if self.within_bounds(price, term):
                return price
        return None


class EiaGasolineAdapter(SourceAdapter):
    """Weekly US regular retail gasoline price; the lookup term is the EIA product code."""

    name = "EIA"
    reliability = 0.95
    requires_key = True

    def lookup(self, term: str) -> float | None:
        payload = get_json(
            _EIA_GASOLINE_URL,
            {
                "api_key": self.api_key or "",
                "frequency": "weekly",
                "data[]": "value",
                "facets[product][]": term,
                "facets[area][]": "NUS",
                "sort[0][column]": "period",
                "sort[0][direction]": "desc",
                "length": 1,
            },
            timeout=self.timeout,
        )
        if not isinstance(payload, dict):
            return None
        response = payload.get("response")
        rows = response.get("data") if isinstance(response, dict) else None
        if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict):
            return None
        return coerce_price(rows[0].get("value"))
