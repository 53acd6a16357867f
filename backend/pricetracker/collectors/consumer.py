from __future__ import annotations

from pricetracker.collectors.base import AssetCollector, SourceBinding, TrackedSymbol
from pricetracker.config.settings import ProviderSettings
from pricetracker.providers.consumer import AaaGasAdapter, EiaGasolineAdapter, UsdaEggsAdapter
from pricetracker.providers.fred import FredSeriesAdapter

# BLS average retail price series published on FRED.
BLS_SERIES = {
    "EGGS": "APU0000708111",
    "MILK": "APU0000709112",
    "GAS": "APU000074714",
    "COFFEE": "APU0000717311",
}

GOODS = {
    "EGGS": "Eggs (dozen)",
    "MILK": "Milk (gallon)",
    "GAS": "Gas (gallon)",
    "COFFEE": "Coffee (lb)",
}


class ConsumerGoodsCollector(AssetCollector):
    name = "Consumer Goods Collector"
    asset_class = "consumer"

    def build_catalog(self, providers: ProviderSettings) -> list[TrackedSymbol]:
        timeout = providers.http_timeout_seconds
        usda = UsdaEggsAdapter(api_key=providers.usda_api_key, timeout=timeout)
        aaa = AaaGasAdapter(timeout=providers.scrape_timeout_seconds, user_agent=providers.user_agent)
        eia = EiaGasolineAdapter(api_key=providers.eia_api_key, timeout=timeout)
        bls = FredSeriesAdapter(
            api_key=providers.fred_api_key, timeout=timeout, name="BLS", reliability=0.93
        )

        extra_sources = {
            "EGGS": (SourceBinding(usda, "EGGS"),),
            "GAS": (SourceBinding(aaa, "US"), SourceBinding(eia, "EPM0")),
        }
        return [
            TrackedSymbol(
                symbol=symbol,
                name=name,
                sources=(*extra_sources.get(symbol, ()), SourceBinding(bls, BLS_SERIES[symbol])),
            )
            for symbol, name in GOODS.items()
        ]
