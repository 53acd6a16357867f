from __future__ import annotations

from pricetracker.collectors.base import AssetCollector, SourceBinding, TrackedSymbol
from pricetracker.config.settings import ProviderSettings
from pricetracker.providers.metals import (
    METAL_NAMES,
    ApmexAdapter,
    FmpFxAdapter,
    GoldPriceOrgAdapter,
    MetalsApiAdapter,
)


class MetalsCollector(AssetCollector):
    name = "Precious Metals Collector"
    asset_class = "metals"

    def build_catalog(self, providers: ProviderSettings) -> list[TrackedSymbol]:
        timeout = providers.http_timeout_seconds
        scrape_timeout = providers.scrape_timeout_seconds
        metals_api = MetalsApiAdapter(api_key=providers.metals_api_key, timeout=timeout)
        goldprice = GoldPriceOrgAdapter(timeout=scrape_timeout, user_agent=providers.user_agent)
        apmex = ApmexAdapter(timeout=scrape_timeout, user_agent=providers.user_agent)
        fmp = FmpFxAdapter(api_key=providers.fmp_api_key, timeout=timeout)

        catalog: list[TrackedSymbol] = []
        for symbol, metal in METAL_NAMES.items():
            sources = [SourceBinding(metals_api, symbol)]
            if symbol == "XAU":
                sources.append(SourceBinding(goldprice, symbol))
            sources.append(SourceBinding(apmex, symbol))
            sources.append(SourceBinding(fmp, symbol))
            catalog.append(TrackedSymbol(symbol=symbol, name=metal.title(), sources=tuple(sources)))
        return catalog
