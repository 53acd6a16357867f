from __future__ import annotations

from pricetracker.collectors.base import AssetCollector, SourceBinding, TrackedSymbol
from pricetracker.config.settings import ProviderSettings
from pricetracker.providers.luxury import Chrono24Adapter, EbaySoldAdapter

WATCHES = {
    "ROLEX-SUB": ("Rolex Submariner", "rolex submariner 116610"),
    "ROLEX-DAY": ("Rolex Daytona", "rolex daytona 116500"),
    "AP-RO": ("AP Royal Oak", "audemars piguet royal oak 15400"),
    "PATEK-NAU": ("Patek Nautilus", "patek philippe nautilus 5711"),
}

COLLECTIBLES = {
    "CHAR-PSA10": ("Charizard PSA 10", "charizard psa 10 base set"),
    "MTG-LOTUS": ("Black Lotus", "black lotus alpha mtg"),
    "AC1": ("Action Comics #1", "action comics 1 cgc"),
}


class LuxuryCollector(AssetCollector):
    name = "Luxury Goods Collector"
    asset_class = "luxury"

    def build_catalog(self, providers: ProviderSettings) -> list[TrackedSymbol]:
        timeout = providers.scrape_timeout_seconds
        chrono24 = Chrono24Adapter(timeout=timeout, user_agent=providers.user_agent)
        ebay = EbaySoldAdapter(timeout=timeout, user_agent=providers.user_agent)

        catalog = [
            TrackedSymbol(
                symbol=symbol,
                name=name,
                sources=(SourceBinding(chrono24, search_term), SourceBinding(ebay, search_term)),
            )
            for symbol, (name, search_term) in WATCHES.items()
        ]
        catalog += [
            TrackedSymbol(symbol=symbol, name=name, sources=(SourceBinding(ebay, search_term),))
            for symbol, (name, search_term) in COLLECTIBLES.items()
        ]
        return catalog
