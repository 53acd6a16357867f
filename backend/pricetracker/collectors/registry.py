from __future__ import annotations

from collections.abc import Mapping

from pricetracker.collectors.base import AssetCollector
from pricetracker.collectors.consumer import ConsumerGoodsCollector
from pricetracker.collectors.crypto import CryptoCollector
from pricetracker.collectors.luxury import LuxuryCollector
from pricetracker.collectors.metals import MetalsCollector
from pricetracker.collectors.real_estate import RealEstateCollector
from pricetracker.collectors.stocks import StockCollector
from pricetracker.config.settings import Settings

COLLECTOR_TYPES: dict[str, type[AssetCollector]] = {
    "crypto": CryptoCollector,
    "stocks": StockCollector,
    "metals": MetalsCollector,
    "consumer": ConsumerGoodsCollector,
    "luxury": LuxuryCollector,
    "realestate": RealEstateCollector,
}


def build_collectors(settings: Settings) -> dict[str, AssetCollector]:
    return {key: collector_type(settings) for key, collector_type in COLLECTOR_TYPES.items()}


def asset_class_for(symbol: str, collectors: Mapping[str, AssetCollector]) -> str | None:
    for collector in collectors.values():
        if collector.owns(symbol):
            return collector.asset_class
    return None
