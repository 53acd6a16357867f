from __future__ import annotations

from pricetracker.collectors.base import AssetCollector, SourceBinding, TrackedSymbol
from pricetracker.config.settings import ProviderSettings
from pricetracker.providers.fred import FredSeriesAdapter
from pricetracker.providers.real_estate import (
    CreaAdapter,
    NycOpenDataAdapter,
    RedfinAdapter,
    StreetEasyAdapter,
)


class RealEstateCollector(AssetCollector):
    name = "Real Estate Collector"
    asset_class = "real_estate"

    def build_catalog(self, providers: ProviderSettings) -> list[TrackedSymbol]:
        timeout = providers.http_timeout_seconds
        scrape_timeout = providers.scrape_timeout_seconds
        user_agent = providers.user_agent
        fred = FredSeriesAdapter(api_key=providers.fred_api_key, timeout=timeout)
        redfin = RedfinAdapter(timeout=scrape_timeout, user_agent=user_agent)
        crea = CreaAdapter(timeout=scrape_timeout, user_agent=user_agent)
        nyc = NycOpenDataAdapter(timeout=scrape_timeout)
        streeteasy = StreetEasyAdapter(timeout=scrape_timeout, user_agent=user_agent)

        return [
            TrackedSymbol(
                symbol="HOUSE-US",
                name="US Median House Price",
                sources=(SourceBinding(fred, "MSPUS"), SourceBinding(redfin, "US")),
            ),
            TrackedSymbol(
                symbol="HOUSE-CA",
                name="Canada Median House Price",
                sources=(SourceBinding(crea, "CA"),),
            ),
            TrackedSymbol(
                symbol="NYC-SQFT",
                name="NYC Price per sqft",
                sources=(SourceBinding(nyc, "MANHATTAN"), SourceBinding(streeteasy, "NYC")),
            ),
        ]
