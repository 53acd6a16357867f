from __future__ import annotations

from pricetracker.providers.base import SourceAdapter, coerce_price
from pricetracker.providers.http import get_json

_OBSERVATIONS_URL = "https://api.stlouisfed.org/fred/series/observations"


class FredSeriesAdapter(SourceAdapter):
    """Latest observation of a FRED series; the lookup term is the series id."""

    name = "FRED"
    reliability = 0.95
    requires_key = True

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 10.0,
        user_agent: str | None = None,
        name: str | None = None,
        reliability: float | None = None,
    ) -> None:
        super().__init__(api_key=api_key, timeout=timeout, user_agent=user_agent)
        if name is not None:
            self.name = name
        if reliability is not None:
            self.reliability = reliability

    def lookup(self, term: str) -> float | None:
        payload = get_json(
            _OBSERVATIONS_URL,
            {
                "series_id": term,
                "api_key": self.api_key or "",
                "file_type": "json",
                "sort_order": "desc",
                "limit": 1,
            },
            timeout=self.timeout,
        )
        if not isinstance(payload, dict):
            return None
        observations = payload.get("observations") or []
        if not isinstance(observations, list) or not observations:
            return None
        latest = observations[0]
        if not isinstance(latest, dict):
            return None
        # FRED reports missing values as ".".
        return coerce_price(latest.get("value"))
