from __future__ import annotations

import math
from abc import ABC, abstractmethod


class AdapterError(Exception):
    """A source could not be reached or returned an unusable body."""


def coerce_price(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        price = float(value)
    elif isinstance(value, str):
        try:
            price = float(value.replace(",", "").strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(price):
        return None
    return price


class SourceAdapter(ABC):
    """One external price source.

    ``fetch`` returns a plausible positive price or ``None``. Transport
    failures surface as ``AdapterError`` and are isolated by the collector.
    """

    name: str = ""
    reliability: float = 1.0
    requires_key: bool = False
    min_price: float | None = None
    max_price: float | None = None

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 10.0,
        user_agent: str | None = None,
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.user_agent = user_agent

    @property
    def enabled(self) -> bool:
        return bool(self.api_key) or not self.requires_key

    def fetch(self, term: str) -> float | None:
        if not self.enabled:
            return None
        return self.accept(self.lookup(term), term)

    @abstractmethod
    def lookup(self, term: str) -> float | None:
        """Query the source for ``term`` and return the raw price, if any."""

    def bounds(self, term: str) -> tuple[float | None, float | None]:
        return self.min_price, self.max_price

    def within_bounds(self, price: float, term: str) -> bool:
        low, high = self.bounds(term)
        if low is not None and price < low:
            return False
        if high is not None and price > high:
            return False
        return True

    def accept(self, price: float | None, term: str) -> float | None:
        if price is None or not math.isfinite(price) or price <= 0:
            return None
        if not self.within_bounds(price, term):
            return None
        return price

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name='{self.name}', reliability={self.reliability})>"
