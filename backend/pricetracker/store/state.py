from __future__ import annotations

from collections.abc import Iterable, Mapping

from pricetracker.schemas.prices import CollectionResult, CurrentPrice, HistoryPoint
from pricetracker.store.history import DEFAULT_RETENTION, HistoryStore

STORED_SOURCE = "stored"


class PriceState:
    """Current prices plus history, written only by the update orchestrator.

    Readers may observe a cycle that is partially applied.
    """

    def __init__(self, retention: int = DEFAULT_RETENTION) -> None:
        self.current: dict[str, CurrentPrice] = {}
        self.history = HistoryStore(retention)

    def apply(self, result: CollectionResult, timestamp: int) -> CurrentPrice:
        if not result.success or result.price is None or result.price <= 0:
            raise ValueError(f"Cannot apply unsuccessful result for {result.symbol}")
        source = result.source or STORED_SOURCE
        latest = self.history.latest(result.symbol)
        if latest is not None and timestamp < latest.timestamp:
            # Keep each symbol's history non-decreasing if the wall clock steps back.
            timestamp = latest.timestamp
        current = CurrentPrice(
            price=result.price,
            timestamp=timestamp,
            source=source,
            verified=result.verified,
        )
        self.current[result.symbol] = current
        self.history.append(
            result.symbol,
            HistoryPoint(
                price=result.price,
                timestamp=timestamp,
                source=source,
                verified=result.verified,
            ),
        )
        return current

    def hydrate(self, mapping: Mapping[str, Iterable[HistoryPoint]]) -> None:
        self.history.replace_all(mapping)
        self.current = {}
        for symbol in self.history.symbols():
            latest = self.history.latest(symbol)
            if latest is None:
                continue
            self.current[symbol] = CurrentPrice(
                price=latest.price,
                timestamp=latest.timestamp,
                source=latest.source or STORED_SOURCE,
                verified=latest.verified,
            )

    def prices(self) -> dict[str, float]:
        return {symbol: current.price for symbol, current in self.current.items()}

    def last_update(self) -> int | None:
        if not self.current:
            return None
        return max(current.timestamp for current in self.current.values())

    def __len__(self) -> int:
        return len(self.current)
