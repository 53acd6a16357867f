from __future__ import annotations

import datetime
from collections.abc import Iterable, Mapping
from enum import Enum

from pricetracker.schemas.prices import HistoryPoint, HistoryPointView

DEFAULT_RETENTION = 1000


class HistoryWindow(str, Enum):
    ONE_HOUR = "1H"
    ONE_DAY = "1D"
    ONE_WEEK = "1W"
    ONE_MONTH = "1M"
    THREE_MONTHS = "3M"
    ONE_YEAR = "1Y"

    @classmethod
    def parse(cls, value: str | None) -> HistoryWindow:
        try:
            return cls(value)
        except ValueError:
            return cls.ONE_WEEK

    @property
    def span(self) -> datetime.timedelta:
        return _SPANS[self]

    @property
    def millis(self) -> int:
        return int(self.span.total_seconds() * 1000)


_SPANS = {
    HistoryWindow.ONE_HOUR: datetime.timedelta(hours=1),
    HistoryWindow.ONE_DAY: datetime.timedelta(days=1),
    HistoryWindow.ONE_WEEK: datetime.timedelta(weeks=1),
    HistoryWindow.ONE_MONTH: datetime.timedelta(days=30),
    HistoryWindow.THREE_MONTHS: datetime.timedelta(days=90),
    HistoryWindow.ONE_YEAR: datetime.timedelta(days=365),
}


class HistoryStore:
    """Per-symbol price history, oldest first, capped at ``retention`` points."""

    def __init__(self, retention: int = DEFAULT_RETENTION) -> None:
        if retention <= 0:
            raise ValueError("retention must be positive")
        self.retention = retention
        self._points: dict[str, list[HistoryPoint]] = {}

    def __len__(self) -> int:
        return len(self._points)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._points

    def symbols(self) -> list[str]:
        return list(self._points)

    def append(self, symbol: str, point: HistoryPoint) -> None:
        history = self._points.setdefault(symbol, [])
        history.append(point)
        overflow = len(history) - self.retention
        if overflow > 0:
            del history[:overflow]

    def points(self, symbol: str) -> list[HistoryPoint]:
        return list(self._points.get(symbol, ()))

    def latest(self, symbol: str) -> HistoryPoint | None:
        history = self._points.get(symbol)
        return history[-1] if history else None

    def query(self, symbol: str, window: HistoryWindow, now_ms: int) -> list[HistoryPointView]:
        cutoff = now_ms - window.millis
        return [
            HistoryPointView(price=point.price, timestamp=point.timestamp, verified=point.verified)
            for point in self._points.get(symbol, ())
            if point.timestamp >= cutoff
        ]

    def snapshot(self) -> dict[str, list[HistoryPoint]]:
        return {symbol: history[-self.retention:] for symbol, history in self._points.items()}

    def replace_all(self, mapping: Mapping[str, Iterable[HistoryPoint]]) -> None:
        self._points = {}
        for symbol, history in mapping.items():
            points = sorted(history, key=lambda point: point.timestamp)
            if points:
                self._points[symbol] = points[-self.retention:]
