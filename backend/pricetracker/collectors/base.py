from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from pricetracker.clock import now_ms
from pricetracker.config.settings import ProviderSettings, Settings
from pricetracker.consolidation.consolidator import consolidate
from pricetracker.providers.base import SourceAdapter, coerce_price
from pricetracker.schemas.api import CollectorStatus
from pricetracker.schemas.prices import CollectionResult, SourceObservation

logger = logging.getLogger(__name__)

NO_VALID_SOURCES = "no valid sources"


class CollectorState(str, Enum):
    INITIALIZED = "initialized"
    COLLECTING = "collecting"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class SourceBinding:
    adapter: SourceAdapter
    term: str


@dataclass(frozen=True)
class TrackedSymbol:
    symbol: str
    name: str
    sources: tuple[SourceBinding, ...] = field(default_factory=tuple)


class AssetCollector(ABC):
    """Collects and consolidates prices for every symbol of one asset class.

    Subclasses only declare their catalog: which symbols they own and which
    adapters (with the adapter-specific lookup term) observe each symbol.
    """

    name: str = ""
    asset_class: str = ""

    def __init__(self, settings: Settings, clock: Callable[[], int] = now_ms) -> None:
        self.threshold = settings.thresholds.for_asset_class(self.asset_class)
        self.state = CollectorState.INITIALIZED
        self.last_update: int | None = None
        self._clock = clock
        self.catalog: list[TrackedSymbol] = self.build_catalog(settings.providers)

    @abstractmethod
    def build_catalog(self, providers: ProviderSettings) -> list[TrackedSymbol]:
        """Return the tracked symbols in reporting order."""

    @property
    def symbols(self) -> list[str]:
        return [entry.symbol for entry in self.catalog]

    def owns(self, symbol: str) -> bool:
        return any(entry.symbol == symbol for entry in self.catalog)

    async def collect(self) -> list[CollectionResult]:
        self.state = CollectorState.COLLECTING
        results: list[CollectionResult] = []
        faulted = False
        outcomes = await asyncio.gather(
            *(self.collect_symbol(entry) for entry in self.catalog),
            return_exceptions=True,
        )
        for entry, outcome in zip(self.catalog, outcomes):
            if isinstance(outcome, CollectionResult):
                results.append(outcome)
                continue
            if not isinstance(outcome, Exception):
                self.state = CollectorState.ERROR
                raise outcome
            faulted = True
            logger.error("%s failed to collect %s", self.name, entry.symbol, exc_info=outcome)
            results.append(CollectionResult.failure(entry.symbol, f"collector fault: {outcome}"))

        if faulted:
            self.state = CollectorState.ERROR
        else:
            self.last_update = self._clock()
            self.state = CollectorState.COMPLETED
        return results

    async def collect_symbol(self, entry: TrackedSymbol) -> CollectionResult:
        outcomes = await asyncio.gather(
            *(self._observe(entry.symbol, binding) for binding in entry.sources)
        )
        observations = [observation for observation in outcomes if observation is not None]
        if not observations:
            logger.info("%s: no valid sources for %s", self.name, entry.symbol)
            return CollectionResult.failure(entry.symbol, NO_VALID_SOURCES)

        consolidated = consolidate(entry.symbol, observations, self.threshold)
        return CollectionResult.from_consolidated(consolidated)

    async def _observe(self, symbol: str, binding: SourceBinding) -> SourceObservation | None:
        adapter = binding.adapter
        try:
            raw = await asyncio.to_thread(adapter.fetch, binding.term)
        except Exception as exc:
            logger.warning("%s failed for %s: %s", adapter.name, symbol, exc)
            return None

        price = coerce_price(raw)
        if price is None or price <= 0:
            return None
        return SourceObservation(source=adapter.name, price=price, reliability=adapter.reliability)

    def status(self) -> CollectorStatus:
        sources = {binding.adapter.name for entry in self.catalog for binding in entry.sources}
        return CollectorStatus(
            name=self.name,
            asset_class=self.asset_class,
            state=self.state.value,
            last_update=self.last_update,
            symbols=len(self.catalog),
            sources=len(sources),
        )
