"""Update cycles across every asset collector.

``UpdateOrchestrator.run_cycle`` fans out one task per collector and applies
each collector's results to the shared ``PriceState`` as soon as that
collector resolves, so readers may see a partially applied cycle. Only one
cycle runs at a time; a second trigger is rejected, not queued.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping

from pricetracker.clock import now_ms
from pricetracker.collectors.base import AssetCollector
from pricetracker.schemas.api import CollectorStatus
from pricetracker.schemas.prices import CycleSummary
from pricetracker.store.repository import HistoryRepository, PersistenceError
from pricetracker.store.state import PriceState

logger = logging.getLogger(__name__)


class ConcurrentUpdateRejected(Exception):
    """A cycle was triggered while another one is still in flight."""


class CollectorFailure(Exception):
    def __init__(self, name: str, cause: BaseException) -> None:
        super().__init__(f"Collector {name} failed: {cause}")
        self.name = name
        self.cause = cause


class UpdateOrchestrator:
    def __init__(
        self,
        collectors: Mapping[str, AssetCollector],
        state: PriceState,
        repository: HistoryRepository | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.collectors = dict(collectors)
        self.state = state
        self.repository = repository
        self._clock = clock
        self._in_flight = False
        self.last_cycle: CycleSummary | None = None

    @property
    def is_updating(self) -> bool:
        return self._in_flight

    def collector_statuses(self) -> list[CollectorStatus]:
        return [collector.status() for collector in self.collectors.values()]

    async def run_cycle(self) -> CycleSummary:
        # Check and set happen without an await in between, so two triggers
        # on the same event loop can never both pass.
        if self._in_flight:
            logger.warning("Update already in progress, skipping")
            raise ConcurrentUpdateRejected("Update already in progress")
        self._in_flight = True

        summary = CycleSummary(started_at=self._clock())
        started = time.monotonic()
        try:
            logger.info("Starting price update cycle")
            await asyncio.gather(
                *(
                    self._run_collector(key, collector, summary)
                    for key, collector in self.collectors.items()
                )
            )
            summary.duration_ms = int((time.monotonic() - started) * 1000)
            logger.info(
                "Update cycle completed: %d success, %d errors in %dms",
                summary.accepted_count,
                summary.rejected_count,
                summary.duration_ms,
            )
            self.last_cycle = summary
        finally:
            self._in_flight = False
        return summary

    async def _run_collector(
        self, key: str, collector: AssetCollector, summary: CycleSummary
    ) -> None:
        try:
            results = await collector.collect()
        except Exception as exc:
            failure = CollectorFailure(key, exc)
            logger.error("%s", failure, exc_info=exc)
            summary.failed_collectors.append(failure.name)
            summary.rejected_count += 1
            return

        for result in results:
            if result.success and result.price is not None and result.price > 0:
                self.state.apply(result, self._clock())
                summary.accepted_count += 1
            else:
                logger.warning("Failed to update %s: %s", result.symbol, result.error_reason)
                summary.rejected_count += 1

    async def load(self) -> None:
        if self.repository is None:
            return
        try:
            mapping = await self.repository.load()
        except PersistenceError:
            logger.exception("Failed to load stored data, starting empty")
            return
        self.state.hydrate(mapping)
        logger.info("Loaded historical data for %d items", len(self.state))

    async def save(self) -> bool:
        if self.repository is None:
            return False
        try:
            await self.repository.save(self.state.history.snapshot())
        except PersistenceError:
            logger.exception("Failed to save data, will retry on next flush")
            return False
        logger.info("Data saved successfully")
        return True
