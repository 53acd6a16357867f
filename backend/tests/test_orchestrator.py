import asyncio

import pytest

from pricetracker.orchestration.orchestrator import ConcurrentUpdateRejected, UpdateOrchestrator
from pricetracker.schemas.api import CollectorStatus
from pricetracker.schemas.prices import CollectionResult, HistoryPoint
from pricetracker.store.repository import PersistenceError
from pricetracker.store.state import PriceState


def ok(symbol, price=100.0, source="Fake"):
    return CollectionResult(symbol=symbol, success=True, price=price, source=source, verified=True)


class StubCollector:
    def __init__(self, name, results=None, error=None):
        self.name = name
        self.asset_class = name
        self.results = results or []
        self.error = error
        self.calls = 0

    async def collect(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.results)

    def status(self):
        return CollectorStatus(name=self.name, asset_class=self.asset_class, state="completed")

    def owns(self, symbol):
        return any(result.symbol == symbol for result in self.results)


class BlockingCollector(StubCollector):
    def __init__(self, name, release, results=None):
        super().__init__(name, results)
        self.release = release
        self.started = asyncio.Event()

    async def collect(self):
        self.calls += 1
        self.started.set()
        await self.release.wait()
        return list(self.results)


class MemoryRepository:
    def __init__(self, mapping: dict[str, list[HistoryPoint]] | None = None) -> None:
        self.mapping = mapping or {}
        self.saves: int = 0

    async def load(self):
        return {symbol: list(points) for symbol, points in self.mapping.items()}

    async def save(self, snapshot):
        self.saves += 1
        self.mapping = {symbol: list(points) for symbol, points in snapshot.items()}


class BrokenRepository:
    async def load(self):
        raise PersistenceError("disk on fire")

    async def save(self, snapshot):
        raise PersistenceError("disk on fire")


def test_cycle_applies_results_and_counts() -> None:
    collectors = {
        "crypto": StubCollector("crypto", [ok("BTC", 64_000.0), ok("ETH", 3_000.0)]),
        "stocks": StubCollector(
            "stocks", [ok("SPY", 500.0), CollectionResult.failure("QQQ", "no valid sources")]
        ),
    }
    state = PriceState()
    orchestrator = UpdateOrchestrator(collectors, state, clock=lambda: 1_000)

    summary = asyncio.run(orchestrator.run_cycle())

    assert summary.accepted_count == 3
    assert summary.rejected_count == 1
    assert summary.failed_collectors == []
    assert summary.started_at == 1_000
    assert state.prices() == {"BTC": 64_000.0, "ETH": 3_000.0, "SPY": 500.0}
    assert orchestrator.last_cycle == summary
    assert orchestrator.is_updating is False


def test_failing_collector_does_not_block_others() -> None:
    collectors = {
        "metals": StubCollector("metals", error=RuntimeError("upstream exploded")),
        "crypto": StubCollector("crypto", [ok("BTC")]),
    }
    state = PriceState()
    orchestrator = UpdateOrchestrator(collectors, state)

    summary = asyncio.run(orchestrator.run_cycle())

    assert summary.accepted_count == 1
    assert summary.rejected_count == 1
    assert summary.failed_collectors == ["metals"]
    assert state.prices() == {"BTC": 100.0}


def test_second_trigger_during_cycle_is_rejected() -> None:
    async def scenario():
        release = asyncio.Event()
        collector = BlockingCollector("crypto", release, [ok("BTC")])
        orchestrator = UpdateOrchestrator({"crypto": collector}, PriceState())

        first = asyncio.create_task(orchestrator.run_cycle())
        await collector.started.wait()
        assert orchestrator.is_updating is True
        with pytest.raises(ConcurrentUpdateRejected):
            await orchestrator.run_cycle()
        release.set()
        summary = await first
        return orchestrator, collector, summary

    orchestrator, collector, summary = asyncio.run(scenario())

    assert collector.calls == 1
    assert summary.accepted_count == 1
    assert orchestrator.is_updating is False


def test_flag_is_cleared_when_cycle_is_cancelled() -> None:
    async def scenario():
        release = asyncio.Event()
        collector = BlockingCollector("crypto", release, [ok("BTC")])
        orchestrator = UpdateOrchestrator({"crypto": collector}, PriceState())

        cycle = asyncio.create_task(orchestrator.run_cycle())
        await collector.started.wait()
        cycle.cancel()
        with pytest.raises(asyncio.CancelledError):
            await cycle
        return orchestrator

    orchestrator = asyncio.run(scenario())

    assert orchestrator.is_updating is False
    assert orchestrator.last_cycle is None


def test_results_are_applied_as_each_collector_finishes() -> None:
    async def scenario():
        release = asyncio.Event()
        fast = StubCollector("crypto", [ok("BTC")])
        slow = BlockingCollector("stocks", release, [ok("SPY")])
        state = PriceState()
        orchestrator = UpdateOrchestrator({"crypto": fast, "stocks": slow}, state)

        cycle = asyncio.create_task(orchestrator.run_cycle())
        await slow.started.wait()
        await asyncio.sleep(0)
        midway = set(state.prices())
        release.set()
        await cycle
        return midway, set(state.prices())

    midway, final = asyncio.run(scenario())

    assert midway == {"BTC"}
    assert final == {"BTC", "SPY"}


def test_load_seeds_state_from_repository() -> None:
    repository = MemoryRepository(
        {"XAU": [HistoryPoint(price=2_000.0, timestamp=1), HistoryPoint(price=2_010.0, timestamp=2)]}
    )
    state = PriceState()
    orchestrator = UpdateOrchestrator({}, state, repository=repository)

    asyncio.run(orchestrator.load())

    assert state.prices() == {"XAU": 2_010.0}
    assert state.current["XAU"].source == "stored"


def test_save_writes_history_snapshot() -> None:
    repository = MemoryRepository()
    collectors = {"crypto": StubCollector("crypto", [ok("BTC", 1.0)])}
    orchestrator = UpdateOrchestrator(collectors, PriceState(), repository=repository, clock=lambda: 5)

    async def scenario():
        await orchestrator.run_cycle()
        return await orchestrator.save()

    assert asyncio.run(scenario()) is True
    assert repository.saves == 1
    assert repository.mapping["BTC"][0].timestamp == 5


def test_persistence_failures_are_logged_not_raised(caplog) -> None:
    state = PriceState()
    orchestrator = UpdateOrchestrator({}, state, repository=BrokenRepository())

    asyncio.run(orchestrator.load())
    saved = asyncio.run(orchestrator.save())

    assert len(state) == 0
    assert saved is False
    assert "Failed to load stored data" in caplog.text
    assert "Failed to save data" in caplog.text


def test_save_without_repository_is_a_no_op() -> None:
    orchestrator = UpdateOrchestrator({}, PriceState())

    assert asyncio.run(orchestrator.save()) is False
