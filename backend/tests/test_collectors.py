import asyncio

import pytest

from pricetracker.collectors import base as collector_base
from pricetracker.collectors.base import (
    NO_VALID_SOURCES,
    AssetCollector,
    CollectorState,
    SourceBinding,
    TrackedSymbol,
)
from pricetracker.collectors.registry import COLLECTOR_TYPES, asset_class_for, build_collectors
from pricetracker.config.settings import Settings
from pricetracker.providers.base import AdapterError, SourceAdapter


class FakeAdapter(SourceAdapter):
    def __init__(
        self,
        name: str,
        reliability: float,
        prices: dict[str, object] | None = None,
        error: Exception | None = None,
    ) -> None:
        super().__init__()
        self.name = name
        self.reliability = reliability
        self.prices = prices or {}
        self.error = error
        self.calls: list[str] = []

    def lookup(self, term: str) -> object:
        self.calls.append(term)
        if self.error is not None:
            raise self.error
        return self.prices.get(term)


class RawAdapter(FakeAdapter):
    """Skips the plausibility filter so the collector sees raw values."""

    def fetch(self, term):
        return self.lookup(term)


class FakeCollector(AssetCollector):
    name = "Fake Collector"
    asset_class = "crypto"

    def __init__(self, catalog, clock=lambda: 1_700_000_000_000):
        self._fake_catalog = catalog
        super().__init__(Settings(), clock=clock)

    def build_catalog(self, providers):
        return self._fake_catalog


def tracked(symbol, *adapters):
    return TrackedSymbol(
        symbol=symbol,
        name=symbol,
        sources=tuple(SourceBinding(adapter=adapter, term=symbol) for adapter in adapters),
    )


def test_failing_adapter_does_not_affect_other_sources() -> None:
    broken = FakeAdapter("Broken", 0.99, error=AdapterError("timed out"))
    first = FakeAdapter("First", 0.9, prices={"BTC": 100.0})
    second = FakeAdapter("Second", 0.8, prices={"BTC": 101.0})
    collector = FakeCollector([tracked("BTC", broken, first, second)])

    results = asyncio.run(collector.collect())

    assert len(results) == 1
    result = results[0]
    assert result.success is True
    assert result.source == "First"
    assert result.observation_count == 2
    assert result.verified is True
    assert broken.calls == ["BTC"]
    assert collector.state is CollectorState.COMPLETED


def test_symbol_without_valid_sources_yields_failure_result() -> None:
    empty = FakeAdapter("Empty", 0.9)
    broken = FakeAdapter("Broken", 0.8, error=RuntimeError("bad payload"))
    collector = FakeCollector([tracked("DOGE", empty, broken)])

    results = asyncio.run(collector.collect())

    assert len(results) == 1
    assert results[0].success is False
    assert results[0].symbol == "DOGE"
    assert results[0].error_reason == NO_VALID_SOURCES
    assert results[0].price is None
    assert collector.state is CollectorState.COMPLETED


@pytest.mark.parametrize("raw", [0, -3.5, "n/a", float("nan"), True])
def test_unusable_raw_values_are_dropped(raw) -> None:
    odd = RawAdapter("Odd", 0.99, prices={"ETH": raw})
    good = FakeAdapter("Good", 0.5, prices={"ETH": 3000.0})
    collector = FakeCollector([tracked("ETH", odd, good)])

    results = asyncio.run(collector.collect())

    assert results[0].success is True
    assert results[0].source == "Good"
    assert results[0].observation_count == 1


def test_string_prices_are_coerced() -> None:
    adapter = RawAdapter("Text", 0.9, prices={"SPY": "1,234.50"})
    collector = FakeCollector([tracked("SPY", adapter)])

    results = asyncio.run(collector.collect())

    assert results[0].price == 1234.5


def test_results_follow_catalog_order() -> None:
    adapter = FakeAdapter("Only", 0.9, prices={"A": 1.0, "C": 3.0})
    collector = FakeCollector([tracked("C", adapter), tracked("B", adapter), tracked("A", adapter)])

    results = asyncio.run(collector.collect())

    assert [result.symbol for result in results] == ["C", "B", "A"]
    assert [result.success for result in results] == [True, False, True]


def test_state_moves_from_initialized_to_completed() -> None:
    adapter = FakeAdapter("Only", 0.9, prices={"BTC": 1.0})
    collector = FakeCollector([tracked("BTC", adapter)], clock=lambda: 42)

    assert collector.state is CollectorState.INITIALIZED
    assert collector.last_update is None

    asyncio.run(collector.collect())

    assert collector.state is CollectorState.COMPLETED
    assert collector.last_update == 42
    status = collector.status()
    assert status.state == "completed"
    assert status.last_update == 42
    assert status.symbols == 1
    assert status.sources == 1


def test_unexpected_fault_marks_collector_error(monkeypatch) -> None:
    real_consolidate = collector_base.consolidate

    def flaky_consolidate(symbol, observations, threshold):
        if symbol == "SOL":
            raise RuntimeError("boom")
        return real_consolidate(symbol, observations, threshold)

    monkeypatch.setattr(collector_base, "consolidate", flaky_consolidate)
    adapter = FakeAdapter("Only", 0.9, prices={"BTC": 1.0, "SOL": 2.0})
    collector = FakeCollector([tracked("BTC", adapter), tracked("SOL", adapter)])

    results = asyncio.run(collector.collect())

    assert collector.state is CollectorState.ERROR
    assert collector.last_update is None
    assert results[0].success is True
    assert results[1].success is False
    assert "boom" in results[1].error_reason


def test_disabled_adapter_is_not_queried() -> None:
    keyed = FakeAdapter("Keyed", 0.99, prices={"BTC": 1.0})
    keyed.requires_key = True
    fallback = FakeAdapter("Open", 0.5, prices={"BTC": 2.0})
    collector = FakeCollector([tracked("BTC", keyed, fallback)])

    results = asyncio.run(collector.collect())

    assert keyed.calls == []
    assert results[0].source == "Open"


def test_registry_builds_one_collector_per_asset_class() -> None:
    collectors = build_collectors(Settings())

    assert list(collectors) == list(COLLECTOR_TYPES)
    assert {collector.asset_class for collector in collectors.values()} == {
        "crypto",
        "stocks",
        "metals",
        "consumer",
        "real_estate",
        "luxury",
    }
    for collector in collectors.values():
        assert collector.state is CollectorState.INITIALIZED
        assert collector.symbols


def test_every_symbol_has_one_owner() -> None:
    collectors = build_collectors(Settings())
    symbols = [symbol for collector in collectors.values() for symbol in collector.symbols]

    assert len(symbols) == len(set(symbols))
    assert asset_class_for("BTC", collectors) == "crypto"
    assert asset_class_for("XAU", collectors) == "metals"
    assert asset_class_for("EGGS", collectors) == "consumer"
    assert asset_class_for("UNKNOWN", collectors) is None


def test_collectors_use_their_asset_class_threshold() -> None:
    collectors = build_collectors(Settings())

    assert collectors["stocks"].threshold == 0.005
    assert collectors["crypto"].threshold == 0.02
    assert collectors["luxury"].threshold == 0.25


class AbortCollection(BaseException):
    pass


def test_non_exception_fault_propagates_and_marks_error(monkeypatch) -> None:
    def aborting_consolidate(symbol, observations, threshold):
        raise AbortCollection()

    monkeypatch.setattr(collector_base, "consolidate", aborting_consolidate)
    adapter = FakeAdapter("Only", 0.9, prices={"BTC": 1.0})
    collector = FakeCollector([tracked("BTC", adapter)])

    with pytest.raises(AbortCollection):
        asyncio.run(collector.collect())

    assert collector.state is CollectorState.ERROR
    assert collector.last_update is None
