import asyncio

import pytest
from fastapi import HTTPException

from pricetracker.api.routes import get_historical, get_prices, get_status, health, trigger_update
from pricetracker.clock import now_ms
from pricetracker.config.settings import Settings
from pricetracker.main import create_app
from pricetracker.orchestration.orchestrator import UpdateOrchestrator
from pricetracker.schemas.api import CollectorStatus
from pricetracker.schemas.prices import CollectionResult, HistoryPoint
from pricetracker.store.state import PriceState

MINUTE_MS = 60 * 1000


class StubCollector:
    name = "Cryptocurrency Collector"
    asset_class = "crypto"

    def __init__(self, results, release=None):
        self.results = results
        self.release = release
        self.started = asyncio.Event()

    async def collect(self):
        self.started.set()
        if self.release is not None:
            await self.release.wait()
        return list(self.results)

    def status(self):
        return CollectorStatus(name=self.name, asset_class=self.asset_class, state="completed")

    def owns(self, symbol):
        return any(result.symbol == symbol for result in self.results)


def build_orchestrator(release=None):
    results = [
        CollectionResult(symbol="BTC", success=True, price=64_000.0, source="Binance", verified=True),
        CollectionResult.failure("DOGE", "no valid sources"),
    ]
    return UpdateOrchestrator({"crypto": StubCollector(results, release)}, PriceState())


def test_health() -> None:
    assert health() == {"status": "ok"}


def test_prices_empty_before_first_cycle() -> None:
    response = asyncio.run(get_prices(orchestrator=build_orchestrator()))

    assert response.prices == {}
    assert response.last_update is None
    assert response.total_items == 0


def test_update_then_prices() -> None:
    orchestrator = build_orchestrator()

    update = asyncio.run(trigger_update(orchestrator=orchestrator))
    prices = asyncio.run(get_prices(orchestrator=orchestrator))

    assert update.success is True
    assert update.accepted_count == 1
    assert update.rejected_count == 1
    assert prices.prices == {"BTC": 64_000.0}
    assert prices.total_items == 1
    assert prices.last_update is not None


def test_update_conflict_while_cycle_runs() -> None:
    async def scenario():
        release = asyncio.Event()
        orchestrator = build_orchestrator(release)
        collector = orchestrator.collectors["crypto"]
        running = asyncio.create_task(orchestrator.run_cycle())
        await collector.started.wait()
        with pytest.raises(HTTPException) as excinfo:
            await trigger_update(orchestrator=orchestrator)
        release.set()
        await running
        return excinfo.value

    error = asyncio.run(scenario())

    assert error.status_code == 409
    assert error.detail == {"message": "Update already in progress"}


def test_historical_window_and_normalization() -> None:
    orchestrator = build_orchestrator()
    now = now_ms()
    orchestrator.state.hydrate(
        {
            "BTC": [
                HistoryPoint(price=60_000.0, timestamp=now - 120 * MINUTE_MS),
                HistoryPoint(price=64_000.0, timestamp=now - 10 * MINUTE_MS, verified=True),
            ]
        }
    )

    hourly = asyncio.run(get_historical(" btc ", period="1H", orchestrator=orchestrator))
    fallback = asyncio.run(get_historical("BTC", period="5Y", orchestrator=orchestrator))

    assert hourly.symbol == "BTC"
    assert hourly.period == "1H"
    assert hourly.asset_class == "crypto"
    assert hourly.data_points == 1
    assert hourly.data[0].price == 64_000.0
    assert hourly.data[0].verified is True
    assert fallback.period == "1W"
    assert fallback.data_points == 2


def test_historical_unknown_symbol() -> None:
    response = asyncio.run(get_historical("NOPE", orchestrator=build_orchestrator()))

    assert response.data == []
    assert response.data_points == 0
    assert response.asset_class is None


def test_status_reports_collectors_and_last_cycle() -> None:
    orchestrator = build_orchestrator()
    asyncio.run(orchestrator.run_cycle())

    status = asyncio.run(get_status(orchestrator=orchestrator))

    assert status.status == "running"
    assert status.is_updating is False
    assert status.tracked_items == 1
    assert [collector.asset_class for collector in status.collectors] == ["crypto"]
    assert status.last_cycle.accepted_count == 1


def test_create_app_wires_routes_and_collectors(tmp_path) -> None:
    app = create_app(Settings(history_path=str(tmp_path / "history.json")))

    paths = {route.path for route in app.routes}
    assert {"/health", "/api/prices", "/api/historical/{symbol}", "/api/status", "/api/update"} <= paths
    assert len(app.state.orchestrator.collectors) == 6
    assert app.state.service.running is False
