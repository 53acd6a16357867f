from __future__ import annotations

import datetime
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from pricetracker.api.routes import router
from pricetracker.collectors.registry import build_collectors
from pricetracker.config.log import configure_logging
from pricetracker.config.settings import Settings, settings as default_settings
from pricetracker.orchestration.orchestrator import UpdateOrchestrator
from pricetracker.orchestration.scheduler import ActiveHoursPolicy, PriceTrackerService
from pricetracker.store.repository import build_repository
from pricetracker.store.state import PriceState

logger = logging.getLogger(__name__)


def build_service(settings: Settings) -> PriceTrackerService:
    orchestrator = UpdateOrchestrator(
        collectors=build_collectors(settings),
        state=PriceState(retention=settings.history_retention),
        repository=build_repository(settings),
    )
    return PriceTrackerService(
        orchestrator,
        policy=ActiveHoursPolicy.from_settings(settings.schedule),
        flush_interval=datetime.timedelta(minutes=settings.schedule.flush_interval_minutes),
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    service = build_service(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await service.start()
        try:
            yield
        finally:
            await service.stop()

    app = FastAPI(title="Price Tracker", lifespan=lifespan)
    app.state.service = service
    app.state.orchestrator = service.orchestrator
    app.include_router(router)
    return app


def run() -> None:
    configure_logging(default_settings.log_level)
    app = create_app(default_settings)
    logger.info("Price tracker running on port %d", default_settings.port)
    uvicorn.run(
        app,
        host=default_settings.host,
        port=default_settings.port,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
