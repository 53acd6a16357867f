from fastapi import APIRouter, Depends, HTTPException, Request, status

from pricetracker.clock import now_ms
from pricetracker.collectors.registry import asset_class_for
from pricetracker.orchestration.orchestrator import ConcurrentUpdateRejected, UpdateOrchestrator
from pricetracker.schemas.api import (
    HistoryResponse,
    PricesResponse,
    StatusResponse,
    UpdateResponse,
)
from pricetracker.store.history import HistoryWindow

router = APIRouter()


def get_orchestrator(request: Request) -> UpdateOrchestrator:
    return request.app.state.orchestrator


def _normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/api/prices", response_model=PricesResponse)
async def get_prices(
    orchestrator: UpdateOrchestrator = Depends(get_orchestrator),
) -> PricesResponse:
    state = orchestrator.state
    return PricesResponse(
        prices=state.prices(),
        last_update=state.last_update(),
        total_items=len(state),
    )


@router.get("/api/historical/{symbol}", response_model=HistoryResponse)
async def get_historical(
    symbol: str,
    period: str = "1W",
    orchestrator: UpdateOrchestrator = Depends(get_orchestrator),
) -> HistoryResponse:
    normalized = _normalize_symbol(symbol)
    window = HistoryWindow.parse(period)
    data = orchestrator.state.history.query(normalized, window, now_ms())
    return HistoryResponse(
        symbol=normalized,
        period=window.value,
        asset_class=asset_class_for(normalized, orchestrator.collectors),
        data=data,
        data_points=len(data),
    )


@router.get("/api/status", response_model=StatusResponse)
async def get_status(
    orchestrator: UpdateOrchestrator = Depends(get_orchestrator),
) -> StatusResponse:
    return StatusResponse(
        status="running",
        is_updating=orchestrator.is_updating,
        last_update=orchestrator.state.last_update(),
        tracked_items=len(orchestrator.state),
        collectors=orchestrator.collector_statuses(),
        last_cycle=orchestrator.last_cycle,
    )


@router.post("/api/update", response_model=UpdateResponse)
async def trigger_update(
    orchestrator: UpdateOrchestrator = Depends(get_orchestrator),
) -> UpdateResponse:
    try:
        summary = await orchestrator.run_cycle()
    except ConcurrentUpdateRejected:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": "Update already in progress"},
        ) from None
    return UpdateResponse(
        success=True,
        message="Update completed",
        accepted_count=summary.accepted_count,
        rejected_count=summary.rejected_count,
    )
