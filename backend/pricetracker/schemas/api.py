from __future__ import annotations

from pydantic import BaseModel, Field

from pricetracker.schemas.prices import CycleSummary, HistoryPointView


class PricesResponse(BaseModel):
    prices: dict[str, float] = Field(default_factory=dict)
    last_update: int | None = None
    total_items: int = 0


class HistoryResponse(BaseModel):
    symbol: str
    period: str
    asset_class: str | None = None
    data: list[HistoryPointView] = Field(default_factory=list)
    data_points: int = 0


class CollectorStatus(BaseModel):
    name: str
    asset_class: str
    state: str
    last_update: int | None = None
    symbols: int = 0
    sources: int = 0


class StatusResponse(BaseModel):
    status: str = "running"
    is_updating: bool = False
    last_update: int | None = None
    tracked_items: int = 0
    collectors: list[CollectorStatus] = Field(default_factory=list)
    last_cycle: CycleSummary | None = None


class UpdateResponse(BaseModel):
    success: bool
    message: str
    accepted_count: int = 0
    rejected_count: int = 0
