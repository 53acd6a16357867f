from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SourceObservation(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    price: float = Field(gt=0)
    reliability: float = Field(gt=0, le=1)


class ConsolidatedResult(BaseModel):
    symbol: str
    price: float
    primary_source: str
    verified: bool
    coefficient_of_variation: float
    observation_count: int


class CollectionResult(BaseModel):
    symbol: str
    success: bool
    price: float | None = None
    source: str | None = None
    verified: bool = False
    observation_count: int | None = None
    coefficient_of_variation: float | None = None
    error_reason: str | None = None

    @classmethod
    def failure(cls, symbol: str, reason: str) -> CollectionResult:
        return cls(symbol=symbol, success=False, error_reason=reason)

    @classmethod
    def from_consolidated(cls, result: ConsolidatedResult) -> CollectionResult:
        return cls(
            symbol=result.symbol,
            success=True,
            price=result.price,
            source=result.primary_source,
            verified=result.verified,
            observation_count=result.observation_count,
            coefficient_of_variation=result.coefficient_of_variation,
        )


class HistoryPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    price: float
    timestamp: int
    source: str = "stored"
    verified: bool = False


class HistoryPointView(BaseModel):
    price: float
    timestamp: int
    verified: bool


class CurrentPrice(BaseModel):
    price: float
    timestamp: int
    source: str
    verified: bool = False


class CycleSummary(BaseModel):
    accepted_count: int = 0
    rejected_count: int = 0
    started_at: int
    duration_ms: int = 0
    failed_collectors: list[str] = Field(default_factory=list)
