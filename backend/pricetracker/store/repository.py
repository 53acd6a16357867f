from __future__ import annotations

import asyncio
import json
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from pricetracker.config.settings import Settings
from pricetracker.db.models import PriceHistoryRow
from pricetracker.db.session import create_engine, create_schema, create_sessionmaker
from pricetracker.schemas.prices import HistoryPoint

HistoryMapping = dict[str, list[HistoryPoint]]

_HISTORY_ADAPTER = TypeAdapter(HistoryMapping)


class PersistenceError(Exception):
    pass


class HistoryRepository(Protocol):
    async def load(self) -> HistoryMapping: ...

    async def save(self, snapshot: Mapping[str, Sequence[HistoryPoint]]) -> None: ...


class JsonHistoryRepository:
    """The whole history mapping as one JSON document, rewritten on every save."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def load(self) -> HistoryMapping:
        return await asyncio.to_thread(self._read)

    async def save(self, snapshot: Mapping[str, Sequence[HistoryPoint]]) -> None:
        await asyncio.to_thread(self._write, snapshot)

    def _read(self) -> HistoryMapping:
        if not self.path.exists():
            return {}
        try:
            # Undecodable bytes surface as UnicodeDecodeError, a ValueError like JSONDecodeError.
            raw = json.loads(self.path.read_bytes().decode("utf-8"))
            return _HISTORY_ADAPTER.validate_python(raw)
        except (OSError, ValueError, ValidationError) as exc:
            raise PersistenceError(f"Failed to read {self.path}: {exc}") from exc

    def _write(self, snapshot: Mapping[str, Sequence[HistoryPoint]]) -> None:
        payload = _HISTORY_ADAPTER.dump_json(
            {symbol: list(points) for symbol, points in snapshot.items()}, indent=2
        )
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(payload)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise PersistenceError(f"Failed to write {self.path}: {exc}") from exc


class SqlHistoryRepository:
    """History rows in the ``price_history`` table, replaced in one transaction on save."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self._sessionmaker = create_sessionmaker(engine)
        self._schema_ready = False

    async def _ensure_schema(self) -> None:
        if not self._schema_ready:
            await create_schema(self.engine)
            self._schema_ready = True

    async def load(self) -> HistoryMapping:
        try:
            await self._ensure_schema()
            async with self._sessionmaker() as session:
                result = await session.execute(
                    select(PriceHistoryRow).order_by(
                        PriceHistoryRow.symbol, PriceHistoryRow.timestamp, PriceHistoryRow.id
                    )
                )
                rows = result.scalars().all()
        except (SQLAlchemyError, OSError) as exc:
            raise PersistenceError(f"Failed to load price history: {exc}") from exc

        mapping: HistoryMapping = {}
        for row in rows:
            mapping.setdefault(row.symbol, []).append(
                HistoryPoint(
                    price=row.price,
                    timestamp=row.timestamp,
                    source=row.source,
                    verified=row.verified,
                )
            )
        return mapping

    async def save(self, snapshot: Mapping[str, Sequence[HistoryPoint]]) -> None:
        rows = [
            {
                "symbol": symbol,
                "price": point.price,
                "timestamp": point.timestamp,
                "source": point.source,
                "verified": point.verified,
            }
            for symbol, points in snapshot.items()
            for point in points
        ]
        try:
            await self._ensure_schema()
            async with self._sessionmaker() as session:
                async with session.begin():
                    await session.execute(delete(PriceHistoryRow))
                    if rows:
                        await session.execute(insert(PriceHistoryRow), rows)
        except (SQLAlchemyError, OSError) as exc:
            raise PersistenceError(f"Failed to save price history: {exc}") from exc


def build_repository(settings: Settings) -> HistoryRepository:
    if settings.storage_backend == "database":
        return SqlHistoryRepository(create_engine(settings.database_url))
    return JsonHistoryRepository(settings.history_path)
