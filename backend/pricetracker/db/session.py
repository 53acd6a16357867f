# backend/pricetracker/db/session.py

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from pricetracker.db.models import Base


def create_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, echo=False)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)


async def create_schema(engine: AsyncEngine) -> None:
    """Create missing tables; existing ones are left untouched."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
