# backend/pricetracker/db/models.py

from sqlalchemy import BigInteger, Boolean, Column, Float, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class PriceHistoryRow(Base):
    __tablename__ = "price_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    symbol = Column(String, nullable=False, index=True)
    price = Column(Float, nullable=False)
    # Unix epoch milliseconds
    timestamp = Column(BigInteger, nullable=False)
    source = Column(String, nullable=False, default="stored")
    verified = Column(Boolean, nullable=False, default=False)

    def __repr__(self):
        return f"<PriceHistoryRow(symbol='{self.symbol}', timestamp={self.timestamp})>"
