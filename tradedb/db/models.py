import uuid

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Index,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class StockPrice(Base):
    __tablename__ = "stock_prices"
    __table_args__ = (
        UniqueConstraint("symbol", name="uq_stock_prices_symbol"),
        Index("idx_stock_prices_symbol", "symbol"),
        Index("idx_stock_prices_last_updated", "last_updated"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    symbol = Column(String(10), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    change_amount = Column(Numeric(10, 2), nullable=True)
    change_percent = Column(Numeric(5, 2), nullable=True)
    volume = Column(BigInteger, nullable=True)
    market_cap = Column(BigInteger, nullable=True)
    last_updated = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
