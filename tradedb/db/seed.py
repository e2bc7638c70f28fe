import logging
import uuid
from collections import namedtuple
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from .models import StockPrice

logger = logging.getLogger(__name__)

PriceSnapshot = namedtuple(
    "PriceSnapshot",
    "symbol price change_amount change_percent volume market_cap",
)

SAMPLE_PRICES = (
    PriceSnapshot("AAPL", Decimal("175.50"), Decimal("2.30"), Decimal("1.33"), 45000000, 2800000000000),
    PriceSnapshot("MSFT", Decimal("380.25"), Decimal("-1.75"), Decimal("-0.46"), 28000000, 2850000000000),
    PriceSnapshot("GOOGL", Decimal("140.80"), Decimal("3.20"), Decimal("2.32"), 32000000, 1750000000000),
    PriceSnapshot("AMZN", Decimal("145.60"), Decimal("0.85"), Decimal("0.59"), 38000000, 1500000000000),
    PriceSnapshot("TSLA", Decimal("245.30"), Decimal("-5.20"), Decimal("-2.08"), 85000000, 780000000000),
    PriceSnapshot("NVDA", Decimal("485.75"), Decimal("12.40"), Decimal("2.62"), 42000000, 1200000000000),
    PriceSnapshot("META", Decimal("325.90"), Decimal("4.15"), Decimal("1.29"), 25000000, 825000000000),
    PriceSnapshot("NFLX", Decimal("445.20"), Decimal("-2.80"), Decimal("-0.62"), 15000000, 195000000000),
    PriceSnapshot("AMD", Decimal("125.40"), Decimal("1.90"), Decimal("1.54"), 55000000, 202000000000),
    PriceSnapshot("CRM", Decimal("220.75"), Decimal("3.45"), Decimal("1.59"), 18000000, 215000000000),
)

_INSERTERS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

_SYMBOL_MAX_LENGTH = StockPrice.__table__.c.symbol.type.length


def _decimal(value, field, symbol):
    if value is None:
        return None
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Invalid {field} {value!r} for {symbol}") from None
    if not result.is_finite():
        raise ValueError(f"Invalid {field} {value!r} for {symbol}")
    return result


def _integer(value, field, symbol):
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {field} {value!r} for {symbol}") from None


def _normalize_snapshot(snapshot):
    try:
        snapshot = PriceSnapshot(*snapshot)
    except TypeError:
        raise ValueError(f"Expected {len(PriceSnapshot._fields)} fields, got {snapshot!r}") from None
    if snapshot.symbol is not None and not isinstance(snapshot.symbol, str):
        raise ValueError(f"Symbol must be a string, got {snapshot.symbol!r}")
    symbol = (snapshot.symbol or "").strip().upper()
    if not symbol:
        raise ValueError(f"Missing symbol in {snapshot}")
    if len(symbol) > _SYMBOL_MAX_LENGTH:
        raise ValueError(f"Symbol {symbol!r} exceeds {_SYMBOL_MAX_LENGTH} characters")
    if snapshot.price is None:
        raise ValueError(f"Missing price for {symbol}")
    return PriceSnapshot(
        symbol=symbol,
        price=_decimal(snapshot.price, "price", symbol),
        change_amount=_decimal(snapshot.change_amount, "change_amount", symbol),
        change_percent=_decimal(snapshot.change_percent, "change_percent", symbol),
        volume=_integer(snapshot.volume, "volume", symbol),
        market_cap=_integer(snapshot.market_cap, "market_cap", symbol),
    )


def build_upsert(dialect_name, snapshots, now=None):
    """Build the ``INSERT ... ON CONFLICT (symbol) DO UPDATE`` statement for a batch.

    Returns ``(statement, row_count)``; the statement is None for an empty batch.
    Later entries win when the same symbol appears more than once, since
    ON CONFLICT cannot touch one row twice within a statement.
    """
    by_symbol = {}
    for snapshot in snapshots:
        normalized = _normalize_snapshot(snapshot)
        by_symbol[normalized.symbol] = normalized
    if not by_symbol:
        return None, 0

    inserter = _INSERTERS.get(dialect_name)
    if inserter is None:
        raise ValueError(f"Upsert is not supported for dialect {dialect_name!r}")

    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    rows = [
        {
            "id": uuid.uuid4(),
            **snapshot._asdict(),
            "last_updated": now,
            "created_at": now,
        }
        for snapshot in by_symbol.values()
    ]
    stmt = inserter(StockPrice).values(rows)
    update_values = {
        "price": stmt.excluded.price,
        "change_amount": stmt.excluded.change_amount,
        "change_percent": stmt.excluded.change_percent,
        "volume": stmt.excluded.volume,
        "market_cap": stmt.excluded.market_cap,
        "last_updated": stmt.excluded.last_updated,
    }
    return stmt.on_conflict_do_update(index_elements=["symbol"], set_=update_values), len(rows)


def upsert_snapshots(conn, snapshots, now=None):
    """Insert or update price snapshots keyed by symbol in a single statement."""
    stmt, count = build_upsert(conn.dialect.name, snapshots, now=now)
    if stmt is None:
        return 0
    conn.execute(stmt)
    logger.info("Upserted %d stock price snapshots", count)
    return count


def get_snapshot(conn, symbol):
    table = StockPrice.__table__
    row = conn.execute(
        select(table).where(table.c.symbol == symbol.strip().upper())
    ).first()
    if row is None:
        return None
    return {
        "symbol": row.symbol,
        "price": row.price,
        "change_amount": row.change_amount,
        "change_percent": row.change_percent,
        "volume": row.volume,
        "market_cap": row.market_cap,
        "last_updated": row.last_updated,
        "created_at": row.created_at,
    }


def count_snapshots(conn):
    return conn.execute(select(func.count()).select_from(StockPrice.__table__)).scalar_one()
