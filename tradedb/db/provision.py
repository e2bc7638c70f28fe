import logging

from sqlalchemy import inspect, text

from .models import StockPrice

logger = logging.getLogger(__name__)

REQUIRED_INDEXES = ("idx_stock_prices_symbol", "idx_stock_prices_last_updated")

# Refreshes last_updated on UPDATE unless the statement already set a new value.
POSTGRES_TRIGGER_DDL = (
    """
    CREATE OR REPLACE FUNCTION touch_stock_prices_last_updated()
    RETURNS TRIGGER AS $$
    BEGIN
        IF NEW.last_updated IS NOT DISTINCT FROM OLD.last_updated THEN
            NEW.last_updated = CURRENT_TIMESTAMP;
        END IF;
        RETURN NEW;
    END;
    $$ LANGUAGE plpgsql
    """,
    "DROP TRIGGER IF EXISTS trg_stock_prices_last_updated ON stock_prices",
    """
    CREATE TRIGGER trg_stock_prices_last_updated
    BEFORE UPDATE ON stock_prices
    FOR EACH ROW EXECUTE FUNCTION touch_stock_prices_last_updated()
    """,
)


class SchemaVerificationError(RuntimeError):
    pass


def provision_schema(conn):
    table = StockPrice.__table__
    table.create(conn, checkfirst=True)
    logger.info("Table %s ensured", table.name)

    # Indexes are only emitted alongside CREATE TABLE, so a pre-existing table may lack them.
    for index in sorted(table.indexes, key=lambda ix: ix.name):
        index.create(conn, checkfirst=True)
        logger.info("Index %s ensured", index.name)

    if conn.dialect.name == "postgresql":
        for statement in POSTGRES_TRIGGER_DDL:
            conn.execute(text(statement))
        logger.info("Trigger trg_stock_prices_last_updated ensured")


def find_table(conn, table_name):
    """Return ``[table_name]`` if the table exists in the default schema, else ``[]``."""
    if conn.dialect.name == "postgresql":
        rows = conn.execute(
            text(
                "SELECT table_name FROM information_schema.tables "
                "WHERE table_schema = 'public' AND table_name = :name"
            ),
            {"name": table_name},
        )
        return [row.table_name for row in rows]
    return [name for name in inspect(conn).get_table_names() if name == table_name]


def verify_schema(conn):
    table_name = StockPrice.__tablename__
    if not find_table(conn, table_name):
        raise SchemaVerificationError(f"Table {table_name} does not exist")

    inspector = inspect(conn)
    unique_columns = [uc["column_names"] for uc in inspector.get_unique_constraints(table_name)]
    if ["symbol"] not in unique_columns:
        raise SchemaVerificationError(f"Unique constraint on {table_name}.symbol is missing")

    index_names = {ix["name"] for ix in inspector.get_indexes(table_name)}
    missing = [name for name in REQUIRED_INDEXES if name not in index_names]
    if missing:
        raise SchemaVerificationError(f"Missing indexes on {table_name}: {', '.join(missing)}")

    logger.info("Schema verified: %s with %d indexes", table_name, len(REQUIRED_INDEXES))
