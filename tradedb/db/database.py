import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, inspect, text

logger = logging.getLogger(__name__)


class Database:
    """Owns one engine for the lifetime of a script invocation."""

    def __init__(self, settings):
        self.settings = settings
        self.engine = None

    def open(self):
        self.engine = create_engine(self.settings.database_url, **self.settings.engine_options())
        logger.info("Database engine ready (%s, ssl=%s)", self.engine.dialect.name, self.settings.ssl)
        return self

    def close(self):
        if self.engine:
            self.engine.dispose()
            self.engine = None
            logger.info("Database engine disposed")

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @contextmanager
    def begin(self):
        if self.engine is None:
            raise RuntimeError("Database is not open")
        with self.engine.begin() as conn:
            yield conn

    def ping(self):
        with self.begin() as conn:
            return conn.execute(text("SELECT CURRENT_TIMESTAMP")).scalar()

    def list_tables(self):
        with self.begin() as conn:
            inspector = inspect(conn)
            schema = "public" if conn.dialect.name == "postgresql" else None
            return sorted(inspector.get_table_names(schema=schema))
