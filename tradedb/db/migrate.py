import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

logger = logging.getLogger(__name__)

ALEMBIC_DIR = Path(__file__).resolve().parent.parent / "migrations"


def apply_sql(conn, sql):
    """Run a raw SQL script in the caller's transaction.

    Multi-statement scripts need a driver that accepts them in one call
    (psycopg2 does, sqlite3 does not).
    """
    sql = sql.strip()
    if not sql:
        raise ValueError("Migration script is empty")
    conn.exec_driver_sql(sql)


def apply_sql_file(conn, path):
    path = Path(path)
    logger.info("Applying migration %s", path.name)
    apply_sql(conn, path.read_text(encoding="utf-8"))
    logger.info("Migration %s executed", path.name)


def alembic_config(settings):
    # No ini file: logging is already configured by the caller.
    config = Config()
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    # ConfigParser interpolation treats % as special.
    config.set_main_option("sqlalchemy.url", settings.database_url.replace("%", "%%"))
    config.attributes["engine_options"] = settings.engine_options()
    return config


def upgrade_head(settings):
    logger.info("Running alembic upgrade head")
    command.upgrade(alembic_config(settings), "head")
