"""Console entry points. Each runs to completion and returns 0 on success, 1 on failure."""
import logging
import os
import sys

from alembic.util import CommandError
from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError

from .config import load_settings
from .db import (
    SAMPLE_PRICES,
    Database,
    SchemaVerificationError,
    apply_sql_file,
    find_table,
    provision_schema,
    upgrade_head,
    upsert_snapshots,
    verify_schema,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _configure_logging():
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)


def _run(task_name, work):
    _configure_logging()
    try:
        settings = load_settings()
        logging.getLogger().setLevel(settings.log_level)
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        return 1

    database = Database(settings)
    try:
        database.open()
        try:
            database.ping()
        except SQLAlchemyError as e:
            logger.error("Database connection failed: %s", e, exc_info=True)
            return 1
        logger.info("Database connection successful")

        work(database, settings)
    except SchemaVerificationError as e:
        logger.error("%s verification failed: %s", task_name, e)
        return 1
    except SQLAlchemyError as e:
        logger.error("%s failed: %s", task_name, e, exc_info=True)
        return 1
    except CommandError as e:
        logger.error("%s failed: %s", task_name, e)
        return 1
    except (OSError, ValueError) as e:
        logger.error("%s failed: %s", task_name, e)
        return 1
    finally:
        database.close()

    logger.info("%s completed", task_name)
    return 0


def _provision(database, settings):
    with database.begin() as conn:
        provision_schema(conn)
    with database.begin() as conn:
        verify_schema(conn)


def _seed(database, settings):
    with database.begin() as conn:
        upsert_snapshots(conn, SAMPLE_PRICES)


def provision_main():
    return _run("Schema provisioning", _provision)


def seed_main():
    return _run("Seeding", _seed)


def setup_main():
    def work(database, settings):
        logger.info("Provisioning schema")
        _provision(database, settings)
        logger.info("Seeding sample stock prices")
        _seed(database, settings)

    return _run("Database setup", work)


def migrate_main():
    def work(database, settings):
        upgrade_head(settings)
        with database.begin() as conn:
            verify_schema(conn)

    return _run("Migration", work)


def apply_sql_main(argv=None):
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        _configure_logging()
        logger.error("Usage: tradedb-apply-sql PATH")
        return 1
    path = args[0]

    def work(database, settings):
        with database.begin() as conn:
            apply_sql_file(conn, path)
        expected = os.getenv("EXPECT_TABLE")
        if expected:
            with database.begin() as conn:
                if not find_table(conn, expected):
                    raise SchemaVerificationError(f"Table {expected} was not created")
            logger.info("Table %s present", expected)

    return _run("Migration", work)


def check_main():
    def work(database, settings):
        tables = database.list_tables()
        logger.info("Existing tables: %s", ", ".join(tables) if tables else "(none)")

    return _run("Connection check", work)
