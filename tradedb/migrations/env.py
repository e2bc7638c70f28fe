from logging.config import fileConfig
import os

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import create_engine, pool

from tradedb.config import Settings, normalize_database_url, requires_ssl
from tradedb.db.models import Base

load_dotenv()

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def _database_url():
    return normalize_database_url(
        config.get_main_option("sqlalchemy.url") or os.getenv("DATABASE_URL", "")
    )


def run_migrations_offline():
    url = _database_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    options = config.attributes.get("engine_options")
    if options is None:
        url = _database_url()
        ssl = requires_ssl(url, app_env=os.getenv("APP_ENV"))
        options = Settings(url, False, ssl, "INFO").engine_options()
    options = dict(options)
    options.pop("pool_size", None)
    options.pop("max_overflow", None)
    connectable = create_engine(_database_url(), poolclass=pool.NullPool, **options)

    try:
        with connectable.connect() as connection:
            context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)

            with context.begin_transaction():
                context.run_migrations()
    finally:
        connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
