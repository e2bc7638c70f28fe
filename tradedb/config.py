import os
from collections import namedtuple

from dotenv import load_dotenv

MANAGED_SSL_HOSTS = ("render.com",)
TRUTHY = {"1", "true", "yes", "on"}
FALSY = {"0", "false", "no", "off"}


def _parse_bool(value):
    if value is None:
        return None
    value = value.strip().lower()
    if value in TRUTHY:
        return True
    if value in FALSY:
        return False
    return None


def normalize_database_url(url):
    """Managed hosts hand out ``postgres://`` URLs, SQLAlchemy wants ``postgresql://``."""
    url = url.strip()
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def requires_ssl(url, app_env=None, override=None):
    if not url.startswith("postgresql"):
        return False
    if override is not None:
        return override
    if (app_env or "").strip().lower() == "production":
        return True
    return any(host in url for host in MANAGED_SSL_HOSTS)


class Settings(namedtuple("Settings", "database_url sql_echo ssl log_level")):
    __slots__ = ()

    @property
    def is_sqlite(self):
        return self.database_url.startswith("sqlite")

    def engine_options(self):
        options = {"echo": self.sql_echo, "future": True}
        if self.ssl:
            options["connect_args"] = {"sslmode": "require"}
        if not self.is_sqlite:
            # One connection per invocation; statements run sequentially on it.
            options["pool_size"] = 1
            options["max_overflow"] = 0
        return options


def load_settings(environ=None):
    if environ is None:
        load_dotenv()
        environ = os.environ
    raw_url = environ.get("DATABASE_URL")
    if not raw_url or not raw_url.strip():
        raise ValueError("DATABASE_URL is required")
    database_url = normalize_database_url(raw_url)
    return Settings(
        database_url=database_url,
        sql_echo=bool(_parse_bool(environ.get("SQL_ECHO", "false"))),
        ssl=requires_ssl(
            database_url,
            app_env=environ.get("APP_ENV"),
            override=_parse_bool(environ.get("DATABASE_SSL")),
        ),
        log_level=environ.get("LOG_LEVEL", "INFO").strip().upper(),
    )
