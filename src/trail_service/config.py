"""
config.py
----------
Settings for the TrailShare service, read from environment variables.
A .env file in the working directory is loaded first (if present).
"""

import os
import urllib.parse
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _get_env_bool(name, default=False):
    """Turn an environment variable like "true" / "0" into a bool."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_env_int(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def _get_env_list(name, default):
    """Split an environment variable like 'a,b,c' into a list."""
    value = os.getenv(name)
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def build_database_url():
    """
    Return the SQLAlchemy URL for the tracks database.
    DATABASE_URL wins if set, otherwise the URL is built from the PG_* variables.
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    pg_host = os.getenv("PG_HOST", "localhost")
    pg_port = os.getenv("PG_PORT", "5433")
    pg_db = os.getenv("PG_DB", "trailshare")
    pg_user = os.getenv("PG_USER", "postgres")
    # wraps the password so special characters don't get mistaken for the host
    pg_password = urllib.parse.quote_plus(os.getenv("PG_PASSWORD", "postgres"))
    return f"postgresql+psycopg2://{pg_user}:{pg_password}@{pg_host}:{pg_port}/{pg_db}"


@dataclass
class Config:
    database_url: str = "sqlite://"
    server_host: str = "0.0.0.0"
    server_port: int = 2022
    cors_origins: list = field(default_factory=lambda: ["*"])
    max_upload_bytes: int = 16 * 1024 * 1024
    log_level: str = "INFO"
    sql_echo: bool = False
    debug: bool = False

    @classmethod
    def from_env(cls):
        """Build a Config snapshot from the current environment."""
        return cls(
            database_url=build_database_url(),
            server_host=os.getenv("SERVER_HOST", "0.0.0.0"),
            server_port=_get_env_int("SERVER_PORT", 2022),
            cors_origins=_get_env_list("CORS_ORIGINS", ["*"]),
            max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 16 * 1024 * 1024),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
            sql_echo=_get_env_bool("SQL_ECHO"),
            debug=_get_env_bool("FLASK_DEBUG"),
        )
