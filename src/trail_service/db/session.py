"""
session.py
-----------
Creates the database engine and session factory for SQLAlchemy.
In production this connects to PostgreSQL using the URL from config.py,
tests hand in an in-memory SQLite URL instead.
"""

import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


# Base class for ORM models to inherit from (like Track)
class Base(DeclarativeBase):
    pass


def _is_memory_sqlite(url):
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def create_db_engine(database_url, echo=False):
    """
    Return a SQLAlchemy engine for database_url.

    In-memory SQLite gets a single shared connection, otherwise every
    new connection would see its own empty database.
    """
    logger.info("Connecting: %s", database_url.split("@")[1] if "@" in database_url else database_url)

    if _is_memory_sqlite(database_url):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    # pool_pre_ping drops connections the server closed while we were idle
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def create_session_factory(engine):
    """
    Return a session factory bound to engine.
    Usage:
        with SessionLocal() as session:
            session.execute(...)
    """
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def create_tables(engine):
    """Create all tables if not present."""
    # models must be imported so they register on Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(engine)
