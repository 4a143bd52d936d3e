"""Database URL construction and engine creation."""

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from ..exceptions import ConfigurationError
from ..models.config import DatabaseConfig

logger = logging.getLogger(__name__)

DIALECTS = {
    "pgsql": "postgresql+psycopg2",
    "postgres": "postgresql+psycopg2",
    "postgresql": "postgresql+psycopg2",
    "sqlite": "sqlite",
}


def build_url(db: DatabaseConfig) -> str:
    """
    Build a SQLAlchemy URL string from database configuration.

    An explicit ``url`` wins over the discrete fields.

    Raises:
        ConfigurationError: If the database type is not supported
    """
    if db.url:
        return db.url

    drivername = DIALECTS.get(db.type.lower())
    if drivername is None:
        raise ConfigurationError(
            f"Invalid database type: {db.type} (expected one of {', '.join(sorted(DIALECTS))})"
        )

    if drivername == "sqlite":
        url = URL.create(drivername, database=db.database)
    else:
        url = URL.create(
            drivername,
            username=db.user,
            password=db.password,
            host=db.host,
            port=int(db.port),
            database=db.database,
        )
    return url.render_as_string(hide_password=False)


def create_db_engine(url: str) -> Engine:
    """Create an engine whose connections are pinged before use."""
    try:
        engine = create_engine(url, pool_pre_ping=True)
    except (ArgumentError, SQLAlchemyError, ImportError) as e:
        raise ConfigurationError(f"Cannot create database engine: {e}") from e

    logger.debug(f"Created engine for {engine.url.render_as_string(hide_password=True)}")
    return engine
