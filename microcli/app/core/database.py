"""
Database layer — synchronous SQLAlchemy engine and a single connection.

Provides:
    • Engine construction from settings (MySQL, PostgreSQL, SQLite)
    • One long-lived connection per process
    • Connection shutdown

The data-access helper (microcli.app.db.DB) wraps the connection returned
here; nothing else should execute SQL on it directly.

Usage:
    from microcli.app.core.database import connect_database

    conn = connect_database(settings)
    db = DB(conn)
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from microcli.app.core.config import Settings
from microcli.app.core.errors import DataAccessError

logger = logging.getLogger(__name__)


def _connect_args(config: Settings) -> Dict[str, Any]:
    """Driver-specific connect timeout."""
    dialect = config.db_dialect
    if dialect == "sqlite":
        return {"timeout": config.DB_CONNECT_TIMEOUT}
    if dialect in ("mysql", "postgresql"):
        return {"connect_timeout": config.DB_CONNECT_TIMEOUT}
    return {}


def create_db_engine(config: Settings) -> Engine:
    """Build an engine; no pooling, the process holds exactly one connection."""
    return create_engine(
        config.database_url,
        echo=config.DATABASE_ECHO,
        poolclass=NullPool,
        connect_args=_connect_args(config),
    )


def connect_database(config: Settings) -> Connection:
    """Open the process-wide database connection."""
    engine = create_db_engine(config)
    try:
        conn = engine.connect()
    except SQLAlchemyError as e:
        engine.dispose()
        raise DataAccessError(
            f"Could not connect to database: {e}",
            url=config.database_url.render_as_string(hide_password=True),
        ) from e
    logger.info(
        "Database connected: %s",
        config.database_url.render_as_string(hide_password=True),
    )
    return conn


def close_database(conn: Connection) -> None:
    """Close the connection and dispose its engine."""
    engine = conn.engine
    conn.close()
    engine.dispose()
    logger.info("Database connection closed")
