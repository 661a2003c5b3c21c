"""Shared fixtures: in-memory SQLite connection, mocked Redis, application."""

from __future__ import annotations

import io
from unittest.mock import MagicMock

import pytest
import redis
from rich.console import Console
from sqlalchemy import text

from microcli.app.application import Application
from microcli.app.core.config import Settings
from microcli.app.core.database import close_database, connect_database
from microcli.app.db import DB

USERS_DDL = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    email TEXT,
    created_at INTEGER
)
"""


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        DB_DRIVER="sqlite",
        DB_DATABASE=":memory:",
        CACHE_TTL=60,
    )


@pytest.fixture
def connection(settings):
    conn = connect_database(settings)
    conn.execute(text(USERS_DDL))
    conn.commit()
    yield conn
    close_database(conn)


@pytest.fixture
def db(connection) -> DB:
    return DB(connection)


@pytest.fixture
def cache() -> MagicMock:
    client = MagicMock(spec=redis.Redis)
    client.incr.return_value = 1
    client.get.return_value = None
    client.ping.return_value = True
    return client


@pytest.fixture
def out() -> Console:
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def app(settings, connection, cache, out) -> Application:
    return Application(settings, connection, cache, out=out)


def output_of(console: Console) -> str:
    return console.file.getvalue()


def count_users(conn) -> int:
    count = conn.execute(text("SELECT COUNT(*) FROM users")).scalar()
    conn.rollback()
    return count
