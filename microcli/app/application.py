"""
Application object — owns the connections and the command console.

Everything is constructed explicitly: Application.create() opens the
database connection and the Redis client from settings, and the instance is
handed to every command it runs. Tests build Application(...) directly with
substitute connections.

get_application() is the cached process-wide accessor for the entry point.

Usage:
    from microcli.app.application import get_application

    app = get_application()
    app.add_command(DemoCommand())
    sys.exit(app.run())
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional, Sequence

import redis
from rich.console import Console
from sqlalchemy.engine import Connection

from microcli.app.commands.base import Command
from microcli.app.console import ConsoleApplication
from microcli.app.core.cache import close_redis, create_redis
from microcli.app.core.config import Settings, get_settings
from microcli.app.core.database import close_database, connect_database
from microcli.app.core.errors import MicroCLIError
from microcli.app.db import DB

logger = logging.getLogger(__name__)


class Application:
    """Holds the long-lived connections, a lazily built DB helper and the console."""

    def __init__(
        self,
        settings: Settings,
        connection: Connection,
        cache: redis.Redis,
        out: Optional[Console] = None,
    ):
        self._settings = settings
        self._connection = connection
        self._cache = cache
        self._db: Optional[DB] = None
        self._console = ConsoleApplication(settings.APP_NAME, settings.APP_VERSION, out=out)

    @classmethod
    def create(cls, settings: Optional[Settings] = None) -> "Application":
        """Open both connections from settings."""
        settings = settings or get_settings()
        connection = connect_database(settings)
        try:
            cache = create_redis(settings)
        except MicroCLIError:
            close_database(connection)
            raise
        logger.info(
            "Starting %s v%s [%s]",
            settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT,
        )
        return cls(settings, connection, cache)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def cache(self) -> redis.Redis:
        return self._cache

    @property
    def db(self) -> DB:
        if self._db is None:
            self._db = DB(self._connection)
        return self._db

    @property
    def console(self) -> ConsoleApplication:
        return self._console

    def add_command(self, command: Command) -> None:
        self._console.add(command)

    def run(self, argv: Optional[Sequence[str]] = None) -> int:
        return self._console.run(self, argv)

    def close(self) -> None:
        """Release both connections (process exit does this too)."""
        close_redis(self._cache)
        close_database(self._connection)


@lru_cache()
def get_application() -> Application:
    """Cached application singleton, constructed on first access."""
    return Application.create()
