"""
Environment configuration — single source of truth for all settings.

Uses pydantic-settings for type-safe config with .env file support.
All values have sensible defaults for local development.

Usage:
    from microcli.app.core.config import get_settings, env
    print(get_settings().database_url)
    print(env("REDIS_HOST"))
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

from microcli.app.core.errors import ConfigurationError

# DB_DRIVER value → SQLAlchemy dialect+driver
DRIVERS: Dict[str, str] = {
    "mysql": "mysql+pymysql",
    "pgsql": "postgresql+psycopg",
    "sqlite": "sqlite",
}


class Settings(BaseSettings):
    """
    Application-wide settings loaded from environment variables or .env file.

    Precedence: env var > .env file > default value
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        frozen=True,
    )

    # ── Application ──
    APP_NAME: str = "PyCLI Micro Framework"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development | production
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"  # DEBUG | INFO | WARNING | ERROR | CRITICAL

    # ── Database ──
    DB_DRIVER: str = "mysql"  # mysql | pgsql | sqlite
    DB_HOST: str = "127.0.0.1"
    DB_PORT: int = 3306
    DB_DATABASE: str = "app"
    DB_USERNAME: str = "root"
    DB_PASSWORD: str = ""
    DB_CHARSET: str = "utf8mb4"
    DB_CONNECT_TIMEOUT: int = 5  # seconds
    DATABASE_URL: Optional[str] = None  # overrides the DB_* fields when set
    DATABASE_ECHO: bool = False  # log SQL statements

    # ── Redis ──
    REDIS_HOST: str = "127.0.0.1"
    REDIS_PORT: int = 6379
    REDIS_AUTH: Optional[str] = None
    REDIS_DB: int = 0
    REDIS_TIMEOUT: float = 2.5  # connect timeout in seconds
    CACHE_TTL: int = 300  # default cache TTL in seconds (5 min)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def db_dialect(self) -> str:
        """Backend name (mysql, postgresql, sqlite) of the configured database."""
        return make_url(self.database_url).get_backend_name()

    @property
    def database_url(self) -> URL:
        """SQLAlchemy URL built from DATABASE_URL or the DB_* fields."""
        if self.DATABASE_URL:
            return make_url(self.DATABASE_URL)

        driver = DRIVERS.get(self.DB_DRIVER.lower())
        if driver is None:
            raise ConfigurationError(
                f"Unsupported DB_DRIVER '{self.DB_DRIVER}'",
                details={"supported": sorted(DRIVERS)},
            )

        if driver == "sqlite":
            return URL.create(driver, database=self.DB_DATABASE)

        query = {"charset": self.DB_CHARSET} if driver.startswith("mysql") else {}
        return URL.create(
            driver,
            username=self.DB_USERNAME,
            password=self.DB_PASSWORD or None,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_DATABASE,
            query=query,
        )


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()


def env(key: str, default: Any = None) -> Any:
    """
    Look up a configuration value by key.

    Known settings win; anything else falls back to the process environment.
    """
    current = get_settings()
    if key in Settings.model_fields:
        value = getattr(current, key)
        return default if value is None else value
    return os.environ.get(key, default)
