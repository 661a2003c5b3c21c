"""
Tests for the application object.

Covers:
    • Lazy DB helper
    • create() wiring and cleanup on partial failure
    • Cached accessor
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from microcli.app import application as application_module
from microcli.app.application import Application, get_application
from microcli.app.core.errors import CacheError
from microcli.app.db import DB


class TestApplication:
    def test_exposes_collaborators(self, app, settings, connection, cache):
        assert app.settings is settings
        assert app.connection is connection
        assert app.cache is cache

    def test_db_is_lazy_and_shared(self, app, connection):
        assert app._db is None
        db = app.db
        assert isinstance(db, DB)
        assert db.connection is connection
        assert app.db is db

    def test_console_named_from_settings(self, app):
        assert app.console.name == "PyCLI Micro Framework"
        assert app.console.version == "1.0.0"

    def test_close(self, settings):
        connection = MagicMock()
        cache = MagicMock()
        Application(settings, connection, cache).close()
        cache.close.assert_called_once()
        connection.close.assert_called_once()


class TestCreate:
    def test_opens_both_connections(self, settings):
        with patch.object(application_module, "connect_database") as connect, \
                patch.object(application_module, "create_redis") as create:
            app = Application.create(settings)
        connect.assert_called_once_with(settings)
        create.assert_called_once_with(settings)
        assert app.connection is connect.return_value
        assert app.cache is create.return_value

    def test_closes_database_when_redis_fails(self, settings):
        with patch.object(application_module, "connect_database") as connect, \
                patch.object(application_module, "create_redis", side_effect=CacheError("down")), \
                patch.object(application_module, "close_database") as close:
            with pytest.raises(CacheError):
                Application.create(settings)
        close.assert_called_once_with(connect.return_value)


class TestGetApplication:
    @pytest.fixture(autouse=True)
    def _clear_cache(self):
        get_application.cache_clear()
        yield
        get_application.cache_clear()

    def test_constructed_once(self):
        with patch.object(Application, "create", return_value=MagicMock()) as create:
            first = get_application()
            second = get_application()
        assert first is second
        create.assert_called_once_with()
