"""Tests for the entry point and global helpers."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from microcli.app import helpers, main as main_module
from microcli.app.core.errors import DataAccessError


@pytest.fixture(autouse=True)
def _no_logging_setup():
    with patch.object(main_module, "setup_logging"):
        yield


class TestMain:
    def test_registers_commands_and_runs(self, app):
        with patch.object(main_module, "get_application", return_value=app):
            assert main_module.main(["health"]) == 0
        assert app.console.has("demo")
        assert app.console.has("health")

    def test_unknown_command(self, app):
        with patch.object(main_module, "get_application", return_value=app):
            assert main_module.main(["missing"]) == 1

    def test_unknown_option(self, app, capsys):
        with patch.object(main_module, "get_application", return_value=app):
            assert main_module.main(["health", "--bogus"]) == 2
        assert "No such option" in capsys.readouterr().err

    def test_startup_failure(self, capsys):
        with patch.object(main_module, "get_application", side_effect=DataAccessError("no database")):
            assert main_module.main(["demo"]) == 1
        assert "no database" in capsys.readouterr().err


class TestHelpers:
    def test_app(self, app):
        with patch.object(helpers, "get_application", return_value=app):
            assert helpers.app() is app

    def test_dd(self, capsys):
        with pytest.raises(SystemExit) as info:
            helpers.dd({"id": 1}, "second")
        assert info.value.code == 1
        printed = capsys.readouterr().out
        assert "'id': 1" in printed
        assert "second" in printed
