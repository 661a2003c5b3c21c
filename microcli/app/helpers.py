"""Global convenience helpers for commands and interactive debugging."""

from __future__ import annotations

from typing import Any, NoReturn

from rich.pretty import pprint

from microcli.app.application import Application, get_application


def app() -> Application:
    """The process-wide application."""
    return get_application()


def dd(*values: Any) -> NoReturn:
    """Dump values and exit with status 1."""
    for value in values:
        pprint(value, expand_all=True)
    raise SystemExit(1)
