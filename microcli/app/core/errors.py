"""
Centralised error handling — exception hierarchy + CLI error reporting.

Provides:
    • Domain-specific exception classes
    • Consistent one-line error output with an exit code
    • Automatic logging of unhandled errors
    • Traceback output in debug mode

Usage:
    from microcli.app.core.errors import (
        MicroCLIError,
        DataAccessError,
        CommandNotFoundError,
        report_error,
    )

    raise CommandNotFoundError("migrate")
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from rich.console import Console
from rich.markup import escape

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═══════════════════════════════════════════════════════════════════════════

class MicroCLIError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        exit_code: int = 1,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code
        self.error_code = error_code
        self.details = details or {}


class ConfigurationError(MicroCLIError):
    """Settings are missing or invalid."""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, error_code="CONFIGURATION_ERROR", **kwargs)


class DataAccessError(MicroCLIError):
    """A relational database statement or connection failed."""

    def __init__(self, message: str, *, sql: Optional[str] = None, **details: Any):
        d = {**details}
        if sql:
            d["sql"] = sql
        super().__init__(message, error_code="DATA_ACCESS_ERROR", details=d)
        self.sql = sql


class CacheError(MicroCLIError):
    """A Redis command or connection failed."""

    def __init__(self, message: str, **details: Any):
        super().__init__(message, error_code="CACHE_ERROR", details=details)


class CommandNotFoundError(MicroCLIError):
    """No command is registered under the requested name."""

    def __init__(self, name: str):
        super().__init__(
            message=f'Command "{name}" is not defined.',
            error_code="COMMAND_NOT_FOUND",
            details={"command": name},
        )
        self.name = name


class DuplicateCommandError(MicroCLIError):
    """A command with the same name is already registered."""

    def __init__(self, name: str):
        super().__init__(
            message=f'Command "{name}" is already registered.',
            error_code="DUPLICATE_COMMAND",
            details={"command": name},
        )
        self.name = name


# ═══════════════════════════════════════════════════════════════════════════
# Error Reporting
# ═══════════════════════════════════════════════════════════════════════════

def report_error(exc: BaseException, out: Console, *, debug: bool = False) -> int:
    """Log and print an error raised by a command; return the exit code."""
    if isinstance(exc, MicroCLIError):
        logger.error(
            "Command error [%s]: %s | details=%s",
            exc.error_code, exc.message, exc.details,
        )
        out.print(f"[bold red]{exc.error_code}[/]: {escape(exc.message)}", highlight=False)
        if debug and exc.__cause__ is not None:
            out.print(f"  caused by {type(exc.__cause__).__name__}: {escape(str(exc.__cause__))}", highlight=False)
        return exc.exit_code

    logger.critical("Unhandled exception: %s", exc, exc_info=exc)
    if debug:
        out.print_exception()
    else:
        out.print(f"[bold red]INTERNAL_ERROR[/]: {escape(str(exc))}", highlight=False)
    return 1
