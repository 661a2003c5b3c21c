"""
Command dispatcher — explicit command registry on top of typer.

Commands are registered by their declared name. A run resolves the first
CLI argument to a command, builds a typer app from the registry and invokes
it without exiting the interpreter, so callers get the exit code back.

Usage:
    console = ConsoleApplication("PyCLI Micro Framework", "1.0.0")
    console.add(DemoCommand())
    code = console.run(app, ["demo"])
"""

from __future__ import annotations

import logging
import sys
import time
import uuid
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence

import typer
from rich.console import Console
from rich.markup import escape

from microcli.app.commands.base import Command
from microcli.app.commands.list_commands import ListCommand
from microcli.app.core.errors import (
    CommandNotFoundError,
    DuplicateCommandError,
    report_error,
)
from microcli.app.core.logging_config import clear_command_context, set_command_context

if TYPE_CHECKING:
    from microcli.app.application import Application

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = "list"


class ConsoleApplication:
    """Registry of commands plus the dispatch loop."""

    def __init__(self, name: str, version: str, out: Optional[Console] = None):
        self.name = name
        self.version = version
        self.out = out or Console()
        self._commands: Dict[str, Command] = {}
        self.add(ListCommand())

    # ── Registry ──

    def add(self, command: Command) -> None:
        if not command.name:
            raise ValueError(f"{type(command).__name__} has no name")
        if command.name in self._commands:
            raise DuplicateCommandError(command.name)
        self._commands[command.name] = command
        logger.debug("Registered command %s", command.name)

    def has(self, name: str) -> bool:
        return name in self._commands

    def find(self, name: str) -> Command:
        try:
            return self._commands[name]
        except KeyError:
            raise CommandNotFoundError(name) from None

    def all(self) -> List[Command]:
        return [self._commands[name] for name in sorted(self._commands)]

    # ── Dispatch ──

    def run(self, app: "Application", argv: Optional[Sequence[str]] = None) -> int:
        """Run the command named by argv[0]; returns the exit code."""
        args = list(sys.argv[1:] if argv is None else argv) or [DEFAULT_COMMAND]
        debug = app.settings.DEBUG

        if not args[0].startswith("-"):
            try:
                self.find(args[0])
            except CommandNotFoundError as exc:
                return report_error(exc, self.out, debug=debug)

        cli = typer.main.get_command(self._build_cli(app))
        try:
            result = cli.main(args=args, prog_name=self.name, standalone_mode=False)
        except typer.TyperException as exc:
            # usage errors (extra arguments, unknown options) carry exit code 2
            if hasattr(exc, "show"):
                exc.show()
            else:
                self.out.print(f"Error: {escape(exc.format_message())}", highlight=False)
            return exc.exit_code
        except typer.Abort:
            self.out.print("Aborted.")
            return 1
        return int(result or 0)

    def _build_cli(self, app: "Application") -> typer.Typer:
        cli = typer.Typer(
            name=self.name,
            help=f"{self.name} {self.version}",
            add_completion=False,
        )

        @cli.callback()
        def main() -> None:
            pass

        for command in self.all():
            cli.command(
                name=command.name,
                help=command.help or command.description,
                short_help=command.description,
            )(self._callback(app, command))
        return cli

    def _callback(self, app: "Application", command: Command) -> Callable[[], None]:
        def run_command() -> None:
            raise typer.Exit(self._execute(app, command))

        return run_command

    def _execute(self, app: "Application", command: Command) -> int:
        set_command_context(command=command.name, run_id=uuid.uuid4().hex[:16])
        start = time.monotonic()
        try:
            try:
                code = command.execute(app, self.out)
            except Exception as exc:
                code = report_error(exc, self.out, debug=app.settings.DEBUG)

            duration_ms = (time.monotonic() - start) * 1000
            logger.info(
                "Command %s finished with exit code %s in %.1f ms",
                command.name, code, duration_ms,
                extra={"exit_code": code, "duration_ms": round(duration_ms, 1)},
            )
            return int(code or 0)
        finally:
            clear_command_context()
