"""
Command base class.

A command is a named unit of CLI logic. Subclasses declare their name and
description as class attributes and implement execute(); the console
registers them by that explicit name.

Usage:
    class CleanupCommand(Command):
        name = "cleanup"
        description = "Delete expired sessions"

        def execute(self, app, out) -> int:
            removed = app.db.delete("sessions", Raw("expires_at < UNIX_TIMESTAMP()"))
            out.print(f"Removed {removed} sessions")
            return self.SUCCESS

Code that runs outside a command can reach the same application through
microcli.app.helpers.app(); helpers.dd() dumps values and exits while debugging.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from rich.console import Console

if TYPE_CHECKING:
    from microcli.app.application import Application


class Command(ABC):
    """Base class for every CLI command."""

    SUCCESS: ClassVar[int] = 0
    FAILURE: ClassVar[int] = 1
    INVALID: ClassVar[int] = 2

    name: ClassVar[str] = ""
    description: ClassVar[str] = ""
    help: ClassVar[str] = ""

    @abstractmethod
    def execute(self, app: "Application", out: Console) -> int:
        """Run the command and return its exit status."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
