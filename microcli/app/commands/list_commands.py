"""Built-in `list` command — shows every registered command."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from microcli.app.commands.base import Command

if TYPE_CHECKING:
    from microcli.app.application import Application


class ListCommand(Command):
    name = "list"
    description = "List available commands"
    help = "Show the name and description of every registered command."

    def execute(self, app: "Application", out: Console) -> int:
        console = app.console
        out.print(f"[bold]{console.name}[/] [green]{console.version}[/]\n")

        table = Table(show_header=True, header_style="bold", box=None)
        table.add_column("Command", style="cyan")
        table.add_column("Description")
        for command in console.all():
            table.add_row(command.name, command.description)
        out.print(table)
        return self.SUCCESS
