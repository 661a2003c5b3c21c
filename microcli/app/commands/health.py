"""`health` command — probes the database and Redis connections."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from microcli.app.commands.base import Command
from microcli.app.core.health import HealthStatus, run_health_check

if TYPE_CHECKING:
    from microcli.app.application import Application

STATUS_STYLE = {
    HealthStatus.HEALTHY: "green",
    HealthStatus.UNHEALTHY: "red",
}


class HealthCommand(Command):
    name = "health"
    description = "Check database and cache connectivity"
    help = "Runs SELECT 1 against the database and PING against Redis; exits non-zero if either fails."

    def execute(self, app: "Application", out: Console) -> int:
        report = run_health_check(
            app.connection,
            app.cache,
            version=app.settings.APP_VERSION,
            environment=app.settings.ENVIRONMENT,
        )

        table = Table(title=f"{app.settings.APP_NAME} {report.version} ({report.environment})")
        table.add_column("Component")
        table.add_column("Status")
        table.add_column("Latency (ms)", justify="right")
        table.add_column("Message")
        for comp in report.components:
            style = STATUS_STYLE[comp.status]
            table.add_row(
                comp.name,
                f"[{style}]{comp.status.value}[/]",
                f"{comp.latency_ms:.2f}",
                comp.message,
            )
        out.print(table)

        return self.SUCCESS if report.healthy else self.FAILURE
