"""
CLI entry point.

Run with:
    microcli demo

Or from the project root:
    python -m microcli.app.main demo
"""

from __future__ import annotations

import sys
from typing import Optional, Sequence

from rich.console import Console

from microcli.app.application import get_application
from microcli.app.commands import DemoCommand, HealthCommand
from microcli.app.core.config import get_settings
from microcli.app.core.errors import MicroCLIError, report_error
from microcli.app.core.logging_config import setup_logging


def main(argv: Optional[Sequence[str]] = None) -> int:
    settings = get_settings()
    setup_logging(settings)

    try:
        app = get_application()
    except MicroCLIError as exc:
        return report_error(exc, Console(stderr=True), debug=settings.DEBUG)

    app.add_command(DemoCommand())
    app.add_command(HealthCommand())

    return app.run(argv)


if __name__ == "__main__":
    sys.exit(main())
