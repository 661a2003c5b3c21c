"""
Commands package.

Modules:
    base           — Command base class and exit statuses
    list_commands  — built-in `list`
    demo           — CRUD walkthrough on the users table
    health         — database / cache connectivity check
"""

from microcli.app.commands.base import Command
from microcli.app.commands.demo import DemoCommand
from microcli.app.commands.health import HealthCommand
from microcli.app.commands.list_commands import ListCommand

__all__ = ["Command", "DemoCommand", "HealthCommand", "ListCommand"]
