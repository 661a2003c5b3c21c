"""
Example command — CRUD, batch insert and a transaction against `users`.

Expects:
    CREATE TABLE users (
        id INTEGER PRIMARY KEY AUTO_INCREMENT,
        username VARCHAR(64),
        email VARCHAR(255),
        created_at INTEGER
    )
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

from microcli.app.commands.base import Command
from microcli.app.core.cache import cache_incr, cache_set
from microcli.app.core.errors import DataAccessError
from microcli.app.db import Raw, Where

if TYPE_CHECKING:
    from microcli.app.application import Application

COUNTER_KEY = "demo_counter"
SINCE_2023 = 1672531200  # 2023-01-01T00:00:00Z


class DemoCommand(Command):
    name = "demo"
    description = "Run database CRUD examples"
    help = "Demonstrates insert, batch insert, find, select, update, delete and transactions on the users table."

    def execute(self, app: "Application", out: Console) -> int:
        out.print(f"[{datetime.now():%Y-%m-%d %H:%M:%S}] {self.name}", highlight=False)

        runs = cache_incr(app.cache, COUNTER_KEY)
        out.print(f"Run count: {runs}")

        db = app.db

        # 1. single insert
        user_id = db.insert("users", {
            "username": "john_doe",
            "email": "john@example.com",
            "created_at": int(time.time()),
        })
        out.print(f"Inserted user id: {user_id}")

        # 2. batch insert
        now = int(time.time())
        inserted = db.batch_insert("users", [
            {"username": "alice", "email": "alice@example.com", "created_at": now},
            {"username": "bob", "email": "bob@example.com", "created_at": now},
            {"username": "charlie", "email": "charlie@example.com", "created_at": now},
        ])
        out.print(f"Batch inserted {inserted} rows")

        # 3. find by column values
        user = db.find("users", Where({"username": "john_doe"}))
        out.print(user)
        if user is not None:
            cache_set(app.cache, "user:john_doe", user, ttl=app.settings.CACHE_TTL)

        # 4. select with a raw fragment
        users = db.select(
            "users",
            Raw("created_at > :since", {"since": SINCE_2023}),
            "*",
            "username ASC",
            10,
        )
        out.print(users)

        # 5. update
        updated = db.update("users", {"id": user_id}, {"email": "new_email@example.com"})
        out.print(f"Updated {updated} rows")

        # 6. delete
        deleted = db.delete("users", {"username": "test_user"})
        out.print(f"Deleted {deleted} rows")

        # 7. transaction
        try:
            db.begin_transaction()
            db.insert("users", {
                "username": "transaction_user",
                "email": "tx@example.com",
                "created_at": int(time.time()),
            })
            db.update("users", {"username": "john_doe"}, {"email": "updated_in_tx@example.com"})
            db.commit()
            out.print("Transaction committed")
        except DataAccessError as e:
            db.rollback()
            out.print(f"Transaction rolled back: {escape(e.message)}")

        return self.SUCCESS
