"""
Data-access helper — parameterized CRUD over one SQLAlchemy connection.

Provides:
    • select / find / insert / batch_insert / update / delete
    • Raw statements with named parameters (execute / query / execute_rowcount)
    • Depth-counted transactions (nested begin/commit pairs share one
      physical transaction rather than nesting savepoints)

Conditions are explicit about what gets bound:

    db.find("users", Where({"username": "john_doe"}))      # username=:username
    db.find("users", {"username": "john_doe"})             # same, dict shorthand
    db.select("users", Raw("created_at > :since", {"since": ts}))

A Raw fragment is pasted into the statement verbatim. Only its params are
bound; never build the fragment itself from user input.

Outside a transaction every statement is committed as soon as it runs.
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from sqlalchemy import text
from sqlalchemy.engine import Connection, RootTransaction
from sqlalchemy.exc import SQLAlchemyError

from microcli.app.core.errors import DataAccessError

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]

DEFAULT_BATCH_SIZE = 100


@dataclass(frozen=True)
class Where:
    """Column → value pairs joined with AND, each bound as a named parameter."""

    items: Mapping[str, Any]


@dataclass(frozen=True)
class Raw:
    """Literal SQL fragment plus the named parameters it references."""

    fragment: str
    params: Mapping[str, Any] = field(default_factory=dict)


Conditions = Union[Where, Raw, Mapping[str, Any]]


@dataclass
class StatementResult:
    """Buffered outcome of one statement."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    rowcount: int = 0
    lastrowid: Optional[int] = None


_UNSAFE_PARAM_CHARS = re.compile(r"\W")
_INSERT_STATEMENT = re.compile(r"\s*INSERT\b", re.IGNORECASE)


def _param_name(column: str) -> str:
    """Bind-parameter name for a column (users.id → users_id)."""
    return _UNSAFE_PARAM_CHARS.sub("_", column)


def _param_names(columns: Iterable[str]) -> List[str]:
    """Bind names for columns, in order; two columns may not share one."""
    seen: Dict[str, str] = {}
    for column in columns:
        name = _param_name(column)
        if name in seen:
            raise ValueError(f"columns {seen[name]!r} and {column!r} both bind as :{name}")
        seen[name] = column
    return list(seen)


def _chunks(records: Sequence[Record], size: int) -> Iterator[Sequence[Record]]:
    for start in range(0, len(records), size):
        yield records[start:start + size]


def build_where(
    conditions: Optional[Conditions],
    reserved: Iterable[str] = (),
) -> Tuple[str, Dict[str, Any]]:
    """
    Render conditions to a WHERE body and its bind parameters.

    Parameter names in `reserved` (already used by a SET clause) are
    renamed to where_<name>. A None value renders as IS NULL.
    """
    if conditions is None:
        return "", {}

    if isinstance(conditions, Raw):
        return conditions.fragment, dict(conditions.params)

    if isinstance(conditions, Where):
        items = conditions.items
    elif isinstance(conditions, Mapping):
        items = conditions
    else:
        raise TypeError(
            f"conditions must be Where, Raw or a mapping, not {type(conditions).__name__}; "
            "wrap literal SQL in Raw(...)"
        )

    taken = set(reserved)
    parts: List[str] = []
    params: Dict[str, Any] = {}
    for column, value in items.items():
        if value is None:
            parts.append(f"{column} IS NULL")
            continue
        name = _param_name(column)
        if name in taken:
            name = f"where_{name}"
        if name in params:
            raise ValueError(f"condition column {column!r} reuses bind name :{name}")
        parts.append(f"{column}=:{name}")
        params[name] = value
    return " AND ".join(parts), params


class DB:
    """CRUD and transaction helper bound to one open connection."""

    def __init__(self, connection: Connection):
        self._conn = connection
        self._level = 0
        self._transaction: Optional[RootTransaction] = None

    @property
    def connection(self) -> Connection:
        return self._conn

    @property
    def transaction_level(self) -> int:
        return self._level

    # ── Raw statements ──

    def execute(
        self,
        sql: str,
        params: Union[Mapping[str, Any], Sequence[Mapping[str, Any]], None] = None,
    ) -> StatementResult:
        """
        Run a statement with named parameters (:name).

        A sequence of parameter mappings runs the statement once per mapping
        (executemany). Rows are fetched before any autocommit.
        """
        if isinstance(params, Mapping) or params is None:
            bound: Any = dict(params or {})
        else:
            bound = [dict(p) for p in params]

        logger.debug("SQL: %s", sql, extra={"sql": sql})
        try:
            result = self._conn.execute(text(sql), bound)
            outcome = StatementResult(rowcount=result.rowcount)
            if result.returns_rows:
                outcome.rows = [dict(row) for row in result.mappings().all()]
            elif isinstance(bound, dict):
                outcome.lastrowid = self._last_insert_id(sql, result)
            if self._level == 0:
                self._conn.commit()
        except SQLAlchemyError as e:
            if self._level == 0 and self._conn.in_transaction():
                self._conn.rollback()
            raise DataAccessError(
                f"Statement failed: {getattr(e, 'orig', None) or e}", sql=sql,
            ) from e
        return outcome

    def _last_insert_id(self, sql: str, result: Any) -> Optional[int]:
        """
        Id generated by the INSERT that just ran, or None.

        MySQL and SQLite report it on the cursor. PostgreSQL has no cursor
        lastrowid, so the session's LASTVAL() is read inside a savepoint; an
        insert that touched no sequence leaves it undefined and yields None.
        """
        dialect = self._conn.dialect
        if dialect.postfetch_lastrowid:
            return result.lastrowid
        if dialect.name != "postgresql" or not _INSERT_STATEMENT.match(sql):
            return None
        try:
            with self._conn.begin_nested():
                return self._conn.execute(text("SELECT LASTVAL()")).scalar()
        except SQLAlchemyError as e:
            logger.debug("LASTVAL() unavailable after insert: %s", e)
            return None

    def query(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """Run a statement and return every row as a dict."""
        return self.execute(sql, params).rows

    def execute_rowcount(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> int:
        """Run a statement and return the affected row count."""
        return self.execute(sql, params).rowcount

    # ── CRUD ──

    def select(
        self,
        table: str,
        conditions: Optional[Conditions] = None,
        columns: Union[str, Sequence[str]] = "*",
        order_by: str = "",
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        if not isinstance(columns, str):
            columns = ",".join(columns)
        where, params = build_where(conditions)

        sql = f"SELECT {columns} FROM {table}"
        if where:
            sql += f" WHERE {where}"
        if order_by:
            sql += f" ORDER BY {order_by}"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"

        return self.query(sql, params)

    def find(
        self,
        table: str,
        conditions: Optional[Conditions] = None,
        columns: Union[str, Sequence[str]] = "*",
    ) -> Optional[Dict[str, Any]]:
        """First matching row, or None."""
        rows = self.select(table, conditions, columns, "", 1)
        return rows[0] if rows else None

    def insert(self, table: str, record: Record) -> Optional[int]:
        """Insert one row; returns the generated id where the driver reports one."""
        if not record:
            raise ValueError("insert() needs at least one column")
        sql = self._insert_sql(table, list(record))
        params = {_param_name(c): v for c, v in record.items()}
        return self.execute(sql, params).lastrowid

    def batch_insert(
        self,
        table: str,
        records: Iterable[Record],
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> int:
        """
        Insert many rows inside one transaction; returns the affected row count.

        Columns are taken from the first record; keys missing from later
        records are inserted as NULL. Any failure rolls the whole call back
        and is re-raised.
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        records = list(records)
        if not records:
            return 0

        columns = list(records[0])
        sql = self._insert_sql(table, columns)
        total = 0

        self.begin_transaction()
        try:
            for batch in _chunks(records, batch_size):
                params = [
                    {_param_name(c): record.get(c) for c in columns}
                    for record in batch
                ]
                affected = self.execute(sql, params).rowcount
                total += affected if affected >= 0 else len(batch)
            self.commit()
        except Exception:
            self.rollback()
            raise

        logger.info(
            "Batch inserted %d rows into %s", total, table,
            extra={"table": table, "rows": total},
        )
        return total

    def update(self, table: str, conditions: Conditions, record: Record) -> int:
        """Update matching rows; returns the affected row count."""
        if not record:
            raise ValueError("update() needs at least one column to set")

        set_params = dict(zip(_param_names(record), record.values()))
        assignments = ",".join(f"{c}=:{_param_name(c)}" for c in record)
        where, where_params = build_where(conditions, reserved=set_params)
        if not where:
            raise ValueError("update() without conditions is refused")
        clash = set(set_params) & set(where_params)
        if clash:
            raise ValueError(f"Raw condition parameters clash with SET columns: {sorted(clash)}")

        sql = f"UPDATE {table} SET {assignments} WHERE {where}"
        return self.execute_rowcount(sql, {**set_params, **where_params})

    def delete(self, table: str, conditions: Conditions) -> int:
        """Delete matching rows; returns the affected row count (0 if none)."""
        where, params = build_where(conditions)
        if not where:
            raise ValueError("delete() without conditions is refused")
        return self.execute_rowcount(f"DELETE FROM {table} WHERE {where}", params)

    # ── Transactions ──

    def begin_transaction(self) -> None:
        if self._level == 0:
            try:
                if self._conn.in_transaction():
                    # adopt a transaction the connection auto-began
                    self._transaction = self._conn.get_transaction()
                else:
                    self._transaction = self._conn.begin()
            except SQLAlchemyError as e:
                raise DataAccessError(f"Could not begin transaction: {e}") from e
        self._level += 1

    def commit(self) -> None:
        if self._level == 1 and self._transaction is not None:
            try:
                self._transaction.commit()
            except SQLAlchemyError as e:
                raise DataAccessError(f"Commit failed: {e}") from e
            self._transaction = None
        self._level = max(0, self._level - 1)

    def rollback(self) -> None:
        if self._level == 1 and self._transaction is not None:
            try:
                self._transaction.rollback()
            except SQLAlchemyError as e:
                raise DataAccessError(f"Rollback failed: {e}") from e
            self._transaction = None
        self._level = max(0, self._level - 1)

    @contextmanager
    def transaction(self) -> Iterator["DB"]:
        """Begin; commit on success, roll back and re-raise on error."""
        self.begin_transaction()
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        self.commit()

    # ── SQL builders ──

    @staticmethod
    def _insert_sql(table: str, columns: Sequence[str]) -> str:
        names = ",".join(columns)
        placeholders = ",".join(f":{name}" for name in _param_names(columns))
        return f"INSERT INTO {table} ({names}) VALUES ({placeholders})"
