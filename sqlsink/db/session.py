from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import text
from sqlalchemy.engine import Connection, CursorResult, Engine
from sqlalchemy.sql.elements import TextClause

from .helpers import _is_insert
from .keys import GeneratedKeys


def _rowcount(result: CursorResult) -> int:
    if result.rowcount is None:
        raise RuntimeError(
            "execute() received None rowcount for statement. "
            "This may indicate a DDL statement or unsupported operation type."
        )
    return int(result.rowcount)


def run_update(
    conn: Connection,
    sql: str | TextClause,
    params: Mapping[str, Any] | None = None,
) -> int:
    """Execute a non-SELECT statement on `conn` and return the affected row count."""
    stmt = text(sql) if isinstance(sql, str) else sql
    result = conn.execute(stmt, params or {})
    try:
        return _rowcount(result)
    finally:
        result.close()


def run_update_with_keys(
    conn: Connection,
    sql: str | TextClause,
    params: Mapping[str, Any] | None,
    key_holder: GeneratedKeys,
    key_column: str = "id",
) -> int:
    """
    Execute a statement on `conn` and collect generated keys into `key_holder`.

    Rows returned by the statement (e.g. `INSERT ... RETURNING id`) are all
    key rows. Otherwise, for an INSERT or REPLACE that affected rows, the
    driver's lastrowid (when it reports one) becomes a single
    `{key_column: lastrowid}` row. Other statements, including upserts that
    take their UPDATE path, only report keys through `RETURNING`.

    Returns the affected row count.
    """
    stmt = text(sql) if isinstance(sql, str) else sql
    result = conn.execute(stmt, params or {})
    try:
        if result.returns_rows:
            # every returned row is a key row
            rows = [list(row.items()) for row in result.mappings()]
            for row in rows:
                key_holder.add(row)
            return len(rows)

        rowcount = _rowcount(result)
        lastrowid = result.lastrowid if _is_insert(stmt) else None
        if rowcount > 0 and lastrowid:
            key_holder.add([(key_column, lastrowid)])
        return rowcount
    finally:
        result.close()


class DbSession:
    """
    Transactional wrapper around a SQLAlchemy Engine connection.

    Use as:
        with DbSession(engine) as session:
            session.execute(...)
            session.execute_with_keys(...)
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._conn: Connection | None = None
        self._tx = None

    def __enter__(self) -> "DbSession":
        if self._conn is not None:
            raise RuntimeError("DbSession is already active; nested sessions are not allowed")
        self._conn = self.engine.connect()
        self._tx = self._conn.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._tx is not None:
                if exc_type:
                    self._tx.rollback()
                else:
                    self._tx.commit()
        finally:
            if self._conn is not None:
                self._conn.close()

            self._conn = None
            self._tx = None

        # propagate exceptions (if any)
        return False

    def _connection(self) -> Connection:
        if self._conn is None:
            raise RuntimeError("DbSession is not active; use within a context manager")
        return self._conn

    def execute(
        self,
        sql: str | TextClause,
        params: Mapping[str, Any] | None = None,
    ) -> int:
        """
        Execute a non-SELECT statement and return affected row count.
        """
        return run_update(self._connection(), sql, params)

    def execute_with_keys(
        self,
        sql: str | TextClause,
        params: Mapping[str, Any] | None,
        key_holder: GeneratedKeys,
        key_column: str = "id",
    ) -> int:
        """
        Execute an INSERT (or any statement generating keys), collecting the
        generated keys into `key_holder`. Returns affected row count.
        """
        return run_update_with_keys(self._connection(), sql, params, key_holder, key_column)
