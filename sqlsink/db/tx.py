from __future__ import annotations

from typing import Any, Mapping, Protocol

from sqlalchemy.engine import Engine, Connection
from sqlalchemy.sql.elements import TextClause

from .keys import GeneratedKeys
from .session import run_update, run_update_with_keys


class DbTx(Protocol):
    """
    Protocol for the update primitives an UpdateExecutor runs against.

    Implemented by DbTransaction; DbSession offers the same methods.
    """

    def execute(
        self,
        sql: str | TextClause,
        params: Mapping[str, Any] | None = None,
    ) -> int:
        """Execute a non-SELECT statement and return affected row count."""
        ...

    def execute_with_keys(
        self,
        sql: str | TextClause,
        params: Mapping[str, Any] | None,
        key_holder: GeneratedKeys,
        key_column: str = "id",
    ) -> int:
        """Execute a statement, collecting generated keys; return affected row count."""
        ...


class DbTransaction:
    """
    Database transaction with explicit commit/rollback methods.

    The transaction begins on construction and must be explicitly
    committed or rolled back. After commit or rollback, the connection
    is closed and the transaction cannot be used again.

    Usage:
        factory = DbFactory(engine)
        tx = factory.begin()
        try:
            executor.execute(message, tx=tx)
            tx.commit()
        except Exception:
            tx.rollback()
            raise
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._closed = False
        self._conn: Connection | None = self.engine.connect()
        self._tx = self._conn.begin()

    def _connection(self) -> Connection:
        """Get the active connection, raising if closed."""
        if self._closed or self._conn is None:
            raise RuntimeError("Transaction is closed")
        return self._conn

    def _close(self) -> None:
        self._closed = True
        if self._conn is not None:
            self._conn.close()
        self._conn = None
        self._tx = None

    def commit(self) -> None:
        """
        Commit the transaction and close the connection.

        Raises:
            RuntimeError: If transaction is already closed
        """
        if self._closed:
            raise RuntimeError("Transaction is already closed")
        try:
            if self._tx is not None:
                self._tx.commit()
        finally:
            self._close()

    def rollback(self) -> None:
        """
        Rollback the transaction and close the connection.

        Raises:
            RuntimeError: If transaction is already closed
        """
        if self._closed:
            raise RuntimeError("Transaction is already closed")
        try:
            if self._tx is not None:
                self._tx.rollback()
        finally:
            self._close()

    def execute(
        self,
        sql: str | TextClause,
        params: Mapping[str, Any] | None = None,
    ) -> int:
        return run_update(self._connection(), sql, params)

    def execute_with_keys(
        self,
        sql: str | TextClause,
        params: Mapping[str, Any] | None,
        key_holder: GeneratedKeys,
        key_column: str = "id",
    ) -> int:
        return run_update_with_keys(self._connection(), sql, params, key_holder, key_column)


class DbFactory:
    """
    Factory for creating database transactions.

    Usage:
        factory = DbFactory(engine)
        tx = factory.begin()
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def begin(self) -> DbTransaction:
        return DbTransaction(self.engine)
