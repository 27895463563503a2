from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Any, Optional

from sqlalchemy.engine import Engine

from .config import UpdateConfig
from .models import ResultRow
from .db.helpers import _parse_sql_operation
from .db.keys import GeneratedKeys
from .db.metrics import observe_db_write, observe_generated_keys
from .db.params import MapParameterSource, ParameterSource
from .db.session import DbSession
from .db.template import NamedTemplate
from .db.tx import DbTx

logger = logging.getLogger(__name__)

UPDATED = "UPDATED"


def resolve_parameter_source(config: UpdateConfig, request: Any) -> ParameterSource:
    """A factory-built source, or an empty one when no factory is configured."""
    if config.parameter_source_factory is None:
        return MapParameterSource()
    return config.parameter_source_factory.create_parameter_source(request)


def execute_update(tx: DbTx, config: UpdateConfig, request: Any) -> list[ResultRow]:
    """
    Run `config.sql` once against `tx` with parameters taken from `request`.

    Returns the generated-key rows when `config.keys_generated` is set
    (possibly none), otherwise a single row `{"UPDATED": <affected rows>}`.

    Raises:
        ValueError: If `request` is None
        ParameterBindingError: If a placeholder has no value for this request
        Any SQLAlchemy / driver error, unchanged
    """
    if request is None:
        raise ValueError("request must not be None")

    source = resolve_parameter_source(config, request)
    stmt, params = NamedTemplate.parse(config.sql).bind(source)

    if config.keys_generated:
        key_holder = GeneratedKeys()
        tx.execute_with_keys(stmt, params, key_holder, config.key_column)
        return key_holder.key_list

    updated = tx.execute(stmt, params)
    return [ResultRow([(UPDATED, updated)])]


class UpdateExecutor:
    """
    Executes a templated SQL write for each request it is given.

    Bind values come from the configured parameter source factory, by default
    the request's attributes and headers:

        executor = UpdateExecutor(
            engine,
            UpdateConfig(
                "INSERT INTO foos (message_id, payload) VALUES (:headers[id], :payload)",
                keys_generated=True,
            ),
        )
        executor.execute(Message("hello", headers={"id": 42}))  # [{'id': 1}]

    Generated keys come from `RETURNING` rows, or from the driver's lastrowid
    after an INSERT. Drivers without a usable lastrowid (psycopg2 on
    PostgreSQL) return no key rows for a plain INSERT; add
    `RETURNING <key column>` to the template there. Upserts also need
    `RETURNING`.

    Without a caller transaction each call runs in its own DbSession, which
    commits on success and rolls back on failure. Nothing is retried and
    errors are not wrapped.
    """

    def __init__(self, engine: Optional[Engine], config: UpdateConfig | str) -> None:
        self.engine = engine
        self._config = config if isinstance(config, UpdateConfig) else UpdateConfig(config)

    @property
    def config(self) -> UpdateConfig:
        return self._config

    def reconfigure(self, **changes: Any) -> UpdateConfig:
        """
        Replace fields of the configuration, e.g. `reconfigure(sql=...)`.

        Invocations already running keep the configuration they started with.
        """
        self._config = replace(self._config, **changes)
        return self._config

    def execute(self, request: Any, tx: Optional[DbTx] = None) -> list[ResultRow]:
        """
        Execute the update for `request`, inside `tx` if one is given.
        """
        config = self._config
        table, op_type = _parse_sql_operation(config.sql)
        start_time = time.monotonic()
        status = "success"

        try:
            if tx is not None:
                rows = execute_update(tx, config, request)
            else:
                if self.engine is None:
                    raise RuntimeError("UpdateExecutor has no engine; pass a transaction")
                with DbSession(self.engine) as session:
                    rows = execute_update(session, config, request)
        except Exception:
            status = "error"
            raise
        finally:
            observe_db_write(table, op_type, status, time.monotonic() - start_time)

        if config.keys_generated:
            observe_generated_keys(table, len(rows))
        logger.debug("Executed update on %s (%s): %s", table, op_type, rows)
        return rows

    def handle_message(self, message: Any, tx: Optional[DbTx] = None) -> list[ResultRow]:
        """
        Message-handler entry point: executes the update and logs generated keys.
        """
        keys_generated = self._config.keys_generated
        rows = self.execute(message, tx=tx)
        if keys_generated and rows:
            logger.debug("Generated keys: %s", rows)
        return rows
