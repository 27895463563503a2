from __future__ import annotations

import re

from sqlalchemy.sql.elements import TextClause


_OPERATION_REGEX = re.compile(
    r"""
    ^\s*(?:
        (?P<insert>INSERT)\s+(?:IGNORE\s+)?INTO |
        (?P<replace>REPLACE)\s+INTO |
        (?P<update>UPDATE) |
        (?P<delete>DELETE)\s+FROM
    )\s+(?P<table>[`"\[]?[\w.]+[`"\]]?)
    """,
    re.IGNORECASE | re.VERBOSE,
)


def _parse_sql_operation(sql: str | TextClause) -> tuple[str, str]:
    """
    Extract (table, op_type) from a write statement for metric labels.

    Returns ("unknown", "unknown") for anything it does not recognise. The
    result is only used to label metrics.

    Example:
        >>> _parse_sql_operation("INSERT INTO `orders` (id) VALUES (:id)")
        ('orders', 'insert')
    """
    raw = sql.text if isinstance(sql, TextClause) else sql
    m = _OPERATION_REGEX.match(raw)
    if m is None:
        return "unknown", "unknown"
    op_type = next(
        name for name in ("insert", "replace", "update", "delete") if m.group(name)
    )
    if op_type == "replace":
        op_type = "insert"
    table = m.group("table").strip('`"[]')
    return table, op_type


def _is_insert(sql: str | TextClause) -> bool:
    """True for INSERT / REPLACE statements, the only ones that can report a lastrowid."""
    return _parse_sql_operation(sql)[1] == "insert"
