from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.sql.elements import TextClause

from ..errors import ParameterBindingError
from .params import ParameterSource


_BIND_PREFIX = "sqlsink_p"

_TOKEN_REGEX = re.compile(
    r"""
    (?P<squote>'(?:[^']|'')*') |
    (?P<dquote>"(?:[^"]|"")*") |
    (?P<backtick>`[^`]*`) |
    (?P<line_comment>--[^\r\n]*) |
    (?P<block_comment>/\*[\s\S]*?\*/) |
    (?P<cast>::) |
    (?<![\w:\\]):(?P<name>[A-Za-z_]\w*(?:\.[A-Za-z_]\w*|\[[^\]\s]*\])*)
    """,
    re.VERBOSE,
)

_SEQUENCE_TYPES = (list, tuple, set, frozenset)


def _escape_colons(fragment: str) -> str:
    # text() would otherwise read ":word" inside literals as a bind parameter
    return fragment.replace(":", "\\:")


@dataclass(frozen=True)
class NamedTemplate:
    """
    A SQL statement with `:name` placeholders, rewritten for SQLAlchemy.

    Placeholder names may be property paths (`:headers[id]`, `:payload.name`)
    which SQLAlchemy's own `text()` parser does not accept, so each distinct
    name is mapped to a generated bind name. Placeholders inside quoted
    literals and comments, and `::` casts, are left alone.

    Quoted literals follow standard SQL: a backslash is an ordinary character
    and a quote is escaped by doubling it (`'it''s'`). Write MySQL-style
    `\\'` escapes as doubled quotes instead.
    """
    sql: str
    statement_text: str
    bind_names: dict[str, str]

    @classmethod
    def parse(cls, sql: str) -> "NamedTemplate":
        if not isinstance(sql, str):
            raise TypeError(f"sql must be a string, got {type(sql).__name__}")

        out: list[str] = []
        bind_names: dict[str, str] = {}
        pos = 0
        for m in _TOKEN_REGEX.finditer(sql):
            out.append(_escape_colons(sql[pos:m.start()]))
            name = m.group("name")
            if name is None:
                out.append(_escape_colons(m.group(0)))
            else:
                bind_name = bind_names.get(name)
                if bind_name is None:
                    bind_name = f"{_BIND_PREFIX}{len(bind_names)}"
                    bind_names[name] = bind_name
                out.append(f":{bind_name}")
            pos = m.end()
        out.append(_escape_colons(sql[pos:]))
        return cls(sql=sql, statement_text="".join(out), bind_names=bind_names)

    @property
    def parameter_names(self) -> list[str]:
        """Distinct placeholder names in order of first appearance."""
        return list(self.bind_names)

    def bind(self, source: ParameterSource) -> tuple[TextClause, dict[str, Any]]:
        """
        Build the executable statement and its bind values from `source`.

        Raises:
            ParameterBindingError: If a placeholder has no value in `source`
        """
        params: dict[str, Any] = {}
        expanding = []
        for name, bind_name in self.bind_names.items():
            if not source.has_value(name):
                raise ParameterBindingError(name, self.sql)
            value = source.get_value(name)
            if isinstance(value, _SEQUENCE_TYPES):
                # IN (:ids) with a sequence expands to one bind per element
                expanding.append(bindparam(bind_name, expanding=True))
                value = list(value)
            params[bind_name] = value

        stmt = text(self.statement_text)
        if expanding:
            stmt = stmt.bindparams(*expanding)
        return stmt, params
