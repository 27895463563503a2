from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ..models import ResultRow


class GeneratedKeys:
    """
    Accumulates generated-key rows reported by the database for one statement.

    Usage:
        keys = GeneratedKeys()
        session.execute_with_keys("INSERT INTO foos (name) VALUES (:name)", {"name": "x"}, keys)
        keys.key  # the single generated key value
    """

    def __init__(self) -> None:
        self._rows: list[ResultRow] = []

    def add(self, row: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> None:
        self._rows.append(row if isinstance(row, ResultRow) else ResultRow(row))

    @property
    def key_list(self) -> list[ResultRow]:
        return list(self._rows)

    @property
    def keys(self) -> ResultRow | None:
        """The only key row, or None if no keys were generated."""
        if not self._rows:
            return None
        if len(self._rows) > 1:
            raise ValueError(f"Expected a single key row but {len(self._rows)} were generated")
        return self._rows[0]

    @property
    def key(self) -> Any:
        """The only generated key value, or None if no keys were generated."""
        row = self.keys
        if row is None:
            return None
        if len(row) != 1:
            raise ValueError(f"Expected a single key column but got {list(row)}")
        return next(iter(row.values()))

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return f"GeneratedKeys({self._rows!r})"
