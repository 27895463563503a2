from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any


class CaseInsensitivePairs(Mapping[str, Any]):
    """
    Immutable ordered list of (name, value) pairs with case-insensitive lookup.

    Iteration yields names in insertion order with their original spelling.
    A later pair whose name differs only by case replaces the earlier value
    but keeps the earlier position and spelling.
    """

    __slots__ = ("_pairs", "_index")

    def __init__(self, pairs: Iterable[tuple[str, Any]] | Mapping[str, Any] = ()) -> None:
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        ordered: list[list[Any]] = []
        index: dict[str, int] = {}
        for name, value in items:
            if not isinstance(name, str):
                raise TypeError(f"names must be strings, got {type(name).__name__}")
            folded = name.casefold()
            if folded in index:
                ordered[index[folded]][1] = value
            else:
                index[folded] = len(ordered)
                ordered.append([name, value])
        self._pairs: tuple[tuple[str, Any], ...] = tuple((n, v) for n, v in ordered)
        self._index = index

    def __getitem__(self, name: str) -> Any:
        if not isinstance(name, str):
            raise KeyError(name)
        try:
            return self._pairs[self._index[name.casefold()]][1]
        except KeyError:
            raise KeyError(name) from None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self._index

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping):
            return NotImplemented
        if len(self) != len(other):
            return False
        for name, value in other.items():
            if name not in self or self[name] != value:
                return False
        return True

    __hash__ = None  # type: ignore[assignment]

    def pairs(self) -> tuple[tuple[str, Any], ...]:
        return self._pairs

    def __repr__(self) -> str:
        body = ", ".join(f"{name!r}: {value!r}" for name, value in self._pairs)
        return "{" + body + "}"


class ResultRow(CaseInsensitivePairs):
    """One row of an execution result (a generated-key row or the UPDATED row)."""

    __slots__ = ()


class Headers(CaseInsensitivePairs):
    """Message headers. Keys are unique ignoring case."""

    __slots__ = ()


@dataclass(frozen=True)
class Message:
    """
    A message delivered to the executor.

    `payload` is the message body; `headers` is side-channel metadata that
    templates address as `:headers[<key>]`.
    """
    payload: Any
    headers: Headers = field(default_factory=Headers)

    def __post_init__(self) -> None:
        if not isinstance(self.headers, Headers):
            object.__setattr__(self, "headers", Headers(self.headers or ()))

    @property
    def id(self) -> Any:
        return self.headers.get("id")
