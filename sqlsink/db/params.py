from __future__ import annotations

import inspect
import re
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable


_MISSING = object()

# payload / payload.customer / headers[business.id] / items[0]
_PATH_SEGMENT = re.compile(r"\.?([A-Za-z_]\w*)|\[([^\]]*)\]")


@runtime_checkable
class ParameterSource(Protocol):
    """
    Named values for binding into a SQL template.

    Produced fresh for every request and consumed once by the execution call.
    """

    def has_value(self, name: str) -> bool:
        ...

    def get_value(self, name: str) -> Any:
        """Return the value for `name`. Raises KeyError if there is none."""
        ...


@runtime_checkable
class ParameterSourceFactory(Protocol):
    """Produces a ParameterSource from a request object."""

    def create_parameter_source(self, request: Any) -> ParameterSource:
        ...


class MapParameterSource:
    """ParameterSource backed by a plain mapping of name -> value."""

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self.values: dict[str, Any] = dict(values or {})

    def has_value(self, name: str) -> bool:
        return name in self.values

    def get_value(self, name: str) -> Any:
        return self.values[name]

    def __repr__(self) -> str:
        return f"MapParameterSource({self.values!r})"


def _split_path(name: str) -> list[tuple[str, str]] | None:
    """
    Split a property path into ("attr", name) / ("key", key) segments.

    Returns None if the path is not well formed.
    """
    segments: list[tuple[str, str]] = []
    pos = 0
    while pos < len(name):
        m = _PATH_SEGMENT.match(name, pos)
        if m is None:
            return None
        attr, key = m.group(1), m.group(2)
        if attr is not None:
            # a leading dot is only valid after the first segment
            if (pos == 0) == m.group(0).startswith("."):
                return None
            segments.append(("attr", attr))
        else:
            if pos == 0:
                return None
            segments.append(("key", key))
        pos = m.end()
    return segments or None


def _lookup_attr(target: Any, attr: str) -> Any:
    if attr.startswith("_"):
        return _MISSING
    if isinstance(target, Mapping):
        return target[attr] if attr in target else _MISSING
    value = getattr(target, attr, _MISSING)
    if inspect.isroutine(value):
        return _MISSING
    return value


def _lookup_key(target: Any, key: str) -> Any:
    if isinstance(target, Mapping):
        if key in target:
            return target[key]
        if key.lstrip("-").isdigit() and int(key) in target:
            return target[int(key)]
        return _MISSING
    if isinstance(target, Sequence) and not isinstance(target, (str, bytes)):
        try:
            return target[int(key)]
        except (ValueError, IndexError):
            return _MISSING
    return _MISSING


def resolve_property(request: Any, name: str) -> Any:
    """Resolve a property path against `request`; returns a sentinel when absent."""
    segments = _split_path(name)
    if segments is None:
        return _MISSING
    value = request
    for kind, part in segments:
        if value is None:
            return _MISSING
        value = _lookup_attr(value, part) if kind == "attr" else _lookup_key(value, part)
        if value is _MISSING:
            return _MISSING
    return value


class PropertyParameterSource:
    """
    ParameterSource reading public attributes (and nested keys) of a request.

    Static parameters are checked first and win over request properties.
    """

    def __init__(self, request: Any, static_parameters: Mapping[str, Any] | None = None) -> None:
        self.request = request
        self.static_parameters = dict(static_parameters or {})

    def has_value(self, name: str) -> bool:
        if name in self.static_parameters:
            return True
        return resolve_property(self.request, name) is not _MISSING

    def get_value(self, name: str) -> Any:
        if name in self.static_parameters:
            return self.static_parameters[name]
        value = resolve_property(self.request, name)
        if value is _MISSING:
            raise KeyError(name)
        return value


class PropertyParameterSourceFactory:
    """
    Default factory: exposes a request's attributes and headers by name.

    Templates refer to them as, e.g.::

        INSERT INTO FOOS (MESSAGE_ID, PAYLOAD) VALUES (:headers[id], :payload)

    Header keys inside brackets are taken literally, so dotted keys such as
    `headers[business.id]` need no quoting.
    """

    def __init__(self, static_parameters: Mapping[str, Any] | None = None) -> None:
        self.static_parameters = dict(static_parameters or {})

    def create_parameter_source(self, request: Any) -> PropertyParameterSource:
        if request is None:
            raise ValueError("request must not be None")
        return PropertyParameterSource(request, self.static_parameters)


class MapParameterSourceFactory:
    """Ignores the request and always yields the same literal parameters."""

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self.values = dict(values or {})

    def create_parameter_source(self, request: Any) -> MapParameterSource:
        return MapParameterSource(self.values)


class FunctionParameterSourceFactory:
    """Adapts a callable `request -> Mapping` (or ParameterSource) to the factory protocol."""

    def __init__(self, func: Callable[[Any], Mapping[str, Any] | ParameterSource]) -> None:
        self.func = func

    def create_parameter_source(self, request: Any) -> ParameterSource:
        result = self.func(request)
        if isinstance(result, Mapping):
            return MapParameterSource(result)
        return result
