"""Rendering of value lists for SQL ``IN (...)`` expressions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from .append import append_value


def _append_in(values: Sequence[Any], flags: int) -> str:
    parts = []
    for elem in values:
        if isinstance(elem, (list, tuple)):
            parts.append("(" + _append_in(elem, flags) + ")")
        else:
            parts.append(append_value(elem, flags))
    return ",".join(parts)


@dataclass
class InOp:
    """A list of values rendered comma separated; nested lists are parenthesised."""

    values: Sequence[Any] = field(default_factory=list)
    error: str | None = None

    def append_value(self, flags: int) -> str:
        if self.error is not None:
            raise TypeError(self.error)
        return _append_in(self.values, flags)


def in_(values: Any) -> InOp:
    """Wrap a list of values for an ``IN`` expression."""
    if not isinstance(values, (list, tuple)):
        return InOp(error=f"pg: In(non-slice {type(values).__qualname__})")
    return InOp(values)


def in_multi(*args: Any) -> InOp:
    """Wrap the given arguments for an ``IN`` expression."""
    return InOp(list(args))