"""PostgreSQL array literals: parsing, rendering and decoding."""

from __future__ import annotations

import typing
from dataclasses import dataclass
from typing import Any, Iterator, Protocol, runtime_checkable

from .append import append_null, append_value
from .flags import Flags, should_quote_array
from .scan import ScanError, scan_float64, scan_int64, scan_string, scanner_for

_QUOTE = ord('"')
_BACKSLASH = ord("\\")
_LBRACE = ord("{")
_RBRACE = ord("}")
_COMMA = ord(",")


def _to_bytes(data: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _unexpected_end() -> ScanError:
    return ScanError("pg: unexpected end of array")


class ArrayParser:
    """Split the text form of an array into its top-level elements.

    Elements are returned as bytes; an unquoted ``NULL`` is returned as None.
    Nested arrays are returned whole, in their text form.
    """

    def __init__(self, data: bytes | str) -> None:
        self._data = _to_bytes(data)
        self._pos = 0
        c = self._read()
        if c is None:
            raise _unexpected_end()
        if c != _LBRACE:
            raise ScanError(f"pg: got {chr(c)!r}, wanted '{{'")

    def _read(self) -> int | None:
        if self._pos >= len(self._data):
            return None
        c = self._data[self._pos]
        self._pos += 1
        return c

    def _read_required(self) -> int:
        c = self._read()
        if c is None:
            raise _unexpected_end()
        return c

    def next_elem(self) -> bytes | None:
        """Return the next element; raise StopIteration at the end."""
        c = self._read()
        if c is None or c == _RBRACE:
            raise StopIteration
        if c == _QUOTE:
            elem = self._read_substring()
            self._read_comma_brace()
            return elem
        if c == _LBRACE:
            elem = self._read_sub_array()
            self._read_comma_brace()
            return elem
        self._pos -= 1
        elem = self._read_simple()
        if elem == b"NULL":
            return None
        return elem

    def __iter__(self) -> Iterator[bytes | None]:
        return self

    def __next__(self) -> bytes | None:
        return self.next_elem()

    def _read_substring(self) -> bytes:
        out = bytearray()
        c = self._read_required()
        while True:
            if c == _QUOTE:
                return bytes(out)
            nxt = self._read_required()
            if c == _BACKSLASH:
                if nxt in (_BACKSLASH, _QUOTE):
                    out.append(nxt)
                    c = self._read_required()
                else:
                    out.append(_BACKSLASH)
                    c = nxt
                continue
            out.append(c)
            c = nxt

    def _read_sub_array(self) -> bytes:
        out = bytearray(b"{")
        while True:
            c = self._read_required()
            if c == _RBRACE:
                out.append(c)
                return bytes(out)
            if c == _QUOTE:
                out.append(c)
                while True:
                    end = self._data.find(b'"', self._pos)
                    if end < 0:
                        raise _unexpected_end()
                    out += self._data[self._pos : end + 1]
                    self._pos = end + 1
                    if len(out) > 1 and out[-2] != _BACKSLASH:
                        break
                continue
            out.append(c)

    def _read_simple(self) -> bytes:
        end = self._data.find(b",", self._pos)
        if end >= 0:
            elem = self._data[self._pos : end]
            self._pos = end + 1
            return elem
        elem = self._data[self._pos :]
        self._pos = len(self._data)
        if elem.endswith(b"}"):
            return elem[:-1]
        raise _unexpected_end()

    def _read_comma_brace(self) -> None:
        c = self._read()
        if c is None:
            raise _unexpected_end()
        if c not in (_COMMA, _RBRACE):
            raise ScanError(f"pg: got {chr(c)!r}, wanted ',' or '}}'")


def parse_array(data: bytes | str) -> list[bytes | None]:
    """Return the top-level elements of an array literal."""
    return list(ArrayParser(data))


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _append_elem(value: Any, flags: int) -> str:
    if _is_sequence(value):
        return append_array(value, flags)
    return append_value(value, flags)


def append_array(values: list | tuple | None, flags: int) -> str:
    """Render a list (possibly nested) as an array literal."""
    flags = flags | Flags.ARRAY
    if values is None:
        return append_null(flags)
    if not _is_sequence(values):
        raise TypeError(f"pg: Array(unsupported {type(values).__qualname__})")
    elem_flags = flags | Flags.SUBARRAY
    text = "{" + ",".join(_append_elem(v, elem_flags) for v in values) + "}"
    if should_quote_array(flags):
        return f"'{text}'"
    return text


def scan_string_array(data: bytes | str | None) -> list[str] | None:
    """Decode a text array; NULL elements become empty strings."""
    if data is None:
        return None
    return [scan_string(elem) for elem in ArrayParser(data)]


def _number(elem: bytes, convert) -> Any:
    if not elem:
        raise ScanError("pg: invalid syntax for number: ''")
    return convert(elem)


def scan_int_array(data: bytes | str | None) -> list[int] | None:
    """Decode an integer array; NULL elements become 0."""
    return scan_int64_array(data)


def scan_int64_array(data: bytes | str | None) -> list[int] | None:
    """Decode a bigint array; NULL elements become 0."""
    if data is None:
        return None
    return [0 if elem is None else _number(elem, scan_int64) for elem in ArrayParser(data)]


def scan_float64_array(data: bytes | str | None) -> list[float] | None:
    """Decode a double precision array; NULL elements become 0.0."""
    if data is None:
        return None
    return [
        0.0 if elem is None else _number(elem, scan_float64) for elem in ArrayParser(data)
    ]


def scan_array(data: bytes | str | None, elem_type: Any) -> list | None:
    """Decode an array whose elements are of ``elem_type``.

    ``elem_type`` may be ``list`` or ``list[T]`` for multi-dimensional arrays.
    """
    if data is None:
        return None
    if elem_type is str:
        return scan_string_array(data)
    if elem_type is int:
        return scan_int64_array(data)
    if elem_type is float:
        return scan_float64_array(data)

    if elem_type is list or typing.get_origin(elem_type) is list:
        args = typing.get_args(elem_type)
        inner = args[0] if args else str
        return [scan_array(elem, inner) for elem in ArrayParser(data)]

    fn = scanner_for(elem_type)
    if fn is None:
        name = getattr(elem_type, "__qualname__", repr(elem_type))
        raise ScanError(f"pg: Scan(unsupported {name})")
    return [fn(elem) for elem in ArrayParser(data)]


@runtime_checkable
class ArrayValueScanner(Protocol):
    """An object that consumes array elements one at a time."""

    def before_scan_array_value(self, data: bytes) -> None: ...

    def scan_array_value(self, data: bytes | None) -> None: ...

    def after_scan_array_value(self) -> None: ...


def scan_array_value_scanner(scanner: ArrayValueScanner, data: bytes | str | None):
    """Feed every element of an array to ``scanner``; NULL feeds nothing."""
    if data is None:
        return scanner
    raw = _to_bytes(data)
    scanner.before_scan_array_value(raw)
    for elem in ArrayParser(raw):
        scanner.scan_array_value(elem)
    scanner.after_scan_array_value()
    return scanner


@dataclass
class Array:
    """Wraps a list so that it is rendered and decoded as a PostgreSQL array.

    When scanning, the wrapped list is filled in place; a NULL value sets
    ``value`` to None.
    """

    value: Any
    elem_type: Any = str

    def __post_init__(self) -> None:
        if self.value is None:
            raise ValueError("pg: Array(nil)")

    def append_value(self, flags: int) -> str:
        return append_array(self.value, flags)

    def scan_value(self, data: bytes | str | None) -> None:
        if isinstance(self.value, ArrayValueScanner):
            scan_array_value_scanner(self.value, data)
            return
        if isinstance(self.value, tuple):
            raise ScanError(f"pg: Array(non-pointer {type(self.value).__qualname__})")
        if self.value is not None and not isinstance(self.value, list):
            raise ScanError(f"pg: Array(unsupported {type(self.value).__qualname__})")

        result = scan_array(data, self.elem_type)
        if result is None:
            self.value = None
        elif self.value is None:
            self.value = result
        else:
            self.value[:] = result