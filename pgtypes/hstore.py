"""PostgreSQL hstore values: parsing, rendering and decoding."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from .append import append_error, append_null, append_string
from .flags import Flags, has_flag
from .scan import ScanError

_QUOTE = ord('"')
_BACKSLASH = ord("\\")


def _to_bytes(data: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _unexpected_end() -> ScanError:
    return ScanError("pg: unexpected end of hstore")


class HstoreParser:
    """Read key/value pairs from the text form of an hstore value."""

    def __init__(self, data: bytes | str) -> None:
        self._data = _to_bytes(data)
        self._pos = 0

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

    def _skip_byte(self, wanted: str) -> None:
        c = self._read_required()
        if c != ord(wanted):
            raise ScanError(f"pg: got {chr(c)!r}, wanted {wanted!r}")

    def _skip_optional(self, wanted: str) -> bool:
        if self._pos < len(self._data) and self._data[self._pos] == ord(wanted):
            self._pos += 1
            return True
        return False

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

    def next_key(self) -> bytes:
        """Return the next key; raise StopIteration when there are no more."""
        if self._pos >= len(self._data):
            raise StopIteration
        self._skip_byte('"')
        key = self._read_substring()
        self._skip_byte("=")
        self._skip_byte(">")
        return key

    def next_value(self) -> bytes:
        """Return the value that follows the last key read."""
        self._skip_byte('"')
        value = self._read_substring()
        if self._skip_optional(","):
            self._skip_optional(" ")
        return value

    def __iter__(self) -> Iterator[tuple[bytes, bytes]]:
        while True:
            try:
                key = self.next_key()
            except StopIteration:
                return
            yield key, self.next_value()


def append_hstore(mapping: dict | None, flags: int) -> str:
    """Render a mapping of strings to strings as an hstore literal."""
    if mapping is None:
        return append_null(flags)
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in mapping.items()):
        return append_error(f"pg.Hstore(unsupported {type(mapping).__qualname__})")

    elem_flags = flags | Flags.ARRAY
    body = ",".join(
        append_string(key, elem_flags) + "=>" + append_string(value, elem_flags)
        for key, value in mapping.items()
    )
    if has_flag(flags, Flags.QUOTE):
        return f"'{body}'"
    return body


def scan_hstore(data: bytes | str | None) -> dict[str, str] | None:
    """Decode an hstore value; NULL gives None."""
    if data is None:
        return None
    return {
        key.decode("utf-8", errors="surrogateescape"): value.decode(
            "utf-8", errors="surrogateescape"
        )
        for key, value in HstoreParser(data)
    }


@dataclass
class Hstore:
    """Wraps a dict so that it is rendered and decoded as an hstore.

    When scanning, the wrapped dict is filled in place; a NULL value sets
    ``value`` to None.
    """

    value: Any

    def __post_init__(self) -> None:
        if self.value is None:
            raise ValueError("pg.Hstore(nil)")
        if not isinstance(self.value, dict):
            raise TypeError(f"pg.Hstore(unsupported {type(self.value).__qualname__})")

    def append_value(self, flags: int) -> str:
        return append_hstore(self.value, flags)

    def scan_value(self, data: bytes | str | None) -> None:
        result = scan_hstore(data)
        if result is None:
            self.value = None
        elif self.value is None:
            self.value = result
        else:
            self.value.clear()
            self.value.update(result)