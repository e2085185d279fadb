"""Rendering of Python values as PostgreSQL literals."""

from __future__ import annotations

import dataclasses
import ipaddress
import json
import math
import threading
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Protocol, runtime_checkable

from .flags import Flags, has_flag
from .time import _format_rfc3339nano, append_time

AppenderFunc = Callable[[Any, int], str]


@runtime_checkable
class ValueAppender(Protocol):
    """An object that knows how to render itself as SQL."""

    def append_value(self, flags: int) -> str: ...


class Safe(str):
    """A piece of SQL inserted verbatim, without escaping."""

    def append_value(self, flags: int) -> str:
        return str(self)


class Ident(str):
    """A SQL identifier such as a table or column name."""

    def append_value(self, flags: int) -> str:
        return append_ident(str(self), flags)


def append_null(flags: int) -> str:
    return "NULL" if has_flag(flags, Flags.QUOTE) else ""


def append_error(err: BaseException | str) -> str:
    return f"?!({err})"


def append_bool(value: bool) -> str:
    return "TRUE" if value else "FALSE"


def _fixed(value: float) -> str:
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _float_text(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return _fixed(value)


def append_float(value: float, flags: int) -> str:
    text = _float_text(value)
    if has_flag(flags, Flags.ARRAY):
        return text
    if (math.isnan(value) or math.isinf(value)) and has_flag(flags, Flags.QUOTE):
        return f"'{text}'"
    return text


_ARRAY_ESCAPES = {0: None, ord('"'): '\\"', ord("\\"): "\\\\"}
_ARRAY_ESCAPES_QUOTED = {**_ARRAY_ESCAPES, ord("'"): "''"}


def append_string(s: str, flags: int) -> str:
    """Render a string; NUL characters are always dropped."""
    if has_flag(flags, Flags.ARRAY):
        table = _ARRAY_ESCAPES_QUOTED if has_flag(flags, Flags.QUOTE) else _ARRAY_ESCAPES
        return '"' + s.translate(table) + '"'
    s = s.replace("\0", "")
    if has_flag(flags, Flags.QUOTE):
        return "'" + s.replace("'", "''") + "'"
    return s


def _bytes_delimiters(flags: int) -> tuple[str, str]:
    if has_flag(flags, Flags.ARRAY):
        return '"\\', '"'
    if has_flag(flags, Flags.QUOTE):
        return "'", "'"
    return "", ""


def append_bytes(data: bytes | None, flags: int) -> str:
    """Render bytes in the bytea hex format."""
    if data is None:
        return append_null(flags)
    prefix, suffix = _bytes_delimiters(flags)
    return f"{prefix}\\x{bytes(data).hex()}{suffix}"


def append_ident(field: str, flags: int) -> str:
    """Render a possibly dotted identifier, quoting each part."""
    quote = has_flag(flags, Flags.QUOTE)
    out: list[str] = []
    quoted = False
    for c in field:
        if c == "*" and not quoted:
            out.append("*")
            continue
        if c == ".":
            if quoted and quote:
                out.append('"')
                quoted = False
            out.append(".")
            continue
        if not quoted and quote:
            out.append('"')
            quoted = True
        out.append('""' if c == '"' else c)
    if quoted and quote:
        out.append('"')
    return "".join(out)


def append_jsonb(jsonb: bytes | str, flags: int) -> str:
    """Escape an encoded JSON document for use as a literal."""
    if isinstance(jsonb, (bytes, bytearray, memoryview)):
        jsonb = bytes(jsonb).decode("utf-8")
    array = has_flag(flags, Flags.ARRAY)
    quote = has_flag(flags, Flags.QUOTE)
    delimiter = '"' if array else ("'" if quote else "")

    out = [delimiter]
    i, n = 0, len(jsonb)
    while i < n:
        c = jsonb[i]
        i += 1
        if c == '"':
            out.append('\\"' if array else '"')
        elif c == "'":
            out.append("''" if quote else "'")
        elif c == "\0":
            continue
        elif c == "\\":
            if jsonb.startswith("u0000", i):
                out.append("\\\\u0000")
                i += 5
            else:
                out.append("\\")
                if i < n:
                    out.append(jsonb[i])
                    i += 1
        else:
            out.append(c)
    out.append(delimiter)
    return "".join(out)


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, datetime):
        return _format_rfc3339nano(value)
    marshal = getattr(value, "marshal_json", None)
    if callable(marshal):
        return json.loads(marshal())
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def append_json(value: Any, flags: int) -> str:
    """Encode ``value`` as JSON and render it as a literal."""
    try:
        text = json.dumps(
            value,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
            default=_json_default,
        )
    except (TypeError, ValueError) as exc:
        return append_error(exc)
    return append_jsonb(text, flags)


def _append_appender(value: ValueAppender, flags: int) -> str:
    try:
        return value.append_value(flags)
    except Exception as exc:  # noqa: BLE001 - errors are rendered inline
        return append_error(exc)


def _append_as_string(value: Any, flags: int) -> str:
    return append_string(str(value), flags)


_BUILTIN_APPENDERS: dict[type, AppenderFunc] = {
    type(None): lambda value, flags: append_null(flags),
    bool: lambda value, flags: append_bool(value),
    int: lambda value, flags: str(int(value)),
    float: append_float,
    str: append_string,
    datetime: append_time,
    bytes: append_bytes,
    bytearray: append_bytes,
    memoryview: lambda value, flags: append_bytes(bytes(value), flags),
    ipaddress.IPv4Address: _append_as_string,
    ipaddress.IPv6Address: _append_as_string,
    ipaddress.IPv4Network: _append_as_string,
    ipaddress.IPv6Network: _append_as_string,
    ipaddress.IPv4Interface: _append_as_string,
    ipaddress.IPv6Interface: _append_as_string,
}

_appenders: dict[type, AppenderFunc] = {}
_appenders_lock = threading.Lock()


def _resolve(type_: type) -> AppenderFunc:
    if callable(getattr(type_, "append_value", None)):
        return _append_appender
    for klass in type_.__mro__:
        fn = _BUILTIN_APPENDERS.get(klass)
        if fn is not None:
            return fn
    return append_json


def register_appender(type_: type, fn: AppenderFunc) -> None:
    """Register an appender for ``type_``; a type can be registered only once."""
    with _appenders_lock:
        if type_ in _appenders:
            raise ValueError(
                f"pg: appender for the type={type_.__qualname__} is already registered"
            )
        _appenders[type_] = fn


def appender_for(type_: type) -> AppenderFunc:
    """Return the appender used for values of exactly ``type_``."""
    fn = _appenders.get(type_)
    if fn is not None:
        return fn
    fn = _resolve(type_)
    with _appenders_lock:
        return _appenders.setdefault(type_, fn)


def append_value(value: Any, flags: int) -> str:
    """Render any supported value as SQL text."""
    if value is None:
        return append_null(flags)
    return appender_for(type(value))(value, flags)


class HexEncoder:
    """Incrementally render a stream of bytes as a bytea hex literal."""

    def __init__(self, flags: int = 0) -> None:
        self._flags = flags
        self._parts: list[str] = []
        self._written = False
        self._closed = False

    def write(self, data: bytes) -> int:
        if self._closed:
            raise ValueError("write to closed HexEncoder")
        if not self._written:
            prefix, _ = _bytes_delimiters(self._flags)
            self._parts.append(prefix + "\\x")
            self._written = True
        self._parts.append(bytes(data).hex())
        return len(data)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._written:
            _, suffix = _bytes_delimiters(self._flags)
            self._parts.append(suffix)
        else:
            self._parts = [append_null(self._flags)]

    def getvalue(self) -> str:
        return "".join(self._parts)

    def __enter__(self) -> HexEncoder:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()