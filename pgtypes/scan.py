"""Decoding of PostgreSQL text-format values into Python objects."""

from __future__ import annotations

import dataclasses
import io
import ipaddress
import json
import math
import re
import struct
import threading
from datetime import datetime
from typing import Any, Callable, Protocol, runtime_checkable

from .time import ZERO_TIME, parse_time

ScannerFunc = Callable[[Any], Any]

_INT_RE = re.compile(r"[+-]?[0-9]+")
_UINT_RE = re.compile(r"[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)
_HEX_RE = re.compile(r"[0-9a-fA-F]*")

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_UINT64_MAX = (1 << 64) - 1


class ScanError(ValueError):
    """Raised when a value received from the server cannot be decoded."""


@runtime_checkable
class ValueScanner(Protocol):
    """An object that knows how to fill itself from a column value.

    ``data`` is the raw text value, or None for SQL NULL.
    """

    def scan_value(self, data: bytes | None) -> None: ...


def _as_bytes(data: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _ascii(data: bytes | str) -> str:
    raw = _as_bytes(data)
    try:
        return raw.decode("ascii")
    except UnicodeDecodeError as exc:
        raise ScanError(f"pg: invalid number {raw!r}") from exc


def _parse_int(data: bytes | str, bits: int) -> int:
    text = _ascii(data)
    if not _INT_RE.fullmatch(text):
        raise ScanError(f"pg: invalid syntax for integer: {text!r}")
    num = int(text)
    low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    if not low <= num <= high:
        raise ScanError(f"pg: value out of range: {text!r}")
    return num


def _parse_float(data: bytes | str) -> float:
    text = _ascii(data)
    if not _FLOAT_RE.fullmatch(text):
        raise ScanError(f"pg: invalid syntax for float: {text!r}")
    num = float(text)
    if math.isinf(num) and "inf" not in text.lower():
        raise ScanError(f"pg: value out of range: {text!r}")
    return num


def scan_string(data: bytes | str | None) -> str:
    """Decode a text value; NULL and empty values give an empty string."""
    if not data:
        return ""
    return _as_bytes(data).decode("utf-8", errors="surrogateescape")


def read_bytes(data: bytes | str) -> bytes:
    """Decode a bytea value in hex format (``\\x...``)."""
    raw = _as_bytes(data)
    if len(raw) < 2 or raw[:2] != b"\\x":
        raise ScanError(f"pg: can't parse bytea: {raw!r}")
    digits = raw[2:].decode("ascii", errors="replace")
    if not _HEX_RE.fullmatch(digits) or len(digits) % 2:
        raise ScanError(f"pg: invalid hex in bytea: {raw!r}")
    return bytes.fromhex(digits)


def scan_bytes(data: bytes | str | None) -> bytes | None:
    """Decode a bytea value; NULL gives None and an empty value gives b""."""
    if data is None:
        return None
    if not data:
        return b""
    return read_bytes(data)


def new_hex_decoder(data: bytes | str | None) -> io.BytesIO:
    """Return a readable stream of the bytes held in a bytea hex value."""
    if not data:
        return io.BytesIO(b"")
    raw = _as_bytes(data)
    for pos, wanted in enumerate((b"\\", b"x")):
        got = raw[pos : pos + 1]
        if not got:
            raise ScanError("unexpected end of bytea value")
        if got != wanted:
            raise ScanError(f"got {got.decode('latin-1')!r}, wanted {wanted.decode()!r}")
    return io.BytesIO(read_bytes(raw))


def scan_int(data: bytes | str | None) -> int:
    """Decode an integer; NULL and empty values give 0."""
    if not data:
        return 0
    return _parse_int(data, 64)


def scan_int64(data: bytes | str | None) -> int:
    """Decode a 64-bit signed integer; NULL and empty values give 0."""
    if not data:
        return 0
    return _parse_int(data, 64)


def scan_uint64(data: bytes | str | None) -> int:
    """Decode a 64-bit unsigned integer.

    Negative values are accepted and wrapped to their unsigned form, as
    PostgreSQL has no unsigned 64-bit type.
    """
    if not data:
        return 0
    text = _ascii(data)
    if text.startswith("-"):
        return _parse_int(text, 64) & _UINT64_MAX
    if not _UINT_RE.fullmatch(text):
        raise ScanError(f"pg: invalid syntax for unsigned integer: {text!r}")
    num = int(text)
    if num > _UINT64_MAX:
        raise ScanError(f"pg: value out of range: {text!r}")
    return num


def scan_float32(data: bytes | str | None) -> float:
    """Decode a single-precision float; NULL and empty values give 0.0."""
    if not data:
        return 0.0
    num = _parse_float(data)
    try:
        return struct.unpack("<f", struct.pack("<f", num))[0]
    except OverflowError as exc:
        raise ScanError(f"pg: value out of range: {_as_bytes(data)!r}") from exc


def scan_float64(data: bytes | str | None) -> float:
    """Decode a double-precision float; NULL and empty values give 0.0."""
    if not data:
        return 0.0
    return _parse_float(data)


def scan_bool(data: bytes | str | None) -> bool:
    """Decode a boolean: only ``t`` and ``1`` are true."""
    if data is None:
        return False
    return _as_bytes(data) in (b"t", b"1")


def scan_time(data: bytes | str | None) -> datetime:
    """Decode a date/time value; NULL and empty values give the zero time."""
    if not data:
        return ZERO_TIME
    try:
        return parse_time(data)
    except (ValueError, IndexError) as exc:
        raise ScanError(str(exc)) from exc


def scan_ip(data: bytes | str | None):
    """Decode an inet address; NULL gives None."""
    if data is None:
        return None
    text = scan_string(data)
    try:
        return ipaddress.ip_address(text)
    except ValueError as exc:
        raise ScanError(f"pg: invalid ip={text!r}") from exc


def scan_ip_network(data: bytes | str | None):
    """Decode a cidr value; NULL gives None."""
    if data is None:
        return None
    text = scan_string(data)
    if "/" not in text:
        raise ScanError(f"invalid CIDR address: {text}")
    try:
        return ipaddress.ip_network(text, strict=False)
    except ValueError as exc:
        raise ScanError(f"invalid CIDR address: {text}") from exc


def scan_json(data: bytes | str | None) -> Any:
    """Decode a JSON document; NULL gives None."""
    if data is None:
        return None
    try:
        return json.loads(_as_bytes(data))
    except ValueError as exc:
        raise ScanError(f"pg: invalid json: {exc}") from exc


def _scan_bytearray(data: bytes | str | None) -> bytearray | None:
    value = scan_bytes(data)
    return None if value is None else bytearray(value)


_BUILTIN_SCANNERS: dict[type, ScannerFunc] = {
    bool: scan_bool,
    int: scan_int64,
    float: scan_float64,
    str: scan_string,
    bytes: scan_bytes,
    bytearray: _scan_bytearray,
    datetime: scan_time,
    ipaddress.IPv4Address: scan_ip,
    ipaddress.IPv6Address: scan_ip,
    ipaddress.IPv4Network: scan_ip_network,
    ipaddress.IPv6Network: scan_ip_network,
    dict: scan_json,
    list: scan_json,
    tuple: lambda data: None if data is None else tuple(scan_json(data)),
}

_scanners: dict[type, ScannerFunc | None] = {}
_scanners_lock = threading.Lock()


def _value_scanner_func(type_: type) -> ScannerFunc:
    def scan_into(data: bytes | None) -> Any:
        obj = type_()
        obj.scan_value(data)
        return obj

    return scan_into


def _sql_scanner_func(type_: type) -> ScannerFunc:
    def scan_into(data: bytes | None) -> Any:
        obj = type_()
        obj.scan(None if data is None else _as_bytes(data))
        return obj

    return scan_into


def _dataclass_func(type_: type) -> ScannerFunc:
    def scan_into(data: bytes | None) -> Any:
        value = scan_json(data)
        if value is None:
            return None
        if not isinstance(value, dict):
            raise ScanError(f"pg: cannot decode {type(value).__name__} into {type_.__qualname__}")
        return type_(**value)

    return scan_into


def _resolve(type_: type) -> ScannerFunc | None:
    if callable(getattr(type_, "scan_value", None)):
        return _value_scanner_func(type_)
    if callable(getattr(type_, "scan", None)):
        return _sql_scanner_func(type_)
    for klass in type_.__mro__:
        fn = _BUILTIN_SCANNERS.get(klass)
        if fn is not None:
            return fn
    if dataclasses.is_dataclass(type_):
        return _dataclass_func(type_)
    return None


def register_scanner(type_: type, fn: ScannerFunc) -> None:
    """Register a scanner for ``type_``; a type can be registered only once."""
    with _scanners_lock:
        if type_ in _scanners:
            raise ValueError(
                f"pg: scanner for the type={type_.__qualname__} is already registered"
            )
        _scanners[type_] = fn


def scanner_for(type_: type) -> ScannerFunc | None:
    """Return the scanner for values of ``type_``, or None if unsupported."""
    if type_ in _scanners:
        return _scanners[type_]
    fn = _resolve(type_)
    with _scanners_lock:
        return _scanners.setdefault(type_, fn)


def scan_value(type_: type | None, data: bytes | str | None) -> Any:
    """Decode ``data`` into a new value of ``type_``."""
    if type_ is None:
        raise ScanError("pg: Scan(nil)")
    fn = scanner_for(type_)
    if fn is None:
        raise ScanError(f"pg: Scan(unsupported {type_.__qualname__})")
    return fn(data)


def scan(target: Any, data: bytes | str | None) -> Any:
    """Decode ``data`` into ``target``.

    ``target`` is either a type, in which case a new value is returned, or an
    object with a ``scan_value`` or ``scan`` method, which is filled in place
    and returned.
    """
    if target is None:
        raise ScanError("pg: Scan(nil)")
    if isinstance(target, type):
        return scan_value(target, data)
    if isinstance(target, ValueScanner):
        target.scan_value(data)
        return target
    scan_method = getattr(target, "scan", None)
    if callable(scan_method):
        scan_method(None if data is None else _as_bytes(data))
        return target
    raise ScanError(f"pg: Scan(non-pointer {type(target).__qualname__})")