"""Decoding of result columns by their PostgreSQL type."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from .append import append_string
from .array import scan_float64_array, scan_int64_array, scan_string_array
from .scan import (
    ScanError,
    scan_bool,
    scan_bytes,
    scan_float32,
    scan_float64,
    scan_int64,
    scan_string,
    scan_time,
)

_PG_BOOL = 16
_PG_INT2 = 21
_PG_INT4 = 23
_PG_INT8 = 20
_PG_FLOAT4 = 700
_PG_FLOAT8 = 701
_PG_TEXT = 25
_PG_VARCHAR = 1043
_PG_BYTEA = 17
_PG_JSON = 114
_PG_JSONB = 3802
_PG_TIMESTAMP = 1114
_PG_TIMESTAMPTZ = 1184
_PG_INT32_ARRAY = 1007
_PG_INT8_ARRAY = 1016
_PG_FLOAT8_ARRAY = 1022
_PG_STRING_ARRAY = 1009
_PG_UUID = 2950

_JSON_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


@dataclass(frozen=True)
class ColumnInfo:
    """Description of a result column."""

    name: str
    data_type: int
    index: int = 0


@dataclass
class RawValue:
    """The text of a column whose type has no dedicated decoder."""

    type: int
    value: str

    def append_value(self, flags: int) -> str:
        return append_string(self.value, flags)

    def marshal_json(self) -> bytes:
        text = json.dumps(self.value, ensure_ascii=False)
        text = "".join(_JSON_HTML_ESCAPES.get(c, c) for c in text)
        return text.encode("utf-8")


def _scan_sized_int(data: bytes | str | None, bits: int) -> int:
    num = scan_int64(data)
    if not -(1 << (bits - 1)) <= num <= (1 << (bits - 1)) - 1:
        raise ScanError(f"pg: value out of range: {data!r}")
    return num


def read_column_value(col: ColumnInfo, data: bytes | str | None) -> Any:
    """Decode ``data`` according to the column's data type."""
    oid = col.data_type
    if oid == _PG_BOOL:
        return scan_bool(data)
    if oid == _PG_INT2:
        return _scan_sized_int(data, 16)
    if oid == _PG_INT4:
        return _scan_sized_int(data, 32)
    if oid == _PG_INT8:
        return scan_int64(data)
    if oid == _PG_FLOAT4:
        return scan_float32(data)
    if oid == _PG_FLOAT8:
        return scan_float64(data)
    if oid == _PG_BYTEA:
        return scan_bytes(data)
    if oid in (_PG_TEXT, _PG_VARCHAR, _PG_UUID):
        return scan_string(data)
    if oid in (_PG_JSON, _PG_JSONB):
        return scan_string(data).encode("utf-8", errors="surrogateescape")
    if oid in (_PG_TIMESTAMP, _PG_TIMESTAMPTZ):
        return scan_time(data)
    if oid in (_PG_INT32_ARRAY, _PG_INT8_ARRAY):
        return scan_int64_array(data)
    if oid == _PG_FLOAT8_ARRAY:
        return scan_float64_array(data)
    if oid == _PG_STRING_ARRAY:
        return scan_string_array(data)
    return RawValue(type=oid, value=scan_string(data))