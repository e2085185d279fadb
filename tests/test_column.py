import json
from datetime import datetime, timezone

import pytest

from pgtypes.column import ColumnInfo, RawValue, read_column_value
from pgtypes.scan import ScanError


def col(oid):
    return ColumnInfo(name="c", data_type=oid)


def test_bool():
    assert read_column_value(col(16), b"t") is True
    assert read_column_value(col(16), b"f") is False


def test_integers():
    assert read_column_value(col(21), b"-12") == -12
    assert read_column_value(col(23), b"123456") == 123456
    assert read_column_value(col(20), b"9223372036854775807") == 9223372036854775807


def test_int2_out_of_range():
    with pytest.raises(ScanError):
        read_column_value(col(21), b"40000")


def test_int4_out_of_range():
    with pytest.raises(ScanError):
        read_column_value(col(23), b"3000000000")


def test_null_integer_is_zero():
    assert read_column_value(col(20), None) == 0


def test_floats():
    assert read_column_value(col(701), b"1.5") == 1.5
    assert read_column_value(col(700), b"0.25") == 0.25


def test_bytea():
    assert read_column_value(col(17), b"\\x0102ff") == b"\x01\x02\xff"
    assert read_column_value(col(17), None) is None


def test_text_types():
    for oid in (25, 1043, 2950):
        assert read_column_value(col(oid), b"hello") == "hello"


def test_json_is_raw_bytes():
    raw = b'{"a":[1,2]}'
    assert read_column_value(col(3802), raw) == raw
    assert read_column_value(col(114), raw) == raw


def test_timestamp():
    got = read_column_value(col(1184), b"2006-02-03 10:30:35+00")
    assert got == datetime(2006, 2, 3, 10, 30, 35, tzinfo=timezone.utc)


def test_arrays():
    assert read_column_value(col(1007), b"{1,2,3}") == [1, 2, 3]
    assert read_column_value(col(1016), b"{4,NULL}") == [4, 0]
    assert read_column_value(col(1022), b"{1.5,2.5}") == [1.5, 2.5]
    assert read_column_value(col(1009), b'{"a b",c}') == ["a b", "c"]


def test_unknown_type_gives_raw_value():
    got = read_column_value(col(600), b"(1,2)")
    assert got == RawValue(type=600, value="(1,2)")


def test_raw_value_append():
    rv = RawValue(type=600, value="it's")
    assert rv.append_value(1) == "'it''s'"
    assert rv.append_value(0) == "it's"


def test_raw_value_marshal_json_round_trip():
    rv = RawValue(type=600, value="a <b> & \"c\"")
    encoded = rv.marshal_json()
    assert json.loads(encoded) == rv.value
    assert b"<" not in encoded and b"&" not in encoded