from datetime import datetime, timedelta, timezone

import pytest

from pgtypes.array import (
    Array,
    ArrayParser,
    ArrayValueScanner,
    append_array,
    parse_array,
    scan_array,
    scan_array_value_scanner,
    scan_float64_array,
    scan_int64_array,
    scan_int_array,
    scan_string_array,
)
from pgtypes.scan import ScanError, scan_int

ARRAY_TESTS = [
    ("{}", []),
    ('{""}', [""]),
    (r'{"\\"}', ["\\"]),
    ("{\"''\"}", ["''"]),
    (r'{{"''\"{}"}}', [r'{"''\"{}"}']),
    (r'{"''\"{}"}', ["''\"{}"]),
    ("{1,2}", ["1", "2"]),
    ("{1,NULL}", ["1", ""]),
    ('{"1","2"}', ["1", "2"]),
    ('{"{1}","{2}"}', ["{1}", "{2}"]),
    ("{{1,2},{3}}", ["{1,2}", "{3}"]),
]


def test_parse_array_null_is_none():
    assert parse_array("{1,NULL}") == [b"1", None]


def test_quoted_null_is_string():
    assert parse_array('{"NULL"}') == [b"NULL"]


def test_parser_iteration_and_end():
    parser = ArrayParser(b"{a,b}")
    assert list(parser) == [b"a", b"b"]
    with pytest.raises(StopIteration):
        parser.next_elem()


@pytest.mark.parametrize(
    "text",
    ["1,2", "", '{"abc', '{"a"x}', "{1,2", "{{1,2"],
)
def test_parse_errors(text):
    with pytest.raises(ScanError):
        parse_array(text)


def test_append_strings():
    values = ["one@example.com", "two@example.com"]
    assert append_array(values, 0) == '{"one@example.com","two@example.com"}'
    assert append_array(values, 1) == '\'{"one@example.com","two@example.com"}\''


def test_append_string_escaping():
    assert append_array(["it's"], 0) == '{"it\'s"}'
    assert append_array(["it's"], 1) == "'{\"it''s\"}'"
    assert append_array(['a"b', "c\\d"], 0) == r'{"a\"b","c\\d"}'


def test_append_ints_and_empty():
    assert append_array([1, 2, 3], 0) == "{1,2,3}"
    assert append_array([], 0) == "{}"
    assert append_array([], 1) == "'{}'"


def test_append_null():
    assert append_array(None, 1) == "NULL"
    assert append_array(None, 0) == ""


def test_append_nested():
    assert append_array([[1, 2], [3, 4]], 0) == "{{1,2},{3,4}}"
    assert append_array([[1, 2], [3, 4]], 1) == "'{{1,2},{3,4}}'"


def test_append_floats_and_bools():
    assert append_array([1.5, float("nan"), float("inf")], 1) == "'{1.5,NaN,Infinity}'"
    assert append_array([True, False], 0) == "{TRUE,FALSE}"
    assert append_array([None, 1], 1) == "'{NULL,1}'"


def test_append_bytes():
    assert append_array([b"\x01\x02"], 0) == r'{"\\x0102"}'


def test_append_non_sequence():
    with pytest.raises(TypeError):
        append_array("abc", 0)


@pytest.mark.parametrize(
    "values",
    [
        ["a", "b"],
        ['a"b', "c\\d", "{x}", "", "a,b", "NULL", "it's"],
        ["plain", " spaced "],
    ],
)
def test_string_round_trip(values):
    assert scan_string_array(append_array(values, 0)) == values


def test_bytes_round_trip():
    values = [b"\x01\x02", b""]
    assert scan_array(append_array(values, 0), bytes) == values


def test_scan_int_arrays():
    assert scan_int_array(b"{1,NULL,3}") == [1, 0, 3]
    assert scan_int64_array(b"{-9223372036854775808}") == [-9223372036854775808]
    assert scan_int_array(None) is None


def test_scan_int_array_invalid():
    with pytest.raises(ScanError):
        scan_int64_array(b"{1,x}")
    with pytest.raises(ScanError):
        scan_int64_array(b'{""}')


def test_scan_float_array():
    assert scan_float64_array(b"{1.5,NULL,-2}") == [1.5, 0.0, -2.0]
    assert scan_float64_array(None) is None


def test_scan_array_nested():
    assert scan_array(b"{{1,2},{3}}", list[int]) == [[1, 2], [3]]
    assert scan_array(b"{{a,b}}", list) == [["a", "b"]]


def test_scan_array_bool_and_time():
    assert scan_array(b"{t,f}", bool) == [True, False]
    got = scan_array(b'{"2001-02-03 04:05:06+07"}', datetime)
    assert got == [datetime(2001, 2, 3, 4, 5, 6, tzinfo=timezone(timedelta(hours=7)))]


def test_scan_array_null_and_unsupported():
    assert scan_array(None, int) is None
    with pytest.raises(ScanError):
        scan_array(b"{a}", object)


def test_array_wrapper_scan_in_place():
    dst: list = []
    arr = Array(dst)
    arr.scan_value(b'{"one@example.com","two@example.com"}')
    assert dst == ["one@example.com", "two@example.com"]


def test_array_wrapper_elem_type_and_null():
    dst = [9]
    arr = Array(dst, int)
    arr.scan_value(b"{1,2,3}")
    assert dst == [1, 2, 3]
    arr.scan_value(None)
    assert arr.value is None
    arr.scan_value(b"{4}")
    assert arr.value == [4]


def test_array_wrapper_append():
    assert Array([1, 2]).append_value(0) == "{1,2}"
    assert Array(["a"]).append_value(1) == "'{\"a\"}'"


def test_array_wrapper_errors():
    with pytest.raises(ValueError, match=r"pg: Array\(nil\)"):
        Array(None)
    with pytest.raises(TypeError):
        Array(5).append_value(0)
    with pytest.raises(ScanError):
        Array((1, 2)).scan_value(b"{1}")
    with pytest.raises(ScanError):
        Array(5).scan_value(b"{1}")


class _Summer:
    def __init__(self):
        self.total = 0
        self.calls: list[str] = []

    def before_scan_array_value(self, data):
        self.calls.append("before")

    def scan_array_value(self, data):
        self.total += scan_int(data)

    def after_scan_array_value(self):
        self.calls.append("after")


def test_array_value_scanner_sum():
    summer = _Summer()
    assert isinstance(summer, ArrayValueScanner)
    data = "{" + ",".join(str(i) for i in range(11)) + "}"
    scan_array_value_scanner(summer, data)
    assert summer.total == 55
    assert summer.calls == ["before", "after"]


def test_array_value_scanner_via_array_and_null():
    summer = _Summer()
    Array(summer).scan_value(b"{1,2,NULL}")
    assert summer.total == 3
    other = _Summer()
    scan_array_value_scanner(other, None)
    assert other.calls == []