import pytest

from pgtypes.hstore import Hstore, HstoreParser, append_hstore, scan_hstore
from pgtypes.scan import ScanError

HSTORE_TESTS = [
    ('""=>""', {"": ""}),
    ('"k\'\'k"=>"k\'\'k"', {"k''k": "k''k"}),
    ('"k\\"k"=>"k\\"k"', {'k"k': 'k"k'}),
    ('"k\\k"=>"k\\k"', {"k\\k": "k\\k"}),
    ('"foo"=>"bar"', {"foo": "bar"}),
    ('"foo"=>"bar","k"=>"v"', {"foo": "bar", "k": "v"}),
]


@pytest.mark.parametrize("text,expected", HSTORE_TESTS)
def test_scan_hstore(text, expected):
    assert scan_hstore(text.encode()) == expected


def test_scan_hstore_null():
    assert scan_hstore(None) is None


def test_scan_hstore_empty():
    assert scan_hstore(b"") == {}


def test_parser_iterates_pairs_with_space_after_comma():
    pairs = list(HstoreParser(b'"a"=>"1", "b"=>"2"'))
    assert pairs == [(b"a", b"1"), (b"b", b"2")]


def test_parser_next_key_and_value():
    p = HstoreParser(b'"x"=>"y"')
    assert p.next_key() == b"x"
    assert p.next_value() == b"y"
    with pytest.raises(StopIteration):
        p.next_key()


def test_parser_rejects_missing_arrow():
    with pytest.raises(ScanError):
        scan_hstore(b'"x"="y"')


def test_parser_rejects_truncated():
    with pytest.raises(ScanError):
        scan_hstore(b'"x"=>"y')


def test_append_single_pair():
    assert append_hstore({"foo": "bar"}, 0) == '"foo"=>"bar"'
    assert append_hstore({"foo": "bar"}, 1) == '\'"foo"=>"bar"\''


def test_append_escapes():
    assert append_hstore({'k"k': "k\\k"}, 0) == '"k\\"k"=>"k\\\\k"'
    assert append_hstore({"it's": "x"}, 1) == '\'"it\'\'s"=>"x"\''


def test_append_null_and_empty():
    assert append_hstore(None, 1) == "NULL"
    assert append_hstore(None, 0) == ""
    assert append_hstore({}, 1) == "''"


def test_append_unsupported_renders_error():
    assert append_hstore({"a": 1}, 0).startswith("?!(pg.Hstore(unsupported")


@pytest.mark.parametrize("_text,mapping", HSTORE_TESTS)
def test_round_trip(_text, mapping):
    assert scan_hstore(append_hstore(mapping, 0)) == mapping


def test_hstore_wrapper_append_and_scan_in_place():
    src = {"hello": "world"}
    rendered = Hstore(src).append_value(1)
    assert rendered == '\'"hello"=>"world"\''

    dst: dict = {"stale": "value"}
    wrapper = Hstore(dst)
    wrapper.scan_value(rendered[1:-1].encode())
    assert dst == {"hello": "world"}
    assert wrapper.value is dst


def test_hstore_wrapper_scan_null():
    wrapper = Hstore({"a": "b"})
    wrapper.scan_value(None)
    assert wrapper.value is None


def test_hstore_wrapper_rejects_nil_and_non_map():
    with pytest.raises(ValueError, match="Hstore\\(nil\\)"):
        Hstore(None)
    with pytest.raises(TypeError, match="unsupported"):
        Hstore(["a"])