# pgtypes

pgtypes converts between Python values and the text forms PostgreSQL uses.
It writes values as SQL literals and reads back the text the server returns.
It handles scalars, timestamps, `bytea`, JSON and JSONB, arrays, `hstore` and
`IN (...)` lists. It has no dependencies outside the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Flags

Each appender takes a `flags` integer built from `pgtypes.flags.Flags`:

- `Flags.QUOTE` makes the result a quoted SQL literal. `None` becomes `NULL`.
- `Flags.ARRAY` and `Flags.SUBARRAY` are used inside array and hstore
  literals.
- With no flags (`0`) you get the bare text form. `None` becomes an empty
  string.

The helpers `has_flag(flags, flag)` and `should_quote_array(flags)` test these
bits.

## Writing values

```python
from pgtypes.append import append_value, append_ident, append_jsonb, Safe, Ident
from pgtypes.flags import Flags

append_value("it's", Flags.QUOTE)        # "'it''s'"
append_value(None, Flags.QUOTE)          # "NULL"
append_value(True, 0)                    # "TRUE"
append_value(b"\x01\x02", Flags.QUOTE)   # "'\\x0102'"
append_ident("table.id", Flags.QUOTE)    # '"table"."id"'
Safe("now()").append_value(Flags.QUOTE)  # "now()"
Ident("user").append_value(Flags.QUOTE)  # '"user"'
```

`append_value` picks a renderer from the value's type:

- Booleans, integers, floats and strings. Floats include `NaN`, `Infinity`
  and `-Infinity`.
- `datetime`, written in UTC as a `timestamptz` literal. Naive values are
  taken as UTC.
- `bytes`, written in the hex `bytea` format.
- `ipaddress` addresses, networks and interfaces, written as strings.
- Any object with an `append_value(flags)` method. The `ValueAppender`
  protocol describes this method. If the method raises, the error is written
  inline as `?!(message)`.
- Any other value is encoded as JSON by `append_json`, and dataclasses are
  encoded as objects.

NUL characters are dropped from strings. In JSON text, `append_jsonb` doubles
a `\u0000` escape so that PostgreSQL accepts it.

Use `register_appender(type_, fn)` to add a renderer for a type of your own.
`fn(value, flags)` returns the text. A type can be registered only once; a
second registration raises `ValueError`. `appender_for(type_)` returns the
renderer in use for a type.

`HexEncoder` builds a `bytea` literal from chunks. It can be used as a context
manager:

```python
from pgtypes.append import HexEncoder

with HexEncoder(Flags.QUOTE) as enc:
    enc.write(b"\x01")
    enc.write(b"\x02")
enc.getvalue()                           # "'\\x0102'"
```

If nothing was written, the result is `NULL` (with `Flags.QUOTE`).

## Arrays and hstore

```python
from pgtypes.array import Array, append_array, parse_array, scan_array, scan_int_array
from pgtypes.hstore import Hstore, scan_hstore

Array([1, 2, 3]).append_value(Flags.QUOTE)   # "'{1,2,3}'"
append_array([[1, 2], [3, 4]], 0)            # "{{1,2},{3,4}}"
parse_array(b'{1,NULL,"a b"}')               # [b"1", None, b"a b"]
scan_int_array(b"{1,2,3}")                   # [1, 2, 3]
scan_array(b"{{1,2},{3}}", list[int])        # [[1, 2], [3]]

Hstore({"k": "v"}).append_value(Flags.QUOTE) # '\'"k"=>"v"\''
scan_hstore(b'"foo"=>"bar","k"=>"v"')        # {"foo": "bar", "k": "v"}
```

- `ArrayParser` iterates over the top-level elements of an array literal.
  Nested arrays come back whole, in their text form, and an unquoted `NULL`
  comes back as `None`.
- `scan_string_array`, `scan_int64_array` and `scan_float64_array` decode
  arrays of their type. `NULL` elements become `""`, `0` or `0.0`.
- `Array.scan_value(data)` fills the wrapped list in place. If the wrapped
  object follows the `ArrayValueScanner` protocol, each element is passed to
  it instead; `scan_array_value_scanner` does the same directly.
- `HstoreParser` iterates over `(key, value)` pairs.
- `Hstore.scan_value(data)` fills the wrapped dict in place.

## IN lists

```python
from pgtypes.in_op import in_, in_multi

in_([1, 2, 3]).append_value(0)              # "1,2,3"
in_multi([1, 2], [3, 4]).append_value(0)    # "(1,2),(3,4)"
```

If you pass `in_` something that is not a list or tuple, the error is
deferred: `append_value` then raises `TypeError`.

## Reading values

```python
from pgtypes.scan import scan, scan_int64, scan_bytes, scan_bool, scan_value
from pgtypes.time import parse_time_string, NullTime
from pgtypes.column import ColumnInfo, read_column_value

scan_int64(b"42")                           # 42
scan_bytes(b"\\x0102")                      # b"\x01\x02"
scan_bool(b"t")                             # True
scan_value(float, b"1.5")                   # 1.5
parse_time_string("2006-01-02 15:04:05-07") # timezone-aware datetime
read_column_value(ColumnInfo(name="n", data_type=23), b"7")  # 7
```

Passing `None` as the data stands for SQL `NULL`.

- Scalar scanners: `scan_string`, `scan_bytes`, `read_bytes`, `scan_int`,
  `scan_int64`, `scan_uint64`, `scan_float32`, `scan_float64`, `scan_bool`,
  `scan_time`, `scan_ip`, `scan_ip_network` and `scan_json`.
  `new_hex_decoder` returns a `BytesIO` with the bytes of a `bytea` value.
- `scan(target, data)` takes one of two targets:
  - a type, in which case it returns a new value;
  - an object with a `scan_value(data)` method (the `ValueScanner` protocol)
    or a `scan(data)` method, which it fills in place.
- Use `register_scanner(type_, fn)` to add a decoder for a type of your own.
  `scanner_for(type_)` returns the decoder in use, or `None`.
- `read_column_value` decodes by the column's PostgreSQL type OID. Unknown
  types come back as `RawValue(type, value)`.
- `NullTime` wraps a `datetime`. Its zero value is written as `NULL` and
  JSON `null`.

Malformed input raises `ScanError`, which is a subclass of `ValueError`, or
`ValueError` itself.

## What this package does not do

pgtypes only converts values to and from text. It does not:

- open connections to a server;
- send queries;
- manage transactions;
- map rows to models.

It has no command-line program.