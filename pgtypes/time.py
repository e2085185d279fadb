"""Parsing and formatting of PostgreSQL date and time values."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .flags import Flags, has_flag

UTC = timezone.utc
ZERO_TIME = datetime(1, 1, 1, tzinfo=UTC)

_TIME_LAYOUT_LEN = len("15:04:05.999999999")

_DATE = r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
_CLOCK = (
    r"(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"
    r"(?:\.(?P<frac>\d{1,9}))?"
)

_DATE_RE = re.compile(_DATE)
_CLOCK_RE = re.compile(_CLOCK)
_TIMESTAMP_RE = re.compile(_DATE + " " + _CLOCK)
_TIMESTAMPTZ_RE = re.compile(
    _DATE + " " + _CLOCK + r"(?P<sign>[+-])(?P<oh>\d{2}):(?P<om>\d{2}):(?P<os>\d{2})"
)
_TIMESTAMPTZ2_RE = re.compile(
    _DATE + " " + _CLOCK + r"(?P<sign>[+-])(?P<oh>\d{2}):(?P<om>\d{2})"
)
_TIMESTAMPTZ3_RE = re.compile(_DATE + " " + _CLOCK + r"(?P<sign>[+-])(?P<oh>\d{2})")
_RFC3339_RE = re.compile(
    _DATE + "T" + _CLOCK + r"(?:(?P<z>Z)|(?P<sign>[+-])(?P<oh>\d{2}):(?P<om>\d{2}))"
)


def _match(pattern: re.Pattern, s: str) -> dict:
    m = pattern.fullmatch(s)
    if m is None:
        raise ValueError(f"cannot parse {s!r} as time")
    return m.groupdict()


def _zone(groups: dict) -> timezone:
    if groups.get("z") or groups.get("sign") is None:
        return UTC
    delta = timedelta(
        hours=int(groups["oh"]),
        minutes=int(groups.get("om") or 0),
        seconds=int(groups.get("os") or 0),
    )
    if groups["sign"] == "-":
        delta = -delta
    return timezone(delta)


def _build(groups: dict, tz: timezone) -> datetime:
    frac = groups.get("frac") or ""
    microsecond = int((frac + "000000")[:6])
    return datetime(
        int(groups.get("year") or 1),
        int(groups.get("month") or 1),
        int(groups.get("day") or 1),
        int(groups.get("hour") or 0),
        int(groups.get("minute") or 0),
        int(groups.get("second") or 0),
        microsecond,
        tzinfo=tz,
    )


def parse_time(data: bytes | str) -> datetime:
    """Parse a date/time value as sent by the server."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        data = bytes(data).decode("utf-8")
    return parse_time_string(data)


def parse_time_string(s: str) -> datetime:
    """Parse a date, a time of day, a timestamp or a timestamp with zone.

    Values without a zone are taken as UTC. A bare time of day is placed on
    the earliest representable date.
    """
    n = len(s)
    if n <= _TIME_LAYOUT_LEN:
        if n > 2 and s[2] == ":":
            return _build(_match(_CLOCK_RE, s), UTC)
        return _build(_match(_DATE_RE, s), UTC)

    if s[10] == "T":
        groups = _match(_RFC3339_RE, s)
        return _build(groups, _zone(groups))
    for pos, pattern in ((9, _TIMESTAMPTZ_RE), (6, _TIMESTAMPTZ2_RE), (3, _TIMESTAMPTZ3_RE)):
        if s[n - pos] in "+-":
            groups = _match(pattern, s)
            return _build(groups, _zone(groups))
    return _build(_match(_TIMESTAMP_RE, s), UTC)


def _as_utc(tm: datetime) -> datetime:
    if tm.tzinfo is None:
        tm = tm.replace(tzinfo=UTC)
    return tm.astimezone(UTC)


def _fraction(microsecond: int) -> str:
    if not microsecond:
        return ""
    return "." + f"{microsecond:06d}".rstrip("0")


def _clock_text(tm: datetime, sep: str) -> str:
    return (
        f"{tm.year:04d}-{tm.month:02d}-{tm.day:02d}{sep}"
        f"{tm.hour:02d}:{tm.minute:02d}:{tm.second:02d}{_fraction(tm.microsecond)}"
    )


def _format_rfc3339nano(tm: datetime) -> str:
    if tm.tzinfo is None:
        tm = tm.replace(tzinfo=UTC)
    base = _clock_text(tm, "T")
    offset = tm.utcoffset()
    if not offset:
        return base + "Z"
    total = int(offset.total_seconds())
    sign = "-" if total < 0 else "+"
    total = abs(total)
    return f"{base}{sign}{total // 3600:02d}:{total % 3600 // 60:02d}"


def append_time(tm: datetime, flags: int) -> str:
    """Render ``tm`` in UTC as a timestamptz literal; naive values are UTC."""
    text = _clock_text(_as_utc(tm), " ") + "+00:00:00"
    if flags == 1:
        return f"'{text}'"
    return text


@dataclass
class NullTime:
    """A timestamp whose zero value is rendered as NULL and JSON null."""

    time: datetime | None = None

    @property
    def is_zero(self) -> bool:
        return self.time is None or _as_utc(self.time) == ZERO_TIME

    def append_value(self, flags: int) -> str:
        if self.is_zero:
            return "NULL" if has_flag(flags, Flags.QUOTE) else ""
        return append_time(self.time, flags)

    def scan(self, data: bytes | str | None) -> None:
        if data is None:
            self.time = None
            return
        self.time = parse_time(data)

    def marshal_json(self) -> bytes:
        if self.is_zero:
            return b"null"
        return json.dumps(_format_rfc3339nano(self.time)).encode("utf-8")

    def unmarshal_json(self, data: bytes | str) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        if data == b"null":
            self.time = None
            return
        value = json.loads(data)
        if not isinstance(value, str):
            raise ValueError(f"cannot parse {data!r} as time")
        groups = _match(_RFC3339_RE, value)
        self.time = _build(groups, _zone(groups))