"""Formatting flags that control how values are rendered into SQL text."""

from __future__ import annotations

from enum import IntFlag


class Flags(IntFlag):
    """Bit flags passed to every appender."""

    NONE = 0
    QUOTE = 1
    ARRAY = 2
    SUBARRAY = 4


def has_flag(flags: int, flag: int) -> bool:
    """Return True if every bit of ``flag`` is set in ``flags``."""
    return flags & flag == flag


def should_quote_array(flags: int) -> bool:
    """Return True if an array literal must be wrapped in single quotes."""
    return has_flag(flags, Flags.QUOTE) and not has_flag(flags, Flags.SUBARRAY)