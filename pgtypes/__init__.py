"""Conversion of Python values to PostgreSQL literals and of PostgreSQL text values back."""

__version__ = "0.1.0"
__all__ = ["append", "array", "column", "flags", "hstore", "in_op", "scan", "time"]