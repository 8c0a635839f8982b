"""Common infrastructure utilities."""

from __future__ import annotations

from .parsers import format_size, parse_size_to_bytes

__all__ = [
    "format_size",
    "parse_size_to_bytes",
]
