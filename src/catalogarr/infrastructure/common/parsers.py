"""Parsing utilities for data extraction."""

from __future__ import annotations

import re

_GIB = 1024**3
_MIB = 1024**2

_SIZE_RE = re.compile(r"([\d]+(?:[.,]\d+)?)\s*([KMGT]i?B)\b", re.IGNORECASE)

_MULTIPLIERS = {
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
    "TB": 1024**4,
}


def parse_size_to_bytes(size_str: str) -> int:
    """Parse size string to bytes.

    Supports formats:
        - "1234" (raw bytes)
        - "4.5 GB", "4,5 GB", "4.5 GiB"
        - "500 MB"
        - "1.2 TB"

    Args:
        size_str: Size string.

    Returns:
        Size in bytes (int). 0 if nothing recognisable was found.
    """
    if not size_str:
        return 0

    size_str = size_str.strip()
    if size_str.isdigit():
        return int(size_str)

    match = _SIZE_RE.search(size_str)
    if not match:
        return 0

    value = float(match.group(1).replace(",", "."))
    unit = match.group(2).upper().replace("I", "")

    return int(value * _MULTIPLIERS.get(unit, 1))


def format_size(num_bytes: int) -> str:
    """Human-readable size with binary prefixes.

    >>> format_size(1_610_612_736)
    '1.50 GB'
    >>> format_size(524_288_000)
    '500.00 MB'
    >>> format_size(512)
    '512 B'
    """
    if num_bytes >= _GIB:
        return f"{num_bytes / _GIB:.2f} GB"
    if num_bytes >= _MIB:
        return f"{num_bytes / _MIB:.2f} MB"
    return f"{num_bytes} B"
