"""Day keys for the *OfTheDay lookups.

A day key is the decimal epoch-millisecond value a transaction was
stamped with. Matching is exact: only an optional minus sign followed by
ASCII digits is accepted, with no whitespace, separators, fractions or
exponents.
"""

from __future__ import annotations

import re

_DAY_KEY = re.compile(r"-?[0-9]+")


def parse_day(value: str) -> int | None:
    """Return the epoch-ms integer for ``value``, or None when it is not one."""
    if _DAY_KEY.fullmatch(value) is None:
        return None
    return int(value)
