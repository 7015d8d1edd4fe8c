"""Short cache-busting timestamps for request URLs."""

from __future__ import annotations

import time
from collections.abc import Callable

_CHARS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz-_"


def timestamp_from_clock(clock: Callable[[], int]) -> str:
    """Encode ``clock()`` nanoseconds in base 64, least significant digit first."""
    now = clock()
    digits = []
    while now > 0:
        now, rest = divmod(now, len(_CHARS))
        digits.append(_CHARS[rest])
    return "".join(digits)


def timestamp() -> str:
    """Return a timestamp built from the current time."""
    return timestamp_from_clock(time.time_ns)