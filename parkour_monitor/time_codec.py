"""
time_codec.py

Elapsed-time helpers for checkpoint broadcasts. Log tokens look like
``1:02.500``; display forms are ``M:SS.s`` (axis ticks) and ``MM:SS.mmm``.
"""

import math
import re

from parkour_monitor.config import TIME_PLACEHOLDER

_STRIP_CHARS = re.compile(r"[()+ ]")


def to_seconds(token):
    """Parse ``M:SS.mmm`` (optionally ``(+M:SS.mmm)``) into seconds, or None if malformed."""
    if token is None:
        return None
    cleaned = _STRIP_CHARS.sub("", str(token))
    minutes, sep, rest = cleaned.partition(":")
    if not sep:
        return None
    try:
        value = float(minutes) * 60 + float(rest)
    except ValueError:
        return None
    # three decimals is all the log ever carries
    return round(value, 3)


def _is_number(value):
    if value is None or isinstance(value, bool):
        return False
    if not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def fmt_short(seconds):
    if not _is_number(seconds):
        return TIME_PLACEHOLDER
    minutes = math.floor(seconds / 60)
    return f"{minutes}:{seconds % 60:04.1f}"


def fmt_full(seconds):
    if not _is_number(seconds):
        return TIME_PLACEHOLDER
    minutes = math.floor(seconds / 60)
    return f"{minutes:02d}:{seconds % 60:06.3f}"


def fmt_delta(seconds):
    """Signed seconds with millisecond precision, e.g. ``+1.250s``."""
    if not _is_number(seconds):
        return TIME_PLACEHOLDER
    sign = "+" if seconds > 0 else "-" if seconds < 0 else ""
    return f"{sign}{abs(seconds):.3f}s"
