from __future__ import annotations

from datetime import datetime, timezone, timedelta
import re

from .models import Candle

ASIA = "ASIA"
LONDON = "LONDON"
NEW_YORK = "NEW_YORK"
NONE = "NONE"

# (name, start hour inclusive, end hour exclusive), UTC. First match wins.
SESSION_WINDOWS = (
    (ASIA, 0, 8),
    (LONDON, 7, 16),
    (NEW_YORK, 12, 21),
)

ACCUMULATION = "ACCUMULATION"
MANIPULATION = "MANIPULATION"
DISTRIBUTION = "DISTRIBUTION"

PO3_BODY_RATIO = 0.6

_TZ_RE = re.compile(r"^UTC([+-])(\d{1,2})$")


def parse_tz(tz_str: str) -> timezone:
    tz_str = (tz_str or "UTC").strip().upper()
    if tz_str == "UTC":
        return timezone.utc
    m = _TZ_RE.match(tz_str)
    if not m:
        raise ValueError(f"Unsupported timezone format: {tz_str} (use 'UTC' or 'UTC+3' etc.)")
    sign = 1 if m.group(1) == "+" else -1
    hours = int(m.group(2))
    return timezone(timedelta(hours=sign * hours))


def utc_hour(ts: int) -> int:
    return datetime.fromtimestamp(ts, tz=timezone.utc).hour


def session_for_hour(hour: int) -> str:
    for name, start, end in SESSION_WINDOWS:
        if start <= hour < end:
            return name
    return NONE


def po3_phase(c: Candle, session: str, body_ratio: float = PO3_BODY_RATIO) -> str:
    if session == ASIA:
        return ACCUMULATION
    if session in (LONDON, NEW_YORK):
        if abs(c.close - c.open) > (c.high - c.low) * body_ratio:
            return DISTRIBUTION
        return MANIPULATION
    return NONE
