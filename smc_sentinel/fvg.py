from __future__ import annotations
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from .models import BEARISH, BULLISH, Candle, FairValueGap

SILVER_BULLET_HOURS = (3, 9, 14)  # UTC


def is_silver_bullet(ts: int) -> bool:
    return datetime.fromtimestamp(ts, tz=timezone.utc).hour in SILVER_BULLET_HOURS


def gap_mitigated(gap: FairValueGap, later: Sequence[Candle]) -> bool:
    """True once a later candle trades through the gap's far boundary."""
    for c in later:
        if gap.direction == BULLISH and c.low < gap.price_low:
            return True
        if gap.direction == BEARISH and c.high > gap.price_high:
            return True
    return False


def detect_fvgs(candles: Sequence[Candle], timeframe: Optional[str] = None) -> List[FairValueGap]:
    """Unmitigated 3-bar imbalances over the whole series, in detection order."""
    found = []  # (middle index, gap)
    for i in range(2, len(candles)):
        c1 = candles[i - 2]
        c2 = candles[i - 1]
        c3 = candles[i]
        sb = is_silver_bullet(c2.time)

        if c1.high < c3.low:
            found.append((i - 1, FairValueGap(
                id=f"fvg-bull-{c2.time}",
                time=c2.time,
                price_high=c3.low,
                price_low=c1.high,
                direction=BULLISH,
                is_silver_bullet=sb,
                timeframe=timeframe,
            )))
        if c1.low > c3.high:
            found.append((i - 1, FairValueGap(
                id=f"fvg-bear-{c2.time}",
                time=c2.time,
                price_high=c1.low,
                price_low=c3.high,
                direction=BEARISH,
                is_silver_bullet=sb,
                timeframe=timeframe,
            )))

    return [gap for mid, gap in found if not gap_mitigated(gap, candles[mid + 1:])]
