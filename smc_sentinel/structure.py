from __future__ import annotations
from typing import List, Optional, Sequence, Tuple

from .indicators import is_strict_pivot_high, is_strict_pivot_low
from .models import BEARISH, BULLISH, Candle, StructurePoint

DEFAULT_SWING_LENGTH = 5


def find_pivots(candles: Sequence[Candle], swing_length: int) -> List[Tuple[int, str, float]]:
    """Strict pivots as (index, "High"|"Low", price), ordered by index.

    Ties are rejected: a pivot high must be strictly above every high within
    `swing_length` bars on both sides (mirror for lows). When a bar is both,
    the high is listed first.
    """
    n = len(candles)
    highs: List[Tuple[int, str, float]] = []
    lows: List[Tuple[int, str, float]] = []
    for i in range(swing_length, n - swing_length):
        if is_strict_pivot_high(candles, i, swing_length):
            highs.append((i, "High", candles[i].high))
        if is_strict_pivot_low(candles, i, swing_length):
            lows.append((i, "Low", candles[i].low))
    return sorted(highs + lows, key=lambda p: p[0])


def detect_structure(candles: Sequence[Candle], swing_length: int = DEFAULT_SWING_LENGTH) -> List[StructurePoint]:
    swing_length = max(1, int(swing_length))
    points: List[StructurePoint] = []
    if len(candles) < 2 * swing_length + 1:
        return points

    last_high: Optional[float] = None
    last_low: Optional[float] = None

    for idx, side, price in find_pivots(candles, swing_length):
        t = candles[idx].time
        if side == "High":
            if last_high is None:
                # first pivot of each kind only seeds memory
                last_high = price
                continue
            kind = "HH" if price > last_high else "LH"
            points.append(StructurePoint(time=t, price=price, kind=kind, direction=BEARISH))
            last_high = price
        else:
            if last_low is None:
                last_low = price
                continue
            kind = "LL" if price < last_low else "HL"
            points.append(StructurePoint(time=t, price=price, kind=kind, direction=BULLISH))
            last_low = price

    return points
