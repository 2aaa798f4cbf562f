from __future__ import annotations
from typing import List, Optional, Sequence

from .models import Candle


def sma(values: List[float], length: int) -> Optional[float]:
    if length <= 0 or len(values) < length:
        return None
    return sum(values[-length:]) / float(length)


def mean_body(candles: Sequence[Candle], lookback: int) -> float:
    """Mean |close - open| over the last `lookback` candles (all if fewer).

    Returns 1.0 when the mean is zero or there is nothing to average, so the
    result is always usable as a denominator or threshold base.
    """
    window = candles[-lookback:] if lookback > 0 else candles
    if not window:
        return 1.0
    mean = sum(abs(c.close - c.open) for c in window) / float(len(window))
    return mean or 1.0


def lowest_low(candles: Sequence[Candle], start: int, end: int) -> float:
    return min(c.low for c in candles[max(0, start):end])


def highest_high(candles: Sequence[Candle], start: int, end: int) -> float:
    return max(c.high for c in candles[max(0, start):end])


def is_strict_pivot_high(candles: Sequence[Candle], idx: int, length: int) -> bool:
    h = candles[idx].high
    for j in range(1, length + 1):
        if h <= candles[idx - j].high or h <= candles[idx + j].high:
            return False
    return True


def is_strict_pivot_low(candles: Sequence[Candle], idx: int, length: int) -> bool:
    lo = candles[idx].low
    for j in range(1, length + 1):
        if lo >= candles[idx - j].low or lo >= candles[idx + j].low:
            return False
    return True
