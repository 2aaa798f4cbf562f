from __future__ import annotations
from dataclasses import replace
from functools import reduce
from typing import List, Optional, Sequence, Tuple

from .indicators import mean_body
from .models import BEARISH, BREAKER, BULLISH, STANDARD, Candle, OrderBlock

BODY_LOOKBACK = 100
DEFAULT_THRESHOLD_MULT = 1.2
MAX_ZONES = 10


def impulse_threshold(candles: Sequence[Candle], mult: float = DEFAULT_THRESHOLD_MULT, lookback: int = BODY_LOOKBACK) -> float:
    return mean_body(candles, lookback) * mult


def advance_zone(ob: OrderBlock, c: Candle) -> OrderBlock:
    """One lifecycle step: Standard -> Breaker (direction flips) -> mitigated.

    A Breaker in direction D is mitigated by a close through the boundary
    against D. Mitigated zones never change again.
    """
    if ob.mitigated:
        return ob
    if ob.subtype == STANDARD:
        if ob.direction == BULLISH and c.close < ob.price_low:
            return replace(ob, subtype=BREAKER, direction=BEARISH)
        if ob.direction == BEARISH and c.close > ob.price_high:
            return replace(ob, subtype=BREAKER, direction=BULLISH)
    elif ob.subtype == BREAKER:
        if ob.direction == BULLISH and c.close < ob.price_low:
            return replace(ob, mitigated=True)
        if ob.direction == BEARISH and c.close > ob.price_high:
            return replace(ob, mitigated=True)
    return ob


def find_candidates(candles: Sequence[Candle], threshold: float, timeframe: Optional[str] = None) -> List[Tuple[int, OrderBlock]]:
    out: List[Tuple[int, OrderBlock]] = []
    for i in range(2, len(candles) - 3):
        c = candles[i]
        nxt = candles[i + 1]
        move_up = (nxt.close - nxt.open) > threshold
        move_down = (nxt.open - nxt.close) > threshold

        if c.close < c.open and move_up and nxt.close > c.high:
            out.append((i, OrderBlock(
                id=f"ob-bull-{c.time}",
                time=c.time,
                price_high=c.high,
                price_low=c.low,
                direction=BULLISH,
                timeframe=timeframe,
            )))
        if c.close > c.open and move_down and nxt.close < c.low:
            out.append((i, OrderBlock(
                id=f"ob-bear-{c.time}",
                time=c.time,
                price_high=c.high,
                price_low=c.low,
                direction=BEARISH,
                timeframe=timeframe,
            )))
    return out


def detect_order_blocks(
    candles: Sequence[Candle],
    threshold_mult: float = DEFAULT_THRESHOLD_MULT,
    *,
    lookback: int = BODY_LOOKBACK,
    max_zones: int = MAX_ZONES,
    timeframe: Optional[str] = None,
) -> List[OrderBlock]:
    """Unmitigated impulse zones, keeping only the `max_zones` most recent."""
    if not candles:
        return []
    threshold = impulse_threshold(candles, threshold_mult, lookback)
    zones = [
        reduce(advance_zone, candles[idx + 1:], ob)
        for idx, ob in find_candidates(candles, threshold, timeframe)
    ]
    alive = [ob for ob in zones if not ob.mitigated]
    return alive[-max_zones:] if max_zones > 0 else []
