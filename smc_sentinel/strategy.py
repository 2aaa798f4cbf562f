from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .indicators import highest_high, lowest_low, sma
from .models import (
    BEARISH,
    BREAKER,
    BULLISH,
    LONG,
    SHORT,
    Candle,
    EntrySignal,
    FairValueGap,
    OrderBlock,
)
from .sessions import NONE, PO3_BODY_RATIO, po3_phase, session_for_hour, utc_hour

SCALP_TIMEFRAMES = ("1m", "3m", "5m")


def first_touching_block(obs: Sequence[OrderBlock], direction: str, price: float, before: int) -> Optional[OrderBlock]:
    """Earliest stored unmitigated zone of `direction` whose band holds `price`.

    Storage order decides ties, not distance or recency.
    """
    for ob in obs:
        if ob.direction != direction or ob.mitigated:
            continue
        if ob.price_low <= price <= ob.price_high and ob.time < before:
            return ob
    return None


def first_touching_gap(fvgs: Sequence[FairValueGap], direction: str, price: float, before: int) -> Optional[FairValueGap]:
    for f in fvgs:
        if f.direction != direction or f.mitigated:
            continue
        if f.price_low <= price <= f.price_high and f.time < before:
            return f
    return None


def _block_tag(direction: str, ob: OrderBlock) -> str:
    return f"Retest {direction} {'Breaker' if ob.subtype == BREAKER else 'OB'}"


class SignalEngine:
    """Confluence scorer over a full candle window.

    Every call to `scan` starts from a clean slate; the cooldown clock only
    lives for the duration of one scan.
    """

    def __init__(
        self,
        timeframe: str,
        *,
        warmup_bars: int = 100,
        bias_len: int = 50,
        min_score: int = 4,
        cooldown_s: int = 600,
        stop_lookback: int = 5,
        stop_buffer_pct: float = 0.0005,
        reward_risk: float = 2.0,
        po3_body_ratio: float = PO3_BODY_RATIO,
        scalp_timeframes: Sequence[str] = SCALP_TIMEFRAMES,
    ):
        self.timeframe = timeframe
        self.warmup_bars = max(int(warmup_bars), int(bias_len), int(stop_lookback))
        self.bias_len = bias_len
        self.min_score = min_score
        self.cooldown_s = cooldown_s
        self.stop_lookback = stop_lookback
        self.stop_buffer_pct = stop_buffer_pct
        self.reward_risk = reward_risk
        self.po3_body_ratio = po3_body_ratio
        self.trading_style = "SCALP" if timeframe in tuple(scalp_timeframes) else "DAY_TRADE"

    def score_bar(
        self, c: Candle, obs: Sequence[OrderBlock], fvgs: Sequence[FairValueGap]
    ) -> Tuple[int, List[str], Optional[OrderBlock], Optional[OrderBlock], Optional[FairValueGap], Optional[FairValueGap], str]:
        score = 0
        confluences: List[str] = []

        bull_ob = first_touching_block(obs, BULLISH, c.low, c.time)
        if bull_ob:
            score += 3
            confluences.append(_block_tag(BULLISH, bull_ob))
        bear_ob = first_touching_block(obs, BEARISH, c.high, c.time)
        if bear_ob:
            score += 3
            confluences.append(_block_tag(BEARISH, bear_ob))

        bull_fvg = first_touching_gap(fvgs, BULLISH, c.low, c.time)
        if bull_fvg:
            score += 2
            confluences.append("Discount FVG")
            if bull_fvg.is_silver_bullet:
                score += 4
                confluences.append("Silver Bullet Zone")
        bear_fvg = first_touching_gap(fvgs, BEARISH, c.high, c.time)
        if bear_fvg:
            score += 2
            confluences.append("Premium FVG")
            if bear_fvg.is_silver_bullet:
                score += 4
                confluences.append("Silver Bullet Zone")

        session = session_for_hour(utc_hour(c.time))
        if session != NONE:
            score += 1

        return score, confluences, bull_ob, bear_ob, bull_fvg, bear_fvg, session

    def _can_emit(self, t: int, last_signal_time: Optional[int]) -> bool:
        return last_signal_time is None or (t - last_signal_time) >= self.cooldown_s

    def _build(self, c: Candle, side: str, stop: float, score: int, confluences: List[str], session: str) -> EntrySignal:
        if side == LONG:
            risk = c.close - stop
            target = c.close + risk * self.reward_risk
        else:
            risk = stop - c.close
            target = c.close - risk * self.reward_risk
        return EntrySignal(
            time=c.time,
            side=side,
            price=c.close,
            stop_loss=stop,
            take_profit=target,
            score=score,
            confluences=tuple(confluences),
            win_probability=min(95, score * 10 + 30),
            trading_style=self.trading_style,
            po3_phase=po3_phase(c, session, self.po3_body_ratio),
        )

    def scan(self, candles: Sequence[Candle], obs: Sequence[OrderBlock], fvgs: Sequence[FairValueGap]) -> List[EntrySignal]:
        signals: List[EntrySignal] = []
        last_signal_time: Optional[int] = None
        closes = [c.close for c in candles]

        for i in range(self.warmup_bars, len(candles)):
            c = candles[i]
            avg = sma(closes[i - self.bias_len:i], self.bias_len)
            if avg is None:
                continue
            bullish_bias = c.close > avg

            score, confluences, bull_ob, bear_ob, bull_fvg, bear_fvg, session = self.score_bar(c, obs, fvgs)
            if score < self.min_score or not self._can_emit(c.time, last_signal_time):
                continue

            buffer = c.close * self.stop_buffer_pct
            if bullish_bias and (bull_ob or bull_fvg):
                swing_low = lowest_low(candles, i - self.stop_lookback, i + 1)
                zone_low = bull_ob.price_low if bull_ob else swing_low
                stop = min(swing_low, zone_low) - buffer
                signals.append(self._build(c, LONG, stop, score, confluences, session))
                last_signal_time = c.time
            elif not bullish_bias and (bear_ob or bear_fvg):
                swing_high = highest_high(candles, i - self.stop_lookback, i + 1)
                zone_high = bear_ob.price_high if bear_ob else swing_high
                stop = max(swing_high, zone_high) + buffer
                signals.append(self._build(c, SHORT, stop, score, confluences, session))
                last_signal_time = c.time

        return signals
