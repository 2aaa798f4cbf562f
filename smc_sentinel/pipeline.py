from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import List, Optional, Sequence, Tuple

from .backtest import daily_stats, run_backtest
from .config import BacktestConfig, StrategyConfig
from .fvg import detect_fvgs
from .indicators import highest_high, lowest_low
from .models import (
    BacktestStats,
    Candle,
    DailyStat,
    EntrySignal,
    FairValueGap,
    OrderBlock,
    PriceRange,
    StructurePoint,
)
from .order_blocks import detect_order_blocks
from .strategy import SCALP_TIMEFRAMES, SignalEngine
from .structure import detect_structure

log = logging.getLogger("pipeline")


@dataclass(frozen=True)
class AnalysisResult:
    symbol: str
    timeframe: str
    htf_timeframe: Optional[str]
    last_time: Optional[int]
    structure: Tuple[StructurePoint, ...]
    fvgs: Tuple[FairValueGap, ...]
    order_blocks: Tuple[OrderBlock, ...]
    signals: Tuple[EntrySignal, ...]
    stats: BacktestStats
    daily: Tuple[DailyStat, ...]
    premium_discount: Optional[PriceRange]
    htf_fvgs: Tuple[FairValueGap, ...]
    htf_order_blocks: Tuple[OrderBlock, ...]
    top_setups: Tuple[EntrySignal, ...] = ()
    trend: str = "Neutral"


def top_setups(signals: Sequence[EntrySignal], n: int = 3) -> List[EntrySignal]:
    """Highest-scoring signals first; equal scores keep their time order."""
    return sorted(signals, key=lambda s: s.score, reverse=True)[:n]


def current_trend(structure: Sequence[StructurePoint]) -> str:
    return structure[-1].direction if structure else "Neutral"


def premium_discount_range(candles: Sequence[Candle], lookback: int = 100) -> Optional[PriceRange]:
    if not candles:
        return None
    start = len(candles) - lookback
    return PriceRange(
        high=highest_high(candles, start, len(candles)),
        low=lowest_low(candles, start, len(candles)),
    )


def build_engine(timeframe: str, cfg: StrategyConfig) -> SignalEngine:
    return SignalEngine(
        timeframe,
        warmup_bars=cfg.warmup_bars,
        bias_len=cfg.bias_len,
        min_score=cfg.min_score,
        cooldown_s=cfg.cooldown_s,
        stop_lookback=cfg.stop_lookback,
        stop_buffer_pct=cfg.stop_buffer_pct,
        reward_risk=cfg.reward_risk,
        po3_body_ratio=cfg.po3_body_ratio,
        scalp_timeframes=cfg.scalp_timeframes or SCALP_TIMEFRAMES,
    )


def analyze(
    candles: Sequence[Candle],
    htf_candles: Sequence[Candle],
    timeframe: str,
    strategy: Optional[StrategyConfig] = None,
    backtest: Optional[BacktestConfig] = None,
    *,
    symbol: str = "",
    htf_timeframe: Optional[str] = None,
) -> AnalysisResult:
    """One full pass over a bar snapshot. Pure: same input, same result."""
    strategy = strategy or StrategyConfig()
    backtest = backtest or BacktestConfig()
    candles = tuple(candles)
    htf_candles = tuple(htf_candles)

    structure = detect_structure(candles, strategy.swing_length)
    if strategy.ob_timeframes is None or timeframe in strategy.ob_timeframes:
        obs = detect_order_blocks(
            candles,
            strategy.ob_threshold_mult,
            lookback=strategy.ob_body_lookback,
            max_zones=strategy.ob_max_zones,
            timeframe=timeframe,
        )
    else:
        obs = []
    fvgs = detect_fvgs(candles, timeframe)

    raw_signals = build_engine(timeframe, strategy).scan(candles, obs, fvgs)
    signals, stats = run_backtest(
        candles,
        raw_signals,
        initial_balance=backtest.initial_balance,
        risk_amount=backtest.risk_amount,
        reward_amount=backtest.reward_amount,
        profit_factor_cap=backtest.profit_factor_cap,
    )
    daily = daily_stats(
        signals,
        tz=backtest.daily_timezone,
        max_days=backtest.daily_max_days,
        max_trades_per_day=backtest.daily_max_trades,
        risk_amount=backtest.risk_amount,
        reward_amount=backtest.reward_amount,
    )

    htf_obs = detect_order_blocks(
        htf_candles,
        strategy.ob_threshold_mult,
        lookback=strategy.ob_body_lookback,
        max_zones=strategy.ob_max_zones,
        timeframe=htf_timeframe,
    )
    htf_fvgs = detect_fvgs(htf_candles, htf_timeframe)

    log.debug(
        "analyze symbol=%s tf=%s bars=%d htf_bars=%d structure=%d fvgs=%d obs=%d signals=%d",
        symbol, timeframe, len(candles), len(htf_candles), len(structure), len(fvgs), len(obs), len(signals),
    )

    return AnalysisResult(
        symbol=symbol,
        timeframe=timeframe,
        htf_timeframe=htf_timeframe,
        last_time=candles[-1].time if candles else None,
        structure=tuple(structure),
        fvgs=tuple(fvgs),
        order_blocks=tuple(obs),
        signals=tuple(signals),
        stats=stats,
        daily=tuple(daily),
        premium_discount=premium_discount_range(candles, strategy.pd_lookback),
        htf_fvgs=tuple(htf_fvgs),
        htf_order_blocks=tuple(htf_obs),
        top_setups=tuple(top_setups(signals, strategy.top_setups)),
        trend=current_trend(structure),
    )
