from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, List, Sequence, Tuple

from .models import (
    LONG,
    LOSS,
    PENDING,
    WIN,
    BacktestStats,
    Candle,
    DailyStat,
    EntrySignal,
)
from .sessions import parse_tz

INITIAL_BALANCE = 100_000.0
RISK_AMOUNT = 1_000.0
REWARD_AMOUNT = 2_000.0
PROFIT_FACTOR_CAP = 999.0


def resolve_outcome(sig: EntrySignal, later: Sequence[Candle]) -> str:
    """First boundary touched after the anchor bar; the stop wins a same-bar tie."""
    for c in later:
        if sig.side == LONG:
            if c.low <= sig.stop_loss:
                return LOSS
            if c.high >= sig.take_profit:
                return WIN
        else:
            if c.high >= sig.stop_loss:
                return LOSS
            if c.low <= sig.take_profit:
                return WIN
    return PENDING


def run_backtest(
    candles: Sequence[Candle],
    signals: Sequence[EntrySignal],
    *,
    initial_balance: float = INITIAL_BALANCE,
    risk_amount: float = RISK_AMOUNT,
    reward_amount: float = REWARD_AMOUNT,
    profit_factor_cap: float = PROFIT_FACTOR_CAP,
) -> Tuple[List[EntrySignal], BacktestStats]:
    """Replay each signal under the fixed 1:2 contract.

    Returns new signal records with `backtest_result`/`backtest_pnl` set. A
    signal whose anchor bar is missing from `candles` comes back unchanged.
    """
    index_by_time: Dict[int, int] = {c.time: i for i, c in enumerate(candles)}

    wins = 0
    losses = 0
    net_pnl = 0.0
    balance = float(initial_balance)
    peak = balance
    max_drawdown = 0.0
    equity: List[float] = [balance]
    results: List[EntrySignal] = []

    for sig in signals:
        start = index_by_time.get(sig.time)
        if start is None:
            results.append(sig)
            continue

        outcome = resolve_outcome(sig, candles[start + 1:])
        pnl = 0.0
        if outcome == WIN:
            wins += 1
            pnl = reward_amount
        elif outcome == LOSS:
            losses += 1
            pnl = -risk_amount

        if outcome != PENDING:
            net_pnl += pnl
            balance += pnl
            equity.append(balance)
            peak = max(peak, balance)
            max_drawdown = max(max_drawdown, peak - balance)

        results.append(replace(sig, backtest_result=outcome, backtest_pnl=pnl))

    total = wins + losses
    win_rate = (wins / total) * 100.0 if total > 0 else 0.0
    if losses > 0:
        profit_factor = (wins * reward_amount) / (losses * risk_amount)
    else:
        profit_factor = profit_factor_cap if wins > 0 else 0.0

    stats = BacktestStats(
        total_trades=total,
        wins=wins,
        losses=losses,
        win_rate=win_rate,
        net_pnl=net_pnl,
        profit_factor=profit_factor,
        max_drawdown=max_drawdown,
        equity_curve=tuple(equity),
    )
    return results, stats


def daily_stats(
    signals: Sequence[EntrySignal],
    *,
    tz: str = "UTC",
    max_days: int = 3,
    max_trades_per_day: int = 10,
    risk_amount: float = RISK_AMOUNT,
    reward_amount: float = REWARD_AMOUNT,
) -> List[DailyStat]:
    """Resolved trades grouped per calendar day, newest day first."""
    zone = parse_tz(tz)
    groups: Dict[date, List[EntrySignal]] = defaultdict(list)
    for sig in signals:
        if sig.backtest_result not in (WIN, LOSS):
            continue
        groups[datetime.fromtimestamp(sig.time, tz=zone).date()].append(sig)

    out: List[DailyStat] = []
    for day in sorted(groups, reverse=True)[:max_days]:
        trades = sorted(groups[day], key=lambda s: s.time, reverse=True)[:max_trades_per_day]
        n_wins = sum(1 for t in trades if t.backtest_result == WIN)
        n_losses = len(trades) - n_wins
        gain = reward_amount * n_wins
        loss = risk_amount * n_losses
        out.append(DailyStat(
            date=day,
            total_gain=gain,
            total_loss=loss,
            net_pnl=gain - loss,
            trade_count=len(trades),
            trades=tuple(trades),
        ))
    return out
