from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from .models import BacktestStats, DailyStat, EntrySignal, PriceRange


def _fmt_ts(ts: int, tz=timezone.utc) -> str:
    dt = datetime.fromtimestamp(ts, tz=timezone.utc).astimezone(tz)
    return dt.strftime("%Y-%m-%d %H:%M")


def _fmt_price(val: Optional[float]) -> str:
    if val is None:
        return "-"
    return f"{val:g}"


def format_signal(sig: EntrySignal, *, symbol: str = "", timeframe: str = "") -> str:
    head = f"{sig.side} SETUP"
    if symbol:
        head += f" {symbol}"
    if timeframe:
        head += f" | {timeframe}"
    lines = [
        f"{head} ({sig.score} pts, {sig.win_probability}%)",
        f"Time: {_fmt_ts(sig.time)} UTC",
        f"Entry: {_fmt_price(sig.price)} | SL: {_fmt_price(sig.stop_loss)} | TP: {_fmt_price(sig.take_profit)}",
        f"Style: {sig.trading_style} | PO3: {sig.po3_phase}",
    ]
    if sig.confluences:
        lines.append("Confluences: " + ", ".join(sig.confluences))
    if sig.backtest_result:
        lines.append(f"Backtest: {sig.backtest_result} ({sig.backtest_pnl:+.0f})")
    return "\n".join(lines)


def format_stats(stats: BacktestStats) -> str:
    return (
        f"trades={stats.total_trades} wins={stats.wins} losses={stats.losses} "
        f"win_rate={stats.win_rate:.1f}% net_pnl={stats.net_pnl:+.0f} "
        f"profit_factor={stats.profit_factor:.2f} max_dd={stats.max_drawdown:.0f}"
    )


def format_daily(days: List[DailyStat]) -> str:
    if not days:
        return "No historical data available for analysis."
    rows = []
    for d in days:
        rows.append(
            f"{d.date.isoformat()}: trades={d.trade_count} gain={d.total_gain:+.0f} "
            f"loss={-d.total_loss:+.0f} net={d.net_pnl:+.0f}"
        )
    return "\n".join(rows)


def format_range(pd: Optional[PriceRange], price: Optional[float] = None) -> str:
    if pd is None:
        return "range=-"
    zone = ""
    if price is not None:
        zone = " zone=PREMIUM" if price > pd.equilibrium else " zone=DISCOUNT"
    return f"range={_fmt_price(pd.low)}..{_fmt_price(pd.high)} eq={_fmt_price(pd.equilibrium)}{zone}"


def format_top_setups(signals: List[EntrySignal]) -> str:
    if not signals:
        return "No setups."
    rows = []
    for n, sig in enumerate(signals, start=1):
        rows.append(
            f"{n}. {sig.side} {_fmt_ts(sig.time)} score={sig.score} "
            f"entry={_fmt_price(sig.price)} sl={_fmt_price(sig.stop_loss)} tp={_fmt_price(sig.take_profit)}"
        )
    return "\n".join(rows)
