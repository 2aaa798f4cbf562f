from datetime import date

from smc_sentinel.formatters import format_daily, format_range, format_signal, format_stats, format_top_setups
from smc_sentinel.models import BacktestStats, DailyStat, EntrySignal, PriceRange


def _sig(**kw) -> EntrySignal:
    base = dict(
        time=0,
        side="LONG",
        price=101.0,
        stop_loss=99.5,
        take_profit=104.0,
        score=7,
        confluences=("Discount FVG", "Silver Bullet Zone"),
        win_probability=95,
        trading_style="DAY_TRADE",
        po3_phase="ACCUMULATION",
    )
    base.update(kw)
    return EntrySignal(**base)


def test_format_signal():
    text = format_signal(_sig(backtest_result="WIN", backtest_pnl=2000.0), symbol="BTCUSDT", timeframe="15m")
    assert text.splitlines()[0] == "LONG SETUP BTCUSDT | 15m (7 pts, 95%)"
    assert "Time: 1970-01-01 00:00 UTC" in text
    assert "Entry: 101 | SL: 99.5 | TP: 104" in text
    assert "Confluences: Discount FVG, Silver Bullet Zone" in text
    assert "Backtest: WIN (+2000)" in text


def test_format_stats_and_daily():
    stats = BacktestStats(3, 1, 2, 33.333, 0.0, 1.0, 2000.0, (100000.0, 102000.0, 101000.0, 100000.0))
    assert format_stats(stats) == (
        "trades=3 wins=1 losses=2 win_rate=33.3% net_pnl=+0 profit_factor=1.00 max_dd=2000"
    )
    day = DailyStat(date(2024, 5, 1), 2000.0, 2000.0, 0.0, 3, ())
    assert format_daily([day]) == "2024-05-01: trades=3 gain=+2000 loss=-2000 net=+0"
    assert format_daily([]) == "No historical data available for analysis."


def test_format_range():
    pd = PriceRange(high=110.0, low=90.0)
    assert format_range(pd, 105.0) == "range=90..110 eq=100 zone=PREMIUM"
    assert format_range(pd, 95.0).endswith("zone=DISCOUNT")
    assert format_range(None) == "range=-"


def test_format_top_setups():
    text = format_top_setups([_sig(time=60), _sig(time=120, side="SHORT", score=5)])
    assert text.splitlines() == [
        "1. LONG 1970-01-01 00:01 score=7 entry=101 sl=99.5 tp=104",
        "2. SHORT 1970-01-01 00:02 score=5 entry=101 sl=99.5 tp=104",
    ]
    assert format_top_setups([]) == "No setups."
