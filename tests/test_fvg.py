from smc_sentinel.fvg import detect_fvgs, is_silver_bullet
from smc_sentinel.models import Candle


def _c(ts: int, o: float, h: float, l: float, c: float) -> Candle:
    return Candle(time=ts, open=o, high=h, low=l, close=c)


def _bullish_triplet(t0: int = 0, step: int = 60):
    return [
        _c(t0, 98, 100, 97, 99),
        _c(t0 + step, 99, 106, 99, 105),
        _c(t0 + 2 * step, 105, 108, 105, 107),
    ]


def test_bullish_gap_detected():
    candles = _bullish_triplet()
    gaps = detect_fvgs(candles, "15m")

    assert len(gaps) == 1
    g = gaps[0]
    assert g.direction == "Bullish"
    assert (g.price_low, g.price_high) == (100, 105)
    assert g.time == candles[1].time
    assert g.id == f"fvg-bull-{candles[1].time}"
    assert g.timeframe == "15m"
    assert g.mitigated is False


def test_bullish_gap_removed_once_traded_through():
    candles = _bullish_triplet() + [_c(180, 104, 104, 99, 100)]
    assert detect_fvgs(candles) == []


def test_partial_fill_keeps_gap():
    candles = _bullish_triplet() + [_c(180, 106, 106, 101, 102)]
    gaps = detect_fvgs(candles)
    assert len(gaps) == 1
    assert gaps[0].price_low == 100


def test_bearish_gap_and_mitigation():
    candles = [
        _c(0, 110, 111, 108, 109),
        _c(60, 109, 109, 101, 102),
        _c(120, 102, 104, 100, 101),
    ]
    gaps = detect_fvgs(candles)
    assert len(gaps) == 1
    assert gaps[0].direction == "Bearish"
    assert (gaps[0].price_low, gaps[0].price_high) == (104, 108)

    candles.append(_c(180, 101, 108.5, 101, 108))
    assert detect_fvgs(candles) == []


def test_silver_bullet_hours():
    assert is_silver_bullet(3 * 3600)
    assert is_silver_bullet(9 * 3600 + 1800)
    assert is_silver_bullet(14 * 3600)
    assert not is_silver_bullet(10 * 3600)

    gaps = detect_fvgs(_bullish_triplet(t0=9 * 3600 - 60))
    assert gaps[0].is_silver_bullet is True
    gaps = detect_fvgs(_bullish_triplet(t0=10 * 3600))
    assert gaps[0].is_silver_bullet is False


def test_too_short_series():
    assert detect_fvgs([]) == []
    assert detect_fvgs(_bullish_triplet()[:2]) == []
