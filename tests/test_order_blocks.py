from smc_sentinel.models import Candle, OrderBlock
from smc_sentinel.order_blocks import advance_zone, detect_order_blocks, impulse_threshold


def _c(idx: int, o: float, h: float, l: float, c: float) -> Candle:
    return Candle(time=idx * 60, open=o, high=h, low=l, close=c)


def _bullish_setup():
    return [
        _c(0, 100, 101, 99.5, 100.5),
        _c(1, 100, 101, 99.5, 100.5),
        _c(2, 100.5, 101, 99.5, 100),      # last bearish candle before impulse
        _c(3, 100, 103.2, 99.8, 103),      # impulse, closes above candle 2 high
        _c(4, 103, 104, 102.8, 103.5),
        _c(5, 103.5, 104, 102.5, 103),
    ]


def test_impulse_threshold_degenerate_mean():
    assert impulse_threshold([], 1.2) == 1.2
    flat = [_c(i, 10, 10, 10, 10) for i in range(5)]
    assert impulse_threshold(flat, 2.0) == 2.0


def test_impulse_threshold_uses_recent_window():
    old = [_c(i, 0, 50, 0, 50) for i in range(10)]
    recent = [_c(10 + i, 10, 11, 10, 11) for i in range(100)]
    assert impulse_threshold(old + recent, 1.0) == 1.0


def test_standard_bullish_zone_created():
    zones = detect_order_blocks(_bullish_setup(), 1.2, timeframe="15m")

    assert len(zones) == 1
    z = zones[0]
    assert z.direction == "Bullish"
    assert z.subtype == "Standard"
    assert (z.price_low, z.price_high) == (99.5, 101)
    assert z.time == 2 * 60
    assert z.id == "ob-bull-120"
    assert z.timeframe == "15m"


def test_zone_becomes_breaker_then_mitigated():
    candles = _bullish_setup() + [
        _c(6, 103, 103, 98.5, 99),         # close below zone low -> breaker, bearish
        _c(7, 99, 99.4, 98.8, 99.2),
        _c(8, 99.2, 99.4, 98.9, 99.0),
    ]
    zones = detect_order_blocks(candles, 1.2)
    assert len(zones) == 1
    assert zones[0].subtype == "Breaker"
    assert zones[0].direction == "Bearish"
    assert zones[0].mitigated is False

    candles.append(_c(9, 99, 101.8, 99, 101.5))  # close back above zone high
    assert detect_order_blocks(candles, 1.2) == []


def test_advance_zone_transitions():
    bull = OrderBlock(id="ob", time=0, price_high=101, price_low=99, direction="Bullish")
    inside = _c(1, 100, 100.5, 99.5, 100)
    below = _c(2, 100, 100, 98, 98.5)
    above = _c(3, 99, 102, 99, 101.5)

    assert advance_zone(bull, inside) is bull
    assert advance_zone(bull, above) is bull

    breaker = advance_zone(bull, below)
    assert (breaker.subtype, breaker.direction, breaker.mitigated) == ("Breaker", "Bearish", False)
    assert bull.subtype == "Standard"

    # another close below does not mitigate a bearish breaker
    assert advance_zone(breaker, below) is breaker
    done = advance_zone(breaker, above)
    assert done.mitigated is True
    assert advance_zone(done, below) is done


def test_bearish_zone_flips_to_bullish_breaker():
    bear = OrderBlock(id="ob", time=0, price_high=101, price_low=99, direction="Bearish")
    breaker = advance_zone(bear, _c(1, 100, 102, 100, 101.5))
    assert (breaker.subtype, breaker.direction) == ("Breaker", "Bullish")
    assert advance_zone(breaker, _c(2, 100, 100, 98, 98.5)).mitigated is True


def test_only_ten_most_recent_zones_kept():
    candles = []
    idx = 0
    for k in range(12):
        b = 100 + 10 * k
        candles.append(_c(idx, b + 0.5, b + 1, b - 0.5, b))
        candles.append(_c(idx + 1, b, b + 5, b - 0.2, b + 4.8))
        candles.append(_c(idx + 2, b + 4.8, b + 6, b + 4.5, b + 5.5))
        idx += 3
    for _ in range(3):
        candles.append(_c(idx, 215.5, 216.2, 215.3, 216))
        idx += 1

    zones = detect_order_blocks(candles, 1.2)

    assert len(zones) == 10
    assert [z.time for z in zones] == [3 * k * 60 for k in range(2, 12)]
    assert all(z.direction == "Bullish" and z.subtype == "Standard" for z in zones)


def test_empty_and_short_series():
    assert detect_order_blocks([]) == []
    assert detect_order_blocks(_bullish_setup()[:5]) == []


def _bearish_setup():
    return [
        _c(0, 100, 100.5, 99, 99.5),
        _c(1, 100, 100.5, 99, 99.5),
        _c(2, 99.5, 100.5, 99, 100),       # last bullish candle before impulse
        _c(3, 100, 100.2, 96.8, 97),       # impulse, closes below candle 2 low
        _c(4, 97, 97.2, 96, 96.5),
        _c(5, 96.5, 97.5, 96, 97),
    ]


def test_standard_bearish_zone_created():
    zones = detect_order_blocks(_bearish_setup(), 1.2, timeframe="15m")

    assert len(zones) == 1
    z = zones[0]
    assert z.direction == "Bearish"
    assert z.subtype == "Standard"
    assert (z.price_low, z.price_high) == (99, 100.5)
    assert z.time == 2 * 60
    assert z.id == "ob-bear-120"


def test_bearish_zone_reclaimed_becomes_bullish_breaker():
    candles = _bearish_setup() + [_c(6, 97, 101.2, 97, 101)]
    zones = detect_order_blocks(candles, 1.2)
    assert [(z.subtype, z.direction) for z in zones] == [("Breaker", "Bullish")]
