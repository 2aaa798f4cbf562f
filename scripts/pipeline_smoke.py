from __future__ import annotations

import argparse
import math

from smc_sentinel.formatters import format_daily, format_range, format_signal, format_stats
from smc_sentinel.models import Candle
from smc_sentinel.pipeline import analyze


def synthetic_series(n: int, step_s: int, base: float = 100.0):
    """Deterministic wave with drift; enough swings to exercise every detector."""
    out = []
    prev_close = base
    for i in range(n):
        drift = 0.02 * i
        wave = 4.0 * math.sin(i / 7.0) + 1.5 * math.sin(i / 2.3)
        close = base + drift + wave
        open_p = prev_close
        high = max(open_p, close) + 0.3 + 0.2 * abs(math.sin(i))
        low = min(open_p, close) - 0.3 - 0.2 * abs(math.cos(i))
        out.append(Candle(time=i * step_s, open=open_p, high=high, low=low, close=close))
        prev_close = close
    return out


def main():
    p = argparse.ArgumentParser(description="Run the analysis pipeline on a synthetic series")
    p.add_argument("--bars", type=int, default=500)
    p.add_argument("--timeframe", default="15m")
    args = p.parse_args()

    candles = synthetic_series(args.bars, 900)
    htf = synthetic_series(200, 4 * 3600)
    res = analyze(candles, htf, args.timeframe, htf_timeframe="4h", symbol="SYNTH")

    print(f"structure={len(res.structure)} fvgs={len(res.fvgs)} obs={len(res.order_blocks)} "
          f"htf_fvgs={len(res.htf_fvgs)} htf_obs={len(res.htf_order_blocks)}")
    print(format_range(res.premium_discount, candles[-1].close))
    for sig in res.signals[-3:]:
        print(format_signal(sig, symbol=res.symbol, timeframe=res.timeframe))
        print()
    print(format_stats(res.stats))
    print(format_daily(list(res.daily)))

    again = analyze(candles, htf, args.timeframe, htf_timeframe="4h", symbol="SYNTH")
    print("idempotent:", again == res)


if __name__ == "__main__":
    main()
