from __future__ import annotations

import asyncio
import logging
from typing import Optional, Set

from .config import Config
from .formatters import format_daily, format_range, format_signal, format_stats, format_top_setups
from .models import EntrySignal
from .pipeline import AnalysisResult, analyze
from .providers.binance import BinanceProvider, DataUnavailable, htf_for

log = logging.getLogger("runner")


class AnalysisRunner:
    """Polls the provider and republishes a fresh AnalysisResult per snapshot.

    `latest` is only ever replaced by a complete result. When a fetch fails the
    previous result stays in place.
    """

    def __init__(self, cfg: Config, provider=None):
        self.cfg = cfg
        self.provider = provider or BinanceProvider(
            cfg.provider.base_url,
            rest_timeout_s=cfg.provider.rest_timeout_s,
            rest_max_retries=cfg.provider.rest_max_retries,
        )
        self.symbol = cfg.provider.symbol.upper()
        self.timeframe = cfg.provider.timeframe
        self.htf_timeframe = htf_for(self.timeframe)

        self.latest: Optional[AnalysisResult] = None
        self._announced: Set[str] = set()
        self._metrics = {
            "runs_total": 0,
            "fetch_failures_total": 0,
            "signals_announced_total": 0,
        }

    async def _fetch(self):
        return await asyncio.gather(
            self.provider.fetch_klines(self.symbol, self.timeframe, self.cfg.provider.limit),
            self.provider.fetch_klines(self.symbol, self.htf_timeframe, self.cfg.provider.htf_limit),
        )

    async def run_once(self) -> Optional[AnalysisResult]:
        try:
            candles, htf_candles = await self._fetch()
        except DataUnavailable as e:
            self._metrics["fetch_failures_total"] += 1
            log.warning("data_unavailable symbol=%s tf=%s err=%s", self.symbol, self.timeframe, e)
            return self.latest

        result = analyze(
            candles,
            htf_candles,
            self.timeframe,
            self.cfg.strategy,
            self.cfg.backtest,
            symbol=self.symbol,
            htf_timeframe=self.htf_timeframe,
        )
        self.latest = result
        self._metrics["runs_total"] += 1

        last_close = candles[-1].close if candles else None
        log.info(
            "run symbol=%s tf=%s htf=%s bars=%d trend=%s structure=%d fvgs=%d obs=%d htf_fvgs=%d htf_obs=%d signals=%d %s",
            self.symbol,
            self.timeframe,
            self.htf_timeframe,
            len(candles),
            result.trend,
            len(result.structure),
            len(result.fvgs),
            len(result.order_blocks),
            len(result.htf_fvgs),
            len(result.htf_order_blocks),
            len(result.signals),
            format_range(result.premium_discount, last_close),
        )
        log.info("backtest %s", format_stats(result.stats))
        log.info("top_setups\n%s", format_top_setups(list(result.top_setups)))
        log.debug("daily\n%s", format_daily(list(result.daily)))

        for sig in result.signals:
            self._announce(sig)
        # only keys still present in the snapshot can repeat
        self._announced = {self._dedupe_key(s) for s in result.signals}
        return result

    def _dedupe_key(self, sig: EntrySignal) -> str:
        return f"{self.symbol}:{self.timeframe}:{sig.side}:{sig.time}"

    def _announce(self, sig: EntrySignal) -> None:
        key = self._dedupe_key(sig)
        if key in self._announced:
            return
        self._announced.add(key)
        self._metrics["signals_announced_total"] += 1
        log.info("signal\n%s", format_signal(sig, symbol=self.symbol, timeframe=self.timeframe))

    async def run_forever(self) -> None:
        interval = max(1, int(self.cfg.provider.poll_interval_s))
        log.info(
            "%s start symbol=%s tf=%s htf=%s poll=%ss",
            self.cfg.app.name, self.symbol, self.timeframe, self.htf_timeframe, interval,
        )
        while True:
            await self.run_once()
            await asyncio.sleep(interval)
