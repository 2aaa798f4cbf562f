from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ..models import Candle

log = logging.getLogger("binance")

KLINES_PATH = "/api/v3/klines"

# Assets without a Binance spot listing are routed to a proxy pair.
GOLD_PROXY = "PAXGUSDT"

HTF_MAP = {
    "1m": "1h",
    "3m": "1h",
    "5m": "1h",
    "15m": "4h",
    "30m": "4h",
    "1h": "1d",
    "4h": "1d",
}


class DataUnavailable(RuntimeError):
    """Market data could not be fetched or was not a kline list."""


def htf_for(timeframe: str) -> str:
    return HTF_MAP.get(timeframe, "1d")


def map_symbol(asset: str) -> str:
    a = (asset or "").strip().upper()
    if a in ("XAUUSD.P", "GOLD") or "MGC" in a:
        return GOLD_PROXY
    return a


def parse_klines(data: Any) -> List[Candle]:
    """Kline rows -> ascending, time-unique candles (time in seconds)."""
    if not isinstance(data, list):
        raise DataUnavailable(f"Invalid kline payload: {str(data)[:200]}")

    by_time: Dict[int, Candle] = {}
    for row in data:
        try:
            c = Candle(
                time=int(row[0]) // 1000,
                open=float(row[1]),
                high=float(row[2]),
                low=float(row[3]),
                close=float(row[4]),
            )
        except (TypeError, ValueError, IndexError, KeyError) as e:
            raise DataUnavailable(f"Malformed kline row: {str(row)[:200]}") from e
        by_time[c.time] = c
    return [by_time[t] for t in sorted(by_time)]


class BinanceProvider:
    def __init__(
        self,
        base_url: str = "https://data-api.binance.vision",
        *,
        rest_timeout_s: int = 20,
        rest_max_retries: int = 4,
        rest_backoff_s: float = 0.8,
    ):
        self.base_url = base_url.rstrip("/")
        self.rest_timeout_s = rest_timeout_s
        self.rest_max_retries = rest_max_retries
        self.rest_backoff_s = rest_backoff_s
        self._session: Optional[aiohttp.ClientSession] = None

    async def close(self) -> None:
        """Close the shared aiohttp session (best-effort)."""
        if self._session is not None and not self._session.closed:
            await self._session.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.rest_timeout_s))
        return self._session

    async def fetch_klines(self, symbol: str, timeframe: str, limit: int) -> List[Candle]:
        url = self.base_url + KLINES_PATH
        params = {"symbol": map_symbol(symbol), "interval": timeframe, "limit": int(limit)}

        sess = await self._get_session()

        backoff = float(self.rest_backoff_s)
        last_err: Optional[BaseException] = None
        data: Any = None
        for attempt in range(1, int(self.rest_max_retries) + 1):
            try:
                async with sess.get(url, params=params) as resp:
                    # Rate-limit / ban signals
                    if resp.status in (418, 429):
                        retry_after = resp.headers.get("Retry-After")
                        sleep_s = float(retry_after) if (retry_after and retry_after.isdigit()) else backoff
                        log.warning(
                            "rest_rate_limited status=%s symbol=%s tf=%s sleep=%.1fs",
                            resp.status,
                            symbol,
                            timeframe,
                            sleep_s,
                        )
                        last_err = DataUnavailable(f"rate limited: {resp.status}")
                        if attempt >= int(self.rest_max_retries):
                            break
                        await asyncio.sleep(sleep_s)
                        backoff = min(backoff * 2.0, 20.0)
                        continue

                    if resp.status != 200:
                        txt = await resp.text()
                        raise DataUnavailable(f"Binance klines failed: {resp.status} {txt[:500]}")

                    # Some proxies return a wrong content-type; be tolerant.
                    data = await resp.json(content_type=None)

                last_err = None
                break

            except (asyncio.TimeoutError, aiohttp.ClientError, ValueError) as e:
                last_err = e
                if attempt >= int(self.rest_max_retries):
                    break
                log.warning(
                    "rest_timeout_or_client_err attempt=%d/%d symbol=%s tf=%s backoff=%.1fs err=%s",
                    attempt,
                    self.rest_max_retries,
                    symbol,
                    timeframe,
                    backoff,
                    e,
                )
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2.0, 20.0)

        if last_err is not None:
            raise DataUnavailable(f"klines fetch failed symbol={symbol} tf={timeframe}: {last_err!r}") from last_err

        return parse_klines(data)
