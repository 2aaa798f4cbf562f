from __future__ import annotations

import argparse
import asyncio
import logging

from .config import load_config
from .formatters import format_daily, format_stats, format_top_setups
from .runner import AnalysisRunner


def _setup_logging(level: str) -> None:
    lvl = getattr(logging, (level or "INFO").upper(), logging.INFO)
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def main(argv=None) -> int:
    p = argparse.ArgumentParser(description="SMC Sentinel - structure, zones and backtested setups")
    p.add_argument("--config", help="Path to YAML config (defaults are used when omitted)")
    p.add_argument("--once", action="store_true", help="Run a single analysis pass and print the summary")
    args = p.parse_args(argv)

    cfg = load_config(args.config)
    _setup_logging(cfg.app.log_level)

    runner = AnalysisRunner(cfg)

    async def _run() -> int:
        try:
            if not args.once:
                await runner.run_forever()
                return 0
            result = await runner.run_once()
            if result is None:
                # data unavailable on the only pass
                return 2
            print(f"trend={result.trend}")
            print(format_stats(result.stats))
            print(format_top_setups(list(result.top_setups)))
            print(format_daily(list(result.daily)))
            return 0
        finally:
            # Close shared REST session cleanly.
            await runner.provider.close()

    try:
        return asyncio.run(_run())
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        logging.getLogger("main").exception("fatal err=%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
