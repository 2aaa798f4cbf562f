from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional
import os
import yaml

from .sessions import parse_tz


def _env_override(value: Any, env_key: str) -> Any:
    env_val = os.getenv(env_key)
    if env_val is None:
        return value
    # basic parsing
    if isinstance(value, int):
        try:
            return int(env_val)
        except ValueError:
            return value
    if isinstance(value, float):
        try:
            return float(env_val)
        except ValueError:
            return value
    return env_val


@dataclass
class AppConfig:
    name: str = "SMC Sentinel"
    log_level: str = "INFO"


@dataclass
class ProviderConfig:
    base_url: str = "https://data-api.binance.vision"
    symbol: str = "BTCUSDT"
    timeframe: str = "15m"
    limit: int = 500
    htf_limit: int = 200
    poll_interval_s: int = 60
    rest_timeout_s: int = 20
    rest_max_retries: int = 4


@dataclass
class StrategyConfig:
    # Structure
    swing_length: int = 5

    # Impulse zones
    ob_threshold_mult: float = 1.2
    ob_body_lookback: int = 100
    ob_max_zones: int = 10
    ob_timeframes: Optional[List[str]] = None  # None -> every interval

    # Signal scoring
    warmup_bars: int = 100
    bias_len: int = 50
    min_score: int = 4
    cooldown_s: int = 600
    stop_lookback: int = 5
    stop_buffer_pct: float = 0.0005
    reward_risk: float = 2.0
    po3_body_ratio: float = 0.6
    scalp_timeframes: Optional[List[str]] = None

    # Premium / discount, ranking
    pd_lookback: int = 100
    top_setups: int = 3


@dataclass
class BacktestConfig:
    initial_balance: float = 100_000.0
    risk_amount: float = 1_000.0
    reward_amount: float = 2_000.0
    profit_factor_cap: float = 999.0
    daily_timezone: str = "UTC"
    daily_max_days: int = 3
    daily_max_trades: int = 10


@dataclass
class Config:
    app: AppConfig
    provider: ProviderConfig
    strategy: StrategyConfig
    backtest: BacktestConfig


def validate_config(cfg: Config) -> None:
    errs = []
    if int(cfg.strategy.swing_length) < 1:
        errs.append("strategy.swing_length must be >= 1")
    if float(cfg.strategy.ob_threshold_mult) <= 0:
        errs.append("strategy.ob_threshold_mult must be > 0")
    if not cfg.provider.timeframe:
        errs.append("provider.timeframe is required")
    try:
        parse_tz(cfg.backtest.daily_timezone)
    except ValueError as e:
        errs.append(str(e))
    if errs:
        raise ValueError("Config violation: " + "; ".join(errs))


def load_config(path: Optional[str] = None) -> Config:
    raw = {}
    if path:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    cfg = Config(
        app=AppConfig(**raw.get("app", {})),
        provider=ProviderConfig(**raw.get("provider", {})),
        strategy=StrategyConfig(**raw.get("strategy", {})),
        backtest=BacktestConfig(**raw.get("backtest", {})),
    )

    # env overrides (useful on servers)
    cfg.provider.symbol = _env_override(cfg.provider.symbol, "SMC_SYMBOL")
    cfg.provider.timeframe = _env_override(cfg.provider.timeframe, "SMC_TIMEFRAME")
    cfg.app.log_level = _env_override(cfg.app.log_level, "SMC_LOG_LEVEL")
    cfg.provider.poll_interval_s = _env_override(cfg.provider.poll_interval_s, "SMC_POLL_INTERVAL_S")
    cfg.strategy.ob_threshold_mult = _env_override(cfg.strategy.ob_threshold_mult, "SMC_OB_THRESHOLD_MULT")
    if cfg.strategy.scalp_timeframes is None:
        cfg.strategy.scalp_timeframes = ["1m", "3m", "5m"]

    validate_config(cfg)
    return cfg
