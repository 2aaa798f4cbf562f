from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

BULLISH = "Bullish"
BEARISH = "Bearish"

LONG = "LONG"
SHORT = "SHORT"

STANDARD = "Standard"
BREAKER = "Breaker"
SWING = "Swing"

WIN = "WIN"
LOSS = "LOSS"
PENDING = "PENDING"


@dataclass(frozen=True)
class Candle:
    time: int  # bar open, epoch seconds
    open: float
    high: float
    low: float
    close: float


@dataclass(frozen=True)
class StructurePoint:
    time: int
    price: float
    kind: str  # HH | HL | LH | LL
    direction: str  # Bullish (low side) or Bearish (high side)


@dataclass(frozen=True)
class FairValueGap:
    id: str
    time: int  # middle bar
    price_high: float
    price_low: float
    direction: str
    mitigated: bool = False
    is_silver_bullet: bool = False
    timeframe: Optional[str] = None


@dataclass(frozen=True)
class OrderBlock:
    id: str
    time: int
    price_high: float
    price_low: float
    direction: str
    subtype: str = STANDARD  # Standard | Breaker | Swing
    mitigated: bool = False
    timeframe: Optional[str] = None


@dataclass(frozen=True)
class EntrySignal:
    time: int
    side: str  # LONG or SHORT
    price: float
    stop_loss: float
    take_profit: float
    score: int
    confluences: Tuple[str, ...]
    win_probability: int
    trading_style: str  # SCALP or DAY_TRADE
    po3_phase: str  # ACCUMULATION | MANIPULATION | DISTRIBUTION | NONE
    backtest_result: Optional[str] = None  # WIN | LOSS | PENDING
    backtest_pnl: Optional[float] = None


@dataclass(frozen=True)
class BacktestStats:
    total_trades: int
    wins: int
    losses: int
    win_rate: float
    net_pnl: float
    profit_factor: float
    max_drawdown: float
    equity_curve: Tuple[float, ...]


@dataclass(frozen=True)
class DailyStat:
    date: date
    total_gain: float
    total_loss: float
    net_pnl: float
    trade_count: int
    trades: Tuple[EntrySignal, ...]


@dataclass(frozen=True)
class PriceRange:
    high: float
    low: float

    @property
    def equilibrium(self) -> float:
        return (self.high + self.low) / 2.0
