"""Statistics summary data models."""

import math
from datetime import date
from typing import Literal

from pydantic import BaseModel, Field


class Summary(BaseModel):
    """Aggregate statistics derived from a set of trades.

    Never persisted; always recomputed from the current trades.
    """

    total_trades: int = Field(default=0, ge=0, description="All trades, open or closed")
    open_trades: int = Field(default=0, ge=0, description="Trades not yet closed")
    winning_trades: int = Field(default=0, ge=0, description="Closed trades with P&L > 0")
    losing_trades: int = Field(default=0, ge=0, description="Closed trades with P&L < 0")
    breakeven_trades: int = Field(default=0, ge=0, description="Closed trades with P&L == 0")
    win_rate: float = Field(default=0.0, ge=0, le=1, description="Wins / (wins + losses)")
    total_profit: float = Field(default=0.0, ge=0, description="Sum of winning P&L")
    total_loss: float = Field(default=0.0, ge=0, description="Sum of losing P&L magnitudes")
    net_pnl: float = Field(default=0.0, description="Total profit minus total loss")
    profit_factor: float = Field(
        default=0.0, ge=0, description="Total profit / total loss (inf if no losses)"
    )
    avg_win: float = Field(default=0.0, ge=0, description="Average winning P&L")
    avg_loss: float = Field(default=0.0, ge=0, description="Average losing P&L magnitude")
    best_trade: float = Field(default=0.0, ge=0, description="Largest single win")
    worst_trade: float = Field(default=0.0, ge=0, description="Largest single loss magnitude")
    expectancy: float = Field(default=0.0, description="Expected P&L per closed trade")
    max_drawdown: float = Field(
        default=0.0, ge=0, description="Largest peak-to-trough fall of cumulative P&L"
    )
    largest_win_streak: int = Field(default=0, ge=0, description="Longest run of wins")
    largest_loss_streak: int = Field(default=0, ge=0, description="Longest run of losses")
    current_streak: int = Field(default=0, ge=0, description="Length of the latest run")
    streak_type: Literal["win", "loss", "none"] = Field(
        default="none", description="Kind of the latest run"
    )

    model_config = {"frozen": True}

    @property
    def profit_factor_unbounded(self) -> bool:
        """Whether there were profits but no losses."""
        return math.isinf(self.profit_factor)


class SymbolStats(BaseModel):
    """Per-symbol performance breakdown."""

    symbol: str = Field(..., min_length=1, description="Trading symbol")
    trades: int = Field(..., ge=0, description="Number of trades")
    net_pnl: float = Field(..., description="Net realized P&L")
    win_rate: float = Field(..., ge=0, le=1, description="Wins / (wins + losses)")

    model_config = {"frozen": True}


class PeriodStats(BaseModel):
    """Closed-trade performance for one calendar day or month."""

    period_start: date = Field(..., description="First day of the period")
    trades_count: int = Field(..., ge=0, description="Number of closed trades")
    total_profit: float = Field(default=0.0, ge=0, description="Sum of winning P&L")
    total_loss: float = Field(default=0.0, ge=0, description="Sum of losing P&L magnitudes")
    total_pnl: float = Field(..., description="Net realized P&L for the period")
    win_rate: float = Field(..., ge=0, le=1, description="Wins / (wins + losses)")

    model_config = {"frozen": True}
