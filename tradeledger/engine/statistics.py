"""Statistics aggregator.

Pure functions that fold a point-in-time snapshot of trades into summary
metrics. Nothing is cached between calls.
"""

import math
from collections import defaultdict
from datetime import date
from typing import Iterable, Literal

from tradeledger.models import PeriodStats, Summary, SymbolStats, TradeRecord

Period = Literal["day", "month"]


def _closed_in_order(trades: list[TradeRecord]) -> list[TradeRecord]:
    """Closed trades sorted by creation time, oldest first."""
    return sorted(
        (t for t in trades if t.is_terminal and t.realized_pnl is not None),
        key=lambda t: t.created_at,
    )


def summarize(trades: Iterable[TradeRecord]) -> Summary:
    """Summarize a set of trades.

    Open trades only count toward total_trades and open_trades. A closed
    trade with a realized P&L of exactly 0 is neither a win nor a loss,
    and it ends the current streak.

    Args:
        trades: Trades to summarize.

    Returns:
        Summary of the trades.
    """
    trades = list(trades)
    closed = _closed_in_order(trades)

    wins = losses = breakeven = 0
    total_profit = total_loss = 0.0
    best = worst = 0.0
    win_run = loss_run = 0
    largest_win_run = largest_loss_run = 0
    cumulative = peak = max_drawdown = 0.0

    for trade in closed:
        pnl = trade.realized_pnl
        if pnl > 0:
            wins += 1
            total_profit += pnl
            best = max(best, pnl)
            win_run += 1
            loss_run = 0
            largest_win_run = max(largest_win_run, win_run)
        elif pnl < 0:
            losses += 1
            total_loss += -pnl
            worst = max(worst, -pnl)
            loss_run += 1
            win_run = 0
            largest_loss_run = max(largest_loss_run, loss_run)
        else:
            breakeven += 1
            win_run = loss_run = 0

        cumulative += pnl
        peak = max(peak, cumulative)
        max_drawdown = max(max_drawdown, peak - cumulative)

    decided = wins + losses
    win_rate = wins / decided if decided else 0.0
    avg_win = total_profit / wins if wins else 0.0
    avg_loss = total_loss / losses if losses else 0.0

    if total_loss > 0:
        profit_factor = total_profit / total_loss
    elif total_profit > 0:
        profit_factor = math.inf
    else:
        profit_factor = 0.0

    if win_run:
        current_streak, streak_type = win_run, "win"
    elif loss_run:
        current_streak, streak_type = loss_run, "loss"
    else:
        current_streak, streak_type = 0, "none"

    return Summary(
        total_trades=len(trades),
        open_trades=len(trades) - len(closed),
        winning_trades=wins,
        losing_trades=losses,
        breakeven_trades=breakeven,
        win_rate=win_rate,
        total_profit=total_profit,
        total_loss=total_loss,
        net_pnl=total_profit - total_loss,
        profit_factor=profit_factor,
        avg_win=avg_win,
        avg_loss=avg_loss,
        best_trade=best,
        worst_trade=worst,
        expectancy=win_rate * avg_win - (1 - win_rate) * avg_loss if decided else 0.0,
        max_drawdown=max_drawdown,
        largest_win_streak=largest_win_run,
        largest_loss_streak=largest_loss_run,
        current_streak=current_streak,
        streak_type=streak_type,
    )


def symbol_breakdown(trades: Iterable[TradeRecord]) -> list[SymbolStats]:
    """Per-symbol trade count, net P&L and win rate.

    Returns:
        One entry per symbol, best net P&L first.
    """
    counts: dict[str, int] = defaultdict(int)
    net: dict[str, float] = defaultdict(float)
    wins: dict[str, int] = defaultdict(int)
    decided: dict[str, int] = defaultdict(int)

    for trade in trades:
        counts[trade.symbol] += 1
        if not trade.is_terminal or trade.realized_pnl is None:
            continue
        net[trade.symbol] += trade.realized_pnl
        if trade.realized_pnl != 0:
            decided[trade.symbol] += 1
            if trade.realized_pnl > 0:
                wins[trade.symbol] += 1

    breakdown = [
        SymbolStats(
            symbol=symbol,
            trades=count,
            net_pnl=net[symbol],
            win_rate=wins[symbol] / decided[symbol] if decided[symbol] else 0.0,
        )
        for symbol, count in counts.items()
    ]
    breakdown.sort(key=lambda s: s.net_pnl, reverse=True)
    return breakdown


def _period_start(trade: TradeRecord, period: Period) -> date:
    day = trade.created_at.date()
    if period == "month":
        return day.replace(day=1)
    return day


def period_breakdown(trades: Iterable[TradeRecord], period: Period = "day") -> list[PeriodStats]:
    """Realized P&L per calendar day or month.

    Closed trades are bucketed by creation time; open trades are left out
    and periods without a closed trade are not listed.

    Args:
        trades: Trades to break down.
        period: "day" or "month".

    Returns:
        One entry per period, oldest first.

    Raises:
        ValueError: If period is not "day" or "month".
    """
    if period not in ("day", "month"):
        raise ValueError(f"Unknown period: {period!r} (expected 'day' or 'month')")

    counts: dict[date, int] = defaultdict(int)
    profit: dict[date, float] = defaultdict(float)
    loss: dict[date, float] = defaultdict(float)
    wins: dict[date, int] = defaultdict(int)
    losses: dict[date, int] = defaultdict(int)

    for trade in _closed_in_order(list(trades)):
        start = _period_start(trade, period)
        pnl = trade.realized_pnl
        counts[start] += 1
        if pnl > 0:
            profit[start] += pnl
            wins[start] += 1
        elif pnl < 0:
            loss[start] += -pnl
            losses[start] += 1

    breakdown = []
    for start, count in sorted(counts.items()):
        decided = wins[start] + losses[start]
        breakdown.append(
            PeriodStats(
                period_start=start,
                trades_count=count,
                total_profit=profit[start],
                total_loss=loss[start],
                total_pnl=profit[start] - loss[start],
                win_rate=wins[start] / decided if decided else 0.0,
            )
        )
    return breakdown
