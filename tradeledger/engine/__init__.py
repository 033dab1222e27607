"""Trade lifecycle, balance reconciliation and statistics."""

from tradeledger.engine.lifecycle import (
    TransitionResult,
    edit,
    realized_pnl_for,
    reopen,
    transition,
)
from tradeledger.engine.reconciler import (
    apply_delta,
    check_amount,
    deletion_delta,
    drift,
    recompute,
)
from tradeledger.engine.statistics import period_breakdown, summarize, symbol_breakdown

__all__ = [
    "TransitionResult",
    "apply_delta",
    "check_amount",
    "deletion_delta",
    "drift",
    "edit",
    "period_breakdown",
    "realized_pnl_for",
    "recompute",
    "reopen",
    "summarize",
    "symbol_breakdown",
    "transition",
]
