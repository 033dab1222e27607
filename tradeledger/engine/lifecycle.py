"""Trade lifecycle engine.

Validates status transitions and computes the realized P&L and balance
delta they produce. Functions here are pure: they return an updated copy
of the trade and the delta, and never touch a ledger. Applying the delta
is the job of tradeledger.engine.reconciler.

    PLANNED <-> ACTIVE -> WIN | LOSS
                  ^           |
                  +-- reopen -+
"""

from datetime import datetime
from typing import NamedTuple, Optional

from tradeledger.errors import InvalidTransition
from tradeledger.models import TradeRecord, TradeStatus, TradeUpdate, normalize_status


class TransitionResult(NamedTuple):
    """Updated trade plus the balance delta to apply to its account."""

    trade: TradeRecord
    delta: float


def realized_pnl_for(trade: TradeRecord, status: TradeStatus) -> float:
    """Signed P&L a trade realizes on closing with the given status.

    potential_profit and potential_loss are stored as magnitudes; the
    sign is applied here and nowhere else.

    Args:
        trade: Trade being closed.
        status: Terminal status (WIN or LOSS).

    Returns:
        +potential_profit for WIN, -potential_loss for LOSS.
    """
    if status is TradeStatus.WIN:
        return float(trade.potential_profit)
    if status is TradeStatus.LOSS:
        # `or 0.0` avoids handing out a negative zero
        return -float(trade.potential_loss) or 0.0
    raise InvalidTransition(
        f"{status.value} is not a closing status", target=status.value
    )


def _revise(trade: TradeRecord, **changes) -> TradeRecord:
    """Return a validated copy of the trade with changes applied."""
    data = trade.model_dump()
    data.update(changes)
    data["updated_at"] = datetime.now()
    return TradeRecord.model_validate(data)


def transition(
    trade: TradeRecord,
    target_status: "str | TradeStatus",
    update: Optional[TradeUpdate] = None,
) -> TransitionResult:
    """Move a trade to a new status.

    Args:
        trade: Current trade record.
        target_status: Requested status; legacy aliases are accepted.
        update: Optional non-financial edits merged in the same call.

    Returns:
        TransitionResult with the updated trade and the balance delta.
        The delta is the realized P&L on the first move into WIN or LOSS
        and 0.0 otherwise.

    Raises:
        InvalidTransition: If the status is unknown, or the trade is
            already closed and the target is a different status.
    """
    target = normalize_status(target_status)
    current = trade.status
    edits = update.changes() if update is not None else {}

    if current.is_terminal:
        if target is current:
            # Re-closing with the same outcome never touches the ledger.
            if not edits:
                return TransitionResult(trade, 0.0)
            return TransitionResult(_revise(trade, **edits), 0.0)
        if target.is_terminal:
            raise InvalidTransition(
                f"Trade {trade.id} is already closed as {current.value}; "
                f"reopen it before marking it {target.value}",
                current=current.value,
                target=target.value,
            )
        raise InvalidTransition(
            f"Trade {trade.id} is closed as {current.value}; use reopen to move it "
            f"back to {target.value}",
            current=current.value,
            target=target.value,
        )

    if target.is_terminal:
        pnl = realized_pnl_for(trade, target)
        return TransitionResult(
            _revise(trade, status=target, realized_pnl=pnl, **edits), pnl
        )

    if target is current and not edits:
        return TransitionResult(trade, 0.0)
    return TransitionResult(_revise(trade, status=target, **edits), 0.0)


def reopen(
    trade: TradeRecord,
    target_status: "str | TradeStatus" = TradeStatus.ACTIVE,
) -> TransitionResult:
    """Reopen a closed trade.

    Clears the realized P&L and returns the inverse of the delta that
    closing the trade produced, so the ledger returns to where it was.

    Args:
        trade: A WIN or LOSS trade.
        target_status: Open status to return to (ACTIVE by default).

    Returns:
        TransitionResult with the reopened trade and the reversing delta.

    Raises:
        InvalidTransition: If the trade is not closed or the target is
            not an open status.
    """
    target = normalize_status(target_status)
    if not trade.is_terminal:
        raise InvalidTransition(
            f"Trade {trade.id} is {trade.status.value}; only closed trades can be reopened",
            current=trade.status.value,
            target=target.value,
        )
    if target.is_terminal:
        raise InvalidTransition(
            f"Cannot reopen trade {trade.id} into closing status {target.value}",
            current=trade.status.value,
            target=target.value,
        )

    delta = -trade.realized_pnl or 0.0
    return TransitionResult(_revise(trade, status=target, realized_pnl=None), delta)


def edit(trade: TradeRecord, update: TradeUpdate) -> TradeRecord:
    """Apply non-financial edits without changing status."""
    edits = update.changes()
    if not edits:
        return trade
    return _revise(trade, **edits)
