"""Balance reconciler.

Applies balance deltas produced by the lifecycle engine to an account
ledger, and recomputes what a ledger should hold from its trades.
"""

import math
import numbers
from datetime import datetime
from typing import Iterable, Optional

from tradeledger.errors import InvalidAmount
from tradeledger.models import AccountLedger, TradeRecord


def check_amount(value, what: str = "delta") -> float:
    """Validate a monetary amount and return it as a float."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidAmount(f"Invalid {what}: {value!r} is not a number")
    amount = float(value)
    if not math.isfinite(amount):
        raise InvalidAmount(f"Invalid {what}: {value!r} is not finite")
    return amount


def apply_delta(
    ledger: AccountLedger,
    delta: float,
    currency: Optional[str] = None,
) -> AccountLedger:
    """Add a delta to a ledger's current balance.

    A zero delta returns the same ledger object, which callers use to
    skip the write entirely.

    Args:
        ledger: Account ledger to update.
        delta: Signed amount to add.
        currency: Currency the delta is denominated in, if known.

    Returns:
        Updated copy of the ledger, or the ledger itself for a zero delta.

    Raises:
        InvalidAmount: If the delta is not a finite number or its currency
            does not match the ledger's.
    """
    amount = check_amount(delta)
    if currency is not None and currency.strip().upper() != ledger.currency:
        raise InvalidAmount(
            f"Delta in {currency} cannot be applied to a {ledger.currency} account"
        )
    if amount == 0:
        return ledger

    new_balance = ledger.current_balance + amount
    if not math.isfinite(new_balance):
        raise InvalidAmount(f"Applying {amount} would overflow the balance")

    return ledger.model_copy(
        update={"current_balance": new_balance, "updated_at": datetime.now()}
    )


def deletion_delta(trade: TradeRecord) -> float:
    """Delta to apply before deleting a trade.

    Removing a closed trade takes its realized P&L back out of the
    balance; removing an open trade changes nothing.
    """
    if not trade.is_terminal:
        return 0.0
    return -trade.realized_pnl or 0.0


def recompute(ledger: AccountLedger, trades: Iterable[TradeRecord]) -> float:
    """Balance the ledger should hold given its trades.

    Args:
        ledger: Account ledger.
        trades: Trades to consider; trades of other accounts are ignored.

    Returns:
        initial_balance plus the realized P&L of every closed trade that
        belongs to the ledger.
    """
    realized = math.fsum(
        trade.realized_pnl
        for trade in trades
        if trade.account_id == ledger.id and trade.is_terminal
    )
    return ledger.initial_balance + realized


def drift(ledger: AccountLedger, trades: Iterable[TradeRecord]) -> float:
    """How far the ledger's balance is from the recomputed value.

    Positive means the ledger holds less than it should.
    """
    return recompute(ledger, trades) - ledger.current_balance
