"""Trade journal service.

Wires the lifecycle engine and balance reconciler to the data store.
Every operation that can move an account balance runs under a
per-account lock and is persisted in a single store transaction, so a
trade's realized P&L reaches its ledger exactly once.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, NamedTuple, Optional

from tradeledger.db.store import DataStore
from tradeledger.engine import (
    apply_delta,
    check_amount,
    deletion_delta,
    edit,
    period_breakdown,
    recompute,
    reopen,
    summarize,
    symbol_breakdown,
    transition,
)
from tradeledger.errors import InvalidTransition, NotFound
from tradeledger.models import (
    AccountLedger,
    EventKind,
    JournalEvent,
    PeriodStats,
    ReconciliationReport,
    Summary,
    SymbolStats,
    TradeRecord,
    TradeStatus,
    TradeUpdate,
    normalize_status,
)

logger = logging.getLogger(__name__)


class TransitionOutcome(NamedTuple):
    """Committed result of a status change."""

    trade: TradeRecord
    ledger: AccountLedger
    delta: float


class TradeJournal:
    """Trade journal backed by a DataStore.

    Args:
        data_store: Store holding trades and account ledgers.
        on_change: Optional callback invoked with a JournalEvent after
            each committed change. It runs outside the account lock.
    """

    def __init__(
        self,
        data_store: DataStore,
        on_change: Optional[Callable[[JournalEvent], None]] = None,
    ):
        self._data_store = data_store
        self._on_change = on_change
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ==================== Internals ====================

    @contextmanager
    def _account_lock(self, account_id: str) -> Iterator[None]:
        """Serialize balance-affecting work on one account."""
        with self._locks_guard:
            lock = self._locks.setdefault(account_id, threading.Lock())
        with lock:
            yield

    def _load_account(self, account_id: str) -> AccountLedger:
        ledger = self._data_store.get_account(account_id)
        if ledger is None:
            raise NotFound("Account", account_id)
        return ledger

    def _load_trade(self, trade_id: str) -> TradeRecord:
        trade = self._data_store.get_trade(trade_id)
        if trade is None:
            raise NotFound("Trade", trade_id)
        return trade

    def _notify(
        self,
        kind: EventKind,
        ledger: AccountLedger,
        trade_id: Optional[str] = None,
        delta: float = 0.0,
    ) -> None:
        if self._on_change is None:
            return
        self._on_change(
            JournalEvent(
                kind=kind,
                account_id=ledger.id,
                trade_id=trade_id,
                delta=delta,
                balance=ledger.current_balance,
            )
        )

    def _commit_transition(
        self,
        before: TradeRecord,
        after: TradeRecord,
        ledger: AccountLedger,
        delta: float,
    ) -> AccountLedger:
        """Apply the delta and persist trade and ledger together."""
        updated_ledger = apply_delta(ledger, delta)
        if after is before and updated_ledger is ledger:
            return ledger
        self._data_store.commit(
            trade=after if after is not before else None,
            ledger=updated_ledger if updated_ledger is not ledger else None,
        )
        return updated_ledger

    # ==================== Accounts ====================

    def open_account(
        self,
        name: str,
        initial_balance: float,
        currency: str = "USD",
        is_default: bool = False,
    ) -> AccountLedger:
        """Open a new account with current balance equal to initial balance.

        Args:
            name: Account name.
            initial_balance: Starting balance.
            currency: Base currency code.
            is_default: Make this the default account.

        Returns:
            The new ledger.

        Raises:
            InvalidAmount: If the initial balance is not a finite number.
        """
        balance = check_amount(initial_balance, "initial balance")
        ledger = AccountLedger(
            name=name,
            currency=currency,
            initial_balance=balance,
            is_default=is_default or not self._data_store.get_accounts(),
        )

        if ledger.is_default:
            for other in self._data_store.get_accounts():
                if other.is_default:
                    self._data_store.save_account(other.model_copy(update={"is_default": False}))

        self._data_store.save_account(ledger)
        logger.info("Opened account %s (%s) with %.2f %s", ledger.name, ledger.id, balance, ledger.currency)
        self._notify("account_opened", ledger)
        return ledger

    def get_account(self, account_id: str) -> AccountLedger:
        """Get an account ledger.

        Raises:
            NotFound: If the account does not exist.
        """
        return self._load_account(account_id)

    def list_accounts(self) -> list[AccountLedger]:
        return self._data_store.get_accounts()

    def default_account(self) -> Optional[AccountLedger]:
        """The account flagged as default, else the only account, else None."""
        accounts = self._data_store.get_accounts()
        for ledger in accounts:
            if ledger.is_default:
                return ledger
        if len(accounts) == 1:
            return accounts[0]
        return None

    def reconcile_account(self, account_id: str, fix: bool = False) -> ReconciliationReport:
        """Compare an account's balance with the value recomputed from its trades.

        Args:
            account_id: Account to check.
            fix: Apply the drift as a correcting delta.

        Returns:
            ReconciliationReport describing the check.
        """
        with self._account_lock(account_id):
            ledger = self._load_account(account_id)
            expected = recompute(ledger, self._data_store.get_trades(account_id))
            report = ReconciliationReport(
                account_id=ledger.id,
                recorded_balance=ledger.current_balance,
                expected_balance=expected,
                drift=expected - ledger.current_balance,
            )
            if report.in_balance:
                return report

            logger.warning(
                "Account %s drifted by %.2f (recorded %.2f, expected %.2f)",
                ledger.id,
                report.drift,
                report.recorded_balance,
                report.expected_balance,
            )
            if not fix:
                return report

            corrected = apply_delta(ledger, report.drift)
            self._data_store.commit(ledger=corrected)
            logger.info("Corrected account %s balance to %.2f", ledger.id, corrected.current_balance)

        self._notify("account_reconciled", corrected, delta=report.drift)
        return report.model_copy(update={"corrected": True})

    # ==================== Trades ====================

    def record_trade(
        self,
        account_id: str,
        symbol: str,
        direction: str,
        entry_price: float,
        potential_profit: float,
        potential_loss: float,
        status: "str | TradeStatus" = TradeStatus.PLANNED,
        currency: Optional[str] = None,
        **fields,
    ) -> TradeRecord:
        """Record a new trade.

        A trade recorded directly as WIN or LOSS is created open and then
        closed, so its P&L reaches the ledger like any other close.

        Args:
            account_id: Owning account.
            symbol: Trading symbol.
            direction: LONG or SHORT.
            entry_price: Entry price.
            potential_profit: Profit magnitude if the trade wins.
            potential_loss: Loss magnitude if the trade loses.
            status: Initial status.
            currency: Currency the trade amounts are quoted in. Must match
                the account currency when given.
            **fields: Other TradeRecord fields (stop_loss, notes, tags, ...).

        Returns:
            The recorded trade.

        Raises:
            NotFound: If the account does not exist.
            InvalidTransition: If the status is unknown.
            InvalidAmount: If the currency differs from the account's.
            pydantic.ValidationError: If a field fails validation.
        """
        target = normalize_status(status)
        for name in ("realized_pnl", "id", "account_id"):
            fields.pop(name, None)

        with self._account_lock(account_id):
            ledger = self._load_account(account_id)
            trade = TradeRecord(
                account_id=ledger.id,
                symbol=symbol,
                direction=direction,
                entry_price=entry_price,
                potential_profit=potential_profit,
                potential_loss=potential_loss,
                status=TradeStatus.ACTIVE if target.is_terminal else target,
                **fields,
            )

            delta = 0.0
            if target.is_terminal:
                trade, delta = transition(trade, target)
            # The trade is new, so it is always written.
            updated_ledger = apply_delta(ledger, delta, currency=currency)
            self._data_store.commit(
                trade=trade,
                ledger=updated_ledger if updated_ledger is not ledger else None,
            )

        logger.info(
            "Recorded %s %s trade %s on account %s as %s",
            trade.direction,
            trade.symbol,
            trade.id,
            ledger.id,
            trade.status.value,
        )
        self._notify("trade_recorded", updated_ledger, trade.id, delta)
        return trade

    def get_trade(self, trade_id: str) -> TradeRecord:
        """Get a trade.

        Raises:
            NotFound: If the trade does not exist.
        """
        return self._load_trade(trade_id)

    def list_trades(self, account_id: Optional[str] = None) -> list[TradeRecord]:
        return self._data_store.get_trades(account_id)

    def change_status(
        self,
        trade_id: str,
        status: "str | TradeStatus",
        update: Optional[TradeUpdate] = None,
    ) -> TransitionOutcome:
        """Move a trade to a new status and apply any realized P&L.

        Args:
            trade_id: Trade to update.
            status: Target status; legacy aliases are accepted.
            update: Optional non-financial edits applied in the same commit.

        Returns:
            TransitionOutcome with the committed trade, ledger and delta.

        Raises:
            NotFound: If the trade or its account does not exist.
            InvalidTransition: If the status change is not allowed.
        """
        account_id = self._load_trade(trade_id).account_id
        with self._account_lock(account_id):
            # Re-read under the lock; the status may have changed meanwhile.
            trade = self._load_trade(trade_id)
            ledger = self._load_account(account_id)
            try:
                updated, delta = transition(trade, status, update)
            except InvalidTransition as e:
                logger.warning("Rejected status change for trade %s: %s", trade_id, e)
                raise
            ledger = self._commit_transition(trade, updated, ledger, delta)

        if updated is trade:
            return TransitionOutcome(trade, ledger, delta)

        logger.info(
            "Trade %s: %s -> %s (delta %.2f, balance %.2f)",
            trade_id,
            trade.status.value,
            updated.status.value,
            delta,
            ledger.current_balance,
        )
        self._notify("status_changed", ledger, trade_id, delta)
        return TransitionOutcome(updated, ledger, delta)

    def reopen_trade(
        self,
        trade_id: str,
        status: "str | TradeStatus" = TradeStatus.ACTIVE,
    ) -> TransitionOutcome:
        """Reopen a closed trade, reversing its realized P&L.

        Raises:
            NotFound: If the trade or its account does not exist.
            InvalidTransition: If the trade is not closed.
        """
        account_id = self._load_trade(trade_id).account_id
        with self._account_lock(account_id):
            trade = self._load_trade(trade_id)
            ledger = self._load_account(account_id)
            try:
                updated, delta = reopen(trade, status)
            except InvalidTransition as e:
                logger.warning("Rejected reopen of trade %s: %s", trade_id, e)
                raise
            ledger = self._commit_transition(trade, updated, ledger, delta)

        logger.info(
            "Reopened trade %s as %s (delta %.2f, balance %.2f)",
            trade_id,
            updated.status.value,
            delta,
            ledger.current_balance,
        )
        self._notify("trade_reopened", ledger, trade_id, delta)
        return TransitionOutcome(updated, ledger, delta)

    def edit_trade(self, trade_id: str, update: TradeUpdate) -> TradeRecord:
        """Edit notes, tags and other non-financial fields of a trade."""
        account_id = self._load_trade(trade_id).account_id
        with self._account_lock(account_id):
            trade = self._load_trade(trade_id)
            updated = edit(trade, update)
            if updated is trade:
                return trade
            self._data_store.commit(trade=updated)
            ledger = self._load_account(account_id)

        self._notify("trade_edited", ledger, trade_id)
        return updated

    def delete_trade(self, trade_id: str) -> AccountLedger:
        """Delete a trade, first taking its realized P&L back out of the balance.

        Returns:
            The account ledger after the deletion.

        Raises:
            NotFound: If the trade or its account does not exist.
        """
        account_id = self._load_trade(trade_id).account_id
        with self._account_lock(account_id):
            trade = self._load_trade(trade_id)
            ledger = self._load_account(account_id)
            delta = deletion_delta(trade)
            updated_ledger = apply_delta(ledger, delta)
            self._data_store.commit(
                ledger=updated_ledger if updated_ledger is not ledger else None,
                delete_trade_id=trade.id,
            )

        logger.info(
            "Deleted trade %s (delta %.2f, balance %.2f)",
            trade_id,
            delta,
            updated_ledger.current_balance,
        )
        self._notify("trade_deleted", updated_ledger, trade_id, delta)
        return updated_ledger

    # ==================== Statistics ====================

    def summarize_account(self, account_id: Optional[str] = None) -> Summary:
        """Summarize the trades of one account, or of all accounts."""
        if account_id is not None:
            self._load_account(account_id)
        return summarize(self._data_store.get_trades(account_id))

    def symbol_breakdown(self, account_id: Optional[str] = None) -> list[SymbolStats]:
        if account_id is not None:
            self._load_account(account_id)
        return symbol_breakdown(self._data_store.get_trades(account_id))

    def period_breakdown(
        self,
        account_id: Optional[str] = None,
        period: str = "day",
    ) -> list[PeriodStats]:
        """Realized P&L per day or month for one account, or all accounts."""
        if account_id is not None:
            self._load_account(account_id)
        return period_breakdown(self._data_store.get_trades(account_id), period)
