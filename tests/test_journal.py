"""Property-based tests for the trade journal service.

**Feature: trade-ledger**
"""

import tempfile
import threading
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tradeledger.db.store import DataStore
from tradeledger.engine import recompute
from tradeledger.errors import InvalidAmount, InvalidTransition, NotFound
from tradeledger.journal import TradeJournal
from tradeledger.models import JournalEvent, ReconciliationReport, TradeStatus, TradeUpdate


@pytest.fixture
def temp_store():
    """Create a temporary data store for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield DataStore(Path(tmpdir) / "test.db")


@pytest.fixture
def events() -> list[JournalEvent]:
    return []


@pytest.fixture
def journal(temp_store: DataStore, events: list[JournalEvent]) -> TradeJournal:
    return TradeJournal(temp_store, on_change=events.append)


def record(journal: TradeJournal, account_id: str, profit: float, loss: float, **kwargs):
    return journal.record_trade(
        account_id=account_id,
        symbol=kwargs.pop("symbol", "EURUSD"),
        direction=kwargs.pop("direction", "LONG"),
        entry_price=kwargs.pop("entry_price", 1.085),
        potential_profit=profit,
        potential_loss=loss,
        **kwargs,
    )


class TestEndToEndScenario:
    """
    **Feature: trade-ledger, Property: End-to-End Balance**

    10000 -> A wins 200 -> 10200 -> B loses 300 -> 9900 -> delete A -> 9700.
    """

    def test_scenario(self, journal: TradeJournal):
        ledger = journal.open_account("Main", 10000.0)

        trade_a = record(journal, ledger.id, profit=200.0, loss=100.0)
        journal.change_status(trade_a.id, TradeStatus.ACTIVE)
        outcome = journal.change_status(trade_a.id, TradeStatus.WIN)
        assert outcome.ledger.current_balance == 10200.0
        assert outcome.delta == 200.0

        trade_b = record(journal, ledger.id, profit=50.0, loss=300.0)
        journal.change_status(trade_b.id, TradeStatus.ACTIVE)
        outcome = journal.change_status(trade_b.id, TradeStatus.LOSS)
        assert outcome.ledger.current_balance == 9900.0

        after_delete = journal.delete_trade(trade_a.id)
        assert after_delete.current_balance == 9700.0
        assert journal.get_account(ledger.id).current_balance == 9700.0

        summary = journal.summarize_account(ledger.id)
        assert summary.total_trades == 1
        assert summary.win_rate == 0
        assert summary.profit_factor == 0
        assert summary.net_pnl == -300.0


class TestAtMostOnceThroughJournal:
    """
    **Feature: trade-ledger, Property: At-Most-Once Application**

    Re-closing a trade never moves the balance again.
    """

    def test_reclose_does_not_double_count(self, journal: TradeJournal, events):
        ledger = journal.open_account("Main", 10000.0)
        trade = record(journal, ledger.id, profit=150.0, loss=80.0, status="ACTIVE")

        journal.change_status(trade.id, "WIN")
        events.clear()
        outcome = journal.change_status(trade.id, "WIN")

        assert outcome.delta == 0.0
        assert outcome.ledger.current_balance == 10150.0
        assert journal.get_account(ledger.id).current_balance == 10150.0
        assert events == []

    def test_reclose_with_note_keeps_balance(self, journal: TradeJournal):
        ledger = journal.open_account("Main", 10000.0)
        trade = record(journal, ledger.id, profit=150.0, loss=80.0, status="ACTIVE")
        journal.change_status(trade.id, "LOSS")

        outcome = journal.change_status(trade.id, "LOSS", TradeUpdate(notes="Stopped out"))

        assert outcome.trade.notes == "Stopped out"
        assert outcome.trade.realized_pnl == -80.0
        assert journal.get_account(ledger.id).current_balance == 9920.0

    def test_concurrent_closes_apply_once(self, journal: TradeJournal):
        ledger = journal.open_account("Main", 10000.0)
        trade = record(journal, ledger.id, profit=100.0, loss=50.0, status="ACTIVE")
        errors = []

        def close():
            try:
                journal.change_status(trade.id, "WIN")
            except Exception as e:  # collected and asserted below
                errors.append(e)

        threads = [threading.Thread(target=close) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert journal.get_account(ledger.id).current_balance == 10100.0


class TestFailuresLeaveStateUnchanged:
    """
    **Feature: trade-ledger, Property: No Partial Writes**

    A rejected operation leaves both trade and ledger as they were.
    """

    def test_flip_outcome_rejected(self, journal: TradeJournal, events):
        ledger = journal.open_account("Main", 10000.0)
        trade = record(journal, ledger.id, profit=200.0, loss=100.0, status="ACTIVE")
        journal.change_status(trade.id, "WIN")
        before = journal.get_trade(trade.id)
        events.clear()

        with pytest.raises(InvalidTransition):
            journal.change_status(trade.id, "LOSS", TradeUpdate(notes="oops"))

        assert journal.get_trade(trade.id) == before
        assert journal.get_account(ledger.id).current_balance == 10200.0
        assert events == []

    def test_reopen_open_trade_rejected(self, journal: TradeJournal):
        ledger = journal.open_account("Main", 10000.0)
        trade = record(journal, ledger.id, profit=200.0, loss=100.0)

        with pytest.raises(InvalidTransition):
            journal.reopen_trade(trade.id)

        assert journal.get_trade(trade.id).status is TradeStatus.PLANNED

    def test_currency_mismatch_rejected(self, journal: TradeJournal, events):
        ledger = journal.open_account("Main", 10000.0, currency="USD")
        events.clear()

        with pytest.raises(InvalidAmount):
            record(journal, ledger.id, profit=200.0, loss=100.0, status="WIN", currency="EUR")
        with pytest.raises(InvalidAmount):
            record(journal, ledger.id, profit=200.0, loss=100.0, currency="EUR")

        assert journal.list_trades(ledger.id) == []
        assert journal.get_account(ledger.id).current_balance == 10000.0
        assert events == []

    def test_matching_currency_accepted(self, journal: TradeJournal):
        ledger = journal.open_account("Main", 10000.0, currency="USD")

        record(journal, ledger.id, profit=200.0, loss=100.0, status="WIN", currency="usd")

        assert journal.get_account(ledger.id).current_balance == 10200.0

    def test_missing_trade(self, journal: TradeJournal):
        with pytest.raises(NotFound):
            journal.change_status("nope", "WIN")
        with pytest.raises(NotFound):
            journal.delete_trade("nope")
        with pytest.raises(NotFound):
            journal.get_trade("nope")

    def test_missing_account(self, journal: TradeJournal):
        with pytest.raises(NotFound):
            record(journal, "missing", profit=1.0, loss=1.0)
        with pytest.raises(NotFound):
            journal.summarize_account("missing")
        with pytest.raises(NotFound):
            journal.period_breakdown("missing", "month")

    def test_invalid_initial_balance(self, journal: TradeJournal):
        with pytest.raises(InvalidAmount):
            journal.open_account("Bad", float("nan"))

        assert journal.list_accounts() == []


class TestJournalOperations:
    """Recording, reopening, editing and events."""

    def test_period_breakdown_follows_closed_trades(self, journal: TradeJournal):
        ledger = journal.open_account("Main", 5000.0)
        record(journal, ledger.id, profit=120.0, loss=60.0, status="WIN")
        record(journal, ledger.id, profit=80.0, loss=40.0, status="LOSS")
        record(journal, ledger.id, profit=50.0, loss=25.0)

        (month,) = journal.period_breakdown(ledger.id, "month")

        assert month.trades_count == 2
        assert month.total_pnl == 80.0
        assert month.win_rate == 0.5

    def test_record_closed_trade_applies_pnl(self, journal: TradeJournal, events):
        ledger = journal.open_account("Main", 5000.0)

        trade = record(journal, ledger.id, profit=120.0, loss=60.0, status="WIN")

        assert trade.status is TradeStatus.WIN
        assert trade.realized_pnl == 120.0
        assert journal.get_account(ledger.id).current_balance == 5120.0
        assert events[-1].kind == "trade_recorded"
        assert events[-1].delta == 120.0

    def test_record_ignores_realized_pnl_argument(self, journal: TradeJournal):
        ledger = journal.open_account("Main", 5000.0)

        trade = record(journal, ledger.id, profit=120.0, loss=60.0, realized_pnl=999.0)

        assert trade.realized_pnl is None

    def test_reopen_reverses_balance(self, journal: TradeJournal, events):
        ledger = journal.open_account("Main", 10000.0)
        trade = record(journal, ledger.id, profit=200.0, loss=100.0, status="ACTIVE")
        journal.change_status(trade.id, "WIN")

        outcome = journal.reopen_trade(trade.id)

        assert outcome.trade.status is TradeStatus.ACTIVE
        assert outcome.trade.realized_pnl is None
        assert outcome.delta == -200.0
        assert outcome.ledger.current_balance == 10000.0
        assert events[-1].kind == "trade_reopened"

        journal.change_status(trade.id, "LOSS")
        assert journal.get_account(ledger.id).current_balance == 9900.0

    def test_delete_open_trade_keeps_balance(self, journal: TradeJournal):
        ledger = journal.open_account("Main", 10000.0)
        trade = record(journal, ledger.id, profit=200.0, loss=100.0)

        after = journal.delete_trade(trade.id)

        assert after.current_balance == 10000.0
        assert journal.list_trades(ledger.id) == []

    def test_edit_trade(self, journal: TradeJournal, events):
        ledger = journal.open_account("Main", 10000.0)
        trade = record(journal, ledger.id, profit=200.0, loss=100.0)

        updated = journal.edit_trade(trade.id, TradeUpdate(notes="London open", tags=["fvg"]))

        assert updated.notes == "London open"
        assert journal.get_trade(trade.id).tags == ["fvg"]
        assert journal.get_account(ledger.id).current_balance == 10000.0
        assert events[-1].kind == "trade_edited"

    def test_events_carry_balance(self, journal: TradeJournal, events):
        ledger = journal.open_account("Main", 10000.0)
        trade = record(journal, ledger.id, profit=200.0, loss=100.0, status="ACTIVE")
        journal.change_status(trade.id, "WIN")

        kinds = [e.kind for e in events]
        assert kinds == ["account_opened", "trade_recorded", "status_changed"]
        assert events[-1].balance == 10200.0
        assert events[-1].trade_id == trade.id

    def test_accounts_are_independent(self, journal: TradeJournal):
        main = journal.open_account("Main", 10000.0)
        prop = journal.open_account("Prop", 50000.0, currency="EUR")
        trade = record(journal, prop.id, profit=500.0, loss=250.0, status="ACTIVE")

        journal.change_status(trade.id, "LOSS")

        assert journal.get_account(main.id).current_balance == 10000.0
        assert journal.get_account(prop.id).current_balance == 49750.0

    def test_first_account_is_default(self, journal: TradeJournal):
        first = journal.open_account("Main", 10000.0)
        journal.open_account("Second", 1000.0)

        assert journal.default_account().id == first.id

        third = journal.open_account("Third", 1000.0, is_default=True)

        assert journal.default_account().id == third.id
        assert sum(1 for a in journal.list_accounts() if a.is_default) == 1


class TestReconciliation:
    """
    **Feature: trade-ledger, Property: Drift Detection**

    reconcile_account reports drift between the stored balance and the
    balance recomputed from closed trades, and can correct it.
    """

    def test_in_balance(self, journal: TradeJournal):
        ledger = journal.open_account("Main", 10000.0)
        record(journal, ledger.id, profit=200.0, loss=100.0, status="WIN")

        report = journal.reconcile_account(ledger.id)

        assert report.in_balance
        assert report.expected_balance == 10200.0
        assert not report.corrected

    def test_rounding_on_large_balance_is_not_drift(self):
        recorded = 1e12
        expected = 1e12 + 2.5e-4

        report = ReconciliationReport(
            account_id="acct-1",
            recorded_balance=recorded,
            expected_balance=expected,
            drift=expected - recorded,
        )

        assert report.in_balance

    def test_one_cent_is_drift(self):
        report = ReconciliationReport(
            account_id="acct-1",
            recorded_balance=1_000_000.0,
            expected_balance=1_000_000.01,
            drift=0.01,
        )

        assert not report.in_balance

    def test_detect_and_fix_drift(self, journal: TradeJournal, temp_store: DataStore, events):
        ledger = journal.open_account("Main", 10000.0)
        record(journal, ledger.id, profit=200.0, loss=100.0, status="WIN")
        tampered = temp_store.get_account(ledger.id).model_copy(update={"current_balance": 12345.0})
        temp_store.save_account(tampered)

        report = journal.reconcile_account(ledger.id)
        assert report.drift == pytest.approx(10200.0 - 12345.0)
        assert not report.corrected
        assert journal.get_account(ledger.id).current_balance == 12345.0

        fixed = journal.reconcile_account(ledger.id, fix=True)
        assert fixed.corrected
        assert journal.get_account(ledger.id).current_balance == pytest.approx(10200.0)
        assert events[-1].kind == "account_reconciled"


class TestJournalInvariant:
    """
    **Feature: trade-ledger, Property: Persistent Ledger Invariant**

    *For any* sequence of journal operations, the stored balance equals
    the balance recomputed from the stored trades after every step.
    """

    @given(
        operations=st.lists(
            st.tuples(
                st.sampled_from(["record", "ACTIVE", "WIN", "LOSS", "PLANNED", "reopen", "delete"]),
                st.integers(min_value=0, max_value=9),
                st.floats(min_value=0.0, max_value=5000.0, allow_nan=False),
                st.floats(min_value=0.0, max_value=5000.0, allow_nan=False),
            ),
            min_size=1,
            max_size=15,
        )
    )
    @settings(max_examples=25, deadline=None)
    def test_invariant(self, operations):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "test.db")
            journal = TradeJournal(store)
            ledger = journal.open_account("Main", 10000.0)

            for op, index, profit, loss in operations:
                trades = journal.list_trades(ledger.id)
                if op == "record" or not trades:
                    record(journal, ledger.id, profit=profit, loss=loss)
                else:
                    trade = trades[index % len(trades)]
                    try:
                        if op == "delete":
                            journal.delete_trade(trade.id)
                        elif op == "reopen":
                            journal.reopen_trade(trade.id)
                        else:
                            journal.change_status(trade.id, op)
                    except InvalidTransition:
                        pass

                current = journal.get_account(ledger.id)
                expected = recompute(current, journal.list_trades(ledger.id))
                assert current.current_balance == pytest.approx(expected, abs=1e-6)
