"""Helpers shared by the TradeLedger CLI commands."""

from contextlib import contextmanager
from typing import Iterator, Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel

from tradeledger.errors import NotFound, TradeLedgerError
from tradeledger.models import AccountLedger, TradeRecord

console = Console()


def error_panel(message: str) -> None:
    """Print an error in a red panel."""
    console.print(Panel(
        f"[red]{message}[/red]",
        title="[bold red]Error[/bold red]",
        border_style="red",
    ))


@contextmanager
def report_errors() -> Iterator[None]:
    """Turn journal errors into an error panel and exit status 1."""
    try:
        yield
    except (TradeLedgerError, ValidationError) as e:
        error_panel(str(e))
        raise SystemExit(1)


def get_journal(ctx: click.Context):
    """Get the journal for this invocation."""
    from tradeledger.config import get_db_path
    from tradeledger.db.store import DataStore
    from tradeledger.journal import TradeJournal

    obj = ctx.ensure_object(dict)
    if "journal" not in obj:
        obj["journal"] = TradeJournal(DataStore(get_db_path(obj["config"])))
    return obj["journal"]


def format_money(amount: float, currency: str = "") -> str:
    """Format a signed amount with colour."""
    color = "green" if amount >= 0 else "red"
    sign = "+" if amount > 0 else ""
    suffix = f" {currency}" if currency else ""
    return f"[{color}]{sign}{amount:,.2f}{suffix}[/{color}]"


def resolve_account(journal, ref: Optional[str]) -> AccountLedger:
    """Find an account by ID, ID prefix or name, or fall back to the default.

    Raises:
        NotFound: If nothing matches or the reference is ambiguous.
    """
    if ref is None:
        ledger = journal.default_account()
        if ledger is None:
            raise NotFound("Account", "default")
        return ledger

    accounts = journal.list_accounts()
    for ledger in accounts:
        if ledger.id == ref:
            return ledger
    matches = [
        a for a in accounts
        if a.id.startswith(ref) or a.name.lower() == ref.lower()
    ]
    if len(matches) != 1:
        raise NotFound("Account", ref)
    return matches[0]


def resolve_trade(journal, ref: str) -> TradeRecord:
    """Find a trade by ID or unique ID prefix.

    Raises:
        NotFound: If nothing matches or the prefix is ambiguous.
    """
    trades = journal.list_trades()
    for trade in trades:
        if trade.id == ref:
            return trade
    matches = [t for t in trades if t.id.startswith(ref)]
    if len(matches) != 1:
        raise NotFound("Trade", ref)
    return matches[0]
