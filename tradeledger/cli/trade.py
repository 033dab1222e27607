"""Trade commands for TradeLedger CLI.

Handles recording trades, status changes, edits and deletion.
"""

from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from tradeledger.cli.common import (
    console,
    format_money,
    get_journal,
    report_errors,
    resolve_account,
    resolve_trade,
)
from tradeledger.models import TradeRecord, TradeStatus, TradeUpdate

STATUS_COLORS = {
    TradeStatus.PLANNED: "blue",
    TradeStatus.ACTIVE: "yellow",
    TradeStatus.WIN: "green",
    TradeStatus.LOSS: "red",
}


def _status_label(status: TradeStatus) -> str:
    color = STATUS_COLORS[status]
    return f"[{color}]{status.value}[/{color}]"


def _print_outcome(title: str, trade: TradeRecord, ledger, delta: float) -> None:
    lines = [
        f"Trade:    {trade.id[:8]} {trade.symbol} {trade.direction}",
        f"Status:   {_status_label(trade.status)}",
    ]
    if trade.realized_pnl is not None:
        lines.append(f"Realized: {format_money(trade.realized_pnl)}")
    lines.append(f"Balance:  {ledger.current_balance:,.2f} {ledger.currency} ({format_money(delta)})")
    console.print(Panel("\n".join(lines), title=f"[bold]{title}[/bold]", border_style="cyan"))


@click.group()
def trade() -> None:
    """Record and manage trades.

    \b
    Commands:
      add     - Record a new trade
      status  - Change a trade's status (planned, active, win, loss)
      reopen  - Reopen a closed trade
      note    - Edit notes and tags
      delete  - Delete a trade
      list    - List trades
    """
    pass


@trade.command()
@click.argument("symbol")
@click.argument("direction", type=click.Choice(["long", "short"], case_sensitive=False))
@click.option("--entry", "entry_price", type=float, required=True, help="Entry price.")
@click.option("--stop", "stop_loss", type=float, default=None, help="Stop loss price.")
@click.option("--target", "take_profit", type=float, default=None, help="Take profit price.")
@click.option("--risk", "risk_amount", type=float, default=0.0, help="Amount at risk.")
@click.option("--profit", "potential_profit", type=float, required=True, help="Profit if the target is hit.")
@click.option("--loss", "potential_loss", type=float, required=True, help="Loss if the stop is hit.")
@click.option("--status", default="PLANNED", help="Initial status (default: PLANNED).")
@click.option("--currency", default=None, help="Currency of the P&L amounts (must match the account).")
@click.option("--account", "account_ref", default=None, help="Account ID or name.")
@click.option("--category", default=None, help="Instrument category.")
@click.option("--note", "notes", default=None, help="Trade notes.")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable).")
@click.pass_context
def add(
    ctx: click.Context,
    symbol: str,
    direction: str,
    entry_price: float,
    stop_loss: Optional[float],
    take_profit: Optional[float],
    risk_amount: float,
    potential_profit: float,
    potential_loss: float,
    status: str,
    currency: Optional[str],
    account_ref: Optional[str],
    category: Optional[str],
    notes: Optional[str],
    tags: tuple[str, ...],
) -> None:
    """Record a new trade.

    \b
    Examples:
      tradeledger trade add EURUSD long --entry 1.0850 --stop 1.0800 \\
          --target 1.0950 --profit 200 --loss 100
      tradeledger trade add BTCUSD short --entry 64000 --profit 50 --loss 300 --status win
    """
    journal = get_journal(ctx)

    with report_errors():
        ledger = resolve_account(journal, account_ref)
        recorded = journal.record_trade(
            account_id=ledger.id,
            symbol=symbol.upper(),
            direction=direction,
            entry_price=entry_price,
            potential_profit=potential_profit,
            potential_loss=potential_loss,
            status=status,
            currency=currency,
            stop_loss=stop_loss,
            take_profit=take_profit,
            risk_amount=risk_amount,
            risk_reward_ratio=(potential_profit / potential_loss) if potential_loss > 0 else None,
            category=category,
            notes=notes,
            tags=list(tags),
        )
        ledger = journal.get_account(ledger.id)

    _print_outcome("Trade recorded", recorded, ledger, recorded.realized_pnl or 0.0)


@trade.command("status")
@click.argument("trade_ref")
@click.argument("new_status")
@click.option("--note", "notes", default=None, help="Replace the trade notes.")
@click.pass_context
def change_status(ctx: click.Context, trade_ref: str, new_status: str, notes: Optional[str]) -> None:
    """Change a trade's status.

    Closing a trade as WIN or LOSS applies its P&L to the account once.
    Legacy names PLANNING, OPEN and CLOSED are accepted.

    \b
    Examples:
      tradeledger trade status 3f2a active
      tradeledger trade status 3f2a win --note "Target hit"
    """
    journal = get_journal(ctx)
    update = TradeUpdate(notes=notes) if notes is not None else None

    with report_errors():
        target = resolve_trade(journal, trade_ref)
        outcome = journal.change_status(target.id, new_status, update)

    if outcome.trade.updated_at == target.updated_at:
        console.print(f"[dim]Trade {target.id[:8]} is already {target.status.value}; balance unchanged.[/dim]")
        return
    _print_outcome("Status updated", outcome.trade, outcome.ledger, outcome.delta)


@trade.command()
@click.argument("trade_ref")
@click.option("--status", "new_status", default="ACTIVE", help="Open status to return to.")
@click.pass_context
def reopen(ctx: click.Context, trade_ref: str, new_status: str) -> None:
    """Reopen a closed trade, reversing its P&L on the account."""
    journal = get_journal(ctx)

    with report_errors():
        target = resolve_trade(journal, trade_ref)
        outcome = journal.reopen_trade(target.id, new_status)

    _print_outcome("Trade reopened", outcome.trade, outcome.ledger, outcome.delta)


@trade.command()
@click.argument("trade_ref")
@click.option("--note", "notes", default=None, help="Replace the trade notes.")
@click.option("--tag", "tags", multiple=True, help="Replace tags (repeatable).")
@click.option("--category", default=None, help="Instrument category.")
@click.pass_context
def note(
    ctx: click.Context,
    trade_ref: str,
    notes: Optional[str],
    tags: tuple[str, ...],
    category: Optional[str],
) -> None:
    """Edit a trade's notes, tags or category."""
    changes = {}
    if notes is not None:
        changes["notes"] = notes
    if tags:
        changes["tags"] = list(tags)
    if category is not None:
        changes["category"] = category

    if not changes:
        console.print("[yellow]Nothing to update. Pass --note, --tag or --category.[/yellow]")
        return

    journal = get_journal(ctx)
    with report_errors():
        target = resolve_trade(journal, trade_ref)
        updated = journal.edit_trade(target.id, TradeUpdate(**changes))

    console.print(f"[green]Updated trade {updated.id[:8]} ({updated.symbol}).[/green]")


@trade.command()
@click.argument("trade_ref")
@click.option("--confirm", is_flag=True, help="Skip confirmation prompt.")
@click.pass_context
def delete(ctx: click.Context, trade_ref: str, confirm: bool) -> None:
    """Delete a trade.

    Deleting a closed trade takes its P&L back out of the account balance.
    """
    journal = get_journal(ctx)

    with report_errors():
        target = resolve_trade(journal, trade_ref)

    if not confirm:
        if not click.confirm(f"Delete trade {target.id[:8]} ({target.symbol} {target.status.value})?"):
            console.print("[dim]Delete cancelled.[/dim]")
            return

    with report_errors():
        ledger = journal.delete_trade(target.id)

    console.print(Panel(
        f"[green]Trade {target.id[:8]} deleted[/green]\n\n"
        f"Balance: {ledger.current_balance:,.2f} {ledger.currency}",
        title="[bold green]Deleted[/bold green]",
        border_style="green",
    ))


@trade.command("list")
@click.option("--account", "account_ref", default=None, help="Account ID or name.")
@click.option("--all", "all_accounts", is_flag=True, help="List trades of every account.")
@click.option("--status", "status_filter", default=None, help="Only trades with this status.")
@click.pass_context
def list_trades(
    ctx: click.Context,
    account_ref: Optional[str],
    all_accounts: bool,
    status_filter: Optional[str],
) -> None:
    """List trades, oldest first."""
    from tradeledger.models import normalize_status

    journal = get_journal(ctx)

    with report_errors():
        account_id = None if all_accounts else resolve_account(journal, account_ref).id
        wanted = normalize_status(status_filter) if status_filter else None
        trades = journal.list_trades(account_id)

    if wanted is not None:
        trades = [t for t in trades if t.status is wanted]

    if not trades:
        console.print("[dim]No trades found.[/dim]")
        return

    table = Table(title="Trades", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Created")
    table.add_column("Symbol", style="bold")
    table.add_column("Dir")
    table.add_column("Entry", justify="right")
    table.add_column("Status", justify="center")
    table.add_column("P&L", justify="right")
    table.add_column("Notes", max_width=30)

    for t in trades:
        table.add_row(
            t.id[:8],
            t.created_at.strftime("%Y-%m-%d %H:%M"),
            t.symbol,
            t.direction,
            f"{t.entry_price:g}",
            _status_label(t.status),
            format_money(t.realized_pnl) if t.realized_pnl is not None else "-",
            (t.notes[:27] + "...") if t.notes and len(t.notes) > 30 else (t.notes or "-"),
        )

    console.print(table)
