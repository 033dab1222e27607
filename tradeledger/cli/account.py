"""Account commands for TradeLedger CLI.

Handles opening accounts, listing balances and reconciliation.
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
)


@click.group()
def account() -> None:
    """Manage trading accounts.

    \b
    Commands:
      open       - Open a new account
      list       - List accounts and balances
      show       - Show one account
      reconcile  - Check a balance against its closed trades
    """
    pass


@account.command("open")
@click.argument("name")
@click.option("--balance", type=float, default=None, help="Initial balance.")
@click.option("--currency", default=None, help="Base currency code (e.g. USD).")
@click.option("--default", "is_default", is_flag=True, help="Make this the default account.")
@click.pass_context
def open_account(
    ctx: click.Context,
    name: str,
    balance: Optional[float],
    currency: Optional[str],
    is_default: bool,
) -> None:
    """Open a new account.

    \b
    Examples:
      tradeledger account open Main --balance 10000
      tradeledger account open Prop --balance 50000 --currency EUR --default
    """
    defaults = ctx.obj["config"]["journal"]
    journal = get_journal(ctx)

    with report_errors():
        ledger = journal.open_account(
            name=name,
            initial_balance=balance if balance is not None else defaults["default_initial_balance"],
            currency=currency or defaults["default_currency"],
            is_default=is_default,
        )

    console.print(Panel(
        f"[green]Account opened[/green]\n\n"
        f"ID:       {ledger.id}\n"
        f"Name:     {ledger.name}\n"
        f"Balance:  {ledger.current_balance:,.2f} {ledger.currency}"
        + ("\nDefault:  yes" if ledger.is_default else ""),
        title="[bold green]Account[/bold green]",
        border_style="green",
    ))


@account.command("list")
@click.pass_context
def list_accounts(ctx: click.Context) -> None:
    """List accounts and their balances."""
    journal = get_journal(ctx)
    accounts = journal.list_accounts()

    if not accounts:
        console.print("[dim]No accounts. Run [cyan]tradeledger account open NAME[/cyan].[/dim]")
        return

    table = Table(title="Accounts", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Initial", justify="right")
    table.add_column("Current", justify="right")
    table.add_column("P&L", justify="right")
    table.add_column("Default", justify="center")

    for ledger in accounts:
        table.add_row(
            ledger.id[:8],
            ledger.name,
            f"{ledger.initial_balance:,.2f} {ledger.currency}",
            f"{ledger.current_balance:,.2f} {ledger.currency}",
            format_money(ledger.current_balance - ledger.initial_balance),
            "*" if ledger.is_default else "",
        )

    console.print(table)


@account.command("show")
@click.argument("account_ref", required=False)
@click.pass_context
def show(ctx: click.Context, account_ref: Optional[str]) -> None:
    """Show an account (the default account if none is given)."""
    journal = get_journal(ctx)

    with report_errors():
        ledger = resolve_account(journal, account_ref)
        trades = journal.list_trades(ledger.id)

    open_count = sum(1 for t in trades if not t.is_terminal)
    change = ledger.current_balance - ledger.initial_balance
    pct = (change / ledger.initial_balance * 100) if ledger.initial_balance else 0.0

    console.print(Panel(
        f"ID:               {ledger.id}\n"
        f"Currency:         {ledger.currency}\n"
        f"Initial Balance:  {ledger.initial_balance:,.2f}\n"
        f"Current Balance:  {ledger.current_balance:,.2f}\n"
        f"{'─' * 35}\n"
        f"Change:           {format_money(change)} ({pct:+.2f}%)\n"
        f"Trades:           {len(trades)} ({open_count} open)",
        title=f"[bold]{ledger.name}[/bold]",
        border_style="cyan",
    ))


@account.command()
@click.argument("account_ref", required=False)
@click.option("--fix", is_flag=True, help="Correct the balance if it has drifted.")
@click.pass_context
def reconcile(ctx: click.Context, account_ref: Optional[str], fix: bool) -> None:
    """Check an account balance against its closed trades.

    The expected balance is the initial balance plus the realized P&L
    of every closed trade on the account.

    \b
    Examples:
      tradeledger account reconcile
      tradeledger account reconcile Main --fix
    """
    journal = get_journal(ctx)

    with report_errors():
        ledger = resolve_account(journal, account_ref)
        report = journal.reconcile_account(ledger.id, fix=fix)

    if report.in_balance:
        console.print(Panel(
            f"[green]Balance matches closed trades[/green]\n\n"
            f"Balance: {report.recorded_balance:,.2f} {ledger.currency}",
            title=f"[bold green]{ledger.name}[/bold green]",
            border_style="green",
        ))
        return

    status = "[green]Corrected[/green]" if report.corrected else "[yellow]Not corrected (use --fix)[/yellow]"
    console.print(Panel(
        f"Recorded: {report.recorded_balance:,.2f} {ledger.currency}\n"
        f"Expected: {report.expected_balance:,.2f} {ledger.currency}\n"
        f"Drift:    {format_money(report.drift)}\n\n"
        f"{status}",
        title=f"[bold yellow]{ledger.name}: balance drift[/bold yellow]",
        border_style="yellow",
    ))
    if not report.corrected:
        raise SystemExit(2)
