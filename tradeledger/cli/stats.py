"""Statistics command for TradeLedger CLI."""

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
from tradeledger.models import Summary


def format_profit_factor(summary: Summary) -> str:
    """Profit factor for display; unbounded shows as infinity."""
    if summary.profit_factor_unbounded:
        return "∞"
    return f"{summary.profit_factor:.2f}"


@click.command()
@click.option("--account", "account_ref", default=None, help="Account ID or name.")
@click.option("--all", "all_accounts", is_flag=True, help="Summarize every account together.")
@click.option("--symbols", is_flag=True, help="Also show a per-symbol breakdown.")
@click.option("--daily", "period", flag_value="day", default=None, help="Also show P&L per day.")
@click.option("--monthly", "period", flag_value="month", help="Also show P&L per month.")
@click.pass_context
def stats(
    ctx: click.Context,
    account_ref: Optional[str],
    all_accounts: bool,
    symbols: bool,
    period: Optional[str],
) -> None:
    """Show performance statistics.

    Win rate, profit factor, streaks and drawdown are recomputed from the
    closed trades every time.

    \b
    Examples:
      tradeledger stats
      tradeledger stats --account Prop --symbols
      tradeledger stats --all
      tradeledger stats --monthly
    """
    journal = get_journal(ctx)

    with report_errors():
        if all_accounts:
            account_id, title = None, "All Accounts"
        else:
            ledger = resolve_account(journal, account_ref)
            account_id, title = ledger.id, ledger.name
        summary = journal.summarize_account(account_id)
        breakdown = journal.symbol_breakdown(account_id) if symbols else []
        periods = journal.period_breakdown(account_id, period) if period else []

    if summary.total_trades == 0:
        console.print(Panel(
            "[dim]No trades recorded yet[/dim]",
            title=f"[bold]{title}[/bold]",
            border_style="dim",
        ))
        return

    streak = (
        f"{summary.current_streak} {summary.streak_type}"
        if summary.streak_type != "none" else "-"
    )

    console.print(Panel(
        f"Trades:          {summary.total_trades} "
        f"({summary.winning_trades}W / {summary.losing_trades}L / "
        f"{summary.breakeven_trades}BE / {summary.open_trades} open)\n"
        f"Win Rate:        {summary.win_rate * 100:.1f}%\n"
        f"Profit Factor:   {format_profit_factor(summary)}\n"
        f"Expectancy:      {format_money(summary.expectancy)}\n"
        f"{'─' * 35}\n"
        f"Total Profit:    {format_money(summary.total_profit)}\n"
        f"Total Loss:      {format_money(-summary.total_loss)}\n"
        f"Net P&L:         {format_money(summary.net_pnl)}\n"
        f"Avg Win / Loss:  {summary.avg_win:,.2f} / {summary.avg_loss:,.2f}\n"
        f"Best / Worst:    {summary.best_trade:,.2f} / {summary.worst_trade:,.2f}\n"
        f"Max Drawdown:    {summary.max_drawdown:,.2f}\n"
        f"{'─' * 35}\n"
        f"Current Streak:  {streak}\n"
        f"Longest Wins:    {summary.largest_win_streak}\n"
        f"Longest Losses:  {summary.largest_loss_streak}",
        title=f"[bold]{title}[/bold]",
        border_style="cyan",
    ))

    if breakdown:
        table = Table(title="By Symbol", show_header=True, header_style="bold cyan")
        table.add_column("Symbol", style="bold")
        table.add_column("Trades", justify="right")
        table.add_column("Net P&L", justify="right")
        table.add_column("Win Rate", justify="right")

        for row in breakdown:
            table.add_row(
                row.symbol,
                str(row.trades),
                format_money(row.net_pnl),
                f"{row.win_rate * 100:.1f}%",
            )

        console.print(table)

    if periods:
        table = Table(
            title="By Day" if period == "day" else "By Month",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("Period", style="bold")
        table.add_column("Trades", justify="right")
        table.add_column("Profit", justify="right")
        table.add_column("Loss", justify="right")
        table.add_column("Net P&L", justify="right")
        table.add_column("Win Rate", justify="right")

        for row in periods:
            table.add_row(
                row.period_start.strftime("%Y-%m-%d" if period == "day" else "%Y-%m"),
                str(row.trades_count),
                f"{row.total_profit:,.2f}",
                f"{row.total_loss:,.2f}",
                format_money(row.total_pnl),
                f"{row.win_rate * 100:.1f}%",
            )

        console.print(table)
