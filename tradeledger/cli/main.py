"""Main CLI entry point for TradeLedger."""

from pathlib import Path
from typing import Optional

import click

from tradeledger.cli.account import account
from tradeledger.cli.common import error_panel
from tradeledger.cli.stats import stats
from tradeledger.cli.trade import trade
from tradeledger.config import ConfigError, load_config
from tradeledger.log import setup_logging


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="tradeledger")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.config/tradeledger/config.toml).",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """TradeLedger - trading journal with exact account balances.

    Record trades, move them through PLANNED -> ACTIVE -> WIN/LOSS,
    and keep each account's balance in step with its closed trades.

    \b
    Quick Start:
      tradeledger account open Main --balance 10000
      tradeledger trade add EURUSD long --entry 1.08 --profit 200 --loss 100
      tradeledger trade status <id> win
      tradeledger stats
    """
    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        error_panel(str(e))
        raise SystemExit(1)

    setup_logging("DEBUG" if verbose else config["logging"]["level"])
    ctx.obj["config"] = config


cli.add_command(account)
cli.add_command(trade)
cli.add_command(stats)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
