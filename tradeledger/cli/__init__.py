"""Command-line interface for TradeLedger."""

from tradeledger.cli.main import cli, main

__all__ = ["cli", "main"]
