"""TradeLedger - trade lifecycle and account balance reconciliation."""

__version__ = "0.1.0"
