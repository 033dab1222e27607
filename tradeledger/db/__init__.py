"""Persistence for TradeLedger."""

from tradeledger.db.store import DataStore

__all__ = ["DataStore"]
