"""Data models for TradeLedger."""

from tradeledger.models.account import AccountLedger
from tradeledger.models.event import EventKind, JournalEvent, ReconciliationReport
from tradeledger.models.summary import PeriodStats, Summary, SymbolStats
from tradeledger.models.trade import (
    STATUS_ALIASES,
    TERMINAL_STATUSES,
    TradeRecord,
    TradeStatus,
    TradeUpdate,
    normalize_status,
)

__all__ = [
    "AccountLedger",
    "EventKind",
    "JournalEvent",
    "PeriodStats",
    "ReconciliationReport",
    "Summary",
    "SymbolStats",
    "STATUS_ALIASES",
    "TERMINAL_STATUSES",
    "TradeRecord",
    "TradeStatus",
    "TradeUpdate",
    "normalize_status",
]
