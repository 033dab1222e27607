"""Trade journal service."""

from tradeledger.journal.service import TradeJournal, TransitionOutcome

__all__ = ["TradeJournal", "TransitionOutcome"]
