"""Journal event and reconciliation report models."""

import math
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

EventKind = Literal[
    "account_opened",
    "account_reconciled",
    "trade_recorded",
    "trade_edited",
    "status_changed",
    "trade_reopened",
    "trade_deleted",
]


class JournalEvent(BaseModel):
    """Notification emitted after a journal change has been committed."""

    kind: EventKind = Field(..., description="What changed")
    account_id: str = Field(..., description="Affected account ID")
    trade_id: Optional[str] = Field(default=None, description="Affected trade ID")
    delta: float = Field(default=0.0, description="Balance change applied")
    balance: float = Field(..., description="Account balance after the change")
    timestamp: datetime = Field(default_factory=datetime.now, description="Commit time")

    model_config = {"frozen": True}


class ReconciliationReport(BaseModel):
    """Result of checking a ledger against its trades."""

    account_id: str = Field(..., description="Account ID")
    recorded_balance: float = Field(..., description="Balance stored on the ledger")
    expected_balance: float = Field(..., description="Balance recomputed from trades")
    drift: float = Field(..., description="expected_balance - recorded_balance")
    corrected: bool = Field(default=False, description="Whether the drift was applied")

    model_config = {"frozen": True}

    @property
    def in_balance(self) -> bool:
        """Whether the recorded balance matches, allowing for float rounding."""
        return math.isclose(
            self.expected_balance, self.recorded_balance, rel_tol=1e-12, abs_tol=1e-6
        )
