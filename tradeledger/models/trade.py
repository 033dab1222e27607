"""Trade record data model."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from tradeledger.errors import InvalidTransition


class TradeStatus(str, Enum):
    """Canonical trade statuses."""

    PLANNED = "PLANNED"
    ACTIVE = "ACTIVE"
    WIN = "WIN"
    LOSS = "LOSS"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({TradeStatus.WIN, TradeStatus.LOSS})

# Legacy status strings still found in older journal records.
STATUS_ALIASES = {
    "PLANNING": TradeStatus.PLANNED,
    "OPEN": TradeStatus.ACTIVE,
    "CLOSED": TradeStatus.WIN,
}


def normalize_status(value: "str | TradeStatus") -> TradeStatus:
    """Translate a status string (canonical or legacy alias) to a TradeStatus.

    Args:
        value: Status as stored or requested by a caller.

    Returns:
        The canonical status.

    Raises:
        InvalidTransition: If the value is not a known status or alias.
    """
    if isinstance(value, TradeStatus):
        return value
    if not isinstance(value, str):
        raise InvalidTransition(f"Unknown trade status: {value!r}", target=repr(value))

    key = value.strip().upper()
    if key in STATUS_ALIASES:
        return STATUS_ALIASES[key]
    try:
        return TradeStatus(key)
    except ValueError:
        raise InvalidTransition(f"Unknown trade status: {value!r}", target=value) from None


def _new_trade_id() -> str:
    return uuid.uuid4().hex


class TradeRecord(BaseModel):
    """Represents one journal entry for a single all-or-nothing position."""

    id: str = Field(default_factory=_new_trade_id, min_length=1, description="Trade ID")
    account_id: str = Field(..., min_length=1, description="Owning account ID")
    symbol: str = Field(..., min_length=1, description="Trading symbol")
    direction: Literal["LONG", "SHORT"] = Field(..., description="Trade direction")
    entry_price: float = Field(..., ge=0, description="Entry price")
    stop_loss: Optional[float] = Field(default=None, ge=0, description="Stop loss price")
    take_profit: Optional[float] = Field(default=None, ge=0, description="Take profit price")
    exit_price: Optional[float] = Field(default=None, ge=0, description="Actual exit price")
    risk_amount: float = Field(default=0.0, ge=0, description="Amount at risk")
    potential_profit: float = Field(
        ..., ge=0, description="Profit if the take profit is hit"
    )
    potential_loss: float = Field(..., ge=0, description="Loss if the stop loss is hit")
    risk_reward_ratio: Optional[float] = Field(default=None, ge=0, description="Reward/risk")
    status: TradeStatus = Field(default=TradeStatus.PLANNED, description="Trade status")
    realized_pnl: Optional[float] = Field(
        default=None, description="Realized P&L, set once the trade is closed"
    )
    category: Optional[str] = Field(default=None, description="Instrument category")
    strategy_id: Optional[str] = Field(default=None, description="Linked strategy ID")
    notes: Optional[str] = Field(default=None, description="User notes")
    tags: list[str] = Field(default_factory=list, description="User tags")
    images: list[str] = Field(default_factory=list, description="Attached image references")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation time")
    updated_at: datetime = Field(default_factory=datetime.now, description="Last update time")

    model_config = {"frozen": True, "allow_inf_nan": False}

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value):
        return normalize_status(value)

    @field_validator("direction", mode="before")
    @classmethod
    def _upper_direction(cls, value):
        return value.upper() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _check_realized_pnl(self) -> "TradeRecord":
        if self.status.is_terminal and self.realized_pnl is None:
            raise ValueError(f"Closed trade ({self.status.value}) requires realized_pnl")
        if not self.status.is_terminal and self.realized_pnl is not None:
            raise ValueError(f"Open trade ({self.status.value}) cannot have realized_pnl")
        return self

    @property
    def is_terminal(self) -> bool:
        """Whether the trade has realized a final outcome."""
        return self.status.is_terminal


class TradeUpdate(BaseModel):
    """Edits to the non-financial fields of a trade.

    Only fields explicitly set are applied, so a field can be cleared by
    setting it to None.
    """

    notes: Optional[str] = None
    tags: Optional[list[str]] = None
    images: Optional[list[str]] = None
    category: Optional[str] = None
    strategy_id: Optional[str] = None

    model_config = {"frozen": True, "extra": "forbid"}

    def changes(self) -> dict:
        """Return only the fields the caller set."""
        changes = self.model_dump(exclude_unset=True)
        for field in ("tags", "images"):
            if field in changes and changes[field] is None:
                changes[field] = []
        return changes
