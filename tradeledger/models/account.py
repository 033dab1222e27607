"""Account ledger data model."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator


class AccountLedger(BaseModel):
    """Represents a trading account's running balance.

    The balance only ever changes by deltas tied to a trade transition;
    see tradeledger.engine.reconciler.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, min_length=1, description="Account ID")
    name: str = Field(default="Main", min_length=1, description="Account name")
    currency: str = Field(default="USD", min_length=3, max_length=3, description="Base currency")
    initial_balance: float = Field(..., description="Balance the account was opened with")
    current_balance: float = Field(
        default=None, description="Running balance (defaults to initial balance)"
    )
    is_default: bool = Field(default=False, description="Default account flag")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation time")
    updated_at: datetime = Field(default_factory=datetime.now, description="Last update time")

    model_config = {"frozen": True, "allow_inf_nan": False}

    @field_validator("currency", mode="before")
    @classmethod
    def _upper_currency(cls, value):
        return value.strip().upper() if isinstance(value, str) else value

    @model_validator(mode="before")
    @classmethod
    def _default_current_balance(cls, data):
        if isinstance(data, dict) and data.get("current_balance") is None:
            data = {**data, "current_balance": data.get("initial_balance")}
        return data
