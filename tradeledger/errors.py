"""Error types raised by TradeLedger.

All errors are recoverable: callers are expected to report them to the
user rather than crash.
"""


class TradeLedgerError(Exception):
    """Base class for all TradeLedger errors."""


class InvalidTransition(TradeLedgerError, ValueError):
    """Raised when a trade cannot move to the requested status."""

    def __init__(self, message: str, current: str | None = None, target: str | None = None):
        super().__init__(message)
        self.current = current
        self.target = target


class InvalidAmount(TradeLedgerError, ValueError):
    """Raised for non-finite, non-numeric or currency-mismatched amounts."""


class NotFound(TradeLedgerError, LookupError):
    """Raised when a referenced trade or account does not exist."""

    def __init__(self, kind: str, identifier: str):
        super().__init__(f"{kind} '{identifier}' not found")
        self.kind = kind
        self.identifier = identifier
