"""
Errors raised by the balance and settlement engine.

All of them are ValueError subclasses so callers that already guard the
algorithm helpers with ``except ValueError`` keep working.
"""


class SettlementError(ValueError):
    """Base class for balance and settlement validation failures."""


class InvalidRecordError(SettlementError):
    """A record is malformed: bad amount, kind or participant list."""


class UnknownMemberError(SettlementError):
    """A record references a member who is not on the group roster."""

    def __init__(self, member: str, message: str = None):
        self.member = member
        super().__init__(message or f"Member '{member}' is not part of this group")


class UnbalancedInputError(SettlementError):
    """A balance map does not sum to zero within tolerance."""
