"""
Record Classifier Module

Turns a single ledger record into the balance adjustments it implies.

Two kinds of record exist:
- expense: ``payer`` paid ``amount`` on behalf of everyone in ``participants``
  (the payer may or may not be one of them)
- settlement: ``payer`` repaid ``amount`` directly to the single participant

Records are plain dictionaries:

    {"kind": "expense", "payer": "A", "amount": Decimal("90"), "participants": ["A", "B", "C"]}

Adjustments are returned in integer cents. Each participant's share of an
expense is rounded to whole cents on its own, before anything is summed, so an
expense split n ways may leave up to n half-cents of drift. That drift is
accepted; it is not pushed onto any participant.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Tuple

from expense_splitter.utils.errors import InvalidRecordError
from expense_splitter.utils.money import divide_cents, from_cents, is_valid_amount, to_cents, to_decimal

logger = logging.getLogger(__name__)

EXPENSE = "expense"
SETTLEMENT = "settlement"
RECORD_KINDS = (EXPENSE, SETTLEMENT)


def record_kind(record: Mapping[str, Any]) -> str:
    """Return the record kind, treating a missing kind as an expense."""
    kind = record.get("kind") or EXPENSE
    # str-valued enums compare equal to their value but format differently
    kind = getattr(kind, "value", kind)
    if kind not in RECORD_KINDS:
        raise InvalidRecordError(f"Unknown record kind: {kind!r}")
    return kind


def unique_participants(participants) -> List[str]:
    """De-duplicate participants, keeping first-seen order."""
    return list(dict.fromkeys(participants or []))


def _amount_cents(record: Mapping[str, Any]) -> int:
    amount = record.get("amount")
    if amount is None or not is_valid_amount(amount):
        raise InvalidRecordError(f"Record amount must be a number, got {amount!r}")

    cents = to_cents(amount)
    if cents <= 0:
        raise InvalidRecordError(f"Record amount must be greater than 0, got {amount}")
    return cents


def validate_record(record: Mapping[str, Any]) -> Tuple[str, str, int, List[str]]:
    """
    Check a record's shape and return its normalized fields.

    Returns:
        Tuple of (kind, payer, amount_cents, participants)

    Raises:
        InvalidRecordError: If the kind is unknown, the amount is not positive,
            an expense has no participants, or a settlement does not name
            exactly one receiver other than the payer
    """
    kind = record_kind(record)
    payer = record.get("payer")
    if not payer:
        raise InvalidRecordError("Record must have a payer")

    cents = _amount_cents(record)
    participants = unique_participants(record.get("participants"))

    if kind == EXPENSE:
        if not participants:
            raise InvalidRecordError(f"Expense paid by {payer} has no participants")
    else:
        if len(participants) != 1:
            raise InvalidRecordError(
                f"Settlement from {payer} must have exactly one receiver, got {len(participants)}"
            )
        if participants[0] == payer:
            raise InvalidRecordError(f"Settlement from {payer} cannot be paid to themselves")

    return kind, payer, cents, participants


def classify_record(record: Mapping[str, Any]) -> List[Tuple[str, int]]:
    """
    Compute the balance adjustments a record implies, in cents.

    The payer always gains the full amount. For an expense, every participant
    loses their rounded share; for a settlement, the receiver loses the full
    amount.

    Args:
        record: Record dictionary with kind, payer, amount and participants

    Returns:
        List of (member, delta_cents) pairs; a member may appear more than once

    Raises:
        InvalidRecordError: If the record is malformed

    Example:
        >>> classify_record({"payer": "A", "amount": Decimal("90"), "participants": ["A", "B", "C"]})
        [('A', 9000), ('A', -3000), ('B', -3000), ('C', -3000)]
    """
    kind, payer, cents, participants = validate_record(record)

    deltas = [(payer, cents)]
    if kind == SETTLEMENT:
        deltas.append((participants[0], -cents))
    else:
        share = divide_cents(cents, len(participants))
        deltas.extend((participant, -share) for participant in participants)

    logger.debug(f"Classified {kind} of {from_cents(cents)} paid by {payer}: {deltas}")
    return deltas


def net_deltas(record: Mapping[str, Any]) -> Dict[str, int]:
    """Like classify_record(), but with one combined delta per member."""
    combined: Dict[str, int] = {}
    for member, delta in classify_record(record):
        combined[member] = combined.get(member, 0) + delta
    return combined


def share_per_participant(amount: Any, participant_count: int) -> Decimal:
    """
    Per-person share of an equally split expense, as shown to users.

    Example:
        >>> share_per_participant(Decimal("100"), 3)
        Decimal('33.33')
    """
    if participant_count <= 0:
        raise InvalidRecordError("Cannot split an expense among zero participants")
    return from_cents(divide_cents(to_cents(to_decimal(amount)), participant_count))
