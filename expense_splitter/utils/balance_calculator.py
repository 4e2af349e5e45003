"""
Balance Calculator Module

Folds a group's ledger records into a net balance per member.

Net balance = total_paid - total_share (+ settlements paid - settlements received)
- Positive balance: member is owed money (creditor)
- Negative balance: member owes money (debtor)

Every roster member gets an entry, in roster order, even if no record
mentions them. The result depends only on the roster and on the multiset of
records: deltas are whole cents by the time they are added, so the fold is
exact and the order of records does not matter.

Example Usage:
    from expense_splitter.utils.balance_calculator import compute_balances

    records = [
        {"kind": "expense", "payer": "A", "amount": Decimal("90"), "participants": ["A", "B", "C"]},
        {"kind": "settlement", "payer": "B", "amount": Decimal("30"), "participants": ["A"]},
    ]
    compute_balances(["A", "B", "C"], records)
    # {"A": Decimal("30.00"), "B": Decimal("0.00"), "C": Decimal("-30.00")}
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from expense_splitter.utils.errors import UnknownMemberError
from expense_splitter.utils.money import SNAP_THRESHOLD, balances_from_cents, from_cents, to_cents
from expense_splitter.utils.record_classifier import classify_record

logger = logging.getLogger(__name__)


def normalize_roster(roster: Iterable[str]) -> List[str]:
    """Drop repeated members, keeping the first occurrence of each."""
    return list(dict.fromkeys(roster))


def snap_to_zero(balances: Dict[str, int], threshold: Decimal = SNAP_THRESHOLD) -> Dict[str, int]:
    """
    Treat balances smaller than the threshold as settled.

    Args:
        balances: Dictionary mapping member -> balance in cents
        threshold: Magnitude below which a balance becomes 0

    Returns:
        New dictionary with sub-threshold balances replaced by 0
    """
    threshold_cents = to_cents(threshold)
    return {
        member: 0 if abs(cents) < threshold_cents else cents
        for member, cents in balances.items()
    }


def compute_balances_cents(
    roster: Sequence[str],
    records: Sequence[Mapping[str, Any]]
) -> Dict[str, int]:
    """
    Calculate each member's net balance, in cents.

    Args:
        roster: Group members; the result keeps this order
        records: Expense and settlement records, in the order they were entered

    Returns:
        Dictionary mapping member -> net balance in cents

    Raises:
        InvalidRecordError: If any record is malformed
        UnknownMemberError: If a record's payer or participant is not on the roster
    """
    members = normalize_roster(roster)
    if not members:
        return {}

    balances: Dict[str, int] = {member: 0 for member in members}

    for index, record in enumerate(records):
        deltas = classify_record(record)

        # Check every member first so a bad record leaves nothing half-applied
        for member, _ in deltas:
            if member not in balances:
                raise UnknownMemberError(
                    member,
                    f"Record {index} references '{member}', who is not part of this group"
                )

        for member, delta in deltas:
            balances[member] += delta

    balances = snap_to_zero(balances)

    drift = sum(balances.values())
    if drift:
        logger.debug(f"Balances carry {from_cents(drift)} of rounding drift over {len(records)} records")

    return balances


def compute_balances(
    roster: Sequence[str],
    records: Sequence[Mapping[str, Any]]
) -> Dict[str, Decimal]:
    """
    Calculate each member's net balance from the group's records.

    Args:
        roster: Group members; the result keeps this order
        records: Expense and settlement records, e.g.
            {
                "kind": "expense" | "settlement",  # defaults to "expense"
                "payer": str,
                "amount": Decimal,
                "participants": List[str],         # one receiver for a settlement
            }

    Returns:
        Dictionary mapping member -> net balance (Decimal, 2 places)

    Raises:
        InvalidRecordError: If any record is malformed
        UnknownMemberError: If a record's payer or participant is not on the roster

    Example:
        >>> compute_balances(["A", "B", "C"], [
        ...     {"payer": "A", "amount": Decimal("90"), "participants": ["A", "B", "C"]},
        ... ])
        {'A': Decimal('60.00'), 'B': Decimal('-30.00'), 'C': Decimal('-30.00')}
    """
    return balances_from_cents(compute_balances_cents(roster, records))


def rounding_drift_bound(records: Sequence[Mapping[str, Any]]) -> Decimal:
    """
    Largest amount by which the balances of these records may miss zero.

    Each expense whose shares do not add back up to its amount leaves that
    difference behind; the total drift can be no larger than the sum of those
    differences. Settlements and even splits contribute nothing.

    Args:
        records: The same records passed to compute_balances()

    Returns:
        Non-negative Decimal, suitable as plan_settlement()'s drift_allowance

    Raises:
        InvalidRecordError: If any record is malformed

    Example:
        >>> rounding_drift_bound([{"payer": "A", "amount": Decimal("100"), "participants": ["A", "B", "C"]}] * 4)
        Decimal('0.04')
    """
    bound = sum(abs(sum(delta for _, delta in classify_record(record))) for record in records)
    return from_cents(bound)
