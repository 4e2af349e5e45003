"""
Settlement Planner Module

Reduces a balance map to a short list of debtor -> creditor payments that
brings every balance to zero.

The algorithm works by:
1. Splitting members into debtors (negative balance) and creditors (positive
   balance), keeping the order in which they appear in the balance map
2. Walking the debtors in that order and paying the creditors in that order,
   always transferring min(debt remaining, credit remaining)
3. Moving on from a debtor or creditor as soon as their residual reaches zero

No sorting is involved, so the output for a given balance map is fully
deterministic: when two creditors hold the same residual credit, the one that
appears first in the map is paid first.

Every step exhausts at least one side, so the plan has at most
(#debtors + #creditors - 1) transactions and the walk is a single O(n) pass.

Example Usage:
    from expense_splitter.utils.settlement_planner import plan_settlement

    balances = {"A": Decimal("60"), "B": Decimal("-30"), "C": Decimal("-30")}
    plan_settlement(balances)
    # [{"from": "B", "to": "A", "amount": Decimal("30.00")},
    #  {"from": "C", "to": "A", "amount": Decimal("30.00")}]
"""

import logging
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from expense_splitter.utils.errors import UnbalancedInputError
from expense_splitter.utils.money import BALANCE_TOLERANCE, balances_to_cents, from_cents, to_cents

# Configure logger
logger = logging.getLogger(__name__)


def validate_balance_sum(
    balances: Mapping[str, Any],
    tolerance: Decimal = BALANCE_TOLERANCE,
    drift_allowance: Decimal = Decimal("0")
) -> None:
    """
    Validate that the sum of all balances is approximately zero.

    The allowed deviation grows with the group: each member's balance may carry
    up to ``tolerance`` of rounding drift. On top of that, ``drift_allowance``
    admits the drift the records themselves are known to carry (see
    balance_calculator.rounding_drift_bound), which grows with the number of
    uneven splits rather than with the group size.

    Args:
        balances: Dictionary mapping member -> net balance
        tolerance: Allowed deviation per member (default: 0.01)
        drift_allowance: Extra allowed deviation for the whole map (default: 0)

    Raises:
        UnbalancedInputError: If the sum of balances exceeds the tolerance

    Example:
        >>> validate_balance_sum({"A": Decimal("50"), "B": Decimal("-50")})  # Passes
        >>> validate_balance_sum({"A": Decimal("50"), "B": Decimal("-49")})  # Raises
    """
    total = sum(balances_to_cents(balances).values())
    allowed = to_cents(tolerance) * len(balances) + to_cents(drift_allowance)
    if abs(total) > allowed:
        raise UnbalancedInputError(
            f"Balances not zero-sum: total={from_cents(total)}, "
            f"tolerance={from_cents(allowed)}. This indicates unbalanced expense data."
        )


def split_debtors_and_creditors(
    balances: Mapping[str, int]
) -> Tuple[List[Tuple[str, int]], List[Tuple[str, int]]]:
    """
    Partition a cents balance map into debtors and creditors.

    Both lists keep balance-map order and hold positive amounts; members with
    a zero balance are left out.
    """
    debtors = [(member, -cents) for member, cents in balances.items() if cents < 0]
    creditors = [(member, cents) for member, cents in balances.items() if cents > 0]
    return debtors, creditors


def _match(
    debtors: List[Tuple[str, int]],
    creditors: List[Tuple[str, int]],
    on_step: Optional[Callable[[str], None]] = None
) -> List[Dict[str, Any]]:
    transactions = []
    step = 0
    i, j = 0, 0

    while i < len(debtors) and j < len(creditors):
        step += 1
        debtor_id, debt = debtors[i]
        creditor_id, credit = creditors[j]

        amount = min(debt, credit)
        transactions.append({
            "from": debtor_id,
            "to": creditor_id,
            "amount": from_cents(amount)
        })

        debt -= amount
        credit -= amount
        debtors[i] = (debtor_id, debt)
        creditors[j] = (creditor_id, credit)

        if on_step:
            on_step(
                f"Step {step}: {debtor_id} pays {creditor_id} {from_cents(amount)} "
                f"(remaining: {debtor_id}={from_cents(debt)}, {creditor_id}={from_cents(credit)})"
            )

        if debt == 0:
            i += 1
        if credit == 0:
            j += 1

    unmatched = debtors[i:] + creditors[j:]
    residue = [(member, cents) for member, cents in unmatched if cents]
    if residue:
        logger.warning(f"Settlement plan leaves rounding residue unmatched: "
                       f"{[(member, str(from_cents(cents))) for member, cents in residue]}")
        if on_step:
            on_step(f"Unmatched residue: {residue}")

    return transactions


def plan_settlement(
    balances: Mapping[str, Any],
    tolerance: Decimal = BALANCE_TOLERANCE,
    drift_allowance: Decimal = Decimal("0")
) -> List[Dict[str, Any]]:
    """
    Compute the payments that settle every balance.

    Edge Cases Handled:
    - Empty map, single member or all-zero balances: returns []
    - Sum of balances off by more than ``tolerance`` per member plus
      ``drift_allowance``: raises
    - Drift within tolerance: matched as far as possible, the leftover cent(s)
      stay with the member who cannot be matched

    Args:
        balances: Dictionary mapping member -> net balance, in the order the
            members should be visited
        tolerance: Allowed deviation from zero per member (default: 0.01)
        drift_allowance: Known rounding drift of the records behind the map,
            allowed in addition to the per-member tolerance

    Returns:
        List of settlement transactions, each with format:
        [{"from": str, "to": str, "amount": Decimal}, ...]

    Raises:
        UnbalancedInputError: If balances don't sum to zero (beyond tolerance)

    Example:
        >>> plan_settlement({"A": Decimal("100"), "B": Decimal("-50"), "C": Decimal("-50")})
        [{'from': 'B', 'to': 'A', 'amount': Decimal('50.00')},
         {'from': 'C', 'to': 'A', 'amount': Decimal('50.00')}]
    """
    if not balances:
        return []

    validate_balance_sum(balances, tolerance, drift_allowance)

    debtors, creditors = split_debtors_and_creditors(balances_to_cents(balances))
    if not debtors or not creditors:
        return []

    transactions = _match(debtors, creditors)
    logger.debug(f"Planned {len(transactions)} transactions for {len(balances)} members")
    return transactions


def plan_settlement_detailed(
    balances: Mapping[str, Any],
    tolerance: Decimal = BALANCE_TOLERANCE,
    drift_allowance: Decimal = Decimal("0")
) -> Tuple[List[Dict[str, Any]], List[str]]:
    """
    Compute the settlement plan along with a step-by-step log.

    Same algorithm as plan_settlement(), but also returns the matching process
    as readable lines. Useful for debugging and for explaining a plan to users.

    Returns:
        Tuple of (transactions, log_lines)

    Raises:
        UnbalancedInputError: If balances don't sum to zero (beyond tolerance)
    """
    logs = []
    logs.append("=" * 60)
    logs.append("Settlement Plan - Detailed Workflow")
    logs.append("=" * 60)
    logs.append(f"Initial balances: {dict(balances)}")

    if not balances:
        logs.append("No balances provided. Nothing to settle.")
        return [], logs

    try:
        validate_balance_sum(balances, tolerance, drift_allowance)
        logs.append(f"Balance validation passed (tolerance {tolerance} per member, drift allowance {drift_allowance})")
    except UnbalancedInputError as e:
        logs.append(f"Balance validation failed: {e}")
        raise

    debtors, creditors = split_debtors_and_creditors(balances_to_cents(balances))
    logs.append(f"Debtors (to pay): {[(m, str(from_cents(c))) for m, c in debtors]}")
    logs.append(f"Creditors (to receive): {[(m, str(from_cents(c))) for m, c in creditors]}")

    if not debtors or not creditors:
        logs.append("No debtors or no creditors. Nothing to settle.")
        return [], logs

    logs.append("-" * 60)
    transactions = _match(debtors, creditors, on_step=logs.append)
    logs.append("-" * 60)
    logs.append(f"Total transactions: {len(transactions)}")
    logs.append("=" * 60)

    return transactions, logs
