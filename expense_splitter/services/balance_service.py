import logging
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from fastapi import HTTPException
from typing import Any, Dict, List, Tuple
from decimal import Decimal
from expense_splitter.models.groups import Group
from expense_splitter.models.records import GroupRecord
from expense_splitter.rabbitmq.producer import notify_balances_updated
from expense_splitter.schemas.balance_schema import (
    BalanceSnapshot, MemberBalance, SettleAllReport, SettlementTransaction
)
from expense_splitter.schemas.record_schema import SettlementCreate
from expense_splitter.services.group_service import get_roster
from expense_splitter.services.record_service import (
    clear_group_records, create_settlement_record, get_group_records, record_to_core
)
from expense_splitter.services.report_service import build_settlement_report
from expense_splitter.utils.balance_calculator import compute_balances, rounding_drift_bound
from expense_splitter.utils.errors import SettlementError
from expense_splitter.utils.settlement_planner import plan_settlement

logger = logging.getLogger(__name__)


def _inconsistent_ledger(group_id: str, error: SettlementError) -> HTTPException:
    logger.error(f"Ledger of group {group_id} cannot be settled: {error}")
    return HTTPException(status_code=409, detail=f"Group records are inconsistent: {error}")


def _load_ledger(db: Session, group_id: str) -> Tuple[List[str], List[Dict[str, Any]]]:
    roster = get_roster(db, group_id)
    records = [record_to_core(record) for record in get_group_records(db, group_id)]
    return roster, records


def calculate_group_balances(db: Session, group_id: str) -> Dict[str, Decimal]:
    """
    Net balance of every member, recomputed from the full record history.

    Nothing is cached: each call reads the roster and every record again, so
    the result always reflects the latest writes.
    """
    roster, records = _load_ledger(db, group_id)

    try:
        return compute_balances(roster, records)
    except SettlementError as e:
        raise _inconsistent_ledger(group_id, e)


def _balances_and_plan(db: Session, group_id: str) -> Tuple[Dict[str, Decimal], List[Dict[str, Any]]]:
    roster, records = _load_ledger(db, group_id)

    try:
        balances = compute_balances(roster, records)
        # Uneven splits add up; the planner only rejects drift the records cannot explain
        plan = plan_settlement(balances, drift_allowance=rounding_drift_bound(records))
    except SettlementError as e:
        raise _inconsistent_ledger(group_id, e)

    return balances, plan


def plan_group_settlement(db: Session, group_id: str) -> List[Dict[str, Any]]:
    """Payments that would settle the group as it stands now"""
    _, plan = _balances_and_plan(db, group_id)
    return plan


def to_settlement_transactions(plan: List[Dict[str, Any]]) -> List[SettlementTransaction]:
    return [
        SettlementTransaction(from_member=t["from"], to_member=t["to"], amount=t["amount"])
        for t in plan
    ]


def get_balance_snapshot(db: Session, group: Group) -> BalanceSnapshot:
    """Balances and the settlement plan of a group, computed together"""
    balances, plan = _balances_and_plan(db, group.id)

    return BalanceSnapshot(
        group_slug=group.slug,
        balances=[MemberBalance(member=member, balance=balance) for member, balance in balances.items()],
        transactions=to_settlement_transactions(plan)
    )


def publish_balance_snapshot(db: Session, group: Group) -> bool:
    """Recompute the group's balances and announce them to subscribers"""
    try:
        snapshot = get_balance_snapshot(db, group)
    except HTTPException as e:
        logger.warning(f"Skipping balance update for group {group.slug}: {e.detail}")
        return False
    return notify_balances_updated(group.slug, snapshot.model_dump(mode="json"))


def settle_transaction(db: Session, group: Group, settlement_data: SettlementCreate) -> GroupRecord:
    """
    Accept a proposed payment, fully or partly, by recording it as a settlement.

    The payment must match a transaction of the current plan and may not
    exceed its amount.
    """
    plan = plan_group_settlement(db, group.id)
    proposed = next(
        (t for t in plan
         if t["from"] == settlement_data.from_member and t["to"] == settlement_data.to_member),
        None
    )
    if proposed is None:
        raise HTTPException(
            status_code=409,
            detail=f"{settlement_data.from_member} has no outstanding payment to {settlement_data.to_member}"
        )
    if settlement_data.amount > proposed["amount"]:
        raise HTTPException(
            status_code=409,
            detail=f"Amount exceeds the outstanding {proposed['amount']}"
        )

    return create_settlement_record(db, group.id, settlement_data)


def settle_all(db: Session, group: Group) -> SettleAllReport:
    """
    Settle every outstanding debt of a group and start its ledger afresh.

    In one database transaction: record each planned payment as a settlement,
    log any rounding residue they leave, build the report rows from the
    complete history, and delete every record of the group.
    """
    try:
        plan = plan_group_settlement(db, group.id)

        for t in plan:
            # Planned amounts are already validated sums and may exceed the per-entry cap
            settlement = SettlementCreate.model_construct(
                from_member=t["from"],
                to_member=t["to"],
                amount=t["amount"],
                description=f"Settlement: {t['from']} to {t['to']}"
            )
            create_settlement_record(db, group.id, settlement, commit=False)

        remaining = calculate_group_balances(db, group.id)
        unsettled = {member: balance for member, balance in remaining.items() if balance}
        if unsettled:
            # Only rounding drift that the plan cannot match ends up here
            logger.warning(f"Group {group.slug} keeps residual balances after settling: {unsettled}")

        records = get_group_records(db, group.id)
        sheets = build_settlement_report(records, plan)
        cleared = clear_group_records(db, group.id, commit=False)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Settled group {group.slug}: {len(plan)} payments, {cleared} records cleared")
    return SettleAllReport(
        group_slug=group.slug,
        settled_at=datetime.now(timezone.utc),
        records_cleared=cleared,
        transactions=to_settlement_transactions(plan),
        sheets=sheets
    )
