from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from expense_splitter.db.database import get_db
from expense_splitter.services.group_service import get_group_or_404
from expense_splitter.services.balance_service import (
    get_balance_snapshot, plan_group_settlement, to_settlement_transactions,
    settle_transaction, settle_all, publish_balance_snapshot
)
from expense_splitter.services.record_service import record_to_out
from expense_splitter.schemas.balance_schema import BalanceSnapshot, SettlementTransaction, SettleAllReport
from expense_splitter.schemas.record_schema import SettlementCreate, RecordOut

router = APIRouter(prefix="/balances", tags=["balances"])


@router.get("/groups/{group_slug}", response_model=BalanceSnapshot)
def get_group_balances(group_slug: str, db: Session = Depends(get_db)):
    """Net balance of every member plus the payments that would settle them"""
    group = get_group_or_404(db, group_slug)
    return get_balance_snapshot(db, group)


@router.get("/groups/{group_slug}/plan", response_model=List[SettlementTransaction])
def get_settlement_plan(group_slug: str, db: Session = Depends(get_db)):
    """Get the settlement suggestions only"""
    group = get_group_or_404(db, group_slug)
    return to_settlement_transactions(plan_group_settlement(db, group.id))


@router.post("/groups/{group_slug}/settle", response_model=RecordOut)
def accept_settlement(
    group_slug: str,
    settlement_data: SettlementCreate,
    db: Session = Depends(get_db)
):
    """Record a suggested payment as settled"""
    group = get_group_or_404(db, group_slug)
    record = settle_transaction(db, group, settlement_data)
    publish_balance_snapshot(db, group)
    return record_to_out(record)


@router.post("/groups/{group_slug}/settle-all", response_model=SettleAllReport)
def settle_all_debts(group_slug: str, db: Session = Depends(get_db)):
    """Settle everything, clear the group's records and return the summary rows"""
    group = get_group_or_404(db, group_slug)
    report = settle_all(db, group)
    publish_balance_snapshot(db, group)
    return report
