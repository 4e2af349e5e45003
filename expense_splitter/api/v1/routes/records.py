from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from expense_splitter.db.database import get_db
from expense_splitter.services.group_service import get_group_or_404
from expense_splitter.services.record_service import (
    create_expense_record, create_settlement_record, get_group_records, delete_record, record_to_out
)
from expense_splitter.services.balance_service import publish_balance_snapshot
from expense_splitter.schemas.record_schema import ExpenseCreate, SettlementCreate, RecordOut

router = APIRouter(prefix="/records", tags=["records"])


@router.post("/groups/{group_slug}/expenses", response_model=RecordOut)
def create_new_expense(
    group_slug: str,
    expense_data: ExpenseCreate,
    db: Session = Depends(get_db)
):
    """Record an expense split equally among the selected members"""
    group = get_group_or_404(db, group_slug)
    record = create_expense_record(db, group.id, expense_data)
    publish_balance_snapshot(db, group)
    return record_to_out(record)


@router.post("/groups/{group_slug}/settlements", response_model=RecordOut)
def create_new_settlement(
    group_slug: str,
    settlement_data: SettlementCreate,
    db: Session = Depends(get_db)
):
    """Record a direct repayment between two members"""
    group = get_group_or_404(db, group_slug)
    record = create_settlement_record(db, group.id, settlement_data)
    publish_balance_snapshot(db, group)
    return record_to_out(record)


@router.get("/groups/{group_slug}", response_model=List[RecordOut])
def get_group_records_list(group_slug: str, db: Session = Depends(get_db)):
    """Get all records of a group, newest first"""
    group = get_group_or_404(db, group_slug)
    records = get_group_records(db, group.id)
    return [record_to_out(record) for record in reversed(records)]


@router.delete("/groups/{group_slug}/{record_id}")
def delete_group_record(group_slug: str, record_id: str, db: Session = Depends(get_db)):
    """Delete a record"""
    group = get_group_or_404(db, group_slug)
    delete_record(db, group.id, record_id)
    publish_balance_snapshot(db, group)
    return {"message": "Record deleted successfully"}
