import logging
from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException
from typing import Any, Dict, List, Optional
from decimal import Decimal
from expense_splitter.models.records import GroupRecord, RecordKind, RecordParticipant
from expense_splitter.schemas.record_schema import ExpenseCreate, SettlementCreate, RecordOut
from expense_splitter.utils.record_classifier import share_per_participant

logger = logging.getLogger(__name__)


def _next_sequence(db: Session, group_id: str) -> int:
    last = db.query(func.max(GroupRecord.sequence))\
        .filter(GroupRecord.group_id == group_id)\
        .scalar()
    return 0 if last is None else last + 1


def _require_members(db: Session, group_id: str, names: List[str]):
    from expense_splitter.services.group_service import get_roster

    roster = set(get_roster(db, group_id))
    for name in names:
        if name not in roster:
            raise HTTPException(status_code=400, detail=f"{name} is not a member of this group")


def _add_record(
    db: Session,
    group_id: str,
    kind: RecordKind,
    description: str,
    amount: Decimal,
    paid_by: str,
    participants: List[str],
    date=None,
    commit: bool = True
) -> GroupRecord:
    sequence = _next_sequence(db, group_id)
    record = GroupRecord(
        group_id=group_id,
        kind=kind,
        description=description,
        amount=amount,
        paid_by=paid_by,
        date=date,
        sequence=sequence
    )
    record.participants = [
        RecordParticipant(member=name, position=position)
        for position, name in enumerate(participants)
    ]
    db.add(record)

    try:
        if commit:
            db.commit()
        else:
            db.flush()
    except IntegrityError:
        # Another record took the same sequence number first
        db.rollback()
        logger.warning(f"Sequence {sequence} already taken in group {group_id}")
        raise HTTPException(status_code=409, detail="Another record was added at the same time, please retry")

    if commit:
        db.refresh(record)

    logger.info(f"Recorded {kind.value} of {amount} paid by {paid_by} in group {group_id}")
    return record


def create_expense_record(db: Session, group_id: str, expense_data: ExpenseCreate) -> GroupRecord:
    """Record an expense paid by one member and shared equally among participants"""
    _require_members(db, group_id, [expense_data.paid_by] + expense_data.participants)

    return _add_record(
        db,
        group_id,
        RecordKind.expense,
        description=expense_data.description,
        amount=expense_data.amount,
        paid_by=expense_data.paid_by,
        participants=expense_data.participants,
        date=expense_data.date
    )


def create_settlement_record(
    db: Session,
    group_id: str,
    settlement_data: SettlementCreate,
    commit: bool = True
) -> GroupRecord:
    """Record a direct repayment from one member to another"""
    _require_members(db, group_id, [settlement_data.from_member, settlement_data.to_member])

    return _add_record(
        db,
        group_id,
        RecordKind.settlement,
        description=settlement_data.description,
        amount=settlement_data.amount,
        paid_by=settlement_data.from_member,
        participants=[settlement_data.to_member],
        commit=commit
    )


def get_record(db: Session, record_id: str) -> Optional[GroupRecord]:
    """Get a record by ID"""
    return db.query(GroupRecord).filter(GroupRecord.id == record_id).first()


def get_group_records(db: Session, group_id: str) -> List[GroupRecord]:
    """Get all records for a group in the order they were entered"""
    return db.query(GroupRecord)\
        .filter(GroupRecord.group_id == group_id)\
        .order_by(GroupRecord.sequence, GroupRecord.created_at, GroupRecord.id)\
        .all()


def delete_record(db: Session, group_id: str, record_id: str):
    """Delete a single record from a group"""
    record = get_record(db, record_id)
    if not record or record.group_id != group_id:
        raise HTTPException(status_code=404, detail="Record not found")

    kind = record.kind.value
    db.delete(record)
    db.commit()
    logger.info(f"Deleted {kind} record {record_id} from group {group_id}")


def clear_group_records(db: Session, group_id: str, commit: bool = True) -> int:
    """Delete every record of a group; returns how many were removed"""
    records = get_group_records(db, group_id)
    for record in records:
        db.delete(record)

    if commit:
        db.commit()
    else:
        db.flush()

    logger.info(f"Cleared {len(records)} records from group {group_id}")
    return len(records)


def record_to_core(record: GroupRecord) -> Dict[str, Any]:
    """Convert a stored record into the dictionary shape the balance calculator reads"""
    return {
        "kind": record.kind.value,
        "payer": record.paid_by,
        "amount": record.amount,
        "participants": record.participant_names,
    }


def record_to_out(record: GroupRecord) -> RecordOut:
    participants = record.participant_names
    per_person = None
    if record.kind == RecordKind.expense and participants:
        per_person = share_per_participant(record.amount, len(participants))

    return RecordOut(
        id=record.id,
        group_id=record.group_id,
        kind=record.kind.value,
        description=record.description,
        amount=record.amount,
        paid_by=record.paid_by,
        participants=participants,
        per_person=per_person,
        date=record.date,
        created_at=record.created_at
    )
