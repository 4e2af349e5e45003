from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from expense_splitter.db.database import get_db
from expense_splitter.services.group_service import (
    create_group, get_groups, get_group_or_404, delete_group, add_member_to_group
)
from expense_splitter.schemas.group_schema import (
    GroupCreate, GroupOut, GroupWithMembers, GroupMemberCreate, GroupMemberOut
)

router = APIRouter(prefix="/groups", tags=["groups"])


@router.post("/", response_model=GroupWithMembers)
def create_new_group(group_data: GroupCreate, db: Session = Depends(get_db)):
    """Create a new group with its members"""
    return create_group(db, group_data)


@router.get("/", response_model=List[GroupOut])
def list_groups(member: Optional[str] = None, db: Session = Depends(get_db)):
    """List groups, optionally only those a member belongs to"""
    return get_groups(db, member)


@router.get("/{group_slug}", response_model=GroupWithMembers)
def get_group_details(group_slug: str, db: Session = Depends(get_db)):
    """Get group details with members"""
    return get_group_or_404(db, group_slug)


@router.delete("/{group_slug}")
def delete_existing_group(group_slug: str, db: Session = Depends(get_db)):
    """Delete a group and all of its records"""
    group = get_group_or_404(db, group_slug)
    delete_group(db, group.id)
    return {"message": "Group deleted successfully"}


@router.post("/{group_slug}/members", response_model=GroupMemberOut)
def add_group_member(
    group_slug: str,
    member_data: GroupMemberCreate,
    db: Session = Depends(get_db)
):
    """Add a member to the end of the group's roster"""
    group = get_group_or_404(db, group_slug)
    return add_member_to_group(db, group.id, member_data.name)
