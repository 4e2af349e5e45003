import logging
from sqlalchemy.orm import Session
from sqlalchemy import and_, func
from fastapi import HTTPException
from typing import List, Optional
from expense_splitter.models.groups import Group, GroupMember
from expense_splitter.schemas.group_schema import GroupCreate
from expense_splitter.utils.slug_utils import create_group_slug

logger = logging.getLogger(__name__)


def create_group(db: Session, group_data: GroupCreate) -> Group:
    """Create a new group with its initial members, in the order given"""
    slug = create_group_slug(group_data.name, db)

    group = Group(name=group_data.name, slug=slug)
    group.members = [
        GroupMember(name=name, position=position)
        for position, name in enumerate(group_data.members)
    ]
    db.add(group)
    db.commit()
    db.refresh(group)

    logger.info(f"Created group {group.slug} with {len(group_data.members)} members")
    return group


def get_group(db: Session, group_id: str) -> Optional[Group]:
    """Get a group by ID"""
    return db.query(Group).filter(Group.id == group_id).first()


def get_group_by_slug(db: Session, slug: str) -> Optional[Group]:
    """Get a group by slug"""
    return db.query(Group).filter(Group.slug == slug).first()


def get_group_or_404(db: Session, slug: str) -> Group:
    group = get_group_by_slug(db, slug)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")
    return group


def get_groups(db: Session, member: Optional[str] = None) -> List[Group]:
    """Get all groups, optionally only those the given member belongs to"""
    query = db.query(Group)
    if member:
        query = query.join(GroupMember).filter(GroupMember.name == member)
    return query.order_by(Group.created_at.desc()).all()


def delete_group(db: Session, group_id: str):
    """Delete a group together with its members and records"""
    from expense_splitter.services.record_service import clear_group_records

    group = get_group(db, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")

    slug = group.slug
    cleared = clear_group_records(db, group_id, commit=False)
    db.delete(group)
    db.commit()
    logger.info(f"Deleted group {slug} and {cleared} records")


def get_group_members(db: Session, group_id: str) -> List[GroupMember]:
    """Get all members of a group in roster order"""
    return db.query(GroupMember)\
        .filter(GroupMember.group_id == group_id)\
        .order_by(GroupMember.position)\
        .all()


def get_roster(db: Session, group_id: str) -> List[str]:
    """Member names of a group, in roster order"""
    return [member.name for member in get_group_members(db, group_id)]


def is_group_member(db: Session, group_id: str, name: str) -> bool:
    """Check if a name is on the group's roster"""
    member = db.query(GroupMember).filter(
        and_(GroupMember.group_id == group_id, GroupMember.name == name)
    ).first()
    return member is not None


def add_member_to_group(db: Session, group_id: str, name: str) -> GroupMember:
    """Append a member to the end of the roster"""
    if is_group_member(db, group_id, name):
        raise HTTPException(status_code=400, detail=f"{name} is already a member of this group")

    last_position = db.query(func.max(GroupMember.position))\
        .filter(GroupMember.group_id == group_id)\
        .scalar()

    member = GroupMember(
        group_id=group_id,
        name=name,
        position=0 if last_position is None else last_position + 1
    )
    db.add(member)
    db.commit()
    db.refresh(member)

    logger.info(f"Added member {name} to group {group_id}")
    return member
