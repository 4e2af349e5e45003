from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List
from datetime import datetime


def clean_member_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValueError("Member name cannot be empty")
    return name


class GroupBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Group name is required")
        return value


class GroupCreate(GroupBase):
    members: List[str]

    @field_validator("members")
    @classmethod
    def validate_members(cls, value: List[str]) -> List[str]:
        # Accept "Alice, Bob" style entries as well as one name per item
        names = [name.strip() for entry in value for name in entry.split(",")]
        names = [name for name in names if name]
        if len(set(names)) != len(names):
            raise ValueError("Member names must be unique")
        if len(names) < 2:
            raise ValueError("At least 2 members are required for a group")
        if any(len(name) > 100 for name in names):
            raise ValueError("Member names cannot exceed 100 characters")
        return names


class GroupOut(GroupBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    slug: str
    created_at: datetime


class GroupMemberCreate(BaseModel):
    name: str = Field(..., max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return clean_member_name(value)


class GroupMemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    group_id: str
    name: str
    position: int
    joined_at: datetime


class GroupWithMembers(GroupOut):
    members: List[GroupMemberOut] = []
