from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from expense_splitter.models.records import RecordKind

MAX_AMOUNT = Decimal("1000000")


class RecordBase(BaseModel):
    description: str = Field(..., max_length=200)
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT, decimal_places=2)
    date: Optional[datetime] = None


class ExpenseCreate(RecordBase):
    paid_by: str
    participants: List[str] = Field(..., min_length=1)

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Description is required")
        if len(value) < 3:
            raise ValueError("Description must be at least 3 characters long")
        return value

    @field_validator("paid_by")
    @classmethod
    def validate_payer(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please select who paid for this expense")
        return value

    @field_validator("participants")
    @classmethod
    def validate_participants(cls, value: List[str]) -> List[str]:
        names = list(dict.fromkeys(name.strip() for name in value if name.strip()))
        if not names:
            raise ValueError("Please select at least one member to split the expense with")
        return names


class SettlementCreate(BaseModel):
    from_member: str
    to_member: str
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT, decimal_places=2)
    description: Optional[str] = Field(None, max_length=200)

    @model_validator(mode="after")
    def validate_members(self):
        self.from_member = self.from_member.strip()
        self.to_member = self.to_member.strip()
        if not self.from_member or not self.to_member:
            raise ValueError("Both members of a settlement are required")
        if self.from_member == self.to_member:
            raise ValueError("A member cannot settle with themselves")
        if not self.description:
            self.description = f"Settlement: {self.from_member} to {self.to_member}"
        return self


class RecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    group_id: str
    kind: RecordKind
    description: str
    amount: Decimal
    paid_by: str
    participants: List[str] = []
    per_person: Optional[Decimal] = None
    date: Optional[datetime] = None
    created_at: datetime
