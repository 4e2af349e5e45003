from pydantic import BaseModel, Field
from typing import Any, Dict, List
from datetime import datetime
from decimal import Decimal


class MemberBalance(BaseModel):
    member: str
    balance: Decimal


class SettlementTransaction(BaseModel):
    from_member: str
    to_member: str
    amount: Decimal = Field(..., gt=0)


class BalanceSnapshot(BaseModel):
    group_slug: str
    balances: List[MemberBalance]
    transactions: List[SettlementTransaction]


class SettleAllReport(BaseModel):
    group_slug: str
    settled_at: datetime
    records_cleared: int
    transactions: List[SettlementTransaction]
    # Sheet name -> rows, ready for a spreadsheet exporter
    sheets: Dict[str, List[Dict[str, Any]]]
