"""
Pytest configuration and fixtures for expense_splitter tests.
"""
import os

# Keep the application's module-level engine off the filesystem
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from decimal import Decimal
from typing import Dict, List

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from expense_splitter.db.database import Base, get_db
from expense_splitter.models.groups import Group, GroupMember
from expense_splitter.models.records import GroupRecord, RecordParticipant  # noqa: F401


@pytest.fixture
def roster():
    """Three-member roster used by most scenarios."""
    return ["A", "B", "C"]


@pytest.fixture
def sample_records():
    """Mixed expenses and one settlement for a four-member group."""
    return [
        {"kind": "expense", "payer": "A", "amount": Decimal("120"), "participants": ["A", "B", "C"]},
        {"kind": "expense", "payer": "B", "amount": Decimal("60"), "participants": ["B", "C"]},
        {"kind": "expense", "payer": "C", "amount": Decimal("40"), "participants": ["A", "C", "D"]},
        {"kind": "settlement", "payer": "C", "amount": Decimal("20"), "participants": ["A"]},
    ]


@pytest.fixture
def sample_balances():
    """Balance map that sums to zero."""
    return {
        "A": Decimal("66.67"),
        "B": Decimal("-10.00"),
        "C": Decimal("-43.34"),
        "D": Decimal("-13.33"),
    }


@pytest.fixture
def db_session():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def group(db_session):
    """Group "trip" with members A, B and C."""
    group = Group(name="Trip", slug="trip")
    group.members = [GroupMember(name=name, position=i) for i, name in enumerate(["A", "B", "C"])]
    db_session.add(group)
    db_session.commit()
    db_session.refresh(group)
    return group


@pytest.fixture
def client(db_session):
    """API client bound to the per-test database."""
    from fastapi.testclient import TestClient
    from expense_splitter.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def apply_transactions(balances: Dict[str, Decimal], transactions: List[Dict]) -> Dict[str, Decimal]:
    """Balances after every transaction is paid: debtor gains, creditor loses."""
    after = dict(balances)
    for t in transactions:
        after[t["from"]] = after.get(t["from"], Decimal("0")) + t["amount"]
        after[t["to"]] = after.get(t["to"], Decimal("0")) - t["amount"]
    return after


def verify_settlements_settle_debts(balances: Dict[str, Decimal], transactions: List[Dict]) -> None:
    """
    Helper to verify a plan settles every debt.

    For each member: received - paid must equal minus their balance, so that
    the balance ends at zero (within one cent).
    """
    for member, final_balance in apply_transactions(balances, transactions).items():
        assert abs(final_balance) <= Decimal("0.01"), \
            f"Member {member} not settled: initial={balances.get(member)}, final={final_balance}"
