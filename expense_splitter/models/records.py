import enum
import uuid
from sqlalchemy.sql import func
from sqlalchemy import Column, String, DateTime, DECIMAL, Enum, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from expense_splitter.db.database import Base


class RecordKind(str, enum.Enum):
    expense = "expense"
    settlement = "settlement"


class GroupRecord(Base):
    __tablename__ = "records"
    __table_args__ = (UniqueConstraint("group_id", "sequence", name="uq_record_group_sequence"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    group_id = Column(String, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(Enum(RecordKind), nullable=False, default=RecordKind.expense)
    description = Column(String(200), nullable=False)
    amount = Column(DECIMAL(10, 2), nullable=False)
    paid_by = Column(String(100), nullable=False, index=True)  # Member name
    date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    sequence = Column(Integer, nullable=False, default=0)  # Entry order within the group

    participants = relationship(
        "RecordParticipant",
        order_by="RecordParticipant.position",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    @property
    def participant_names(self):
        return [participant.member for participant in self.participants]


class RecordParticipant(Base):
    __tablename__ = "record_participants"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    record_id = Column(String, ForeignKey("records.id", ondelete="CASCADE"), nullable=False, index=True)
    member = Column(String(100), nullable=False, index=True)  # Member name
    position = Column(Integer, nullable=False, default=0)
