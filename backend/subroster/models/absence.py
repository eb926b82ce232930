import uuid
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from subroster.db.base import Base
from subroster.models.availability import TimeSlot


class AbsencePersonType(str, Enum):
    staff = "staff"
    substitute = "substitute"


class AbsenceReason(str, Enum):
    illness = "illness"
    leave = "leave"
    training = "training"
    other = "other"


@dataclass(frozen=True)
class StaffRef:
    id: str
    person_type = AbsencePersonType.staff


@dataclass(frozen=True)
class SubstituteRef:
    id: str
    person_type = AbsencePersonType.substitute


AbsentPerson = StaffRef | SubstituteRef


class Absence(Base):
    __tablename__ = "absences"
    __table_args__ = (
        CheckConstraint("date_start <= date_end", name="ck_absences_range"),
        # Exactly one person column is set, and it is the one named by person_type.
        CheckConstraint(
            "(person_type = 'staff' AND staff_id IS NOT NULL AND substitute_id IS NULL) OR "
            "(person_type = 'substitute' AND substitute_id IS NOT NULL AND staff_id IS NULL)",
            name="ck_absences_person",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    person_type: Mapped[AbsencePersonType] = mapped_column(
        SAEnum(AbsencePersonType, name="absence_person_type"), nullable=False, index=True
    )
    staff_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("staff_members.id", ondelete="CASCADE"), nullable=True, index=True
    )
    substitute_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("substitutes.id", ondelete="CASCADE"), nullable=True, index=True
    )
    date_start: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    date_end: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    slot: Mapped[TimeSlot] = mapped_column(SAEnum(TimeSlot, name="time_slot"), nullable=False)
    reason: Mapped[AbsenceReason] = mapped_column(SAEnum(AbsenceReason, name="absence_reason"), nullable=False)
    reason_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    @property
    def person(self) -> AbsentPerson:
        if self.person_type == AbsencePersonType.staff:
            return StaffRef(self.staff_id)
        return SubstituteRef(self.substitute_id)

    @person.setter
    def person(self, value: AbsentPerson) -> None:
        self.person_type = value.person_type
        if isinstance(value, StaffRef):
            self.staff_id, self.substitute_id = value.id, None
        else:
            self.staff_id, self.substitute_id = None, value.id
