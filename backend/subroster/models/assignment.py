import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from subroster.db.base import Base
from subroster.models.availability import TimeSlot
from subroster.models.school import School
from subroster.models.staff import StaffMember
from subroster.models.substitute import Substitute


class HalfDay(str, Enum):
    morning = "morning"
    afternoon = "afternoon"


class Assignment(Base):
    __tablename__ = "assignments"
    __table_args__ = (
        CheckConstraint("date_start <= date_end", name="ck_assignments_range"),
        Index("ix_assignments_substitute_range", "substitute_id", "date_start", "date_end"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    substitute_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("substitutes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    staff_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("staff_members.id", ondelete="SET NULL"), nullable=True, index=True
    )
    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date_start: Mapped[date] = mapped_column(Date, nullable=False)
    date_end: Mapped[date] = mapped_column(Date, nullable=False)
    slot: Mapped[TimeSlot] = mapped_column(SAEnum(TimeSlot, name="time_slot"), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    created_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    substitute: Mapped[Substitute] = relationship(lazy="joined")
    school: Mapped[School] = relationship(lazy="joined")
    staff: Mapped[StaffMember | None] = relationship(lazy="joined")
    claims: Mapped[list["AssignmentSlotClaim"]] = relationship(
        back_populates="assignment",
        cascade="all, delete-orphan",
    )

    @property
    def substitute_name(self) -> str | None:
        return self.substitute.display_name if self.substitute is not None else None

    @property
    def school_name(self) -> str | None:
        return self.school.name if self.school is not None else None

    @property
    def staff_name(self) -> str | None:
        return self.staff.display_name if self.staff is not None else None


class AssignmentSlotClaim(Base):
    """One booked half-day of a substitute; the unique key is the double-booking guard."""

    __tablename__ = "assignment_slot_claims"
    __table_args__ = (
        UniqueConstraint("substitute_id", "day", "half", name="uq_assignment_slot_claims_cell"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    assignment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    substitute_id: Mapped[str] = mapped_column(String(36), nullable=False)
    day: Mapped[date] = mapped_column(Date, nullable=False)
    half: Mapped[HalfDay] = mapped_column(SAEnum(HalfDay, name="half_day"), nullable=False)

    assignment: Mapped[Assignment] = relationship(back_populates="claims")
