import uuid
import datetime as dt
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


class Weekday(str, Enum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"


class TimeSlot(str, Enum):
    morning = "morning"
    afternoon = "afternoon"
    full_day = "full_day"


class AvailabilityPeriod(Base):
    __tablename__ = "availability_periods"
    __table_args__ = (
        CheckConstraint("date_start <= date_end", name="ck_availability_periods_range"),
        Index("ix_availability_periods_substitute_range", "substitute_id", "date_start", "date_end"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    substitute_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("substitutes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    date_start: Mapped[dt.date] = mapped_column(Date, nullable=False)
    date_end: Mapped[dt.date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    recurrences: Mapped[list["RecurrenceEntry"]] = relationship(
        back_populates="period",
        cascade="all, delete-orphan",
    )


class RecurrenceEntry(Base):
    __tablename__ = "recurrence_entries"
    __table_args__ = (
        UniqueConstraint("period_id", "weekday", "slot", name="uq_recurrence_entries_cell"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    period_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("availability_periods.id", ondelete="CASCADE"), nullable=False, index=True
    )
    weekday: Mapped[Weekday] = mapped_column(SAEnum(Weekday, name="weekday"), nullable=False)
    slot: Mapped[TimeSlot] = mapped_column(SAEnum(TimeSlot, name="time_slot"), nullable=False)

    period: Mapped[AvailabilityPeriod] = relationship(back_populates="recurrences")


class SpecificAvailability(Base):
    __tablename__ = "specific_availabilities"
    __table_args__ = (
        UniqueConstraint("substitute_id", "date", "slot", name="uq_specific_availabilities_key"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    substitute_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("substitutes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    slot: Mapped[TimeSlot] = mapped_column(SAEnum(TimeSlot, name="time_slot"), nullable=False)
    # True adds a one-off availability, False records an exception.
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
