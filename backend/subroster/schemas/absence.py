from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from subroster.models.absence import AbsencePersonType, AbsenceReason
from subroster.models.availability import TimeSlot
from subroster.schemas.assignment import AssignmentOut
from subroster.schemas.common import check_iso_date


class AbsenceCreate(BaseModel):
    person_type: AbsencePersonType
    person_id: str = Field(min_length=1, max_length=36)
    date_start: date
    date_end: date
    slot: TimeSlot = TimeSlot.full_day
    reason: AbsenceReason
    reason_details: str | None = Field(default=None, max_length=2000)

    @field_validator("date_start", "date_end", mode="before")
    @classmethod
    def validate_dates(cls, value: object) -> object:
        return check_iso_date(value)

    @model_validator(mode="after")
    def validate_order(self) -> "AbsenceCreate":
        if self.date_start > self.date_end:
            raise ValueError("date_start must be on or before date_end")
        return self


class AbsenceUpdate(BaseModel):
    date_start: date | None = None
    date_end: date | None = None
    slot: TimeSlot | None = None
    reason: AbsenceReason | None = None
    reason_details: str | None = Field(default=None, max_length=2000)
    is_active: bool | None = None

    @field_validator("date_start", "date_end", mode="before")
    @classmethod
    def validate_dates(cls, value: object) -> object:
        return check_iso_date(value)


class AbsenceOut(BaseModel):
    id: str
    person_type: AbsencePersonType
    staff_id: str | None
    substitute_id: str | None
    date_start: date
    date_end: date
    slot: TimeSlot
    reason: AbsenceReason
    reason_details: str | None
    is_active: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class AbsenceCoverageOut(AbsenceOut):
    related_assignments: list[AssignmentOut] = Field(default_factory=list)
    is_covered: bool = False
