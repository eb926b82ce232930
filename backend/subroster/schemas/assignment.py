from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from subroster.models.availability import TimeSlot
from subroster.schemas.common import check_iso_date


class AssignmentCreate(BaseModel):
    substitute_id: str = Field(min_length=1, max_length=36)
    staff_id: str | None = Field(default=None, max_length=36)
    school_id: str = Field(min_length=1, max_length=36)
    date_start: date
    date_end: date
    slot: TimeSlot
    reason: str | None = Field(default=None, max_length=2000)

    @field_validator("date_start", "date_end", mode="before")
    @classmethod
    def validate_dates(cls, value: object) -> object:
        return check_iso_date(value)

    @model_validator(mode="after")
    def validate_order(self) -> "AssignmentCreate":
        if self.date_start > self.date_end:
            raise ValueError("date_start must be on or before date_end")
        return self


class AssignmentUpdate(BaseModel):
    substitute_id: str | None = Field(default=None, min_length=1, max_length=36)
    staff_id: str | None = Field(default=None, max_length=36)
    school_id: str | None = Field(default=None, min_length=1, max_length=36)
    date_start: date | None = None
    date_end: date | None = None
    slot: TimeSlot | None = None
    reason: str | None = Field(default=None, max_length=2000)

    @field_validator("date_start", "date_end", mode="before")
    @classmethod
    def validate_dates(cls, value: object) -> object:
        return check_iso_date(value)


class AssignmentOut(BaseModel):
    id: str
    substitute_id: str
    staff_id: str | None
    school_id: str
    date_start: date
    date_end: date
    slot: TimeSlot
    reason: str | None
    is_active: bool
    substitute_name: str | None = None
    school_name: str | None = None
    staff_name: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
