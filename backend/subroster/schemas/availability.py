from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from subroster.models.availability import TimeSlot, Weekday
from subroster.schemas.common import check_iso_date


class RecurrenceIn(BaseModel):
    weekday: Weekday
    slot: TimeSlot


class RecurrenceOut(RecurrenceIn):
    id: str
    period_id: str

    model_config = {"from_attributes": True}


class PeriodBase(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    date_start: date
    date_end: date
    is_active: bool = True

    @field_validator("date_start", "date_end", mode="before")
    @classmethod
    def validate_dates(cls, value: object) -> object:
        return check_iso_date(value)


class PeriodCreate(PeriodBase):
    recurrences: list[RecurrenceIn] = Field(default_factory=list, max_length=15)

    @model_validator(mode="after")
    def validate_order(self) -> "PeriodCreate":
        if self.date_start > self.date_end:
            raise ValueError("date_start must be on or before date_end")
        return self


class PeriodUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    date_start: date | None = None
    date_end: date | None = None
    is_active: bool | None = None
    recurrences: list[RecurrenceIn] | None = Field(default=None, max_length=15)

    @field_validator("date_start", "date_end", mode="before")
    @classmethod
    def validate_dates(cls, value: object) -> object:
        return check_iso_date(value)


class PeriodOut(PeriodBase):
    id: str
    substitute_id: str
    recurrences: list[RecurrenceOut] = Field(default_factory=list)
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class SpecificAvailabilityIn(BaseModel):
    date: date
    slot: TimeSlot
    is_available: bool
    note: str | None = Field(default=None, max_length=500)

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, value: object) -> object:
        return check_iso_date(value)


class SpecificAvailabilityOut(SpecificAvailabilityIn):
    id: str
    substitute_id: str

    model_config = {"from_attributes": True}


class VerdictOut(BaseModel):
    substitute_id: str
    date: date
    slot: TimeSlot
    available: bool
    source: str
    record_id: str | None = None


class GridCellOut(BaseModel):
    available: bool
    source: str
    record_id: str | None = None

    model_config = {"from_attributes": True}


class GridDayOut(BaseModel):
    date: date
    weekday: Weekday | None
    morning: GridCellOut
    afternoon: GridCellOut

    model_config = {"from_attributes": True}
