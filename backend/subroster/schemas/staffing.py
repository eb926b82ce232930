from datetime import date

from pydantic import BaseModel

from subroster.services.urgency import UrgencyLevel


class UrgencyOut(BaseModel):
    level: UrgencyLevel
    days_remaining: int | None = None
    deadline: date | None = None
    sort_value: int

    model_config = {"from_attributes": True}


class CandidateOut(BaseModel):
    id: str
    first_name: str
    last_name: str
    display_name: str
    email: str | None = None
    phone: str | None = None
    urgency: UrgencyOut | None = None
