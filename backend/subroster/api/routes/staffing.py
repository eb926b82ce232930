from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from subroster.api.deps import get_acting_context, get_db
from subroster.core.acting import ActingContext
from subroster.models.availability import TimeSlot
from subroster.schemas.staffing import CandidateOut, UrgencyOut
from subroster.services import resolver

router = APIRouter()


@router.get("/staffing/candidates", response_model=list[CandidateOut])
def list_candidates(
    start: date = Query(...),
    end: date = Query(...),
    slot: TimeSlot = Query(default=TimeSlot.full_day),
    exclude: list[str] = Query(default=[]),
    school_id: str | None = Query(default=None),
    acting: ActingContext = Depends(get_acting_context),
    db: Session = Depends(get_db),
) -> list[CandidateOut]:
    candidates = resolver.find_candidates(
        db,
        acting=acting,
        date_start=start,
        date_end=end,
        slot=slot,
        exclude=exclude,
        school_id=school_id,
    )
    return [
        CandidateOut(
            id=item.substitute.id,
            first_name=item.substitute.first_name,
            last_name=item.substitute.last_name,
            display_name=item.substitute.display_name,
            email=item.substitute.email,
            phone=item.substitute.phone,
            urgency=UrgencyOut.model_validate(item.urgency) if item.urgency is not None else None,
        )
        for item in candidates
    ]
