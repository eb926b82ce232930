from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from subroster.api.deps import get_acting_context, get_db
from subroster.core.acting import ActingContext
from subroster.models.absence import AbsentPerson, StaffRef, SubstituteRef
from subroster.schemas.absence import AbsenceCoverageOut, AbsenceCreate, AbsenceOut, AbsenceUpdate
from subroster.schemas.assignment import AssignmentOut
from subroster.services import absences
from subroster.services.absences import AbsenceCoverage

router = APIRouter()


def _coverage_out(item: AbsenceCoverage) -> AbsenceCoverageOut:
    base = AbsenceOut.model_validate(item.absence)
    return AbsenceCoverageOut(
        **base.model_dump(),
        related_assignments=[AssignmentOut.model_validate(row) for row in item.assignments],
        is_covered=item.is_covered,
    )


def _list_for(
    db: Session,
    acting: ActingContext,
    person: AbsentPerson,
    start: date | None,
    end: date | None,
    include_inactive: bool,
) -> list[AbsenceCoverageOut]:
    rows = absences.list_absences(
        db,
        acting=acting,
        person=person,
        date_start=start,
        date_end=end,
        include_inactive=include_inactive,
    )
    return [_coverage_out(item) for item in rows]


@router.post("/absences", response_model=AbsenceOut, status_code=status.HTTP_201_CREATED)
def record_absence(
    payload: AbsenceCreate,
    acting: ActingContext = Depends(get_acting_context),
    db: Session = Depends(get_db),
) -> AbsenceOut:
    absence = absences.record_absence(
        db,
        acting=acting,
        person=absences.absent_person(payload.person_type, payload.person_id),
        date_start=payload.date_start,
        date_end=payload.date_end,
        slot=payload.slot,
        reason=payload.reason,
        reason_details=payload.reason_details,
    )
    db.commit()
    db.refresh(absence)
    return absence


@router.patch("/absences/{absence_id}", response_model=AbsenceOut)
def update_absence(
    absence_id: str,
    payload: AbsenceUpdate,
    acting: ActingContext = Depends(get_acting_context),
    db: Session = Depends(get_db),
) -> AbsenceOut:
    absence = absences.update_absence(
        db, acting=acting, absence_id=absence_id, changes=payload.model_dump(exclude_unset=True)
    )
    db.commit()
    db.refresh(absence)
    return absence


@router.delete("/absences/{absence_id}")
def delete_absence(
    absence_id: str,
    acting: ActingContext = Depends(get_acting_context),
    db: Session = Depends(get_db),
) -> dict:
    absences.delete_absence(db, acting=acting, absence_id=absence_id)
    db.commit()
    return {"success": True}


@router.get("/staff/{staff_id}/absences", response_model=list[AbsenceCoverageOut])
def list_staff_absences(
    staff_id: str,
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    include_inactive: bool = Query(default=False),
    acting: ActingContext = Depends(get_acting_context),
    db: Session = Depends(get_db),
) -> list[AbsenceCoverageOut]:
    return _list_for(db, acting, StaffRef(staff_id), start, end, include_inactive)


@router.get("/substitutes/{substitute_id}/absences", response_model=list[AbsenceCoverageOut])
def list_substitute_absences(
    substitute_id: str,
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    include_inactive: bool = Query(default=False),
    acting: ActingContext = Depends(get_acting_context),
    db: Session = Depends(get_db),
) -> list[AbsenceCoverageOut]:
    return _list_for(db, acting, SubstituteRef(substitute_id), start, end, include_inactive)
