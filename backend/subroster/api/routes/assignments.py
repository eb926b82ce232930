from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from subroster.api.deps import get_acting_context, get_db, require_admin
from subroster.core.acting import ActingContext
from subroster.schemas.assignment import AssignmentCreate, AssignmentOut, AssignmentUpdate
from subroster.services import assignments

router = APIRouter()

PeriodQuery = Literal["all", "future", "past"]


@router.post("/assignments", response_model=AssignmentOut, status_code=status.HTTP_201_CREATED)
def create_assignment(
    payload: AssignmentCreate,
    acting: ActingContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> AssignmentOut:
    assignment = assignments.create_assignment(db, acting=acting, **payload.model_dump())
    db.commit()
    db.refresh(assignment)
    return assignment


@router.patch("/assignments/{assignment_id}", response_model=AssignmentOut)
def update_assignment(
    assignment_id: str,
    payload: AssignmentUpdate,
    acting: ActingContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> AssignmentOut:
    assignment = assignments.update_assignment(
        db, acting=acting, assignment_id=assignment_id, changes=payload.model_dump(exclude_unset=True)
    )
    db.commit()
    db.refresh(assignment)
    return assignment


@router.post("/assignments/{assignment_id}/cancel", response_model=AssignmentOut)
def cancel_assignment(
    assignment_id: str,
    acting: ActingContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> AssignmentOut:
    assignment = assignments.cancel_assignment(db, acting=acting, assignment_id=assignment_id)
    db.commit()
    db.refresh(assignment)
    return assignment


def _list(
    db: Session,
    acting: ActingContext,
    filter_by: assignments.AssignmentFilter,
    owner_id: str,
    period: PeriodQuery,
    start: date | None,
    end: date | None,
    include_inactive: bool,
) -> list[AssignmentOut]:
    return assignments.list_assignments(
        db,
        acting=acting,
        filter_by=filter_by,
        owner_id=owner_id,
        period=period,
        date_start=start,
        date_end=end,
        include_inactive=include_inactive,
    )


@router.get("/substitutes/{substitute_id}/assignments", response_model=list[AssignmentOut])
def list_substitute_assignments(
    substitute_id: str,
    period: PeriodQuery = Query(default="all"),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    include_inactive: bool = Query(default=False),
    acting: ActingContext = Depends(get_acting_context),
    db: Session = Depends(get_db),
) -> list[AssignmentOut]:
    return _list(db, acting, "substitute", substitute_id, period, start, end, include_inactive)


@router.get("/schools/{school_id}/assignments", response_model=list[AssignmentOut])
def list_school_assignments(
    school_id: str,
    period: PeriodQuery = Query(default="all"),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    include_inactive: bool = Query(default=False),
    acting: ActingContext = Depends(get_acting_context),
    db: Session = Depends(get_db),
) -> list[AssignmentOut]:
    return _list(db, acting, "school", school_id, period, start, end, include_inactive)


@router.get("/staff/{staff_id}/assignments", response_model=list[AssignmentOut])
def list_staff_assignments(
    staff_id: str,
    period: PeriodQuery = Query(default="all"),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    include_inactive: bool = Query(default=False),
    acting: ActingContext = Depends(get_acting_context),
    db: Session = Depends(get_db),
) -> list[AssignmentOut]:
    return _list(db, acting, "staff", staff_id, period, start, end, include_inactive)
