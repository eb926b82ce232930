from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from subroster.api.deps import get_acting_context, get_db, require_admin
from subroster.core.acting import ActingContext
from subroster.models.availability import TimeSlot, Weekday
from subroster.schemas.availability import (
    GridDayOut,
    PeriodCreate,
    PeriodOut,
    PeriodUpdate,
    RecurrenceIn,
    RecurrenceOut,
    SpecificAvailabilityIn,
    SpecificAvailabilityOut,
    VerdictOut,
)
from subroster.services import overrides, periods, resolver

router = APIRouter()


@router.get("/substitutes/{substitute_id}/periods", response_model=list[PeriodOut])
def list_periods(
    substitute_id: str,
    as_of: date | None = Query(default=None),
    active_only: bool = Query(default=False),
    acting: ActingContext = Depends(get_acting_context),
    db: Session = Depends(get_db),
) -> list[PeriodOut]:
    if active_only or as_of is not None:
        return periods.list_active_periods(db, acting=acting, substitute_id=substitute_id, as_of=as_of)
    return periods.list_periods(db, acting=acting, substitute_id=substitute_id)


@router.post(
    "/substitutes/{substitute_id}/periods",
    response_model=PeriodOut,
    status_code=status.HTTP_201_CREATED,
)
def create_period(
    substitute_id: str,
    payload: PeriodCreate,
    acting: ActingContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> PeriodOut:
    period = periods.create_period(
        db,
        acting=acting,
        substitute_id=substitute_id,
        name=payload.name,
        date_start=payload.date_start,
        date_end=payload.date_end,
        is_active=payload.is_active,
        recurrences=[(item.weekday, item.slot) for item in payload.recurrences],
    )
    db.commit()
    db.refresh(period)
    return period


@router.patch("/periods/{period_id}", response_model=PeriodOut)
def update_period(
    period_id: str,
    payload: PeriodUpdate,
    acting: ActingContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> PeriodOut:
    changes = payload.model_dump(exclude_unset=True)
    if payload.recurrences is not None:
        changes["recurrences"] = [(item.weekday, item.slot) for item in payload.recurrences]
    period = periods.update_period(db, acting=acting, period_id=period_id, changes=changes)
    db.commit()
    db.refresh(period)
    return period


@router.delete("/periods/{period_id}")
def delete_period(
    period_id: str,
    acting: ActingContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    periods.delete_period(db, acting=acting, period_id=period_id)
    db.commit()
    return {"success": True}


@router.post(
    "/periods/{period_id}/recurrences",
    response_model=RecurrenceOut,
    status_code=status.HTTP_201_CREATED,
)
def add_recurrence(
    period_id: str,
    payload: RecurrenceIn,
    acting: ActingContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> RecurrenceOut:
    entry = periods.add_recurrence(
        db, acting=acting, period_id=period_id, weekday=payload.weekday, slot=payload.slot
    )
    db.commit()
    db.refresh(entry)
    return entry


@router.delete("/periods/{period_id}/recurrences")
def remove_recurrence_cell(
    period_id: str,
    weekday: Weekday = Query(...),
    slot: TimeSlot = Query(...),
    acting: ActingContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    periods.remove_recurrence_cell(db, acting=acting, period_id=period_id, weekday=weekday, slot=slot)
    db.commit()
    return {"success": True}


@router.delete("/recurrences/{recurrence_id}")
def remove_recurrence(
    recurrence_id: str,
    acting: ActingContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    periods.remove_recurrence(db, acting=acting, recurrence_id=recurrence_id)
    db.commit()
    return {"success": True}


@router.get(
    "/substitutes/{substitute_id}/specific-availability",
    response_model=list[SpecificAvailabilityOut],
)
def list_specific_availability(
    substitute_id: str,
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    acting: ActingContext = Depends(get_acting_context),
    db: Session = Depends(get_db),
) -> list[SpecificAvailabilityOut]:
    return overrides.list_overrides(
        db, acting=acting, substitute_id=substitute_id, date_start=start, date_end=end
    )


@router.put(
    "/substitutes/{substitute_id}/specific-availability",
    response_model=SpecificAvailabilityOut,
)
def set_specific_availability(
    substitute_id: str,
    payload: SpecificAvailabilityIn,
    acting: ActingContext = Depends(get_acting_context),
    db: Session = Depends(get_db),
) -> SpecificAvailabilityOut:
    row = overrides.set_override(
        db,
        acting=acting,
        substitute_id=substitute_id,
        date=payload.date,
        slot=payload.slot,
        is_available=payload.is_available,
        note=payload.note,
    )
    db.commit()
    db.refresh(row)
    return row


@router.delete("/substitutes/{substitute_id}/specific-availability")
def clear_specific_availability(
    substitute_id: str,
    day: date = Query(..., alias="date"),
    slot: TimeSlot = Query(...),
    acting: ActingContext = Depends(get_acting_context),
    db: Session = Depends(get_db),
) -> dict:
    overrides.clear_override(db, acting=acting, substitute_id=substitute_id, date=day, slot=slot)
    db.commit()
    return {"success": True}


@router.get("/substitutes/{substitute_id}/availability", response_model=VerdictOut)
def get_availability(
    substitute_id: str,
    day: date = Query(..., alias="date"),
    slot: TimeSlot = Query(...),
    acting: ActingContext = Depends(get_acting_context),
    db: Session = Depends(get_db),
) -> VerdictOut:
    verdict = resolver.explain_availability(
        db, acting=acting, substitute_id=substitute_id, date=day, slot=slot
    )
    return VerdictOut(
        substitute_id=substitute_id,
        date=day,
        slot=slot,
        available=verdict.available,
        source=verdict.source,
        record_id=verdict.record_id,
    )


@router.get("/substitutes/{substitute_id}/availability-grid", response_model=list[GridDayOut])
def get_availability_grid(
    substitute_id: str,
    start: date = Query(...),
    end: date = Query(...),
    acting: ActingContext = Depends(get_acting_context),
    db: Session = Depends(get_db),
) -> list[GridDayOut]:
    return resolver.availability_grid(
        db, acting=acting, substitute_id=substitute_id, date_start=start, date_end=end
    )
