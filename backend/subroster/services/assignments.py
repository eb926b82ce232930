from __future__ import annotations

import logging
from datetime import date
from typing import Any, Literal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from subroster.core.acting import ActingContext
from subroster.core.config import get_settings
from subroster.core.exceptions import ConflictError, NotFoundError, ValidationError
from subroster.models.assignment import Assignment, AssignmentSlotClaim
from subroster.models.availability import TimeSlot
from subroster.services.audit import log_activity
from subroster.services.directory import get_school, get_staff_member, get_substitute, normalize_text
from subroster.services.time_grid import DateRange, coerce_slot, halves, parse_iso_date, slots_intersect

logger = logging.getLogger(__name__)

AssignmentFilter = Literal["substitute", "school", "staff"]
AssignmentPeriod = Literal["all", "future", "past"]

ASSIGNMENT_FIELDS = {"substitute_id", "staff_id", "school_id", "date_start", "date_end", "slot", "reason"}


def build_claims(substitute_id: str, window: DateRange, slot: TimeSlot) -> list[AssignmentSlotClaim]:
    """One claim per calendar day and half-day the booking occupies."""
    return [
        AssignmentSlotClaim(substitute_id=substitute_id, day=day, half=half)
        for day in window.days()
        for half in halves(slot)
    ]


def find_conflicting_assignment(
    db: Session,
    *,
    substitute_id: str,
    window: DateRange,
    slot: TimeSlot,
    exclude_id: str | None = None,
) -> Assignment | None:
    query = (
        select(Assignment)
        .where(
            Assignment.substitute_id == substitute_id,
            Assignment.is_active.is_(True),
            Assignment.date_start <= window.end,
            Assignment.date_end >= window.start,
        )
        .order_by(Assignment.date_start)
    )
    if exclude_id is not None:
        query = query.where(Assignment.id != exclude_id)
    for existing in db.execute(query).scalars():
        if slots_intersect(existing.slot, slot):
            return existing
    return None


def _conflict(substitute_id: str, conflicting_id: str | None) -> ConflictError:
    return ConflictError(
        "Substitute is already assigned during this window",
        details={"substitute_id": substitute_id, "conflicting_assignment_id": conflicting_id},
    )


def _check_free(
    db: Session,
    *,
    substitute_id: str,
    window: DateRange,
    slot: TimeSlot,
    exclude_id: str | None = None,
) -> None:
    existing = find_conflicting_assignment(
        db, substitute_id=substitute_id, window=window, slot=slot, exclude_id=exclude_id
    )
    if existing is not None:
        logger.warning(
            "Rejected assignment for substitute %s: overlaps assignment %s",
            substitute_id,
            existing.id,
        )
        raise _conflict(substitute_id, existing.id)


def _flush_claims(db: Session, *, substitute_id: str, window: DateRange, slot: TimeSlot) -> None:
    """Flush pending claims; a unique-index hit means a concurrent writer booked the slot first."""
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        conflicting_id = db.execute(
            select(AssignmentSlotClaim.assignment_id)
            .where(
                AssignmentSlotClaim.substitute_id == substitute_id,
                AssignmentSlotClaim.day.between(window.start, window.end),
                AssignmentSlotClaim.half.in_(halves(slot)),
            )
            .limit(1)
        ).scalar_one_or_none()
        logger.warning(
            "Slot claim collision for substitute %s (assignment %s)",
            substitute_id,
            conflicting_id,
        )
        raise _conflict(substitute_id, conflicting_id) from exc


def _get_assignment(db: Session, assignment_id: str) -> Assignment:
    assignment = db.get(Assignment, assignment_id)
    if assignment is None:
        raise NotFoundError("Assignment", assignment_id)
    return assignment


def create_assignment(
    db: Session,
    *,
    acting: ActingContext,
    substitute_id: str,
    school_id: str,
    date_start: str | date,
    date_end: str | date,
    slot: str | TimeSlot,
    staff_id: str | None = None,
    reason: str | None = None,
) -> Assignment:
    """Book a substitute, refusing any overlap with their other active assignments."""
    acting.require_admin()
    if not school_id:
        raise ValidationError("school_id is required", details={"field": "school_id"})
    window = DateRange.parse(date_start, date_end, max_days=get_settings().max_query_range_days)
    slot = coerce_slot(slot)
    get_substitute(db, substitute_id, require_active=True)
    get_school(db, school_id)
    if staff_id:
        get_staff_member(db, staff_id)

    _check_free(db, substitute_id=substitute_id, window=window, slot=slot)

    assignment = Assignment(
        substitute_id=substitute_id,
        staff_id=staff_id or None,
        school_id=school_id,
        date_start=window.start,
        date_end=window.end,
        slot=slot,
        reason=normalize_text(reason),
        is_active=True,
        created_by_id=acting.user_id,
    )
    assignment.claims = build_claims(substitute_id, window, slot)
    db.add(assignment)
    _flush_claims(db, substitute_id=substitute_id, window=window, slot=slot)

    log_activity(
        db,
        acting=acting,
        action="assignment.create",
        entity_type="assignment",
        entity_id=assignment.id,
        details={
            "substitute_id": substitute_id,
            "school_id": school_id,
            "date_start": window.start.isoformat(),
            "date_end": window.end.isoformat(),
            "slot": slot.value,
        },
    )
    logger.info("Created assignment %s for substitute %s", assignment.id, substitute_id)
    return assignment


def update_assignment(
    db: Session,
    *,
    acting: ActingContext,
    assignment_id: str,
    changes: dict[str, Any],
) -> Assignment:
    """Reschedule or re-target an active assignment, rebuilding its slot claims."""
    acting.require_admin()
    unknown = set(changes) - ASSIGNMENT_FIELDS
    if unknown:
        raise ValidationError("Unknown assignment fields", details={"fields": sorted(unknown)})
    assignment = _get_assignment(db, assignment_id)
    if not assignment.is_active:
        raise ValidationError("Cancelled assignments cannot be edited", details={"assignment_id": assignment_id})

    substitute_id = changes.get("substitute_id") or assignment.substitute_id
    school_id = changes.get("school_id") or assignment.school_id
    window = DateRange.parse(
        changes.get("date_start") or assignment.date_start,
        changes.get("date_end") or assignment.date_end,
        max_days=get_settings().max_query_range_days,
    )
    slot = coerce_slot(changes["slot"]) if changes.get("slot") is not None else assignment.slot
    if substitute_id != assignment.substitute_id:
        get_substitute(db, substitute_id, require_active=True)
    if school_id != assignment.school_id:
        get_school(db, school_id)
    if "staff_id" in changes and changes["staff_id"]:
        get_staff_member(db, changes["staff_id"])

    _check_free(db, substitute_id=substitute_id, window=window, slot=slot, exclude_id=assignment.id)

    assignment.claims.clear()
    db.flush()
    assignment.substitute_id = substitute_id
    assignment.school_id = school_id
    assignment.date_start, assignment.date_end = window.start, window.end
    assignment.slot = slot
    if "staff_id" in changes:
        assignment.staff_id = changes["staff_id"] or None
    if "reason" in changes:
        assignment.reason = normalize_text(changes["reason"])
    assignment.claims = build_claims(substitute_id, window, slot)
    _flush_claims(db, substitute_id=substitute_id, window=window, slot=slot)

    log_activity(
        db,
        acting=acting,
        action="assignment.update",
        entity_type="assignment",
        entity_id=assignment.id,
        details={"fields": sorted(changes)},
    )
    logger.info("Updated assignment %s", assignment.id)
    return assignment


def cancel_assignment(db: Session, *, acting: ActingContext, assignment_id: str) -> Assignment:
    """Soft-delete: the row stays for history, its slot claims are released."""
    acting.require_admin()
    assignment = _get_assignment(db, assignment_id)
    if not assignment.is_active:
        return assignment
    assignment.is_active = False
    assignment.claims.clear()
    db.flush()
    log_activity(
        db,
        acting=acting,
        action="assignment.cancel",
        entity_type="assignment",
        entity_id=assignment.id,
        details={"substitute_id": assignment.substitute_id},
    )
    logger.info("Cancelled assignment %s", assignment.id)
    return assignment


def list_assignments(
    db: Session,
    *,
    acting: ActingContext,
    filter_by: AssignmentFilter,
    owner_id: str,
    period: AssignmentPeriod = "all",
    date_start: str | date | None = None,
    date_end: str | date | None = None,
    include_inactive: bool = False,
    today: date | None = None,
) -> list[Assignment]:
    """Assignments of one substitute, school or staff member, newest first."""
    if filter_by == "substitute":
        acting.require_substitute_read(owner_id)
        get_substitute(db, owner_id)
        owner = Assignment.substitute_id
    elif filter_by == "staff":
        acting.require_staff_read(owner_id)
        get_staff_member(db, owner_id)
        owner = Assignment.staff_id
    elif filter_by == "school":
        acting.require_back_office()
        get_school(db, owner_id)
        owner = Assignment.school_id
    else:
        raise ValidationError("filter_by must be one of: substitute, school, staff", details={"value": filter_by})

    query = select(Assignment).where(owner == owner_id)
    if not include_inactive:
        query = query.where(Assignment.is_active.is_(True))

    today = today or date.today()
    if period == "future":
        query = query.where(Assignment.date_end >= today)
    elif period == "past":
        query = query.where(Assignment.date_end <= today)
    elif period != "all":
        raise ValidationError("period must be one of: all, future, past", details={"value": period})

    if date_start is not None:
        query = query.where(Assignment.date_end >= parse_iso_date(date_start, field="date_start"))
    if date_end is not None:
        query = query.where(Assignment.date_start <= parse_iso_date(date_end, field="date_end"))
    return list(db.execute(query.order_by(Assignment.date_start.desc())).scalars())
