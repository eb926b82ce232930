from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from subroster.core.acting import ActingContext
from subroster.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from subroster.models.absence import (
    Absence,
    AbsencePersonType,
    AbsenceReason,
    AbsentPerson,
    StaffRef,
    SubstituteRef,
)
from subroster.models.assignment import Assignment
from subroster.models.availability import TimeSlot
from subroster.services.audit import log_activity
from subroster.services.directory import get_staff_member, get_substitute, normalize_text
from subroster.services.time_grid import DateRange, coerce_slot, parse_iso_date, slots_intersect

logger = logging.getLogger(__name__)

ABSENCE_FIELDS = {"date_start", "date_end", "slot", "reason", "reason_details", "is_active"}


@dataclass
class AbsenceCoverage:
    """An absence together with the active assignments overlapping it."""

    absence: Absence
    assignments: list[Assignment] = field(default_factory=list)

    @property
    def is_covered(self) -> bool:
        return bool(self.assignments)


def absent_person(person_type: str | AbsencePersonType, person_id: str) -> AbsentPerson:
    try:
        kind = AbsencePersonType(person_type)
    except ValueError as exc:
        raise ValidationError(
            "person_type must be one of: staff, substitute",
            details={"field": "person_type", "value": str(person_type)},
        ) from exc
    if not person_id:
        raise ValidationError("person_id is required", details={"field": "person_id"})
    if kind == AbsencePersonType.staff:
        return StaffRef(person_id)
    return SubstituteRef(person_id)


def _coerce_reason(value: str | AbsenceReason) -> AbsenceReason:
    try:
        return AbsenceReason(value)
    except ValueError as exc:
        raise ValidationError(
            f"reason must be one of: {', '.join(item.value for item in AbsenceReason)}",
            details={"field": "reason", "value": str(value)},
        ) from exc


def _require_person(db: Session, person: AbsentPerson) -> None:
    if isinstance(person, StaffRef):
        get_staff_member(db, person.id)
    else:
        get_substitute(db, person.id)


def _get_visible(db: Session, acting: ActingContext, absence_id: str) -> Absence:
    absence = db.get(Absence, absence_id)
    if absence is None:
        raise NotFoundError("Absence", absence_id)
    if not (acting.is_back_office or acting.owns(absence.person)):
        raise NotFoundError("Absence", absence_id)
    return absence


def record_absence(
    db: Session,
    *,
    acting: ActingContext,
    person: AbsentPerson,
    date_start: str | date,
    date_end: str | date,
    slot: str | TimeSlot,
    reason: str | AbsenceReason,
    reason_details: str | None = None,
) -> Absence:
    acting.require_person_write(person)
    window = DateRange.parse(date_start, date_end)
    slot = coerce_slot(slot)
    reason = _coerce_reason(reason)
    _require_person(db, person)

    absence = Absence(
        date_start=window.start,
        date_end=window.end,
        slot=slot,
        reason=reason,
        reason_details=normalize_text(reason_details),
        is_active=True,
        created_by_id=acting.user_id,
    )
    absence.person = person
    db.add(absence)
    db.flush()
    log_activity(
        db,
        acting=acting,
        action="absence.create",
        entity_type="absence",
        entity_id=absence.id,
        details={"person_type": person.person_type.value, "person_id": person.id},
    )
    logger.info("Recorded absence %s for %s %s", absence.id, person.person_type.value, person.id)
    return absence


def update_absence(
    db: Session,
    *,
    acting: ActingContext,
    absence_id: str,
    changes: dict[str, Any],
) -> Absence:
    """Edit an absence; setting is_active to False is the soft delete."""
    unknown = set(changes) - ABSENCE_FIELDS
    if unknown:
        raise ValidationError("Unknown absence fields", details={"fields": sorted(unknown)})
    absence = _get_visible(db, acting, absence_id)
    acting.require_person_write(absence.person)

    window = DateRange.parse(
        changes.get("date_start") or absence.date_start,
        changes.get("date_end") or absence.date_end,
    )
    absence.date_start, absence.date_end = window.start, window.end
    if changes.get("slot") is not None:
        absence.slot = coerce_slot(changes["slot"])
    if changes.get("reason") is not None:
        absence.reason = _coerce_reason(changes["reason"])
    if "reason_details" in changes:
        absence.reason_details = normalize_text(changes["reason_details"])
    if changes.get("is_active") is not None:
        absence.is_active = bool(changes["is_active"])
    db.flush()
    log_activity(
        db,
        acting=acting,
        action="absence.update",
        entity_type="absence",
        entity_id=absence.id,
        details={"fields": sorted(changes)},
    )
    logger.info("Updated absence %s", absence.id)
    return absence


def delete_absence(
    db: Session,
    *,
    acting: ActingContext,
    absence_id: str,
    today: date | None = None,
) -> None:
    """Hard-delete an absence. Self-service callers may only remove absences not yet started."""
    absence = _get_visible(db, acting, absence_id)
    acting.require_person_write(absence.person)
    today = today or date.today()
    if not acting.is_admin and absence.date_start < today:
        raise AuthorizationError("Only future absences can be deleted")

    log_activity(
        db,
        acting=acting,
        action="absence.delete",
        entity_type="absence",
        entity_id=absence.id,
        details={"person_type": absence.person_type.value, "date_start": absence.date_start.isoformat()},
    )
    db.delete(absence)
    db.flush()
    logger.info("Deleted absence %s", absence_id)


def _overlapping_assignments(db: Session, absences: list[Absence], person: AbsentPerson) -> list[Assignment]:
    if not absences:
        return []
    earliest = min(item.date_start for item in absences)
    latest = max(item.date_end for item in absences)
    owner = Assignment.staff_id if isinstance(person, StaffRef) else Assignment.substitute_id
    query = (
        select(Assignment)
        .where(
            owner == person.id,
            Assignment.is_active.is_(True),
            Assignment.date_start <= latest,
            Assignment.date_end >= earliest,
        )
        .order_by(Assignment.date_start)
    )
    return list(db.execute(query).scalars())


def list_absences(
    db: Session,
    *,
    acting: ActingContext,
    person: AbsentPerson,
    date_start: str | date | None = None,
    date_end: str | date | None = None,
    include_inactive: bool = False,
) -> list[AbsenceCoverage]:
    """Absences of one person, newest first, each with the assignments overlapping it.

    For a substitute these are the bookings the absence impacts; for a staff
    member they are the replacements covering the absence.
    """
    if isinstance(person, StaffRef):
        acting.require_staff_read(person.id)
        owner = Absence.staff_id
    else:
        acting.require_substitute_read(person.id)
        owner = Absence.substitute_id
    _require_person(db, person)

    query = select(Absence).where(Absence.person_type == person.person_type, owner == person.id)
    if not include_inactive:
        query = query.where(Absence.is_active.is_(True))
    if date_start is not None:
        query = query.where(Absence.date_end >= parse_iso_date(date_start, field="date_start"))
    if date_end is not None:
        query = query.where(Absence.date_start <= parse_iso_date(date_end, field="date_end"))
    absences = list(db.execute(query.order_by(Absence.date_start.desc())).scalars())

    assignments = _overlapping_assignments(db, absences, person)
    result: list[AbsenceCoverage] = []
    for absence in absences:
        related = [
            item
            for item in assignments
            if item.date_start <= absence.date_end
            and item.date_end >= absence.date_start
            and slots_intersect(item.slot, absence.slot)
        ]
        result.append(AbsenceCoverage(absence=absence, assignments=related))
    return result
