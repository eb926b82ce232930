"""Read-side availability resolution.

The verdict for a (substitute, date, slot) is decided by the first layer that
has something to say, in this order: the substitute's active flag, a
specific-date override, an absence, an existing assignment, the weekend rule,
and finally the recurring weekly pattern of the periods covering the date.

All layers for a window are loaded once into an ``AvailabilitySnapshot`` so
the single-date query, the planning grid and the candidate search share the
same pure evaluation.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from subroster.core.acting import ActingContext
from subroster.core.config import get_settings
from subroster.models.absence import Absence, AbsencePersonType
from subroster.models.assignment import Assignment, HalfDay
from subroster.models.availability import AvailabilityPeriod, SpecificAvailability, TimeSlot, Weekday
from subroster.models.substitute import Substitute
from subroster.services.directory import get_school, get_substitute
from subroster.services.time_grid import (
    DateRange,
    coerce_slot,
    expand,
    parse_iso_date,
    slots_intersect,
    weekday_of,
)
from subroster.services.urgency import Urgency, replacement_urgency

logger = logging.getLogger(__name__)

SOURCE_INACTIVE = "inactive"
SOURCE_OVERRIDE = "override"
SOURCE_ABSENCE = "absence"
SOURCE_ASSIGNMENT = "assignment"
SOURCE_WEEKEND = "weekend"
SOURCE_RECURRENCE = "recurrence"
SOURCE_NO_RECURRENCE = "no_recurrence"


@dataclass(frozen=True)
class Verdict:
    available: bool
    source: str
    record_id: str | None = None


@dataclass
class PeriodPattern:
    period_id: str
    date_start: date
    date_end: date
    cells: set[tuple[Weekday, TimeSlot]]


@dataclass
class AvailabilitySnapshot:
    is_active: bool = True
    overrides: dict[tuple[date, TimeSlot], SpecificAvailability] = field(default_factory=dict)
    absences: list[Absence] = field(default_factory=list)
    assignments: list[Assignment] = field(default_factory=list)
    periods: list[PeriodPattern] = field(default_factory=list)


@dataclass
class Candidate:
    substitute: Substitute
    urgency: Urgency | None = None


def _resolve_layers(snapshot: AvailabilitySnapshot, day: date, slot: TimeSlot) -> Verdict:
    override = snapshot.overrides.get((day, slot))
    if override is None and slot != TimeSlot.full_day:
        override = snapshot.overrides.get((day, TimeSlot.full_day))
    if override is not None:
        return Verdict(override.is_available, SOURCE_OVERRIDE, override.id)

    for absence in snapshot.absences:
        if absence.date_start <= day <= absence.date_end and slots_intersect(absence.slot, slot):
            return Verdict(False, SOURCE_ABSENCE, absence.id)

    for assignment in snapshot.assignments:
        if assignment.date_start <= day <= assignment.date_end and slots_intersect(assignment.slot, slot):
            return Verdict(False, SOURCE_ASSIGNMENT, assignment.id)

    weekday = weekday_of(day)
    if weekday is None:
        return Verdict(False, SOURCE_WEEKEND)

    wanted = expand({(weekday, slot)})
    for pattern in snapshot.periods:
        if pattern.date_start <= day <= pattern.date_end and wanted <= pattern.cells:
            return Verdict(True, SOURCE_RECURRENCE, pattern.period_id)
    return Verdict(False, SOURCE_NO_RECURRENCE)


def resolve(snapshot: AvailabilitySnapshot, day: date, slot: TimeSlot) -> Verdict:
    """Pure evaluation of one (date, slot) against a loaded snapshot."""
    if not snapshot.is_active:
        return Verdict(False, SOURCE_INACTIVE)
    if slot == TimeSlot.full_day and (day, slot) not in snapshot.overrides:
        # A full day is free only when both halves are, each through its own override chain.
        morning = _resolve_layers(snapshot, day, TimeSlot.morning)
        if not morning.available:
            return morning
        afternoon = _resolve_layers(snapshot, day, TimeSlot.afternoon)
        return afternoon if not afternoon.available else morning
    return _resolve_layers(snapshot, day, slot)


def load_snapshots(
    db: Session,
    substitutes: Iterable[Substitute],
    window: DateRange,
) -> dict[str, AvailabilitySnapshot]:
    """Bulk-load every layer touching ``window`` for the given substitutes."""
    snapshots = {item.id: AvailabilitySnapshot(is_active=item.is_active) for item in substitutes}
    if not snapshots:
        return snapshots
    ids = list(snapshots)

    overrides = db.execute(
        select(SpecificAvailability).where(
            SpecificAvailability.substitute_id.in_(ids),
            SpecificAvailability.date.between(window.start, window.end),
        )
    ).scalars()
    for row in overrides:
        snapshots[row.substitute_id].overrides[(row.date, row.slot)] = row

    absences = db.execute(
        select(Absence).where(
            Absence.person_type == AbsencePersonType.substitute,
            Absence.substitute_id.in_(ids),
            Absence.is_active.is_(True),
            Absence.date_start <= window.end,
            Absence.date_end >= window.start,
        )
    ).scalars()
    for absence in absences:
        snapshots[absence.substitute_id].absences.append(absence)

    assignments = db.execute(
        select(Assignment).where(
            Assignment.substitute_id.in_(ids),
            Assignment.is_active.is_(True),
            Assignment.date_start <= window.end,
            Assignment.date_end >= window.start,
        )
    ).scalars()
    for assignment in assignments:
        snapshots[assignment.substitute_id].assignments.append(assignment)

    periods = db.execute(
        select(AvailabilityPeriod)
        .options(selectinload(AvailabilityPeriod.recurrences))
        .where(
            AvailabilityPeriod.substitute_id.in_(ids),
            AvailabilityPeriod.is_active.is_(True),
            AvailabilityPeriod.date_start <= window.end,
            AvailabilityPeriod.date_end >= window.start,
        )
    ).scalars()
    for period in periods:
        cells = expand((entry.weekday, entry.slot) for entry in period.recurrences)
        snapshots[period.substitute_id].periods.append(
            PeriodPattern(period.id, period.date_start, period.date_end, cells)
        )
    return snapshots


def _snapshot_for(db: Session, substitute: Substitute, window: DateRange) -> AvailabilitySnapshot:
    return load_snapshots(db, [substitute], window)[substitute.id]


def explain_availability(
    db: Session,
    *,
    acting: ActingContext,
    substitute_id: str,
    date: str | date,
    slot: str | TimeSlot,
) -> Verdict:
    acting.require_substitute_read(substitute_id)
    day = parse_iso_date(date)
    slot = coerce_slot(slot)
    substitute = get_substitute(db, substitute_id)
    snapshot = _snapshot_for(db, substitute, DateRange(day, day))
    return resolve(snapshot, day, slot)


def is_available(
    db: Session,
    *,
    acting: ActingContext,
    substitute_id: str,
    date: str | date,
    slot: str | TimeSlot,
) -> bool:
    return explain_availability(db, acting=acting, substitute_id=substitute_id, date=date, slot=slot).available


@dataclass(frozen=True)
class GridDay:
    date: date
    weekday: Weekday | None
    morning: Verdict
    afternoon: Verdict


def availability_grid(
    db: Session,
    *,
    acting: ActingContext,
    substitute_id: str,
    date_start: str | date,
    date_end: str | date,
) -> list[GridDay]:
    """Day by half-day verdicts over a window, for planning views."""
    acting.require_substitute_read(substitute_id)
    window = DateRange.parse(date_start, date_end, max_days=get_settings().max_query_range_days)
    substitute = get_substitute(db, substitute_id)
    snapshot = _snapshot_for(db, substitute, window)
    return [
        GridDay(
            date=day,
            weekday=weekday_of(day),
            morning=resolve(snapshot, day, TimeSlot(HalfDay.morning.value)),
            afternoon=resolve(snapshot, day, TimeSlot(HalfDay.afternoon.value)),
        )
        for day in window.days()
    ]


def find_candidates(
    db: Session,
    *,
    acting: ActingContext,
    date_start: str | date,
    date_end: str | date,
    slot: str | TimeSlot,
    exclude: Iterable[str] = (),
    school_id: str | None = None,
    today: date | None = None,
) -> list[Candidate]:
    """Active substitutes free on every day of the window at the requested slot."""
    acting.require_back_office()
    window = DateRange.parse(date_start, date_end, max_days=get_settings().max_query_range_days)
    slot = coerce_slot(slot)
    urgency = None
    if school_id:
        school = get_school(db, school_id)
        urgency = replacement_urgency(window.start, school.replacement_after_days, today=today)

    excluded = set(exclude)
    query = select(Substitute).where(Substitute.is_active.is_(True)).order_by(
        Substitute.last_name, Substitute.first_name
    )
    substitutes = [item for item in db.execute(query).scalars() if item.id not in excluded]
    snapshots = load_snapshots(db, substitutes, window)

    candidates = [
        Candidate(substitute=item, urgency=urgency)
        for item in substitutes
        if all(resolve(snapshots[item.id], day, slot).available for day in window.days())
    ]
    logger.debug(
        "Candidate search %s..%s %s: %d of %d substitutes free",
        window.start.isoformat(),
        window.end.isoformat(),
        slot.value,
        len(candidates),
        len(substitutes),
    )
    return candidates
