from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from subroster.core.acting import ActingContext
from subroster.core.exceptions import ConflictError, NotFoundError, ValidationError
from subroster.models.availability import AvailabilityPeriod, RecurrenceEntry, TimeSlot, Weekday
from subroster.services.audit import log_activity
from subroster.services.directory import get_substitute, normalize_text
from subroster.services.time_grid import (
    Cell,
    DateRange,
    coerce_slot,
    coerce_weekday,
    consolidate,
    expand,
    parse_iso_date,
    sort_cells,
)

logger = logging.getLogger(__name__)

PERIOD_FIELDS = {"name", "date_start", "date_end", "is_active", "recurrences"}


def _coerce_cells(recurrences: Iterable[Any]) -> set[Cell]:
    cells: set[Cell] = set()
    for item in recurrences:
        if isinstance(item, dict):
            weekday, slot = item.get("weekday"), item.get("slot")
        elif isinstance(item, tuple):
            weekday, slot = item
        else:
            weekday, slot = getattr(item, "weekday", None), getattr(item, "slot", None)
        cells.add((coerce_weekday(weekday), coerce_slot(slot)))
    return consolidate(cells)


def _period_cells(period: AvailabilityPeriod, weekday: Weekday | None = None) -> set[Cell]:
    return {
        (entry.weekday, entry.slot)
        for entry in period.recurrences
        if weekday is None or entry.weekday == weekday
    }


def _apply_cells(period: AvailabilityPeriod, old: set[Cell], new: set[Cell]) -> None:
    for entry in list(period.recurrences):
        if (entry.weekday, entry.slot) in old - new:
            period.recurrences.remove(entry)
    for weekday, slot in sort_cells(new - old):
        period.recurrences.append(RecurrenceEntry(weekday=weekday, slot=slot))


def _flush_recurrences(db: Session, **details: str) -> None:
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(
            "Recurrence entry already exists for this period",
            details=details,
        ) from exc


def _load_period(db: Session, period_id: str) -> AvailabilityPeriod:
    period = db.execute(
        select(AvailabilityPeriod)
        .options(selectinload(AvailabilityPeriod.recurrences))
        .where(AvailabilityPeriod.id == period_id)
    ).scalar_one_or_none()
    if period is None:
        raise NotFoundError("AvailabilityPeriod", period_id)
    return period


def get_period(db: Session, *, acting: ActingContext, period_id: str) -> AvailabilityPeriod:
    period = _load_period(db, period_id)
    if not acting.can_read_substitute(period.substitute_id):
        raise NotFoundError("AvailabilityPeriod", period_id)
    return period


def create_period(
    db: Session,
    *,
    acting: ActingContext,
    substitute_id: str,
    date_start: str | date,
    date_end: str | date,
    name: str | None = None,
    recurrences: Iterable[Any] = (),
    is_active: bool = True,
) -> AvailabilityPeriod:
    acting.require_admin()
    get_substitute(db, substitute_id)
    window = DateRange.parse(date_start, date_end)
    cells = _coerce_cells(recurrences)

    period = AvailabilityPeriod(
        substitute_id=substitute_id,
        name=normalize_text(name),
        date_start=window.start,
        date_end=window.end,
        is_active=is_active,
        created_by_id=acting.user_id,
    )
    period.recurrences = [RecurrenceEntry(weekday=weekday, slot=slot) for weekday, slot in sort_cells(cells)]
    db.add(period)
    _flush_recurrences(db, substitute_id=substitute_id)
    log_activity(
        db,
        acting=acting,
        action="availability_period.create",
        entity_type="availability_period",
        entity_id=period.id,
        details={"substitute_id": substitute_id, "recurrences": len(cells)},
    )
    logger.info("Created availability period %s for substitute %s", period.id, substitute_id)
    return period


def update_period(
    db: Session,
    *,
    acting: ActingContext,
    period_id: str,
    changes: dict[str, Any],
) -> AvailabilityPeriod:
    """Apply a partial update; a supplied recurrence list replaces the existing one."""
    acting.require_admin()
    unknown = set(changes) - PERIOD_FIELDS
    if unknown:
        raise ValidationError("Unknown period fields", details={"fields": sorted(unknown)})
    period = _load_period(db, period_id)

    start = changes.get("date_start") or period.date_start
    end = changes.get("date_end") or period.date_end
    window = DateRange.parse(start, end)
    period.date_start, period.date_end = window.start, window.end
    if "name" in changes:
        period.name = normalize_text(changes["name"])
    if changes.get("is_active") is not None:
        period.is_active = bool(changes["is_active"])

    if changes.get("recurrences") is not None:
        new_cells = _coerce_cells(changes["recurrences"])
        period.recurrences.clear()
        db.flush()
        _apply_cells(period, set(), new_cells)

    _flush_recurrences(db, period_id=period.id)
    log_activity(
        db,
        acting=acting,
        action="availability_period.update",
        entity_type="availability_period",
        entity_id=period.id,
        details={"fields": sorted(changes)},
    )
    logger.info("Updated availability period %s", period.id)
    return period


def delete_period(db: Session, *, acting: ActingContext, period_id: str) -> None:
    acting.require_admin()
    period = _load_period(db, period_id)
    log_activity(
        db,
        acting=acting,
        action="availability_period.delete",
        entity_type="availability_period",
        entity_id=period.id,
        details={"substitute_id": period.substitute_id},
    )
    db.delete(period)
    db.flush()
    logger.info("Deleted availability period %s", period_id)


def list_periods(db: Session, *, acting: ActingContext, substitute_id: str) -> list[AvailabilityPeriod]:
    """All periods of a substitute with their recurrence entries, most recent first."""
    acting.require_substitute_read(substitute_id)
    get_substitute(db, substitute_id)
    query = (
        select(AvailabilityPeriod)
        .options(selectinload(AvailabilityPeriod.recurrences))
        .where(AvailabilityPeriod.substitute_id == substitute_id)
        .order_by(AvailabilityPeriod.date_start.desc())
    )
    return list(db.execute(query).scalars())


def list_active_periods(
    db: Session,
    *,
    acting: ActingContext,
    substitute_id: str,
    as_of: str | date | None = None,
) -> list[AvailabilityPeriod]:
    acting.require_substitute_read(substitute_id)
    query = (
        select(AvailabilityPeriod)
        .options(selectinload(AvailabilityPeriod.recurrences))
        .where(AvailabilityPeriod.substitute_id == substitute_id, AvailabilityPeriod.is_active.is_(True))
        .order_by(AvailabilityPeriod.date_start)
    )
    if as_of is not None:
        day = parse_iso_date(as_of, field="as_of")
        query = query.where(AvailabilityPeriod.date_start <= day, AvailabilityPeriod.date_end >= day)
    return list(db.execute(query).scalars())


def add_recurrence(
    db: Session,
    *,
    acting: ActingContext,
    period_id: str,
    weekday: str | Weekday,
    slot: str | TimeSlot,
) -> RecurrenceEntry:
    """Add one weekly cell, merging it with the other half of the day when present."""
    acting.require_admin()
    period = _load_period(db, period_id)
    cell = (coerce_weekday(weekday), coerce_slot(slot))

    old = _period_cells(period, cell[0])
    covered = expand(old)
    requested = expand({cell})
    if requested <= covered:
        raise ConflictError(
            "Recurrence already covered by this period",
            details={"period_id": period_id, "weekday": cell[0].value, "slot": cell[1].value},
        )
    new = consolidate(covered | requested)
    _apply_cells(period, old, new)
    _flush_recurrences(db, period_id=period_id)

    entry = next(item for item in period.recurrences if item.weekday == cell[0])
    log_activity(
        db,
        acting=acting,
        action="recurrence.add",
        entity_type="recurrence_entry",
        entity_id=entry.id,
        details={"period_id": period_id, "weekday": entry.weekday.value, "slot": entry.slot.value},
    )
    logger.info("Added recurrence %s to period %s", entry.id, period_id)
    return entry


def remove_recurrence(db: Session, *, acting: ActingContext, recurrence_id: str) -> None:
    acting.require_admin()
    entry = db.get(RecurrenceEntry, recurrence_id)
    if entry is None:
        raise NotFoundError("RecurrenceEntry", recurrence_id)
    log_activity(
        db,
        acting=acting,
        action="recurrence.remove",
        entity_type="recurrence_entry",
        entity_id=entry.id,
        details={"period_id": entry.period_id, "weekday": entry.weekday.value, "slot": entry.slot.value},
    )
    db.delete(entry)
    db.flush()
    logger.info("Removed recurrence %s", recurrence_id)


def remove_recurrence_cell(
    db: Session,
    *,
    acting: ActingContext,
    period_id: str,
    weekday: str | Weekday,
    slot: str | TimeSlot,
) -> None:
    """Remove a weekly cell; removing one half of a full_day keeps the other half."""
    acting.require_admin()
    period = _load_period(db, period_id)
    cell = (coerce_weekday(weekday), coerce_slot(slot))

    old = _period_cells(period, cell[0])
    covered = expand(old)
    removed = expand({cell})
    if not removed & covered:
        raise NotFoundError("RecurrenceEntry", f"{period_id}:{cell[0].value}:{cell[1].value}")
    _apply_cells(period, old, consolidate(covered - removed))
    _flush_recurrences(db, period_id=period_id)
    log_activity(
        db,
        acting=acting,
        action="recurrence.remove",
        entity_type="availability_period",
        entity_id=period_id,
        details={"weekday": cell[0].value, "slot": cell[1].value},
    )
    logger.info("Removed %s %s from period %s", cell[0].value, cell[1].value, period_id)
