from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from subroster.core.acting import ActingContext
from subroster.core.exceptions import NotFoundError
from subroster.models.availability import SpecificAvailability, TimeSlot
from subroster.services.audit import log_activity
from subroster.services.directory import get_substitute, normalize_text
from subroster.services.time_grid import DateRange, coerce_slot, parse_iso_date

logger = logging.getLogger(__name__)


def _find_override(db: Session, substitute_id: str, day: date, slot: TimeSlot) -> SpecificAvailability | None:
    return db.execute(
        select(SpecificAvailability).where(
            SpecificAvailability.substitute_id == substitute_id,
            SpecificAvailability.date == day,
            SpecificAvailability.slot == slot,
        )
    ).scalar_one_or_none()


def set_override(
    db: Session,
    *,
    acting: ActingContext,
    substitute_id: str,
    date: str | date,
    slot: str | TimeSlot,
    is_available: bool,
    note: str | None = None,
) -> SpecificAvailability:
    """Upsert the override keyed by (substitute, date, slot)."""
    acting.require_substitute_write(substitute_id)
    get_substitute(db, substitute_id)
    day = parse_iso_date(date)
    slot = coerce_slot(slot)
    note = normalize_text(note)

    row = _find_override(db, substitute_id, day, slot)
    if row is None:
        row = SpecificAvailability(substitute_id=substitute_id, date=day, slot=slot)
        db.add(row)
    row.is_available = bool(is_available)
    row.note = note
    row.updated_by_id = acting.user_id
    try:
        db.flush()
    except IntegrityError:
        # A concurrent writer inserted the same key first; overwrite it instead.
        db.rollback()
        row = _find_override(db, substitute_id, day, slot)
        if row is None:
            raise
        row.is_available = bool(is_available)
        row.note = note
        row.updated_by_id = acting.user_id
        db.flush()

    log_activity(
        db,
        acting=acting,
        action="specific_availability.set",
        entity_type="specific_availability",
        entity_id=row.id,
        details={"substitute_id": substitute_id, "date": day.isoformat(), "slot": slot.value},
    )
    logger.info(
        "Set override %s for substitute %s on %s %s -> %s",
        row.id,
        substitute_id,
        day.isoformat(),
        slot.value,
        row.is_available,
    )
    return row


def clear_override(
    db: Session,
    *,
    acting: ActingContext,
    substitute_id: str,
    date: str | date,
    slot: str | TimeSlot,
) -> None:
    acting.require_substitute_write(substitute_id)
    day = parse_iso_date(date)
    slot = coerce_slot(slot)
    row = _find_override(db, substitute_id, day, slot)
    if row is None:
        raise NotFoundError("SpecificAvailability", f"{substitute_id}:{day.isoformat()}:{slot.value}")
    log_activity(
        db,
        acting=acting,
        action="specific_availability.clear",
        entity_type="specific_availability",
        entity_id=row.id,
        details={"substitute_id": substitute_id, "date": day.isoformat(), "slot": slot.value},
    )
    db.delete(row)
    db.flush()
    logger.info("Cleared override %s", row.id)


def list_overrides(
    db: Session,
    *,
    acting: ActingContext,
    substitute_id: str,
    date_start: str | date | None = None,
    date_end: str | date | None = None,
) -> list[SpecificAvailability]:
    acting.require_substitute_read(substitute_id)
    get_substitute(db, substitute_id)
    query = select(SpecificAvailability).where(SpecificAvailability.substitute_id == substitute_id)
    if date_start is not None and date_end is not None:
        window = DateRange.parse(date_start, date_end)
        query = query.where(SpecificAvailability.date.between(window.start, window.end))
    elif date_start is not None:
        query = query.where(SpecificAvailability.date >= parse_iso_date(date_start, field="date_start"))
    elif date_end is not None:
        query = query.where(SpecificAvailability.date <= parse_iso_date(date_end, field="date_end"))
    rows = list(db.execute(query.order_by(SpecificAvailability.date)).scalars())
    slot_order = list(TimeSlot)
    return sorted(rows, key=lambda row: (row.date, slot_order.index(row.slot)))
