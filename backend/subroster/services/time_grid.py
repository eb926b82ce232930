from __future__ import annotations

import re
from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from subroster.core.exceptions import ValidationError
from subroster.models.assignment import HalfDay
from subroster.models.availability import TimeSlot, Weekday

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Indexed by date.weekday(); Saturday and Sunday have no entry.
WEEKDAYS: tuple[Weekday, ...] = (
    Weekday.monday,
    Weekday.tuesday,
    Weekday.wednesday,
    Weekday.thursday,
    Weekday.friday,
)

SLOT_HALVES: dict[TimeSlot, tuple[HalfDay, ...]] = {
    TimeSlot.morning: (HalfDay.morning,),
    TimeSlot.afternoon: (HalfDay.afternoon,),
    TimeSlot.full_day: (HalfDay.morning, HalfDay.afternoon),
}

Cell = tuple[Weekday, TimeSlot]


def slots_intersect(a: TimeSlot, b: TimeSlot) -> bool:
    return a == b or a == TimeSlot.full_day or b == TimeSlot.full_day


def halves(slot: TimeSlot) -> tuple[HalfDay, ...]:
    return SLOT_HALVES[slot]


def slot_for_halves(values: Iterable[HalfDay]) -> TimeSlot | None:
    present = set(values)
    if present == {HalfDay.morning, HalfDay.afternoon}:
        return TimeSlot.full_day
    if present == {HalfDay.morning}:
        return TimeSlot.morning
    if present == {HalfDay.afternoon}:
        return TimeSlot.afternoon
    return None


def consolidate(entries: Iterable[Cell]) -> set[Cell]:
    """Merge morning+afternoon pairs of the same weekday into a single full_day cell."""
    by_day: dict[Weekday, set[HalfDay]] = defaultdict(set)
    for weekday, slot in entries:
        by_day[weekday].update(halves(slot))
    result: set[Cell] = set()
    for weekday, present in by_day.items():
        slot = slot_for_halves(present)
        if slot is not None:
            result.add((weekday, slot))
    return result


def expand(entries: Iterable[Cell]) -> set[Cell]:
    """Split every full_day cell into its morning and afternoon cells."""
    result: set[Cell] = set()
    for weekday, slot in entries:
        for half in halves(slot):
            result.add((weekday, TimeSlot(half.value)))
    return result


def sort_cells(entries: Iterable[Cell]) -> list[Cell]:
    slot_order = list(TimeSlot)
    return sorted(entries, key=lambda cell: (WEEKDAYS.index(cell[0]), slot_order.index(cell[1])))


def weekday_of(day: date) -> Weekday | None:
    index = day.weekday()
    if index >= len(WEEKDAYS):
        return None
    return WEEKDAYS[index]


def parse_iso_date(value: str | date, *, field: str = "date") -> date:
    if isinstance(value, datetime):
        raise ValidationError(f"{field} must be a calendar date", details={"field": field})
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise ValidationError(
            f"{field} must use the YYYY-MM-DD format",
            details={"field": field, "value": str(value)},
        )
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(
            f"{field} is not a valid calendar date",
            details={"field": field, "value": value},
        ) from exc


def coerce_slot(value: str | TimeSlot, *, field: str = "slot") -> TimeSlot:
    try:
        return TimeSlot(value)
    except ValueError as exc:
        raise ValidationError(
            f"{field} must be one of: {', '.join(item.value for item in TimeSlot)}",
            details={"field": field, "value": str(value)},
        ) from exc


def coerce_weekday(value: str | Weekday, *, field: str = "weekday") -> Weekday:
    try:
        return Weekday(value)
    except ValueError as exc:
        raise ValidationError(
            f"{field} must be one of: {', '.join(item.value for item in Weekday)}",
            details={"field": field, "value": str(value)},
        ) from exc


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    return start_a <= end_b and end_a >= start_b


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    @classmethod
    def parse(
        cls,
        start: str | date,
        end: str | date,
        *,
        max_days: int | None = None,
    ) -> "DateRange":
        start_date = parse_iso_date(start, field="date_start")
        end_date = parse_iso_date(end, field="date_end")
        if start_date > end_date:
            raise ValidationError(
                "date_start must be on or before date_end",
                details={"date_start": start_date.isoformat(), "date_end": end_date.isoformat()},
            )
        window = cls(start_date, end_date)
        if max_days is not None and window.length > max_days:
            raise ValidationError(
                f"Date range may not exceed {max_days} days",
                details={"max_days": max_days, "requested_days": window.length},
            )
        return window

    @property
    def length(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def overlaps(self, start: date, end: date) -> bool:
        return ranges_overlap(self.start, self.end, start, end)

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)
