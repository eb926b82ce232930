from datetime import date
from itertools import product

import pytest

from subroster.core.exceptions import ValidationError
from subroster.models.availability import TimeSlot, Weekday
from subroster.services.time_grid import (
    DateRange,
    coerce_slot,
    consolidate,
    expand,
    parse_iso_date,
    slots_intersect,
    weekday_of,
)


def test_slots_intersect_rules():
    assert slots_intersect(TimeSlot.morning, TimeSlot.afternoon) is False
    assert slots_intersect(TimeSlot.afternoon, TimeSlot.morning) is False
    assert slots_intersect(TimeSlot.morning, TimeSlot.morning) is True
    for slot in TimeSlot:
        assert slots_intersect(TimeSlot.full_day, slot) is True
        assert slots_intersect(slot, TimeSlot.full_day) is True


def test_slots_intersect_is_symmetric():
    for a, b in product(TimeSlot, repeat=2):
        assert slots_intersect(a, b) == slots_intersect(b, a)


def test_consolidate_merges_halves_of_the_same_day():
    cells = {
        (Weekday.monday, TimeSlot.morning),
        (Weekday.monday, TimeSlot.afternoon),
        (Weekday.tuesday, TimeSlot.morning),
        (Weekday.friday, TimeSlot.afternoon),
        (Weekday.friday, TimeSlot.full_day),
    }
    assert consolidate(cells) == {
        (Weekday.monday, TimeSlot.full_day),
        (Weekday.tuesday, TimeSlot.morning),
        (Weekday.friday, TimeSlot.full_day),
    }


def test_expand_splits_full_days():
    assert expand({(Weekday.thursday, TimeSlot.full_day), (Weekday.monday, TimeSlot.morning)}) == {
        (Weekday.thursday, TimeSlot.morning),
        (Weekday.thursday, TimeSlot.afternoon),
        (Weekday.monday, TimeSlot.morning),
    }


@pytest.mark.parametrize(
    "cells",
    [
        set(),
        {(Weekday.monday, TimeSlot.morning)},
        {(Weekday.monday, TimeSlot.morning), (Weekday.monday, TimeSlot.afternoon)},
        {(Weekday.wednesday, TimeSlot.full_day), (Weekday.wednesday, TimeSlot.morning)},
        {(day, slot) for day in Weekday for slot in TimeSlot},
    ],
)
def test_consolidation_is_idempotent(cells):
    once = consolidate(cells)
    assert consolidate(once) == once
    assert consolidate(expand(once)) == once


def test_weekday_of_skips_weekends():
    assert weekday_of(date(2025, 9, 8)) == Weekday.monday
    assert weekday_of(date(2025, 9, 12)) == Weekday.friday
    assert weekday_of(date(2025, 9, 6)) is None
    assert weekday_of(date(2025, 9, 7)) is None


@pytest.mark.parametrize("value", ["2025-9-8", "08/09/2025", "2025-09-08T10:00", "", "2025-02-30"])
def test_parse_iso_date_rejects_malformed_values(value):
    with pytest.raises(ValidationError):
        parse_iso_date(value)


def test_parse_iso_date_accepts_dates_and_strict_strings():
    assert parse_iso_date("2025-09-08") == date(2025, 9, 8)
    assert parse_iso_date(date(2025, 9, 8)) == date(2025, 9, 8)


def test_coerce_slot_rejects_unknown_values():
    assert coerce_slot("full_day") == TimeSlot.full_day
    with pytest.raises(ValidationError):
        coerce_slot("evening")


def test_date_range_validation_and_iteration():
    window = DateRange.parse("2025-09-05", "2025-09-08")
    assert window.length == 4
    assert list(window.days())[-1] == date(2025, 9, 8)
    assert window.overlaps(date(2025, 9, 8), date(2025, 9, 30))
    assert not window.overlaps(date(2025, 9, 9), date(2025, 9, 30))

    with pytest.raises(ValidationError, match="on or before"):
        DateRange.parse("2025-09-08", "2025-09-05")
    with pytest.raises(ValidationError, match="may not exceed"):
        DateRange.parse("2025-01-01", "2025-12-31", max_days=30)
