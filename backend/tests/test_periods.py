import pytest
from conftest import ADMIN, MONDAY, TERM_END, TERM_START, add_substitute, substitute_context

from subroster.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from subroster.models.availability import RecurrenceEntry, TimeSlot, Weekday
from subroster.services import periods


def _cells(period):
    return {(entry.weekday, entry.slot) for entry in period.recurrences}


def _create(db, substitute, recurrences):
    period = periods.create_period(
        db,
        acting=ADMIN,
        substitute_id=substitute.id,
        name="Autumn term",
        date_start=TERM_START,
        date_end=TERM_END,
        recurrences=recurrences,
    )
    db.commit()
    return period


def test_create_period_consolidates_recurrences(db):
    substitute = add_substitute(db)
    period = _create(
        db,
        substitute,
        [("monday", "morning"), ("monday", "afternoon"), ("tuesday", "morning")],
    )

    assert _cells(period) == {(Weekday.monday, TimeSlot.full_day), (Weekday.tuesday, TimeSlot.morning)}
    assert period.name == "Autumn term"


def test_create_period_rejects_inverted_range_and_unknown_substitute(db):
    substitute = add_substitute(db)
    with pytest.raises(ValidationError):
        periods.create_period(
            db, acting=ADMIN, substitute_id=substitute.id, date_start="2025-12-19", date_end="2025-09-01"
        )
    with pytest.raises(ValidationError):
        periods.create_period(
            db, acting=ADMIN, substitute_id=substitute.id, date_start="2025-09-1", date_end="2025-12-19"
        )
    with pytest.raises(NotFoundError):
        periods.create_period(db, acting=ADMIN, substitute_id="missing", date_start=TERM_START, date_end=TERM_END)


def test_only_admins_write_periods(db):
    substitute = add_substitute(db)
    with pytest.raises(AuthorizationError):
        periods.create_period(
            db,
            acting=substitute_context(substitute),
            substitute_id=substitute.id,
            date_start=TERM_START,
            date_end=TERM_END,
        )


def test_update_period_replaces_recurrences_wholesale(db):
    substitute = add_substitute(db)
    period = _create(db, substitute, [("monday", "full_day"), ("tuesday", "morning")])

    updated = periods.update_period(
        db,
        acting=ADMIN,
        period_id=period.id,
        changes={"name": "  Renamed ", "recurrences": [("friday", "afternoon")]},
    )
    db.commit()

    assert updated.name == "Renamed"
    assert _cells(updated) == {(Weekday.friday, TimeSlot.afternoon)}
    assert db.query(RecurrenceEntry).count() == 1


def test_update_period_validates_merged_range(db):
    substitute = add_substitute(db)
    period = _create(db, substitute, [])
    with pytest.raises(ValidationError):
        periods.update_period(db, acting=ADMIN, period_id=period.id, changes={"date_start": "2026-01-01"})


def test_delete_period_cascades_recurrences(db):
    substitute = add_substitute(db)
    period = _create(db, substitute, [("monday", "morning"), ("wednesday", "full_day")])

    periods.delete_period(db, acting=ADMIN, period_id=period.id)
    db.commit()

    assert db.query(RecurrenceEntry).count() == 0
    with pytest.raises(NotFoundError):
        periods.get_period(db, acting=ADMIN, period_id=period.id)


def test_add_recurrence_merges_into_full_day(db):
    substitute = add_substitute(db)
    period = _create(db, substitute, [("monday", "afternoon")])

    entry = periods.add_recurrence(db, acting=ADMIN, period_id=period.id, weekday="monday", slot="morning")
    db.commit()

    assert entry.slot == TimeSlot.full_day
    db.refresh(period)
    assert _cells(period) == {(Weekday.monday, TimeSlot.full_day)}


def test_add_recurrence_rejects_covered_cells(db):
    substitute = add_substitute(db)
    period = _create(db, substitute, [("monday", "full_day"), ("tuesday", "morning")])

    with pytest.raises(ConflictError):
        periods.add_recurrence(db, acting=ADMIN, period_id=period.id, weekday="monday", slot="afternoon")
    with pytest.raises(ConflictError):
        periods.add_recurrence(db, acting=ADMIN, period_id=period.id, weekday="tuesday", slot="morning")


def test_remove_half_of_full_day_keeps_other_half(db):
    substitute = add_substitute(db)
    period = _create(db, substitute, [("thursday", "full_day")])

    periods.remove_recurrence_cell(db, acting=ADMIN, period_id=period.id, weekday="thursday", slot="morning")
    db.commit()
    db.refresh(period)

    assert _cells(period) == {(Weekday.thursday, TimeSlot.afternoon)}
    with pytest.raises(NotFoundError):
        periods.remove_recurrence_cell(db, acting=ADMIN, period_id=period.id, weekday="thursday", slot="morning")


def test_remove_recurrence_by_id(db):
    substitute = add_substitute(db)
    period = _create(db, substitute, [("monday", "morning"), ("friday", "morning")])
    entry_id = next(entry.id for entry in period.recurrences if entry.weekday == Weekday.friday)

    periods.remove_recurrence(db, acting=ADMIN, recurrence_id=entry_id)
    db.commit()
    db.refresh(period)

    assert _cells(period) == {(Weekday.monday, TimeSlot.morning)}
    with pytest.raises(NotFoundError):
        periods.remove_recurrence(db, acting=ADMIN, recurrence_id=entry_id)


def test_list_active_periods_filters_by_date(db):
    substitute = add_substitute(db)
    _create(db, substitute, [("monday", "morning")])
    periods.create_period(
        db,
        acting=ADMIN,
        substitute_id=substitute.id,
        date_start="2026-01-05",
        date_end="2026-06-26",
        is_active=False,
    )
    db.commit()

    assert len(periods.list_periods(db, acting=ADMIN, substitute_id=substitute.id)) == 2
    active = periods.list_active_periods(db, acting=ADMIN, substitute_id=substitute.id, as_of=MONDAY)
    assert [item.date_start for item in active] == [TERM_START]
    assert periods.list_active_periods(db, acting=ADMIN, substitute_id=substitute.id, as_of="2026-02-02") == []


def test_substitutes_read_only_their_own_periods(db):
    own = add_substitute(db)
    other = add_substitute(db, "Paul", "Rochat")
    _create(db, other, [])

    assert periods.list_periods(db, acting=substitute_context(own), substitute_id=own.id) == []
    with pytest.raises(AuthorizationError):
        periods.list_periods(db, acting=substitute_context(own), substitute_id=other.id)
