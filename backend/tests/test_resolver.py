from datetime import date

import pytest
from conftest import (
    ADMIN,
    MONDAY,
    SATURDAY,
    TERM_END,
    TERM_START,
    add_school,
    add_staff,
    add_substitute,
    staff_context,
    substitute_context,
)

from subroster.core.exceptions import AuthorizationError, ValidationError
from subroster.models.absence import SubstituteRef
from subroster.services import absences, assignments, overrides, periods, resolver
from subroster.services.urgency import UrgencyLevel


def _term(db, substitute, recurrences):
    periods.create_period(
        db,
        acting=ADMIN,
        substitute_id=substitute.id,
        date_start=TERM_START,
        date_end=TERM_END,
        recurrences=recurrences,
    )
    db.commit()


def _available(db, substitute, day, slot):
    return resolver.is_available(db, acting=ADMIN, substitute_id=substitute.id, date=day, slot=slot)


def test_recurrence_decides_weekday_availability(db):
    substitute = add_substitute(db)
    _term(db, substitute, [("monday", "morning")])

    assert _available(db, substitute, "2025-09-08", "morning") is True
    assert _available(db, substitute, "2025-09-08", "afternoon") is False
    assert _available(db, substitute, "2025-09-06", "morning") is False
    assert _available(db, substitute, "2025-12-22", "morning") is False


def test_override_beats_recurrence(db):
    substitute = add_substitute(db)
    _term(db, substitute, [("monday", "morning")])
    overrides.set_override(
        db, acting=ADMIN, substitute_id=substitute.id, date="2025-09-08", slot="morning", is_available=False
    )
    db.commit()

    assert _available(db, substitute, "2025-09-08", "morning") is False
    verdict = resolver.explain_availability(
        db, acting=ADMIN, substitute_id=substitute.id, date=MONDAY, slot="morning"
    )
    assert verdict.source == resolver.SOURCE_OVERRIDE


def test_positive_override_beats_absence_assignment_and_weekend(db):
    substitute = add_substitute(db)
    school = add_school(db)
    absences.record_absence(
        db,
        acting=ADMIN,
        person=SubstituteRef(substitute.id),
        date_start="2025-09-08",
        date_end="2025-09-08",
        slot="full_day",
        reason="training",
    )
    assignments.create_assignment(
        db,
        acting=ADMIN,
        substitute_id=substitute.id,
        school_id=school.id,
        date_start="2025-09-08",
        date_end="2025-09-08",
        slot="afternoon",
    )
    for day, slot in (("2025-09-08", "morning"), ("2025-09-08", "afternoon"), ("2025-09-06", "full_day")):
        overrides.set_override(
            db, acting=ADMIN, substitute_id=substitute.id, date=day, slot=slot, is_available=True
        )
    db.commit()

    assert _available(db, substitute, "2025-09-08", "morning") is True
    assert _available(db, substitute, "2025-09-08", "afternoon") is True
    assert _available(db, substitute, SATURDAY, "full_day") is True


def test_layers_apply_in_order(db):
    substitute = add_substitute(db)
    school = add_school(db)
    _term(db, substitute, [("monday", "full_day"), ("tuesday", "full_day")])
    absence = absences.record_absence(
        db,
        acting=ADMIN,
        person=SubstituteRef(substitute.id),
        date_start="2025-09-08",
        date_end="2025-09-08",
        slot="morning",
        reason="illness",
    )
    booked = assignments.create_assignment(
        db,
        acting=ADMIN,
        substitute_id=substitute.id,
        school_id=school.id,
        date_start="2025-09-09",
        date_end="2025-09-09",
        slot="afternoon",
    )
    db.commit()

    def explain(day, slot):
        return resolver.explain_availability(
            db, acting=ADMIN, substitute_id=substitute.id, date=day, slot=slot
        )

    assert explain("2025-09-08", "morning") == resolver.Verdict(False, resolver.SOURCE_ABSENCE, absence.id)
    assert explain("2025-09-08", "afternoon").available is True
    assert explain("2025-09-08", "full_day").source == resolver.SOURCE_ABSENCE
    assert explain("2025-09-09", "afternoon") == resolver.Verdict(False, resolver.SOURCE_ASSIGNMENT, booked.id)
    assert explain("2025-09-09", "morning").source == resolver.SOURCE_RECURRENCE
    assert explain("2025-09-10", "morning").source == resolver.SOURCE_NO_RECURRENCE
    assert explain("2025-09-13", "morning").source == resolver.SOURCE_WEEKEND


def test_inactive_absence_and_period_are_ignored(db):
    substitute = add_substitute(db)
    _term(db, substitute, [("monday", "morning")])
    absence = absences.record_absence(
        db,
        acting=ADMIN,
        person=SubstituteRef(substitute.id),
        date_start="2025-09-08",
        date_end="2025-09-08",
        slot="morning",
        reason="other",
    )
    absences.update_absence(db, acting=ADMIN, absence_id=absence.id, changes={"is_active": False})
    db.commit()
    assert _available(db, substitute, "2025-09-08", "morning") is True

    period = periods.list_periods(db, acting=ADMIN, substitute_id=substitute.id)[0]
    periods.update_period(db, acting=ADMIN, period_id=period.id, changes={"is_active": False})
    db.commit()
    assert _available(db, substitute, "2025-09-08", "morning") is False


def test_full_day_needs_both_halves_across_periods(db):
    substitute = add_substitute(db)
    periods.create_period(
        db,
        acting=ADMIN,
        substitute_id=substitute.id,
        date_start=TERM_START,
        date_end=TERM_END,
        recurrences=[("monday", "morning")],
    )
    db.commit()
    assert _available(db, substitute, MONDAY, "full_day") is False

    periods.create_period(
        db,
        acting=ADMIN,
        substitute_id=substitute.id,
        date_start="2025-09-08",
        date_end="2025-09-30",
        recurrences=[("monday", "afternoon")],
    )
    db.commit()
    assert _available(db, substitute, MONDAY, "full_day") is True


def test_half_day_query_falls_back_to_full_day_override(db):
    substitute = add_substitute(db)
    _term(db, substitute, [("monday", "full_day")])
    overrides.set_override(
        db, acting=ADMIN, substitute_id=substitute.id, date=MONDAY, slot="full_day", is_available=False
    )
    db.commit()

    assert _available(db, substitute, MONDAY, "afternoon") is False
    assert _available(db, substitute, MONDAY, "full_day") is False


def test_inactive_substitute_is_never_available(db):
    substitute = add_substitute(db, is_active=False)
    _term(db, substitute, [("monday", "full_day")])
    assert _available(db, substitute, MONDAY, "morning") is False


def test_availability_grid_covers_each_half_day(db):
    substitute = add_substitute(db)
    _term(db, substitute, [("monday", "morning"), ("tuesday", "full_day")])

    grid = resolver.availability_grid(
        db, acting=ADMIN, substitute_id=substitute.id, date_start="2025-09-06", date_end="2025-09-09"
    )

    assert [day.date for day in grid] == [date(2025, 9, d) for d in (6, 7, 8, 9)]
    assert [(day.morning.available, day.afternoon.available) for day in grid] == [
        (False, False),
        (False, False),
        (True, False),
        (True, True),
    ]
    assert grid[0].weekday is None


def test_grid_range_is_bounded(db):
    substitute = add_substitute(db)
    with pytest.raises(ValidationError):
        resolver.availability_grid(
            db, acting=ADMIN, substitute_id=substitute.id, date_start="2025-01-01", date_end="2026-12-31"
        )


def test_find_candidates_requires_whole_window(db):
    always = add_substitute(db, "Julie", "Martin")
    partial = add_substitute(db, "Paul", "Rochat")
    booked = add_substitute(db, "Sofia", "Bernasconi")
    excluded = add_substitute(db, "Anna", "Keller")
    retired = add_substitute(db, "Luc", "Meier", is_active=False)
    school = add_school(db, replacement_after_days=2)
    week = [(day, "full_day") for day in ("monday", "tuesday", "wednesday", "thursday", "friday")]
    for substitute in (always, booked, excluded, retired):
        _term(db, substitute, week)
    _term(db, partial, week[:2])
    assignments.create_assignment(
        db,
        acting=ADMIN,
        substitute_id=booked.id,
        school_id=school.id,
        date_start="2025-09-10",
        date_end="2025-09-10",
        slot="morning",
    )
    db.commit()

    candidates = resolver.find_candidates(
        db,
        acting=ADMIN,
        date_start="2025-09-08",
        date_end="2025-09-12",
        slot="morning",
        exclude=[excluded.id],
        school_id=school.id,
        today=date(2025, 9, 9),
    )

    assert [item.substitute.id for item in candidates] == [always.id]
    assert candidates[0].urgency.level == UrgencyLevel.warning
    assert candidates[0].urgency.days_remaining == 1

    for item in candidates:
        for day in ("2025-09-08", "2025-09-09", "2025-09-10", "2025-09-11", "2025-09-12"):
            assert _available(db, item.substitute, day, "morning") is True


def test_find_candidates_without_school_has_no_urgency(db):
    substitute = add_substitute(db)
    _term(db, substitute, [("monday", "afternoon")])

    candidates = resolver.find_candidates(
        db, acting=ADMIN, date_start=MONDAY, date_end=MONDAY, slot="afternoon"
    )
    assert [(item.substitute.id, item.urgency) for item in candidates] == [(substitute.id, None)]
    assert resolver.find_candidates(db, acting=ADMIN, date_start=SATURDAY, date_end=MONDAY, slot="afternoon") == []


def test_resolver_scope(db):
    own = add_substitute(db)
    other = add_substitute(db, "Paul", "Rochat")
    acting = substitute_context(own)

    assert resolver.is_available(db, acting=acting, substitute_id=own.id, date=MONDAY, slot="morning") is False
    with pytest.raises(AuthorizationError):
        resolver.is_available(db, acting=acting, substitute_id=other.id, date=MONDAY, slot="morning")
    with pytest.raises(AuthorizationError):
        resolver.find_candidates(
            db, acting=staff_context(add_staff(db)), date_start=MONDAY, date_end=MONDAY, slot="morning"
        )
