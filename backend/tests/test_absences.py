from datetime import date, timedelta

import pytest
from conftest import ADMIN, add_school, add_staff, add_substitute, back_office_context, staff_context, substitute_context

from subroster.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from subroster.models.absence import Absence, AbsencePersonType, StaffRef, SubstituteRef
from subroster.services import absences, assignments


def _record(db, acting, person, start, end, slot="full_day", reason="illness"):
    absence = absences.record_absence(
        db,
        acting=acting,
        person=person,
        date_start=start,
        date_end=end,
        slot=slot,
        reason=reason,
    )
    db.commit()
    return absence


def test_record_absence_stores_tagged_person(db):
    staff = add_staff(db)
    absence = _record(db, ADMIN, StaffRef(staff.id), "2025-09-08", "2025-09-10")

    assert absence.person_type == AbsencePersonType.staff
    assert absence.staff_id == staff.id
    assert absence.substitute_id is None
    assert absence.person == StaffRef(staff.id)


def test_record_absence_validates_inputs(db):
    substitute = add_substitute(db)
    person = SubstituteRef(substitute.id)
    with pytest.raises(ValidationError):
        _record(db, ADMIN, person, "2025-09-10", "2025-09-08")
    with pytest.raises(ValidationError):
        _record(db, ADMIN, person, "2025-09-08", "2025-09-08", reason="holiday")
    with pytest.raises(ValidationError):
        _record(db, ADMIN, person, "2025-09-08", "2025-09-08", slot="evening")
    with pytest.raises(ValidationError):
        absences.absent_person("director", substitute.id)
    with pytest.raises(NotFoundError):
        _record(db, ADMIN, SubstituteRef("missing"), "2025-09-08", "2025-09-08")


def test_self_service_records_only_own_absences(db):
    own = add_substitute(db)
    other = add_substitute(db, "Paul", "Rochat")
    acting = substitute_context(own)

    _record(db, acting, SubstituteRef(own.id), "2025-09-08", "2025-09-08")
    with pytest.raises(AuthorizationError):
        _record(db, acting, SubstituteRef(other.id), "2025-09-08", "2025-09-08")
    with pytest.raises(AuthorizationError):
        _record(db, back_office_context(), SubstituteRef(own.id), "2025-09-08", "2025-09-08")


def test_self_service_cannot_delete_past_absence_but_admin_can(db):
    substitute = add_substitute(db)
    acting = substitute_context(substitute)
    past = _record(db, ADMIN, SubstituteRef(substitute.id), "2020-01-01", "2020-01-03")

    with pytest.raises(AuthorizationError, match="future"):
        absences.delete_absence(db, acting=acting, absence_id=past.id, today=date(2025, 9, 1))

    absences.delete_absence(db, acting=ADMIN, absence_id=past.id)
    db.commit()
    assert db.get(Absence, past.id) is None


def test_self_service_deletes_own_future_absence(db):
    staff = add_staff(db)
    start = date.today() + timedelta(days=3)
    absence = _record(db, staff_context(staff), StaffRef(staff.id), start, start)

    absences.delete_absence(db, acting=staff_context(staff), absence_id=absence.id)
    db.commit()
    assert db.get(Absence, absence.id) is None


def test_foreign_absences_are_hidden_from_self_service(db):
    own = add_substitute(db)
    other = add_substitute(db, "Paul", "Rochat")
    foreign = _record(db, ADMIN, SubstituteRef(other.id), "2030-01-07", "2030-01-07")

    with pytest.raises(NotFoundError):
        absences.delete_absence(db, acting=substitute_context(own), absence_id=foreign.id)
    with pytest.raises(NotFoundError):
        absences.update_absence(
            db, acting=substitute_context(own), absence_id=foreign.id, changes={"is_active": False}
        )


def test_update_absence_soft_deletes(db):
    staff = add_staff(db)
    absence = _record(db, ADMIN, StaffRef(staff.id), "2025-09-08", "2025-09-12")

    absences.update_absence(
        db, acting=ADMIN, absence_id=absence.id, changes={"is_active": False, "reason_details": "cancelled"}
    )
    db.commit()

    assert absences.list_absences(db, acting=ADMIN, person=StaffRef(staff.id)) == []
    listed = absences.list_absences(db, acting=ADMIN, person=StaffRef(staff.id), include_inactive=True)
    assert listed[0].absence.reason_details == "cancelled"


def test_update_absence_rejects_inverted_range(db):
    staff = add_staff(db)
    absence = _record(db, ADMIN, StaffRef(staff.id), "2025-09-08", "2025-09-12")
    with pytest.raises(ValidationError):
        absences.update_absence(db, acting=ADMIN, absence_id=absence.id, changes={"date_end": "2025-09-01"})


def test_list_absences_newest_first_with_coverage(db):
    staff = add_staff(db)
    substitute = add_substitute(db)
    school = add_school(db)
    _record(db, ADMIN, StaffRef(staff.id), "2025-09-01", "2025-09-02")
    later = _record(db, ADMIN, StaffRef(staff.id), "2025-09-08", "2025-09-09", slot="morning")
    assignments.create_assignment(
        db,
        acting=ADMIN,
        substitute_id=substitute.id,
        staff_id=staff.id,
        school_id=school.id,
        date_start="2025-09-08",
        date_end="2025-09-09",
        slot="morning",
    )
    db.commit()

    listed = absences.list_absences(db, acting=ADMIN, person=StaffRef(staff.id))

    assert [item.absence.id for item in listed][0] == later.id
    assert listed[0].is_covered is True
    assert listed[1].is_covered is False


def test_substitute_absence_lists_impacted_assignments(db):
    substitute = add_substitute(db)
    school = add_school(db)
    booked = assignments.create_assignment(
        db,
        acting=ADMIN,
        substitute_id=substitute.id,
        school_id=school.id,
        date_start="2025-09-08",
        date_end="2025-09-12",
        slot="afternoon",
    )
    db.commit()
    _record(db, ADMIN, SubstituteRef(substitute.id), "2025-09-10", "2025-09-10", slot="afternoon")
    _record(db, ADMIN, SubstituteRef(substitute.id), "2025-09-11", "2025-09-11", slot="morning")

    listed = absences.list_absences(
        db, acting=substitute_context(substitute), person=SubstituteRef(substitute.id)
    )

    by_slot = {item.absence.slot.value: item for item in listed}
    assert [row.id for row in by_slot["afternoon"].assignments] == [booked.id]
    assert by_slot["morning"].assignments == []


def test_staff_cannot_list_other_staff_absences(db):
    own = add_staff(db)
    other = add_staff(db, "Marc", "Favre")
    with pytest.raises(AuthorizationError):
        absences.list_absences(db, acting=staff_context(own), person=StaffRef(other.id))
