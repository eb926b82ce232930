"""Seed demo schools, staff, substitutes and weekly availability for local development.

Safe to run repeatedly: rows are matched on email or name and updated in place.

Run:
  PYTHONPATH=backend python scripts/seed_demo_data.py
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from subroster.core.acting import ActingContext
from subroster.core.security import create_access_token
from subroster.db.session import SessionLocal
from subroster.models.availability import AvailabilityPeriod
from subroster.models.school import School
from subroster.models.staff import StaffMember
from subroster.models.substitute import Substitute
from subroster.models.user import User, UserRole
from subroster.services.periods import create_period

SCHOOL_YEAR = (date(2026, 8, 24), date(2027, 7, 2))

SCHOOLS = [
    {"name": "Ecole des Pâquis", "replacement_after_days": Decimal("2")},
    {"name": "Ecole de Plainpalais", "replacement_after_days": Decimal("0.5")},
    {"name": "Ecole des Eaux-Vives", "replacement_after_days": None},
]

STAFF = [
    {"first_name": "Claire", "last_name": "Dubois", "email": "claire.dubois@example.org"},
    {"first_name": "Marc", "last_name": "Favre", "email": "marc.favre@example.org"},
]

SUBSTITUTES = [
    {
        "first_name": "Julie",
        "last_name": "Martin",
        "email": "julie.martin@example.org",
        "recurrences": [("monday", "full_day"), ("tuesday", "morning"), ("thursday", "full_day")],
    },
    {
        "first_name": "Paul",
        "last_name": "Rochat",
        "email": "paul.rochat@example.org",
        "recurrences": [("monday", "afternoon"), ("friday", "full_day")],
    },
    {
        "first_name": "Sofia",
        "last_name": "Bernasconi",
        "email": "sofia.bernasconi@example.org",
        "recurrences": [("tuesday", "full_day"), ("wednesday", "morning"), ("thursday", "afternoon")],
    },
]


def _upsert_school(session: Session, *, name: str, replacement_after_days: Decimal | None) -> School:
    school = session.execute(select(School).where(School.name == name)).scalar_one_or_none()
    if school is None:
        school = School(name=name)
        session.add(school)
    school.replacement_after_days = replacement_after_days
    school.is_active = True
    return school


def _upsert_staff(session: Session, *, first_name: str, last_name: str, email: str) -> StaffMember:
    staff = session.execute(select(StaffMember).where(StaffMember.email == email)).scalar_one_or_none()
    if staff is None:
        staff = StaffMember(email=email)
        session.add(staff)
    staff.first_name = first_name
    staff.last_name = last_name
    staff.is_active = True
    return staff


def _upsert_substitute(session: Session, *, first_name: str, last_name: str, email: str) -> Substitute:
    substitute = session.execute(select(Substitute).where(Substitute.email == email)).scalar_one_or_none()
    if substitute is None:
        substitute = Substitute(email=email)
        session.add(substitute)
    substitute.first_name = first_name
    substitute.last_name = last_name
    substitute.is_active = True
    return substitute


def _upsert_user(session: Session, *, name: str, email: str, role: UserRole, **links: str) -> User:
    user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is None:
        user = User(email=email, name=name, role=role, **links)
        session.add(user)
    user.is_active = True
    return user


def _ensure_school_year_period(session: Session, substitute: Substitute, recurrences: list[tuple[str, str]]) -> None:
    existing = session.execute(
        select(AvailabilityPeriod).where(
            AvailabilityPeriod.substitute_id == substitute.id,
            AvailabilityPeriod.date_start == SCHOOL_YEAR[0],
        )
    ).scalar_one_or_none()
    if existing is not None:
        return
    create_period(
        session,
        acting=ActingContext.system(),
        substitute_id=substitute.id,
        name="School year",
        date_start=SCHOOL_YEAR[0],
        date_end=SCHOOL_YEAR[1],
        recurrences=recurrences,
    )


def main() -> None:
    with SessionLocal() as session:
        for item in SCHOOLS:
            _upsert_school(session, **item)
        for item in STAFF:
            _upsert_staff(session, **item)
        substitutes = []
        for item in SUBSTITUTES:
            substitute = _upsert_substitute(
                session,
                first_name=item["first_name"],
                last_name=item["last_name"],
                email=item["email"],
            )
            substitutes.append((substitute, item["recurrences"]))
        session.flush()

        for substitute, recurrences in substitutes:
            _ensure_school_year_period(session, substitute, recurrences)

        admin = _upsert_user(session, name="Demo Admin", email="admin@example.org", role=UserRole.admin)
        first_substitute = substitutes[0][0]
        portal = _upsert_user(
            session,
            name=first_substitute.display_name,
            email=first_substitute.email,
            role=UserRole.substitute,
            substitute_id=first_substitute.id,
        )
        session.commit()

        print("\nDemo data ready:")
        print(f"  - {len(SCHOOLS)} schools, {len(STAFF)} staff members, {len(SUBSTITUTES)} substitutes")
        print(f"\nAdmin token:      {create_access_token(admin.id)}")
        print(f"Substitute token: {create_access_token(portal.id)}")


if __name__ == "__main__":
    main()
