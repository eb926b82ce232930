"""Existence lookups for the people and places the engine refers to."""

from __future__ import annotations

from sqlalchemy.orm import Session

from subroster.core.exceptions import NotFoundError, ValidationError
from subroster.models.school import School
from subroster.models.staff import StaffMember
from subroster.models.substitute import Substitute


def get_substitute(db: Session, substitute_id: str, *, require_active: bool = False) -> Substitute:
    substitute = db.get(Substitute, substitute_id)
    if substitute is None:
        raise NotFoundError("Substitute", substitute_id)
    if require_active and not substitute.is_active:
        raise ValidationError("Substitute is inactive", details={"substitute_id": substitute_id})
    return substitute


def get_staff_member(db: Session, staff_id: str) -> StaffMember:
    staff = db.get(StaffMember, staff_id)
    if staff is None:
        raise NotFoundError("StaffMember", staff_id)
    return staff


def get_school(db: Session, school_id: str, *, require_active: bool = False) -> School:
    school = db.get(School, school_id)
    if school is None:
        raise NotFoundError("School", school_id)
    if require_active and not school.is_active:
        raise ValidationError("School is inactive", details={"school_id": school_id})
    return school


def normalize_text(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None
