from __future__ import annotations

from dataclasses import dataclass

from subroster.core.exceptions import AuthorizationError
from subroster.models.absence import AbsentPerson, StaffRef
from subroster.models.user import User, UserRole

BACK_OFFICE_ROLES = frozenset({UserRole.admin, UserRole.user})


@dataclass(frozen=True)
class ActingContext:
    """Who is calling the engine. Built by the HTTP layer from an already-verified token."""

    user_id: str | None
    role: UserRole
    substitute_id: str | None = None
    staff_id: str | None = None

    @classmethod
    def system(cls) -> "ActingContext":
        return cls(user_id=None, role=UserRole.admin)

    @classmethod
    def for_user(cls, user: User) -> "ActingContext":
        return cls(
            user_id=user.id,
            role=user.role,
            substitute_id=user.substitute_id,
            staff_id=user.staff_id,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

    @property
    def is_back_office(self) -> bool:
        return self.role in BACK_OFFICE_ROLES

    def is_substitute(self, substitute_id: str) -> bool:
        return self.role == UserRole.substitute and self.substitute_id == substitute_id

    def is_staff(self, staff_id: str) -> bool:
        return self.role == UserRole.staff and self.staff_id == staff_id

    def owns(self, person: AbsentPerson) -> bool:
        if isinstance(person, StaffRef):
            return self.is_staff(person.id)
        return self.is_substitute(person.id)

    def can_read_substitute(self, substitute_id: str) -> bool:
        return self.is_back_office or self.is_substitute(substitute_id)

    def can_read_staff(self, staff_id: str) -> bool:
        return self.is_back_office or self.is_staff(staff_id)

    def require_admin(self) -> None:
        if not self.is_admin:
            raise AuthorizationError()

    def require_back_office(self) -> None:
        if not self.is_back_office:
            raise AuthorizationError()

    def require_substitute_read(self, substitute_id: str) -> None:
        if not self.can_read_substitute(substitute_id):
            raise AuthorizationError()

    def require_substitute_write(self, substitute_id: str) -> None:
        if not (self.is_admin or self.is_substitute(substitute_id)):
            raise AuthorizationError()

    def require_staff_read(self, staff_id: str) -> None:
        if not self.can_read_staff(staff_id):
            raise AuthorizationError()

    def require_person_write(self, person: AbsentPerson) -> None:
        if not (self.is_admin or self.owns(person)):
            raise AuthorizationError()
