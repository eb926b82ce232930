import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from subroster.api.deps import get_db  # noqa: E402
from subroster.core.acting import ActingContext  # noqa: E402
from subroster.core.security import create_access_token  # noqa: E402
from subroster.db.base import Base  # noqa: E402
from subroster.main import app  # noqa: E402
from subroster.models.school import School  # noqa: E402
from subroster.models.staff import StaffMember  # noqa: E402
from subroster.models.substitute import Substitute  # noqa: E402
from subroster.models.user import User, UserRole  # noqa: E402

# Monday 2025-09-08 sits inside the 2025 autumn term used across the tests.
TERM_START = date(2025, 9, 1)
TERM_END = date(2025, 12, 19)
MONDAY = date(2025, 9, 8)
SATURDAY = date(2025, 9, 6)

ADMIN = ActingContext.system()


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def add_substitute(db, first_name="Julie", last_name="Martin", *, is_active=True) -> Substitute:
    substitute = Substitute(first_name=first_name, last_name=last_name, is_active=is_active)
    db.add(substitute)
    db.commit()
    return substitute


def add_staff(db, first_name="Claire", last_name="Dubois") -> StaffMember:
    staff = StaffMember(first_name=first_name, last_name=last_name)
    db.add(staff)
    db.commit()
    return staff


def add_school(db, name="Ecole des Pâquis", replacement_after_days=None) -> School:
    school = School(
        name=name,
        replacement_after_days=Decimal(str(replacement_after_days)) if replacement_after_days is not None else None,
    )
    db.add(school)
    db.commit()
    return school


def add_user(db, role: UserRole, *, substitute_id=None, staff_id=None, email=None) -> User:
    user = User(
        name=f"{role.value} user",
        email=email or f"{role.value}-{substitute_id or staff_id or 'x'}@example.org",
        role=role,
        substitute_id=substitute_id,
        staff_id=staff_id,
    )
    db.add(user)
    db.commit()
    return user


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def substitute_context(substitute: Substitute) -> ActingContext:
    return ActingContext(user_id="portal-user", role=UserRole.substitute, substitute_id=substitute.id)


def staff_context(staff: StaffMember) -> ActingContext:
    return ActingContext(user_id="portal-user", role=UserRole.staff, staff_id=staff.id)


def back_office_context() -> ActingContext:
    return ActingContext(user_id="office-user", role=UserRole.user)
