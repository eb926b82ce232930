import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime, Enum as SAEnum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from subroster.db.base import Base


class UserRole(str, Enum):
    admin = "admin"
    user = "user"
    staff = "staff"
    substitute = "substitute"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role != 'substitute' OR substitute_id IS NOT NULL",
            name="ck_users_substitute_link",
        ),
        CheckConstraint(
            "role != 'staff' OR staff_id IS NOT NULL",
            name="ck_users_staff_link",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    role: Mapped[UserRole] = mapped_column(SAEnum(UserRole, name="user_role"), nullable=False)
    staff_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("staff_members.id", ondelete="SET NULL"), nullable=True
    )
    substitute_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("substitutes.id", ondelete="SET NULL"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
