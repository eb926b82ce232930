from __future__ import annotations

from sqlalchemy.orm import Session

from subroster.core.acting import ActingContext
from subroster.models.activity_log import ActivityLog


def log_activity(
    db: Session,
    *,
    acting: ActingContext,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict | None = None,
) -> None:
    record = ActivityLog(
        user_id=acting.user_id,
        actor_role=acting.role.value,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details or {},
    )
    db.add(record)
