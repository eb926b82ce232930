from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from subroster.api.deps import get_db, require_admin
from subroster.core.acting import ActingContext
from subroster.models.activity_log import ActivityLog
from subroster.schemas.activity import ActivityLogOut

router = APIRouter()


@router.get("/activity/logs", response_model=list[ActivityLogOut])
def list_activity_logs(
    entity_id: str | None = Query(default=None),
    acting: ActingContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[ActivityLogOut]:
    query = select(ActivityLog)
    if entity_id:
        query = query.where(ActivityLog.entity_id == entity_id)
    query = query.order_by(ActivityLog.created_at.desc()).limit(500)
    return list(db.execute(query).scalars())
