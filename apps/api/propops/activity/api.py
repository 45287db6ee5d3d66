from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from propops.activity.models import ActivityLogEntry
from propops.activity.schemas import ActivityLogRead
from propops.core.database import get_db
from propops.platform.security import AuthContext, require_staff
from propops.statuses import ActivitySeverity, parse_optional_status


router = APIRouter(prefix="/api/activity", tags=["activity"])


@router.get("", response_model=list[ActivityLogRead])
def list_activity(
    entity_type: str | None = Query(default=None),
    severity: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> list[ActivityLogRead]:
    stmt = select(ActivityLogEntry)
    if entity_type:
        stmt = stmt.where(ActivityLogEntry.entity_type == entity_type)
    parsed_severity = parse_optional_status(ActivitySeverity, severity, field="severity")
    if parsed_severity is not None:
        stmt = stmt.where(ActivityLogEntry.severity == parsed_severity)
    rows = db.scalars(stmt.order_by(ActivityLogEntry.created_at.desc()).limit(limit)).all()
    return [ActivityLogRead.model_validate(row) for row in rows]
