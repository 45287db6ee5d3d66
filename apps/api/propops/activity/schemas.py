from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from propops.statuses import ActivitySeverity


class ActivityLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    actor_user_id: str | None
    actor_name: str
    action: str
    entity_type: str
    entity_id: str
    description: str
    severity: ActivitySeverity
    client_id: UUID | None
    created_at: datetime
