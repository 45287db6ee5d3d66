from __future__ import annotations

import logging
import uuid

from sqlalchemy.orm import Session

from propops.activity.models import ActivityLogEntry
from propops.metrics import observe_activity_entry
from propops.platform.security.context import AuthContext
from propops.statuses import ActivitySeverity


logger = logging.getLogger("propops.activity")


class ActivityRecorder:
    """Stages audit entries in the caller's session.

    Entries are never committed here; they become durable together with the
    mutation they describe, or not at all.
    """

    def record(
        self,
        session: Session,
        ctx: AuthContext,
        *,
        action: str,
        entity_type: str,
        entity_id: uuid.UUID | str,
        description: str,
        severity: ActivitySeverity = ActivitySeverity.INFO,
        client_id: uuid.UUID | None = None,
    ) -> ActivityLogEntry:
        entry = ActivityLogEntry(
            actor_user_id=ctx.user_id,
            actor_name=ctx.actor_label,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            description=description,
            severity=severity,
            client_id=client_id,
            correlation_id=ctx.correlation_id,
        )
        session.add(entry)
        observe_activity_entry(entity_type)
        logger.debug(
            "activity.staged",
            extra={"actor": entry.actor_name, "entity_type": entity_type, "entity_id": entry.entity_id},
        )
        return entry


activity_recorder = ActivityRecorder()
