from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from propops.core.config import get_settings
from propops.core.errors import UnexpectedStoreError


def format_reference(prefix: str, moment: datetime, suffix: int) -> str:
    return f"{prefix}-{moment:%y%m%d}-{suffix:03d}"


def next_reference(session: Session, column: Any, prefix: str, *, now: datetime | None = None) -> str:
    """Allocate a ``PREFIX-YYMMDD-NNN`` reference not yet present in ``column``.

    The check runs inside the caller's transaction; the column's unique
    constraint rejects a concurrent duplicate at commit.
    """
    moment = now or datetime.now(timezone.utc)
    attempts = max(1, get_settings().reference_max_attempts)
    for _ in range(attempts):
        candidate = format_reference(prefix, moment, random.randint(100, 999))
        taken = session.scalar(select(func.count()).select_from(column.class_).where(column == candidate))
        if not taken:
            return candidate
    raise UnexpectedStoreError(f"Could not allocate a unique {prefix} number")
