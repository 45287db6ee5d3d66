from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from propops.core.errors import ValidationFailedError


def apply_changes(entity: Any, changes: dict[str, Any], *, non_nullable: Iterable[str] = ()) -> list[str]:
    """Copy a partial update onto ``entity`` and return the touched field names."""
    for field in non_nullable:
        if field in changes and changes[field] is None:
            raise ValidationFailedError(f"{field} cannot be null", details={"field": field})

    for field, value in changes.items():
        setattr(entity, field, value)
    return sorted(changes)


def require_changes(changes: dict[str, Any]) -> None:
    if not changes:
        raise ValidationFailedError("At least one field must be provided")
