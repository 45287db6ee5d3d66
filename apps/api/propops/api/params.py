from fastapi import Query

from propops.core.config import get_settings


def list_limit(limit: int | None = Query(default=None, ge=1)) -> int:
    settings = get_settings()
    if limit is None:
        return settings.list_default_limit
    return min(limit, settings.list_max_limit)
