from __future__ import annotations

import uuid
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from propops.core.database import Base
from propops.core.errors import NotFoundError


ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    model: type[ModelT]
    entity_label = "Record"

    def query(self) -> Select[tuple[ModelT]]:
        return select(self.model)

    def get(self, session: Session, entity_id: uuid.UUID, *, for_update: bool = False) -> ModelT:
        stmt = select(self.model).where(self.model.id == entity_id)  # type: ignore[attr-defined]
        if for_update:
            stmt = stmt.with_for_update()
        row = session.scalar(stmt)
        if row is None:
            raise NotFoundError(self.entity_label)
        return row

    def get_optional(self, session: Session, entity_id: uuid.UUID | None) -> ModelT | None:
        if entity_id is None:
            return None
        return self.get(session, entity_id)

    def exists_where(self, session: Session, *criteria: Any) -> bool:
        count = session.scalar(select(func.count()).select_from(self.model).where(*criteria))
        return bool(count)

    def list_recent(self, session: Session, stmt: Select[tuple[ModelT]], *, limit: int) -> list[ModelT]:
        return list(session.scalars(stmt.order_by(self.model.created_at.desc()).limit(limit)).all())  # type: ignore[attr-defined]
