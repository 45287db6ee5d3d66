from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from propops.activity.recorder import ActivityRecorder
from propops.business.estimates.models import Estimate
from propops.business.work_orders.models import ScheduleItem, WorkOrder
from propops.business.work_orders.repository import ScheduleItemRepository, WorkOrderRepository
from propops.business.work_orders.schemas import (
    ScheduleItemCreate,
    ScheduleItemRead,
    ScheduleItemUpdate,
    WorkOrderCreate,
    WorkOrderRead,
    WorkOrderUpdate,
)
from propops.core.database import unit_of_work
from propops.core.errors import ValidationFailedError
from propops.crm.repositories import ClientRepository, EmployeeRepository, PropertyRepository
from propops.platform.clock import as_utc
from propops.platform.numbering import next_reference
from propops.platform.patching import apply_changes, require_changes
from propops.platform.security.context import AuthContext
from propops.statuses import ActivitySeverity, WorkOrderStatus, parse_optional_status


@dataclass(slots=True)
class WorkOrderService:
    work_order_repository: WorkOrderRepository = WorkOrderRepository()
    schedule_repository: ScheduleItemRepository = ScheduleItemRepository()
    client_repository: ClientRepository = ClientRepository()
    property_repository: PropertyRepository = PropertyRepository()
    employee_repository: EmployeeRepository = EmployeeRepository()
    activity: ActivityRecorder = ActivityRecorder()

    def create_work_order(self, session: Session, ctx: AuthContext, payload: WorkOrderCreate) -> WorkOrderRead:
        data = payload.model_dump(mode="python")

        with unit_of_work(session):
            self._ensure_references(session, data)
            work_order = WorkOrder(code=next_reference(session, WorkOrder.code, "WO"), **data)
            session.add(work_order)
            session.flush()
            self.activity.record(
                session,
                ctx,
                action="Created work order",
                entity_type="work_order",
                entity_id=work_order.id,
                description=f"Created work order {work_order.code}: {work_order.title}.",
                client_id=work_order.client_id,
            )
        session.refresh(work_order)
        return WorkOrderRead.model_validate(work_order)

    def list_work_orders(
        self,
        session: Session,
        ctx: AuthContext,
        *,
        status: str | None,
        client_id: uuid.UUID | None,
        limit: int,
    ) -> list[WorkOrderRead]:
        stmt: Select[tuple[WorkOrder]] = self.work_order_repository.query()
        parsed = parse_optional_status(WorkOrderStatus, status)
        if parsed is not None:
            stmt = stmt.where(WorkOrder.status == parsed)
        if client_id is not None:
            stmt = stmt.where(WorkOrder.client_id == client_id)
        rows = self.work_order_repository.list_recent(session, stmt, limit=limit)
        return [WorkOrderRead.model_validate(row) for row in rows]

    def get_work_order(self, session: Session, ctx: AuthContext, work_order_id: uuid.UUID) -> WorkOrderRead:
        return WorkOrderRead.model_validate(self.work_order_repository.get(session, work_order_id))

    def update_work_order(
        self,
        session: Session,
        ctx: AuthContext,
        work_order_id: uuid.UUID,
        payload: WorkOrderUpdate,
    ) -> WorkOrderRead:
        changes = payload.model_dump(mode="python", exclude_unset=True)
        require_changes(changes)

        with unit_of_work(session):
            work_order = self.work_order_repository.get(session, work_order_id)
            self._ensure_references(session, changes)
            previous_status = work_order.status
            fields = apply_changes(work_order, changes, non_nullable=("title", "description", "priority", "status"))
            description = f"Updated {', '.join(fields)} on work order {work_order.code}."
            if work_order.status != previous_status:
                description = f"Moved work order {work_order.code} from {previous_status} to {work_order.status}."
            self.activity.record(
                session,
                ctx,
                action="Updated work order",
                entity_type="work_order",
                entity_id=work_order.id,
                description=description,
                client_id=work_order.client_id,
            )
        session.refresh(work_order)
        return WorkOrderRead.model_validate(work_order)

    def delete_work_order(self, session: Session, ctx: AuthContext, work_order_id: uuid.UUID) -> None:
        with unit_of_work(session):
            work_order = self.work_order_repository.get(session, work_order_id)
            linked_estimate = session.scalar(select(Estimate.id).where(Estimate.converted_work_order_id == work_order.id))
            if linked_estimate is not None:
                raise ValidationFailedError(
                    "Work order was converted from an estimate and cannot be deleted",
                    details={"estimate_id": str(linked_estimate)},
                )
            self.activity.record(
                session,
                ctx,
                action="Deleted work order",
                entity_type="work_order",
                entity_id=work_order.id,
                description=f"Deleted work order {work_order.code}.",
                severity=ActivitySeverity.WARNING,
                client_id=work_order.client_id,
            )
            session.delete(work_order)

    def create_schedule_item(self, session: Session, ctx: AuthContext, payload: ScheduleItemCreate) -> ScheduleItemRead:
        data = payload.model_dump(mode="python")

        with unit_of_work(session):
            self._ensure_references(session, data)
            self.work_order_repository.get_optional(session, data["work_order_id"])
            item = ScheduleItem(**data)
            session.add(item)
            session.flush()
            self.activity.record(
                session,
                ctx,
                action="Scheduled visit",
                entity_type="schedule_item",
                entity_id=item.id,
                description=f"Scheduled {item.title} at {item.location}.",
                client_id=item.client_id,
            )
        session.refresh(item)
        return ScheduleItemRead.model_validate(item)

    def update_schedule_item(
        self,
        session: Session,
        ctx: AuthContext,
        item_id: uuid.UUID,
        payload: ScheduleItemUpdate,
    ) -> ScheduleItemRead:
        changes = payload.model_dump(mode="python", exclude_unset=True)
        require_changes(changes)

        with unit_of_work(session):
            item = self.schedule_repository.get(session, item_id)
            self._ensure_references(session, changes)
            self.work_order_repository.get_optional(session, changes.get("work_order_id"))
            start_at = changes.get("start_at") or item.start_at
            end_at = changes.get("end_at") or item.end_at
            if as_utc(end_at) <= as_utc(start_at):
                raise ValidationFailedError("end_at must be after start_at", details={"field": "end_at"})
            fields = apply_changes(
                item,
                changes,
                non_nullable=("title", "service_type", "start_at", "end_at", "status", "location"),
            )
            self.activity.record(
                session,
                ctx,
                action="Updated schedule item",
                entity_type="schedule_item",
                entity_id=item.id,
                description=f"Updated {', '.join(fields)} on {item.title}.",
                client_id=item.client_id,
            )
        session.refresh(item)
        return ScheduleItemRead.model_validate(item)

    def delete_schedule_item(self, session: Session, ctx: AuthContext, item_id: uuid.UUID) -> None:
        with unit_of_work(session):
            item = self.schedule_repository.get(session, item_id)
            self.activity.record(
                session,
                ctx,
                action="Deleted schedule item",
                entity_type="schedule_item",
                entity_id=item.id,
                description=f"Removed {item.title} from the schedule.",
                severity=ActivitySeverity.WARNING,
                client_id=item.client_id,
            )
            session.delete(item)

    def list_schedule(
        self,
        session: Session,
        ctx: AuthContext,
        *,
        start: datetime | None,
        end: datetime | None,
        employee_id: uuid.UUID | None,
        limit: int,
    ) -> list[ScheduleItemRead]:
        if start is not None and end is not None and as_utc(end) <= as_utc(start):
            raise ValidationFailedError("end must be after start")

        stmt = self.schedule_repository.query()
        if start is not None:
            stmt = stmt.where(ScheduleItem.end_at >= start)
        if end is not None:
            stmt = stmt.where(ScheduleItem.start_at < end)
        if employee_id is not None:
            stmt = stmt.where(ScheduleItem.employee_id == employee_id)
        rows = session.scalars(stmt.order_by(ScheduleItem.start_at.asc()).limit(limit)).all()
        return [ScheduleItemRead.model_validate(row) for row in rows]

    def _ensure_references(self, session: Session, data: dict) -> None:
        self.client_repository.get_optional(session, data.get("client_id"))
        self.property_repository.get_optional(session, data.get("property_id"))
        self.employee_repository.get_optional(session, data.get("assigned_employee_id") or data.get("employee_id"))


work_order_service = WorkOrderService()
