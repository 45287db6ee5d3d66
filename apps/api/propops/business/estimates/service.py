from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from opentelemetry import trace
from sqlalchemy import Select
from sqlalchemy.orm import Session

from propops import events
from propops.activity.recorder import ActivityRecorder
from propops.business.estimates.models import Estimate
from propops.business.estimates.repository import EstimateRepository
from propops.business.estimates.schemas import (
    EstimateConversionRead,
    EstimateCreate,
    EstimateRead,
    EstimateUpdate,
)
from propops.business.work_orders.models import WorkOrder
from propops.business.work_orders.repository import WorkOrderRepository
from propops.business.work_orders.schemas import WorkOrderRead
from propops.core.database import unit_of_work
from propops.core.errors import ValidationFailedError
from propops.crm.repositories import ClientRepository, LeadRepository, PropertyRepository
from propops.metrics import observe_estimate_conversion
from propops.platform.numbering import next_reference
from propops.platform.patching import apply_changes, require_changes
from propops.platform.security.context import AuthContext
from propops.statuses import ActivitySeverity, EstimateStatus, Priority, WorkOrderStatus, parse_optional_status


logger = logging.getLogger("propops.estimates")
tracer = trace.get_tracer("propops.estimates")

CONVERTED_MESSAGE = "Estimate converted to work order"
ALREADY_CONVERTED_MESSAGE = "Estimate already converted"


@dataclass(slots=True)
class EstimateService:
    estimate_repository: EstimateRepository = EstimateRepository()
    work_order_repository: WorkOrderRepository = WorkOrderRepository()
    client_repository: ClientRepository = ClientRepository()
    property_repository: PropertyRepository = PropertyRepository()
    lead_repository: LeadRepository = LeadRepository()
    activity: ActivityRecorder = ActivityRecorder()

    def create_estimate(self, session: Session, ctx: AuthContext, payload: EstimateCreate) -> EstimateRead:
        data = payload.model_dump(mode="python")
        if data["status"] == EstimateStatus.CONVERTED:
            raise ValidationFailedError("Estimates become CONVERTED only through conversion", details={"field": "status"})

        with unit_of_work(session):
            self._ensure_references(session, data)
            if data["estimate_number"]:
                self._ensure_number_available(session, data["estimate_number"])
            else:
                data["estimate_number"] = next_reference(session, Estimate.estimate_number, "EST")

            estimate = Estimate(**data)
            session.add(estimate)
            session.flush()
            self.activity.record(
                session,
                ctx,
                action="Created estimate",
                entity_type="estimate",
                entity_id=estimate.id,
                description=f"Created estimate {estimate.estimate_number} for {estimate.amount_cents} cents.",
                client_id=estimate.client_id,
            )
        session.refresh(estimate)
        return EstimateRead.model_validate(estimate)

    def list_estimates(
        self,
        session: Session,
        ctx: AuthContext,
        *,
        status: str | None,
        client_id: uuid.UUID | None,
        limit: int,
    ) -> list[EstimateRead]:
        stmt: Select[tuple[Estimate]] = self.estimate_repository.query()
        parsed = parse_optional_status(EstimateStatus, status)
        if parsed is not None:
            stmt = stmt.where(Estimate.status == parsed)
        if client_id is not None:
            stmt = stmt.where(Estimate.client_id == client_id)
        rows = self.estimate_repository.list_recent(session, stmt, limit=limit)
        return [EstimateRead.model_validate(row) for row in rows]

    def get_estimate(self, session: Session, ctx: AuthContext, estimate_id: uuid.UUID) -> EstimateRead:
        return EstimateRead.model_validate(self.estimate_repository.get(session, estimate_id))

    def update_estimate(
        self,
        session: Session,
        ctx: AuthContext,
        estimate_id: uuid.UUID,
        payload: EstimateUpdate,
    ) -> EstimateRead:
        changes = payload.model_dump(mode="python", exclude_unset=True)
        require_changes(changes)
        if changes.get("status") == EstimateStatus.CONVERTED:
            raise ValidationFailedError("Estimates become CONVERTED only through conversion", details={"field": "status"})

        with unit_of_work(session):
            estimate = self.estimate_repository.get(session, estimate_id, for_update=True)
            if estimate.converted_work_order_id is not None and "status" in changes:
                raise ValidationFailedError("Status of a converted estimate cannot change", details={"field": "status"})
            new_number = changes.get("estimate_number")
            if new_number and new_number != estimate.estimate_number:
                self._ensure_number_available(session, new_number)
            self._ensure_references(session, changes)

            fields = apply_changes(
                estimate,
                changes,
                non_nullable=("estimate_number", "title", "description", "amount_cents", "status"),
            )
            self.activity.record(
                session,
                ctx,
                action="Updated estimate",
                entity_type="estimate",
                entity_id=estimate.id,
                description=f"Updated {', '.join(fields)} on estimate {estimate.estimate_number}.",
                client_id=estimate.client_id,
            )
        session.refresh(estimate)
        return EstimateRead.model_validate(estimate)

    def delete_estimate(self, session: Session, ctx: AuthContext, estimate_id: uuid.UUID) -> None:
        with unit_of_work(session):
            estimate = self.estimate_repository.get(session, estimate_id)
            self.activity.record(
                session,
                ctx,
                action="Deleted estimate",
                entity_type="estimate",
                entity_id=estimate.id,
                description=f"Deleted estimate {estimate.estimate_number}.",
                severity=ActivitySeverity.WARNING,
                client_id=estimate.client_id,
            )
            session.delete(estimate)

    def convert_estimate(self, session: Session, ctx: AuthContext, estimate_id: uuid.UUID) -> EstimateConversionRead:
        """Turn an estimate into a BACKLOG work order exactly once.

        The estimate row is locked for the duration of the unit of work, so a
        concurrent second conversion observes the first one's link and returns
        the same work order with ``already_converted`` set.
        """
        with tracer.start_as_current_span("estimate.convert") as span:
            span.set_attribute("estimate_id", str(estimate_id))
            already_converted = False
            with unit_of_work(session):
                estimate = self.estimate_repository.get(session, estimate_id, for_update=True)
                if estimate.converted_work_order_id is not None:
                    already_converted = True
                    work_order = self.work_order_repository.get(session, estimate.converted_work_order_id)
                else:
                    work_order = WorkOrder(
                        code=next_reference(session, WorkOrder.code, "WO"),
                        title=estimate.title,
                        description=estimate.description,
                        status=WorkOrderStatus.BACKLOG,
                        priority=Priority.MEDIUM,
                        estimated_value_cents=estimate.amount_cents,
                        client_id=estimate.client_id,
                        property_id=estimate.property_id,
                    )
                    session.add(work_order)
                    session.flush()

                    estimate.status = EstimateStatus.CONVERTED
                    estimate.converted_work_order_id = work_order.id
                    self.activity.record(
                        session,
                        ctx,
                        action="Converted estimate",
                        entity_type="estimate",
                        entity_id=estimate.id,
                        description=f"Converted {estimate.estimate_number} to work order {work_order.code}.",
                        severity=ActivitySeverity.SUCCESS,
                        client_id=estimate.client_id,
                    )
            session.refresh(estimate)
            session.refresh(work_order)
            span.set_attribute("already_converted", already_converted)

        outcome = "already_converted" if already_converted else "converted"
        observe_estimate_conversion(outcome)
        logger.info(
            "estimate.converted",
            extra={"entity_type": "estimate", "entity_id": str(estimate.id), "status": outcome},
        )
        if not already_converted:
            events.publish(
                {
                    "event_type": "estimate.converted",
                    "estimate_id": str(estimate.id),
                    "work_order_id": str(work_order.id),
                    "work_order_code": work_order.code,
                }
            )
        return EstimateConversionRead(
            message=ALREADY_CONVERTED_MESSAGE if already_converted else CONVERTED_MESSAGE,
            already_converted=already_converted,
            estimate=EstimateRead.model_validate(estimate),
            work_order=WorkOrderRead.model_validate(work_order),
        )

    def _ensure_number_available(self, session: Session, estimate_number: str) -> None:
        if self.estimate_repository.exists_where(session, Estimate.estimate_number == estimate_number):
            raise ValidationFailedError(
                f"Estimate number {estimate_number} is already in use",
                details={"field": "estimate_number"},
            )

    def _ensure_references(self, session: Session, data: dict) -> None:
        self.client_repository.get_optional(session, data.get("client_id"))
        self.property_repository.get_optional(session, data.get("property_id"))
        self.lead_repository.get_optional(session, data.get("lead_id"))


estimate_service = EstimateService()
