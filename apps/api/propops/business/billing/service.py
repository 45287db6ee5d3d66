from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy import Select
from sqlalchemy.orm import Session

from propops.activity.recorder import ActivityRecorder
from propops.business.billing.models import Invoice
from propops.business.billing.repository import InvoiceRepository
from propops.business.billing.schemas import InvoiceCreate, InvoiceRead, InvoiceUpdate
from propops.business.payments.repository import PaymentRecordRepository
from propops.business.work_orders.repository import WorkOrderRepository
from propops.core.database import unit_of_work
from propops.core.errors import ValidationFailedError
from propops.crm.repositories import ClientRepository
from propops.platform.numbering import next_reference
from propops.platform.patching import apply_changes, require_changes
from propops.platform.security.context import AuthContext
from propops.statuses import (
    SETTLEMENT_DERIVED_INVOICE_STATUSES,
    ActivitySeverity,
    InvoiceStatus,
    parse_optional_status,
)


def _reject_derived_status(status: InvoiceStatus | None) -> None:
    if status in SETTLEMENT_DERIVED_INVOICE_STATUSES:
        raise ValidationFailedError(
            f"Invoice status {status} is set by payment settlement",
            details={"field": "status"},
        )


@dataclass(slots=True)
class InvoiceService:
    invoice_repository: InvoiceRepository = InvoiceRepository()
    payment_repository: PaymentRecordRepository = PaymentRecordRepository()
    client_repository: ClientRepository = ClientRepository()
    work_order_repository: WorkOrderRepository = WorkOrderRepository()
    activity: ActivityRecorder = ActivityRecorder()

    def create_invoice(self, session: Session, ctx: AuthContext, payload: InvoiceCreate) -> InvoiceRead:
        data = payload.model_dump(mode="python")
        _reject_derived_status(data["status"])
        if data["issued_at"] is None:
            data.pop("issued_at")

        with unit_of_work(session):
            self.client_repository.get(session, data["client_id"])
            self.work_order_repository.get_optional(session, data["work_order_id"])
            if data["invoice_number"]:
                self._ensure_number_available(session, data["invoice_number"])
            else:
                data["invoice_number"] = next_reference(session, Invoice.invoice_number, "INV")

            invoice = Invoice(**data)
            session.add(invoice)
            session.flush()
            self.activity.record(
                session,
                ctx,
                action="Created invoice",
                entity_type="invoice",
                entity_id=invoice.id,
                description=f"Issued invoice {invoice.invoice_number} for {invoice.amount_cents} cents.",
                client_id=invoice.client_id,
            )
        session.refresh(invoice)
        return InvoiceRead.model_validate(invoice)

    def list_invoices(
        self,
        session: Session,
        ctx: AuthContext,
        *,
        status: str | None,
        client_id: uuid.UUID | None,
        limit: int,
    ) -> list[InvoiceRead]:
        stmt: Select[tuple[Invoice]] = self.invoice_repository.query()
        parsed = parse_optional_status(InvoiceStatus, status)
        if parsed is not None:
            stmt = stmt.where(Invoice.status == parsed)
        if client_id is not None:
            stmt = stmt.where(Invoice.client_id == client_id)
        rows = self.invoice_repository.list_recent(session, stmt, limit=limit)
        return [InvoiceRead.model_validate(row) for row in rows]

    def get_invoice(self, session: Session, ctx: AuthContext, invoice_id: uuid.UUID) -> InvoiceRead:
        return InvoiceRead.model_validate(self.invoice_repository.get(session, invoice_id))

    def update_invoice(
        self,
        session: Session,
        ctx: AuthContext,
        invoice_id: uuid.UUID,
        payload: InvoiceUpdate,
    ) -> InvoiceRead:
        changes = payload.model_dump(mode="python", exclude_unset=True)
        require_changes(changes)
        _reject_derived_status(changes.get("status"))

        with unit_of_work(session):
            invoice = self.invoice_repository.get(session, invoice_id, for_update=True)
            if "status" in changes and self.payment_repository.settled_total(session, invoice.id) > 0:
                raise ValidationFailedError(
                    "Invoice status cannot be edited once payments are recorded",
                    details={"field": "status"},
                )
            if "client_id" in changes:
                if changes["client_id"] is None:
                    raise ValidationFailedError("client_id cannot be null", details={"field": "client_id"})
                self.client_repository.get(session, changes["client_id"])
            self.work_order_repository.get_optional(session, changes.get("work_order_id"))
            new_number = changes.get("invoice_number")
            if new_number and new_number != invoice.invoice_number:
                self._ensure_number_available(session, new_number)

            fields = apply_changes(
                invoice,
                changes,
                non_nullable=("invoice_number", "status", "issued_at", "due_date"),
            )
            self.activity.record(
                session,
                ctx,
                action="Updated invoice",
                entity_type="invoice",
                entity_id=invoice.id,
                description=f"Updated {', '.join(fields)} on invoice {invoice.invoice_number}.",
                client_id=invoice.client_id,
            )
        session.refresh(invoice)
        return InvoiceRead.model_validate(invoice)

    def delete_invoice(self, session: Session, ctx: AuthContext, invoice_id: uuid.UUID) -> None:
        with unit_of_work(session):
            invoice = self.invoice_repository.get(session, invoice_id)
            if self.payment_repository.has_records(session, invoice.id):
                raise ValidationFailedError("Invoice has payment records and cannot be deleted")
            self.activity.record(
                session,
                ctx,
                action="Deleted invoice",
                entity_type="invoice",
                entity_id=invoice.id,
                description=f"Deleted invoice {invoice.invoice_number}.",
                severity=ActivitySeverity.WARNING,
                client_id=invoice.client_id,
            )
            session.delete(invoice)

    def _ensure_number_available(self, session: Session, invoice_number: str) -> None:
        if self.invoice_repository.exists_where(session, Invoice.invoice_number == invoice_number):
            raise ValidationFailedError(
                f"Invoice number {invoice_number} is already in use",
                details={"field": "invoice_number"},
            )


invoice_service = InvoiceService()
