from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from opentelemetry import trace
from sqlalchemy.orm import Session

from propops import events
from propops.activity.recorder import ActivityRecorder
from propops.business.billing.models import Invoice
from propops.business.billing.repository import InvoiceRepository
from propops.business.billing.schemas import InvoiceRead
from propops.business.payments.models import PaymentRecord
from propops.business.payments.repository import PaymentRecordRepository
from propops.business.payments.schemas import PaymentCreate, PaymentRecordRead, PaymentSettlementRead
from propops.core.config import get_settings
from propops.core.database import unit_of_work
from propops.crm.models import utcnow
from propops.metrics import observe_payment_settlement
from propops.platform.security.context import AuthContext
from propops.statuses import ActivitySeverity, InvoiceStatus, PaymentStatus


logger = logging.getLogger("propops.payments")
tracer = trace.get_tracer("propops.payments")

PAYMENT_APPLIED_MESSAGE = "Payment applied"
ALREADY_SETTLED_MESSAGE = "Invoice already fully settled."
QUICK_SETTLE_NOTES = "Quick payment apply from CRM action."


@dataclass(slots=True)
class PaymentService:
    invoice_repository: InvoiceRepository = InvoiceRepository()
    payment_repository: PaymentRecordRepository = PaymentRecordRepository()
    activity: ActivityRecorder = ActivityRecorder()

    def settle_payment(
        self,
        session: Session,
        ctx: AuthContext,
        invoice_id: uuid.UUID,
        payload: PaymentCreate,
    ) -> PaymentSettlementRead:
        """Record a SETTLED payment and re-derive the invoice status from all settled payments.

        The invoice row is locked first so concurrent settlements on the same
        invoice serialize their read-sum-write. ``paid_at`` on the invoice is
        written only by the settlement that moves it into PAID.
        """
        with tracer.start_as_current_span("invoice.settle_payment") as span:
            span.set_attribute("invoice_id", str(invoice_id))
            span.set_attribute("amount_cents", payload.amount_cents)
            with unit_of_work(session):
                invoice = self.invoice_repository.get(session, invoice_id, for_update=True)
                payment, settled_total = self._apply(session, ctx, invoice, payload)
            session.refresh(invoice)
            session.refresh(payment)
            span.set_attribute("invoice_status", str(invoice.status))

        self._after_commit(invoice, payment, settled_total)
        return PaymentSettlementRead(
            message=PAYMENT_APPLIED_MESSAGE,
            settled=invoice.status == InvoiceStatus.PAID,
            settled_amount_cents=settled_total,
            invoice=InvoiceRead.model_validate(invoice),
            payment=PaymentRecordRead.model_validate(payment),
        )

    def quick_settle(self, session: Session, ctx: AuthContext, invoice_id: uuid.UUID) -> PaymentSettlementRead:
        """Settle whatever is still owed on an invoice; a no-op when nothing remains."""
        settings = get_settings()
        with tracer.start_as_current_span("invoice.quick_settle") as span:
            span.set_attribute("invoice_id", str(invoice_id))
            payment: PaymentRecord | None = None
            with unit_of_work(session):
                invoice = self.invoice_repository.get(session, invoice_id, for_update=True)
                settled_total = self.payment_repository.settled_total(session, invoice.id)
                remaining = max(invoice.amount_cents - settled_total, 0)
                span.set_attribute("remaining_cents", remaining)
                if remaining > 0:
                    payload = PaymentCreate(
                        amount_cents=remaining,
                        processor=settings.quick_settle_processor,
                        external_reference=settings.quick_settle_reference,
                        notes=QUICK_SETTLE_NOTES,
                    )
                    payment, settled_total = self._apply(session, ctx, invoice, payload)
            session.refresh(invoice)

        if payment is None:
            logger.info(
                "invoice.quick_settle_noop",
                extra={"entity_type": "invoice", "entity_id": str(invoice.id), "status": str(invoice.status)},
            )
            return PaymentSettlementRead(
                message=ALREADY_SETTLED_MESSAGE,
                settled=True,
                settled_amount_cents=settled_total,
                invoice=InvoiceRead.model_validate(invoice),
            )

        session.refresh(payment)
        self._after_commit(invoice, payment, settled_total)
        return PaymentSettlementRead(
            message=PAYMENT_APPLIED_MESSAGE,
            settled=invoice.status == InvoiceStatus.PAID,
            settled_amount_cents=settled_total,
            invoice=InvoiceRead.model_validate(invoice),
            payment=PaymentRecordRead.model_validate(payment),
        )

    def list_payments(self, session: Session, ctx: AuthContext, *, limit: int) -> list[PaymentRecordRead]:
        rows = self.payment_repository.list_recent(session, self.payment_repository.query(), limit=limit)
        return [PaymentRecordRead.model_validate(row) for row in rows]

    def list_invoice_payments(
        self,
        session: Session,
        ctx: AuthContext,
        invoice_id: uuid.UUID,
        *,
        limit: int,
    ) -> list[PaymentRecordRead]:
        self.invoice_repository.get(session, invoice_id)
        stmt = self.payment_repository.query().where(PaymentRecord.invoice_id == invoice_id)
        rows = self.payment_repository.list_recent(session, stmt, limit=limit)
        return [PaymentRecordRead.model_validate(row) for row in rows]

    def _apply(
        self,
        session: Session,
        ctx: AuthContext,
        invoice: Invoice,
        payload: PaymentCreate,
    ) -> tuple[PaymentRecord, int]:
        paid_at = payload.paid_at or utcnow()
        payment = PaymentRecord(
            invoice_id=invoice.id,
            amount_cents=payload.amount_cents,
            processor=payload.processor,
            external_reference=payload.external_reference,
            status=PaymentStatus.SETTLED,
            paid_at=paid_at,
            notes=payload.notes,
        )
        session.add(payment)
        session.flush()

        settled_total = self.payment_repository.settled_total(session, invoice.id)
        next_status = InvoiceStatus.PAID if settled_total >= invoice.amount_cents else InvoiceStatus.PARTIAL
        if next_status == InvoiceStatus.PAID and invoice.status != InvoiceStatus.PAID:
            invoice.paid_at = paid_at
        invoice.status = next_status

        self.activity.record(
            session,
            ctx,
            action="Recorded payment",
            entity_type="invoice",
            entity_id=invoice.id,
            description=f"Recorded {payment.amount_cents} cents on invoice {invoice.invoice_number}.",
            severity=ActivitySeverity.SUCCESS,
            client_id=invoice.client_id,
        )
        return payment, settled_total

    def _after_commit(self, invoice: Invoice, payment: PaymentRecord, settled_total: int) -> None:
        observe_payment_settlement(str(invoice.status), payment.amount_cents)
        logger.info(
            "invoice.payment_settled",
            extra={
                "entity_type": "invoice",
                "entity_id": str(invoice.id),
                "amount_cents": payment.amount_cents,
                "status": str(invoice.status),
            },
        )
        events.publish(
            {
                "event_type": "invoice.payment_settled",
                "invoice_id": str(invoice.id),
                "payment_id": str(payment.id),
                "amount_cents": payment.amount_cents,
                "settled_amount_cents": settled_total,
                "invoice_status": str(invoice.status),
            }
        )


payment_service = PaymentService()
