from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propops.business.billing.models import Invoice
from propops.core.database import Base
from propops.crm.models import utcnow
from propops.statuses import PaymentStatus


class PaymentRecord(Base):
    __tablename__ = "billing_payment_record"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    invoice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("billing_invoice.id", ondelete="CASCADE"),
        nullable=False,
    )
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    processor: Mapped[str] = mapped_column(String(60), nullable=False)
    external_reference: Mapped[str | None] = mapped_column(String(120), nullable=True)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=PaymentStatus.SETTLED,
        server_default=PaymentStatus.SETTLED.value,
    )
    paid_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    invoice: Mapped[Invoice] = relationship(Invoice)


Index("ix_billing_payment_record_invoice_id", PaymentRecord.invoice_id)
Index("ix_billing_payment_record_status", PaymentRecord.status)
