from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from propops.business.payments.models import PaymentRecord
from propops.platform.repository import BaseRepository
from propops.statuses import PaymentStatus


class PaymentRecordRepository(BaseRepository[PaymentRecord]):
    model = PaymentRecord
    entity_label = "Payment"

    def settled_total(self, session: Session, invoice_id: uuid.UUID) -> int:
        stmt = select(func.coalesce(func.sum(PaymentRecord.amount_cents), 0)).where(
            PaymentRecord.invoice_id == invoice_id,
            PaymentRecord.status == PaymentStatus.SETTLED,
        )
        return int(session.scalar(stmt) or 0)

    def has_records(self, session: Session, invoice_id: uuid.UUID) -> bool:
        return self.exists_where(session, PaymentRecord.invoice_id == invoice_id)
