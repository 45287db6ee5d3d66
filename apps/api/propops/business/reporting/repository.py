from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime
from enum import StrEnum

from sqlalchemy import func, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from propops.business.billing.models import Invoice
from propops.crm.models import Client
from propops.statuses import RECEIVABLE_INVOICE_STATUSES, InvoiceStatus


class ReportingRepository:
    """Read-only aggregate queries; none of these take locks."""

    def status_counts(
        self,
        session: Session,
        status_column: InstrumentedAttribute,
        statuses: Iterable[StrEnum],
    ) -> list[tuple[str, int]]:
        stmt = select(status_column, func.count()).group_by(status_column)
        found = {str(status): int(count) for status, count in session.execute(stmt).all()}
        return [(member.value, found.get(member.value, 0)) for member in statuses]

    def status_amounts(
        self,
        session: Session,
        status_column: InstrumentedAttribute,
        amount_column: InstrumentedAttribute,
        statuses: Iterable[StrEnum],
    ) -> list[tuple[str, int, int]]:
        stmt = select(status_column, func.count(), func.coalesce(func.sum(amount_column), 0)).group_by(status_column)
        found = {str(status): (int(count), int(total)) for status, count, total in session.execute(stmt).all()}
        return [(member.value, *found.get(member.value, (0, 0))) for member in statuses]

    def count_and_sum(self, session: Session, amount_column: InstrumentedAttribute, *criteria) -> tuple[int, int]:
        stmt = select(func.count(), func.coalesce(func.sum(amount_column), 0))
        if criteria:
            stmt = stmt.where(*criteria)
        count, total = session.execute(stmt).one()
        return int(count), int(total)

    def overdue_totals(self, session: Session, now: datetime) -> tuple[int, int]:
        return self.count_and_sum(
            session,
            Invoice.amount_cents,
            Invoice.due_date < now,
            Invoice.status.in_(RECEIVABLE_INVOICE_STATUSES),
        )

    def paid_invoices_since(self, session: Session, since: datetime) -> list[tuple[datetime, int]]:
        stmt = select(Invoice.paid_at, Invoice.amount_cents).where(
            Invoice.status == InvoiceStatus.PAID,
            Invoice.paid_at.is_not(None),
            Invoice.paid_at >= since,
        )
        return [(paid_at, int(amount)) for paid_at, amount in session.execute(stmt).all()]

    def paid_revenue_by_client(self, session: Session) -> list[tuple[uuid.UUID, str, int]]:
        paid = (
            select(Invoice.client_id, func.sum(Invoice.amount_cents).label("revenue"))
            .where(Invoice.status == InvoiceStatus.PAID)
            .group_by(Invoice.client_id)
            .subquery()
        )
        stmt = (
            select(Client.id, Client.company_name, func.coalesce(paid.c.revenue, 0))
            .outerjoin(paid, paid.c.client_id == Client.id)
            .order_by(Client.created_at.asc(), Client.id.asc())
        )
        return [(client_id, name, int(revenue)) for client_id, name, revenue in session.execute(stmt).all()]
