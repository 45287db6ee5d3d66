from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from propops.activity.models import ActivityLogEntry
from propops.activity.schemas import ActivityLogRead
from propops.business.billing.models import Invoice
from propops.business.estimates.models import Estimate
from propops.business.reporting.repository import ReportingRepository
from propops.business.reporting.schemas import (
    DashboardMetrics,
    DashboardOverviewRead,
    ReportSummaryRead,
    RevenuePoint,
    StatusAmount,
    StatusCount,
    TopClient,
)
from propops.business.work_orders.models import ScheduleItem, WorkOrder
from propops.business.work_orders.schemas import ScheduleItemRead, WorkOrderRead
from propops.core.config import get_settings
from propops.crm.models import BookingRequest, Lead, utcnow
from propops.platform.clock import as_utc, month_start, quarter_start
from propops.platform.security.context import AuthContext
from propops.statuses import (
    ACTIVE_BOOKING_STATUSES,
    ACTIVE_ESTIMATE_STATUSES,
    OPEN_WORK_ORDER_STATUSES,
    EstimateStatus,
    InvoiceStatus,
    LeadStatus,
    WorkOrderStatus,
)


RECENT_WORK_ORDERS = 8
SCHEDULE_TODAY_LIMIT = 8
RECENT_ACTIVITY = 10
REVENUE_MONTHS = 6


def _counts(rows: list[tuple[str, int]]) -> list[StatusCount]:
    return [StatusCount(status=status, count=count) for status, count in rows]


@dataclass(slots=True)
class ReportingService:
    repository: ReportingRepository = ReportingRepository()

    def dashboard_overview(
        self,
        session: Session,
        ctx: AuthContext,
        *,
        now: datetime | None = None,
    ) -> DashboardOverviewRead:
        """Headline metrics, pipelines and recent records for the CRM landing page.

        Each section is its own read; sections may observe slightly different
        instants under concurrent writes.
        """
        settings = get_settings()
        now = as_utc(now) if now is not None else utcnow()

        lead_pipeline = self.repository.status_counts(session, Lead.status, LeadStatus)
        estimate_pipeline = self.repository.status_counts(session, Estimate.status, EstimateStatus)
        work_order_breakdown = self.repository.status_counts(session, WorkOrder.status, WorkOrderStatus)
        invoice_breakdown = self.repository.status_counts(session, Invoice.status, InvoiceStatus)

        overdue_count, overdue_amount = self.repository.overdue_totals(session, now)
        active_estimates, _ = self.repository.count_and_sum(
            session, Estimate.amount_cents, Estimate.status.in_(ACTIVE_ESTIMATE_STATUSES)
        )
        _, estimate_value = self.repository.count_and_sum(session, Estimate.amount_cents)
        active_bookings = session.scalar(
            select(func.count()).select_from(BookingRequest).where(BookingRequest.status.in_(ACTIVE_BOOKING_STATUSES))
        )

        metrics = DashboardMetrics(
            new_leads=dict(lead_pipeline)[LeadStatus.NEW.value],
            estimate_value_cents=estimate_value,
            active_estimates=active_estimates,
            active_jobs=sum(count for status, count in work_order_breakdown if status in OPEN_WORK_ORDER_STATUSES),
            active_bookings=int(active_bookings or 0),
            invoice_count=sum(count for _, count in invoice_breakdown),
            overdue_amount_cents=overdue_amount,
            overdue_count=overdue_count,
        )

        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        schedule_today = session.scalars(
            select(ScheduleItem)
            .where(ScheduleItem.start_at >= day_start, ScheduleItem.start_at < day_start + timedelta(days=1))
            .order_by(ScheduleItem.start_at.asc())
            .limit(SCHEDULE_TODAY_LIMIT)
        ).all()
        recent_work_orders = session.scalars(
            select(WorkOrder).order_by(WorkOrder.updated_at.desc()).limit(RECENT_WORK_ORDERS)
        ).all()
        recent_activity = session.scalars(
            select(ActivityLogEntry).order_by(ActivityLogEntry.created_at.desc()).limit(RECENT_ACTIVITY)
        ).all()

        return DashboardOverviewRead(
            generated_at=now,
            metrics=metrics,
            lead_pipeline=_counts(lead_pipeline),
            estimate_pipeline=_counts(estimate_pipeline),
            work_order_breakdown=_counts(work_order_breakdown),
            invoice_breakdown=_counts(invoice_breakdown),
            revenue_series=self.revenue_series(session, now=now),
            recent_work_orders=[WorkOrderRead.model_validate(row) for row in recent_work_orders],
            schedule_today=[ScheduleItemRead.model_validate(row) for row in schedule_today],
            recent_activity=[ActivityLogRead.model_validate(row) for row in recent_activity],
            top_clients=self.top_clients(session, limit=settings.dashboard_top_clients),
        )

    def revenue_series(self, session: Session, *, now: datetime) -> list[RevenuePoint]:
        """PAID invoice face amounts bucketed by the month of ``paid_at``, oldest first."""
        starts = [month_start(now, back) for back in range(REVENUE_MONTHS - 1, -1, -1)]
        totals = {(start.year, start.month): 0 for start in starts}
        for paid_at, amount in self.repository.paid_invoices_since(session, starts[0]):
            paid_at = as_utc(paid_at)
            key = (paid_at.year, paid_at.month)
            if key in totals:
                totals[key] += amount
        return [
            RevenuePoint(
                label=calendar.month_abbr[start.month],
                month_start=start,
                amount_cents=totals[(start.year, start.month)],
            )
            for start in starts
        ]

    def top_clients(self, session: Session, *, limit: int) -> list[TopClient]:
        rows = self.repository.paid_revenue_by_client(session)
        # sorted() is stable, so equal revenue keeps client order.
        ranked = sorted(rows, key=lambda row: row[2], reverse=True)[:limit]
        return [TopClient(client_id=client_id, company_name=name, revenue_cents=revenue) for client_id, name, revenue in ranked]

    def quarterly_summary(
        self,
        session: Session,
        ctx: AuthContext,
        *,
        now: datetime | None = None,
    ) -> ReportSummaryRead:
        now = as_utc(now) if now is not None else utcnow()
        start = quarter_start(now)

        invoiced_count, invoiced_cents = self.repository.count_and_sum(
            session, Invoice.amount_cents, Invoice.issued_at >= start
        )
        collected_count, collected_cents = self.repository.count_and_sum(
            session,
            Invoice.amount_cents,
            Invoice.status == InvoiceStatus.PAID,
            Invoice.paid_at >= start,
        )
        overdue_count, _ = self.repository.overdue_totals(session, now)
        estimates = self.repository.status_amounts(session, Estimate.status, Estimate.amount_cents, EstimateStatus)

        return ReportSummaryRead(
            generated_at=now,
            quarter_start=start,
            invoiced_cents=invoiced_cents,
            invoiced_count=invoiced_count,
            collected_cents=collected_cents,
            collected_count=collected_count,
            overdue_count=overdue_count,
            estimates_by_status=[
                StatusAmount(status=status, count=count, amount_cents=amount) for status, count, amount in estimates
            ],
            leads_by_status=_counts(self.repository.status_counts(session, Lead.status, LeadStatus)),
            work_orders_by_status=_counts(self.repository.status_counts(session, WorkOrder.status, WorkOrderStatus)),
        )


reporting_service = ReportingService()
