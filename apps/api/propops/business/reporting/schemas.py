from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from propops.activity.schemas import ActivityLogRead
from propops.business.work_orders.schemas import ScheduleItemRead, WorkOrderRead


class StatusCount(BaseModel):
    status: str
    count: int


class StatusAmount(BaseModel):
    status: str
    count: int
    amount_cents: int


class RevenuePoint(BaseModel):
    label: str
    month_start: datetime
    amount_cents: int


class TopClient(BaseModel):
    client_id: UUID
    company_name: str
    revenue_cents: int


class DashboardMetrics(BaseModel):
    new_leads: int
    estimate_value_cents: int
    active_estimates: int
    active_jobs: int
    active_bookings: int
    invoice_count: int
    overdue_amount_cents: int
    overdue_count: int


class DashboardOverviewRead(BaseModel):
    generated_at: datetime
    metrics: DashboardMetrics
    lead_pipeline: list[StatusCount]
    estimate_pipeline: list[StatusCount]
    work_order_breakdown: list[StatusCount]
    invoice_breakdown: list[StatusCount]
    revenue_series: list[RevenuePoint]
    recent_work_orders: list[WorkOrderRead]
    schedule_today: list[ScheduleItemRead]
    recent_activity: list[ActivityLogRead]
    top_clients: list[TopClient]


class ReportSummaryRead(BaseModel):
    generated_at: datetime
    quarter_start: datetime
    invoiced_cents: int
    invoiced_count: int
    collected_cents: int
    collected_count: int
    overdue_count: int
    estimates_by_status: list[StatusAmount]
    leads_by_status: list[StatusCount]
    work_orders_by_status: list[StatusCount]


class ExportJobRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    resource: str
    format: str
    status: str
    requested_by: str
    row_count: int
    notes: str | None
    completed_at: datetime | None
    created_at: datetime
