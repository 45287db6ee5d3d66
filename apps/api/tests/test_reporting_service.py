from __future__ import annotations

from collections.abc import Generator
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from propops.activity import models as activity_models  # noqa: F401
from propops.business.billing.models import Invoice
from propops.business.estimates.models import Estimate
from propops.business.reporting.service import reporting_service
from propops.business.work_orders.models import ScheduleItem, WorkOrder
from propops.core.database import Base
from propops.crm.models import Client, Lead
from propops.platform.security.context import AuthContext
from propops.statuses import EstimateStatus, InvoiceStatus, LeadStatus, WorkOrderStatus


NOW = datetime(2026, 10, 19, 14, 0, tzinfo=timezone.utc)


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def _ctx() -> AuthContext:
    return AuthContext(user_id="ops-admin", role="ADMIN")


def _invoice(client: Client, number: str, amount: int, status: InvoiceStatus, **extra) -> Invoice:
    return Invoice(
        invoice_number=number,
        amount_cents=amount,
        status=status,
        client_id=client.id,
        issued_at=extra.pop("issued_at", NOW - timedelta(days=10)),
        due_date=extra.pop("due_date", NOW + timedelta(days=20)),
        **extra,
    )


def test_dashboard_on_empty_store_is_zero_filled(db_session: Session) -> None:
    overview = reporting_service.dashboard_overview(db_session, _ctx(), now=NOW)

    assert [row.status for row in overview.lead_pipeline] == [status.value for status in LeadStatus]
    assert all(row.count == 0 for row in overview.lead_pipeline)
    assert [row.status for row in overview.estimate_pipeline] == [status.value for status in EstimateStatus]
    assert [row.status for row in overview.work_order_breakdown] == [status.value for status in WorkOrderStatus]
    assert [row.status for row in overview.invoice_breakdown] == [status.value for status in InvoiceStatus]
    assert overview.metrics.new_leads == 0
    assert overview.metrics.overdue_amount_cents == 0
    assert overview.top_clients == []
    assert overview.recent_activity == []

    assert [point.label for point in overview.revenue_series] == ["May", "Jun", "Jul", "Aug", "Sep", "Oct"]
    assert all(point.amount_cents == 0 for point in overview.revenue_series)


def test_dashboard_metrics_and_pipelines(db_session: Session) -> None:
    acme = Client(company_name="Acme Facilities")
    harbor = Client(company_name="Harborview Properties")
    db_session.add_all([acme, harbor])
    db_session.flush()
    db_session.add_all(
        [
            Lead(name="Jane Porter", email="jane@acme-facilities.com", message="Quarterly plan.", source="website"),
            Lead(
                name="Omar Reyes",
                email="omar@harborview.com",
                message="Pressure wash.",
                source="website",
                status=LeadStatus.QUALIFIED,
            ),
            Estimate(
                estimate_number="EST-001",
                title="Lobby repaint",
                description="Repaint the main lobby.",
                amount_cents=250000,
                status=EstimateStatus.SENT,
            ),
            Estimate(
                estimate_number="EST-002",
                title="Roof patch",
                description="Patch the east roof.",
                amount_cents=90000,
                status=EstimateStatus.REJECTED,
            ),
            WorkOrder(code="WO-1", title="Gutters", description="Clear gutters.", status=WorkOrderStatus.IN_PROGRESS),
            WorkOrder(code="WO-2", title="Fence", description="Mend fence.", status=WorkOrderStatus.COMPLETED),
            ScheduleItem(
                title="Gutter visit",
                service_type="Gutter cleaning",
                start_at=NOW.replace(hour=9),
                end_at=NOW.replace(hour=11),
                location="North campus",
            ),
            ScheduleItem(
                title="Tomorrow visit",
                service_type="Window washing",
                start_at=NOW + timedelta(days=1),
                end_at=NOW + timedelta(days=1, hours=2),
                location="South campus",
            ),
            _invoice(acme, "INV-1", 50000, InvoiceStatus.PAID, paid_at=datetime(2026, 9, 12, tzinfo=timezone.utc)),
            _invoice(harbor, "INV-2", 80000, InvoiceStatus.PAID, paid_at=datetime(2026, 10, 2, tzinfo=timezone.utc)),
            _invoice(acme, "INV-3", 30000, InvoiceStatus.SENT, due_date=NOW - timedelta(days=3)),
            _invoice(acme, "INV-4", 20000, InvoiceStatus.DRAFT, due_date=NOW - timedelta(days=3)),
        ]
    )
    db_session.commit()

    overview = reporting_service.dashboard_overview(db_session, _ctx(), now=NOW)

    assert overview.metrics.new_leads == 1
    assert overview.metrics.active_estimates == 1
    assert overview.metrics.estimate_value_cents == 340000
    assert overview.metrics.active_jobs == 1
    assert overview.metrics.invoice_count == 4
    assert overview.metrics.overdue_count == 1
    assert overview.metrics.overdue_amount_cents == 30000
    assert [item.title for item in overview.schedule_today] == ["Gutter visit"]
    assert len(overview.recent_work_orders) == 2

    revenue = {point.label: point.amount_cents for point in overview.revenue_series}
    assert revenue["Sep"] == 50000
    assert revenue["Oct"] == 80000

    assert [client.company_name for client in overview.top_clients] == ["Harborview Properties", "Acme Facilities"]
    assert overview.top_clients[0].revenue_cents == 80000


def test_top_clients_ties_keep_client_order(db_session: Session) -> None:
    first = Client(company_name="First Client", created_at=NOW - timedelta(days=2))
    second = Client(company_name="Second Client", created_at=NOW - timedelta(days=1))
    db_session.add_all([first, second])
    db_session.flush()
    db_session.add_all(
        [
            _invoice(second, "INV-10", 10000, InvoiceStatus.PAID, paid_at=NOW),
            _invoice(first, "INV-11", 10000, InvoiceStatus.PAID, paid_at=NOW),
        ]
    )
    db_session.commit()

    ranked = reporting_service.top_clients(db_session, limit=5)

    assert [row.company_name for row in ranked] == ["First Client", "Second Client"]


def test_quarterly_summary(db_session: Session) -> None:
    acme = Client(company_name="Acme Facilities")
    db_session.add(acme)
    db_session.flush()
    db_session.add_all(
        [
            _invoice(acme, "INV-20", 40000, InvoiceStatus.PAID, paid_at=datetime(2026, 10, 5, tzinfo=timezone.utc)),
            _invoice(acme, "INV-21", 60000, InvoiceStatus.SENT, due_date=NOW - timedelta(days=1)),
            _invoice(
                acme,
                "INV-22",
                70000,
                InvoiceStatus.PAID,
                issued_at=datetime(2026, 8, 1, tzinfo=timezone.utc),
                paid_at=datetime(2026, 9, 1, tzinfo=timezone.utc),
            ),
            Estimate(
                estimate_number="EST-30",
                title="Roof patch",
                description="Patch the east roof.",
                amount_cents=90000,
                status=EstimateStatus.APPROVED,
            ),
        ]
    )
    db_session.commit()

    summary = reporting_service.quarterly_summary(db_session, _ctx(), now=NOW)

    assert summary.quarter_start == datetime(2026, 10, 1, tzinfo=timezone.utc)
    assert summary.invoiced_count == 2
    assert summary.invoiced_cents == 100000
    assert summary.collected_count == 1
    assert summary.collected_cents == 40000
    assert summary.overdue_count == 1
    approved = next(row for row in summary.estimates_by_status if row.status == "APPROVED")
    assert approved.count == 1
    assert approved.amount_cents == 90000
    assert [row.status for row in summary.leads_by_status] == [status.value for status in LeadStatus]


def test_overdue_means_strictly_before_now(db_session: Session) -> None:
    acme = Client(company_name="Acme Facilities")
    db_session.add(acme)
    db_session.flush()
    db_session.add_all(
        [
            _invoice(acme, "INV-20", 10000, InvoiceStatus.SENT, due_date=NOW),
            _invoice(acme, "INV-21", 20000, InvoiceStatus.SENT, due_date=NOW - timedelta(seconds=1)),
            _invoice(acme, "INV-22", 40000, InvoiceStatus.PAID, due_date=NOW - timedelta(days=5), paid_at=NOW),
            _invoice(acme, "INV-23", 80000, InvoiceStatus.VOID, due_date=NOW - timedelta(days=5)),
        ]
    )
    db_session.commit()

    overview = reporting_service.dashboard_overview(db_session, _ctx(), now=NOW)
    summary = reporting_service.quarterly_summary(db_session, _ctx(), now=NOW)

    assert overview.metrics.overdue_count == 1
    assert overview.metrics.overdue_amount_cents == 20000
    assert summary.overdue_count == 1
