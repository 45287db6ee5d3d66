from __future__ import annotations

import csv
import io
from collections.abc import Generator
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from propops.business.billing.models import Invoice
from propops.business.reporting.models import ExportJob
from propops.core.auth import AuthUser, get_current_user
from propops.core.config import get_settings
from propops.core.database import Base, get_db
from propops.crm.models import Client
from propops.main import app
from propops.middleware.rate_limit import reset_rate_limiter
from propops.statuses import InvoiceStatus


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


@pytest.fixture(autouse=True)
def configure_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    monkeypatch.setenv("RATE_LIMIT_DISABLED", "true")
    get_settings.cache_clear()
    reset_rate_limiter()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    def override_get_current_user() -> AuthUser:
        return AuthUser(sub="export-admin", role="ADMIN", name="Riley Books")

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _rows(body: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(body)))


def test_invoice_export_is_the_default(client: TestClient, db_session: Session) -> None:
    acme = Client(company_name="Acme Facilities")
    db_session.add(acme)
    db_session.flush()
    db_session.add(
        Invoice(
            invoice_number="INV-001",
            amount_cents=125000,
            status=InvoiceStatus.SENT,
            client_id=acme.id,
            issued_at=datetime(2026, 10, 1, tzinfo=timezone.utc),
            due_date=datetime(2026, 10, 31, tzinfo=timezone.utc),
        )
    )
    db_session.commit()

    response = client.get("/api/reports/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == 'attachment; filename="invoices-export.csv"'
    rows = _rows(response.text)
    assert rows[0] == ["invoice_number", "client", "amount_cents", "status", "issued_at", "due_date", "paid_at"]
    assert rows[1][:4] == ["INV-001", "Acme Facilities", "125000", "SENT"]
    assert rows[1][4] == "2026-10-01T00:00:00+00:00"
    assert rows[1][6] == ""


@pytest.mark.parametrize(
    ("resource", "header"),
    [
        ("leads", ["name", "email", "company", "service_needed", "source", "status", "created_at"]),
        ("work-orders", ["code", "title", "status", "priority", "client", "property", "created_at"]),
        ("bookings", ["name", "email", "service_type", "status", "source", "preferred_date", "created_at"]),
        ("payments", ["invoice_number", "amount_cents", "processor", "status", "paid_at", "created_at"]),
    ],
)
def test_export_headers_per_resource(client: TestClient, resource: str, header: list[str]) -> None:
    response = client.get("/api/reports/export", params={"resource": resource})

    assert response.status_code == 200
    assert _rows(response.text) == [header]
    assert f'filename="{resource}-export.csv"' in response.headers["content-disposition"]


def test_export_records_job(client: TestClient, db_session: Session) -> None:
    client.post(
        "/api/leads",
        json={"name": "Jane Porter", "email": "jane@acme-facilities.com", "message": "Quarterly maintenance plan."},
    )

    response = client.get("/api/reports/export", params={"resource": "LEADS"})

    assert response.status_code == 200
    job = db_session.scalar(select(ExportJob))
    assert job is not None
    assert job.resource == "leads"
    assert job.row_count == 1
    assert job.requested_by == "Riley Books"
    assert job.notes == "Exported 1 rows."

    jobs = client.get("/api/reports/export-jobs")
    assert jobs.status_code == 200
    assert [row["resource"] for row in jobs.json()] == ["leads"]


def test_unsupported_resource_is_rejected(client: TestClient, db_session: Session) -> None:
    response = client.get("/api/reports/export", params={"resource": "payroll"})

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION_FAILED"
    assert body["message"] == "Unsupported resource. Use invoices, leads, work-orders, bookings, or payments."
    assert db_session.scalar(select(ExportJob)) is None
