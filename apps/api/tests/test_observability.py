from __future__ import annotations

import logging
import os
import uuid
from collections.abc import Generator
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("OTEL_ENABLED", "true")

from propops import events
from propops.activity.models import ActivityLogEntry
from propops.core.auth import AuthUser, get_current_user
from propops.core.config import get_settings
from propops.core.database import Base, get_db
from propops.crm.models import Client
from propops.main import app
from propops.middleware.rate_limit import reset_rate_limiter
from propops.otel import setup_inmemory_otel


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
    monkeypatch.setenv("METRICS_ENABLED", "true")
    get_settings.cache_clear()
    reset_rate_limiter()
    events.published_events.clear()
    yield
    get_settings.cache_clear()
    reset_rate_limiter()
    events.published_events.clear()


@pytest.fixture(scope="module")
def span_exporter() -> InMemorySpanExporter:
    return setup_inmemory_otel()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    def override_get_current_user() -> AuthUser:
        return AuthUser(sub="ops-admin", role="ADMIN", name="Ops Admin")

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _seed_client(db_session: Session) -> Client:
    acme = Client(company_name="Acme Facilities")
    db_session.add(acme)
    db_session.commit()
    return acme


def _create_estimate(client: TestClient, client_id: uuid.UUID) -> dict:
    response = client.post(
        "/api/estimates",
        json={
            "title": "Lobby repaint",
            "description": "Repaint the main lobby and stairwell walls.",
            "amount_cents": 250000,
            "client_id": str(client_id),
        },
    )
    assert response.status_code == 201
    return response.json()


def _create_invoice(client: TestClient, client_id: uuid.UUID) -> dict:
    response = client.post(
        "/api/invoices",
        json={
            "amount_cents": 100000,
            "status": "SENT",
            "due_date": (datetime.now(timezone.utc) + timedelta(days=30)).isoformat(),
            "client_id": str(client_id),
        },
    )
    assert response.status_code == 201
    return response.json()


def test_correlation_id_is_echoed_and_generated(client: TestClient) -> None:
    echoed = client.get("/health", headers={"x-correlation-id": "corr-health-1"})
    assert echoed.headers["x-correlation-id"] == "corr-health-1"

    generated = client.get("/health")
    assert generated.headers["x-correlation-id"]
    assert generated.headers["x-correlation-id"] != "corr-health-1"


def test_correlation_id_reaches_errors_events_and_activity(client: TestClient, db_session: Session) -> None:
    missing = client.get(f"/api/estimates/{uuid.uuid4()}", headers={"x-correlation-id": "corr-missing"})
    assert missing.status_code == 404
    assert missing.json()["correlation_id"] == "corr-missing"

    acme = _seed_client(db_session)
    estimate = _create_estimate(client, acme.id)
    converted = client.post(
        f"/api/estimates/{estimate['id']}/convert",
        headers={"x-correlation-id": "corr-convert"},
    )
    assert converted.status_code == 200

    event = next(item for item in events.published_events if item["event_type"] == "estimate.converted")
    assert event["correlation_id"] == "corr-convert"
    entry = db_session.scalar(select(ActivityLogEntry).where(ActivityLogEntry.action == "Converted estimate"))
    assert entry is not None
    assert entry.correlation_id == "corr-convert"


def test_request_log_carries_route_template(client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)

    response = client.get(f"/api/invoices/{uuid.uuid4()}", headers={"x-correlation-id": "corr-log-1"})
    assert response.status_code == 404

    records = [
        record for record in caplog.records if record.name == "propops.request" and record.getMessage() == "http.request"
    ]
    assert records
    assert any(
        getattr(record, "correlation_id", None) == "corr-log-1"
        and getattr(record, "method", None) == "GET"
        and getattr(record, "path", None) == "/api/invoices/{id}"
        and getattr(record, "status_code", None) == 404
        and isinstance(getattr(record, "duration_ms", None), float)
        for record in records
    )


def test_metrics_endpoint_exposes_domain_counters(client: TestClient, db_session: Session) -> None:
    acme = _seed_client(db_session)
    estimate = _create_estimate(client, acme.id)
    assert client.post(f"/api/estimates/{estimate['id']}/convert").status_code == 200
    invoice = _create_invoice(client, acme.id)
    assert client.post(f"/api/invoices/{invoice['id']}/quick-settle").status_code == 200

    metrics = client.get("/metrics")

    assert metrics.status_code == 200
    body = metrics.text
    assert "http_requests_total" in body
    assert 'path="/api/estimates/{id}/convert"' in body
    assert 'estimate_conversions_total{outcome="converted"}' in body
    assert 'payment_settlements_total{invoice_status="PAID"}' in body
    assert "activity_entries_total" in body


def test_metrics_endpoint_hidden_when_disabled(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("METRICS_ENABLED", "false")
    get_settings.cache_clear()

    assert client.get("/metrics").status_code == 404


def test_lifecycle_spans_are_recorded(
    client: TestClient,
    db_session: Session,
    span_exporter: InMemorySpanExporter,
) -> None:
    span_exporter.clear()
    acme = _seed_client(db_session)
    estimate = _create_estimate(client, acme.id)
    client.post(f"/api/estimates/{estimate['id']}/convert")
    invoice = _create_invoice(client, acme.id)
    client.post(
        f"/api/invoices/{invoice['id']}/payment",
        json={"amount_cents": 40000, "processor": "Stripe"},
    )

    spans = {span.name: span for span in span_exporter.get_finished_spans()}
    assert "estimate.convert" in spans
    assert spans["estimate.convert"].attributes["estimate_id"] == estimate["id"]
    assert spans["estimate.convert"].attributes["already_converted"] is False
    assert "invoice.settle_payment" in spans
    assert spans["invoice.settle_payment"].attributes["invoice_status"] == "PARTIAL"


def test_public_intake_is_rate_limited(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_DISABLED", "false")
    monkeypatch.setenv("RATE_LIMIT_INTAKE_PER_MINUTE", "3")
    get_settings.cache_clear()
    reset_rate_limiter()

    responses = [
        client.post(
            "/api/leads",
            json={
                "name": f"Lead {index}",
                "email": f"lead{index}@acme-facilities.com",
                "message": "Please call about a maintenance plan.",
            },
        )
        for index in range(5)
    ]

    assert [response.status_code for response in responses[:3]] == [201, 201, 201]
    limited = responses[3]
    assert limited.status_code == 429
    assert limited.json()["code"] == "RATE_LIMITED"
    assert limited.json()["message"] == "Too many requests"
    assert limited.json()["correlation_id"]
    assert limited.headers.get("Retry-After") is not None

    reads = [client.get("/api/leads") for _ in range(6)]
    assert all(response.status_code == 200 for response in reads)


def test_published_event_history_is_bounded() -> None:
    for index in range(events.PUBLISHED_EVENTS_KEPT + 25):
        events.publish({"event_type": "booking.created", "booking_id": str(index)})

    assert len(events.published_events) == events.PUBLISHED_EVENTS_KEPT
    assert events.published_events[0]["booking_id"] == "25"
    assert events.published_events[-1]["booking_id"] == str(events.PUBLISHED_EVENTS_KEPT + 24)
