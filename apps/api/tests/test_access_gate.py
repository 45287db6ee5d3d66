from __future__ import annotations

import uuid
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from propops.core.config import get_settings
from propops.core.database import Base, get_db
from propops.main import app
from propops.middleware.rate_limit import reset_rate_limiter


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
    monkeypatch.setenv("JWT_SECRET", "gate-test-secret")
    get_settings.cache_clear()
    reset_rate_limiter()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _bearer(role: str | None, secret: str = "gate-test-secret") -> dict[str, str]:
    claims = {"sub": f"user-{uuid.uuid4().hex[:6]}", "name": "Test User"}
    if role is not None:
        claims["role"] = role
    return {"Authorization": f"Bearer {jwt.encode(claims, secret, algorithm='HS256')}"}


@pytest.mark.parametrize(
    "path",
    ["/api/leads", "/api/estimates", "/api/invoices", "/api/payroll-runs", "/api/dashboard/overview", "/api/activity"],
)
def test_anonymous_reads_are_rejected(client: TestClient, path: str) -> None:
    response = client.get(path)

    assert response.status_code == 401
    body = response.json()
    assert body["code"] == "UNAUTHORIZED"
    assert body["message"] == "Unauthorized"
    assert body["correlation_id"]


def test_client_role_is_not_staff(client: TestClient) -> None:
    response = client.get("/api/work-orders", headers=_bearer("CLIENT"))

    assert response.status_code == 401
    assert response.json()["message"] == "Unauthorized"


def test_unknown_role_and_bad_signature_are_rejected(client: TestClient) -> None:
    assert client.get("/api/leads", headers=_bearer("OWNER")).status_code == 401
    assert client.get("/api/leads", headers=_bearer("ADMIN", secret="wrong-secret")).status_code == 401


def test_manager_reads_but_cannot_delete(client: TestClient) -> None:
    headers = _bearer("MANAGER")
    lead = client.post(
        "/api/leads",
        json={"name": "Jane Porter", "email": "jane@acme-facilities.com", "message": "Quarterly maintenance plan."},
        headers=headers,
    )
    assert lead.status_code == 201

    assert client.get(f"/api/leads/{lead.json()['id']}", headers=headers).status_code == 200
    denied = client.delete(f"/api/leads/{lead.json()['id']}", headers=headers)
    assert denied.status_code == 401

    removed = client.delete(f"/api/leads/{lead.json()['id']}", headers=_bearer("ADMIN"))
    assert removed.status_code == 204


def test_role_claim_is_case_insensitive(client: TestClient) -> None:
    response = client.get("/api/leads", headers=_bearer("admin"))

    assert response.status_code == 200


def test_public_intake_needs_no_token(client: TestClient) -> None:
    response = client.post(
        "/api/leads",
        json={"name": "Jane Porter", "email": "jane@acme-facilities.com", "message": "Quarterly maintenance plan."},
    )

    assert response.status_code == 201


def test_unknown_status_filter_is_a_validation_failure(client: TestClient) -> None:
    response = client.get("/api/leads", params={"status": "ARCHIVED"}, headers=_bearer("ADMIN"))

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_FAILED"


def test_list_limit_must_be_positive(client: TestClient) -> None:
    assert client.get("/api/leads", params={"limit": 500}, headers=_bearer("ADMIN")).status_code == 200

    response = client.get("/api/leads", params={"limit": 0}, headers=_bearer("ADMIN"))

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_FAILED"


def test_missing_record_uses_not_found_envelope(client: TestClient) -> None:
    response = client.get(f"/api/estimates/{uuid.uuid4()}", headers=_bearer("ADMIN"))

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"
    assert response.json()["message"] == "Estimate not found"
