from __future__ import annotations

from collections.abc import Generator
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from propops import events
from propops.activity.models import ActivityLogEntry
from propops.activity.recorder import ActivityRecorder
from propops.business.billing.models import Invoice
from propops.business.billing.schemas import InvoiceCreate, InvoiceUpdate
from propops.business.billing.service import invoice_service
from propops.business.payments.models import PaymentRecord
from propops.business.payments.schemas import PaymentCreate
from propops.business.payments.service import payment_service
from propops.business.work_orders import models as work_order_models  # noqa: F401
from propops.core.database import Base
from propops.core.errors import ValidationFailedError
from propops.crm.models import Client
from propops.platform.clock import as_utc
from propops.platform.security.context import AuthContext
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
def clear_events() -> Generator[None, None, None]:
    events.published_events.clear()
    yield
    events.published_events.clear()


def _ctx() -> AuthContext:
    return AuthContext(user_id="billing-admin", role="ADMIN", display_name="Riley Books")


def _create_invoice(db_session: Session, amount_cents: int = 100000, **overrides):
    client = Client(company_name="Acme Facilities", email="ap@acme-facilities.com")
    db_session.add(client)
    db_session.commit()
    data = {
        "invoice_number": "INV-001",
        "amount_cents": amount_cents,
        "status": InvoiceStatus.SENT,
        "due_date": datetime.now(timezone.utc) + timedelta(days=30),
        "client_id": client.id,
    }
    data.update(overrides)
    return invoice_service.create_invoice(db_session, _ctx(), InvoiceCreate(**data))


def _pay(amount_cents: int, paid_at: datetime | None = None) -> PaymentCreate:
    return PaymentCreate(amount_cents=amount_cents, processor="Stripe", paid_at=paid_at)


def test_partial_then_full_settlement(db_session: Session) -> None:
    invoice = _create_invoice(db_session)

    partial = payment_service.settle_payment(db_session, _ctx(), invoice.id, _pay(40000))
    assert partial.invoice.status == InvoiceStatus.PARTIAL
    assert partial.invoice.paid_at is None
    assert partial.settled is False
    assert partial.settled_amount_cents == 40000
    assert partial.message == "Payment applied"

    paid_at = datetime(2026, 10, 18, 15, 30, tzinfo=timezone.utc)
    full = payment_service.settle_payment(db_session, _ctx(), invoice.id, _pay(60000, paid_at))
    assert full.invoice.status == InvoiceStatus.PAID
    assert full.settled is True
    assert full.settled_amount_cents == 100000
    assert as_utc(full.invoice.paid_at) == paid_at


def test_overpayment_keeps_paid_and_original_paid_at(db_session: Session) -> None:
    invoice = _create_invoice(db_session)
    first_paid_at = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)
    payment_service.settle_payment(db_session, _ctx(), invoice.id, _pay(40000))
    payment_service.settle_payment(db_session, _ctx(), invoice.id, _pay(60000, first_paid_at))

    extra = payment_service.settle_payment(
        db_session, _ctx(), invoice.id, _pay(10000, datetime(2026, 10, 15, tzinfo=timezone.utc))
    )

    assert extra.invoice.status == InvoiceStatus.PAID
    assert extra.settled_amount_cents == 110000
    assert as_utc(extra.invoice.paid_at) == first_paid_at
    assert db_session.scalar(select(func.count()).select_from(PaymentRecord)) == 3
    assert db_session.scalar(select(func.sum(PaymentRecord.amount_cents))) == 110000


def test_quick_settle_pays_the_remainder(db_session: Session) -> None:
    invoice = _create_invoice(db_session)
    payment_service.settle_payment(db_session, _ctx(), invoice.id, _pay(25000))

    result = payment_service.quick_settle(db_session, _ctx(), invoice.id)

    assert result.settled is True
    assert result.invoice.status == InvoiceStatus.PAID
    assert result.payment is not None
    assert result.payment.amount_cents == 75000
    assert result.payment.processor == "Manual"
    assert result.payment.external_reference == "MANUAL-QUICK-APPLY"
    assert result.payment.notes == "Quick payment apply from CRM action."


def test_quick_settle_on_paid_invoice_is_a_noop(db_session: Session) -> None:
    invoice = _create_invoice(db_session)
    payment_service.quick_settle(db_session, _ctx(), invoice.id)
    events.published_events.clear()

    result = payment_service.quick_settle(db_session, _ctx(), invoice.id)

    assert result.message == "Invoice already fully settled."
    assert result.settled is True
    assert result.payment is None
    assert db_session.scalar(select(func.count()).select_from(PaymentRecord)) == 1
    assert not events.published_events


def test_settlement_publishes_event_and_activity(db_session: Session) -> None:
    invoice = _create_invoice(db_session)

    payment_service.settle_payment(db_session, _ctx(), invoice.id, _pay(40000))

    assert events.published_events[-1]["event_type"] == "invoice.payment_settled"
    assert events.published_events[-1]["invoice_status"] == "PARTIAL"
    entry = db_session.scalar(select(ActivityLogEntry).where(ActivityLogEntry.action == "Recorded payment"))
    assert entry is not None
    assert entry.severity == "SUCCESS"
    assert entry.description == "Recorded 40000 cents on invoice INV-001."


def test_settlement_statuses_cannot_be_written_directly(db_session: Session) -> None:
    with pytest.raises(ValidationFailedError):
        _create_invoice(db_session, status=InvoiceStatus.PAID)

    invoice = _create_invoice(db_session, invoice_number="INV-002")
    with pytest.raises(ValidationFailedError):
        invoice_service.update_invoice(db_session, _ctx(), invoice.id, InvoiceUpdate(status=InvoiceStatus.PARTIAL))


def test_invoice_with_payments_cannot_be_deleted(db_session: Session) -> None:
    invoice = _create_invoice(db_session)
    payment_service.settle_payment(db_session, _ctx(), invoice.id, _pay(1000))

    with pytest.raises(ValidationFailedError):
        invoice_service.delete_invoice(db_session, _ctx(), invoice.id)


def test_invoice_amount_is_not_editable() -> None:
    with pytest.raises(ValidationError):
        InvoiceUpdate(amount_cents=300000)


@pytest.mark.parametrize("target", [InvoiceStatus.SENT, InvoiceStatus.DRAFT, InvoiceStatus.VOID, InvoiceStatus.OVERDUE])
def test_paid_invoice_status_is_locked(db_session: Session, target: InvoiceStatus) -> None:
    invoice = _create_invoice(db_session)
    payment_service.quick_settle(db_session, _ctx(), invoice.id)

    with pytest.raises(ValidationFailedError):
        invoice_service.update_invoice(db_session, _ctx(), invoice.id, InvoiceUpdate(status=target))

    stored = db_session.get(Invoice, invoice.id)
    assert stored is not None
    assert stored.status == InvoiceStatus.PAID
    assert stored.paid_at is not None


def test_partially_paid_invoice_status_is_locked(db_session: Session) -> None:
    invoice = _create_invoice(db_session)
    payment_service.settle_payment(db_session, _ctx(), invoice.id, _pay(40000))

    with pytest.raises(ValidationFailedError):
        invoice_service.update_invoice(db_session, _ctx(), invoice.id, InvoiceUpdate(status=InvoiceStatus.DRAFT))

    notes_only = invoice_service.update_invoice(
        db_session, _ctx(), invoice.id, InvoiceUpdate(notes="Remainder due on completion.")
    )
    assert notes_only.status == InvoiceStatus.PARTIAL
    assert notes_only.notes == "Remainder due on completion."


def test_unpaid_invoice_status_can_change(db_session: Session) -> None:
    invoice = _create_invoice(db_session)

    updated = invoice_service.update_invoice(db_session, _ctx(), invoice.id, InvoiceUpdate(status=InvoiceStatus.VOID))

    assert updated.status == InvoiceStatus.VOID
    assert updated.paid_at is None


def _failing_record(self, *args, **kwargs):
    raise RuntimeError("activity store unavailable")


def test_failed_activity_write_rolls_back_settlement(db_session: Session, monkeypatch: pytest.MonkeyPatch) -> None:
    invoice = _create_invoice(db_session)
    events.published_events.clear()
    monkeypatch.setattr(ActivityRecorder, "record", _failing_record)

    with pytest.raises(RuntimeError):
        payment_service.settle_payment(db_session, _ctx(), invoice.id, _pay(100000))

    assert db_session.scalar(select(func.count()).select_from(PaymentRecord)) == 0
    stored = db_session.get(Invoice, invoice.id)
    assert stored is not None
    assert stored.status == InvoiceStatus.SENT
    assert stored.paid_at is None
    assert not events.published_events
