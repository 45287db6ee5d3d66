from __future__ import annotations

import uuid
from collections.abc import Generator
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from propops import events
from propops.activity.models import ActivityLogEntry
from propops.activity.recorder import ActivityRecorder
from propops.business.estimates.models import Estimate
from propops.business.estimates.schemas import EstimateCreate, EstimateUpdate
from propops.business.estimates.service import estimate_service
from propops.business.work_orders.models import ScheduleItem, WorkOrder
from propops.business.work_orders.schemas import ScheduleItemCreate, ScheduleItemUpdate
from propops.business.work_orders.service import work_order_service
from propops.core.database import Base
from propops.core.errors import NotFoundError, ValidationFailedError
from propops.crm.models import Client, Property
from propops.platform.security.context import AuthContext
from propops.statuses import EstimateStatus, Priority, WorkOrderStatus


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
    return AuthContext(user_id="ops-manager", role="MANAGER", display_name="Dana Ops")


def _seed_client(db_session: Session) -> tuple[Client, Property]:
    client = Client(company_name="Acme Facilities", email="ap@acme-facilities.com")
    db_session.add(client)
    db_session.flush()
    prop = Property(client_id=client.id, name="Harbor Plaza", city="Tacoma")
    db_session.add(prop)
    db_session.commit()
    return client, prop


def _estimate_payload(client: Client, prop: Property, **overrides) -> EstimateCreate:
    data = {
        "estimate_number": "EST-001",
        "title": "Lobby repaint",
        "description": "Repaint the main lobby and stairwell walls.",
        "amount_cents": 250000,
        "status": EstimateStatus.SENT,
        "client_id": client.id,
        "property_id": prop.id,
    }
    data.update(overrides)
    return EstimateCreate(**data)


def test_convert_creates_backlog_work_order_once(db_session: Session) -> None:
    client, prop = _seed_client(db_session)
    estimate = estimate_service.create_estimate(db_session, _ctx(), _estimate_payload(client, prop))

    first = estimate_service.convert_estimate(db_session, _ctx(), estimate.id)

    assert first.already_converted is False
    assert first.message == "Estimate converted to work order"
    assert first.estimate.status == EstimateStatus.CONVERTED
    assert first.estimate.converted_work_order_id == first.work_order.id
    assert first.work_order.status == WorkOrderStatus.BACKLOG
    assert first.work_order.priority == Priority.MEDIUM
    assert first.work_order.estimated_value_cents == 250000
    assert first.work_order.client_id == client.id
    assert first.work_order.property_id == prop.id
    assert first.work_order.code.startswith("WO-")

    second = estimate_service.convert_estimate(db_session, _ctx(), estimate.id)

    assert second.already_converted is True
    assert second.message == "Estimate already converted"
    assert second.work_order.id == first.work_order.id
    assert db_session.scalar(select(func.count()).select_from(WorkOrder)) == 1

    converted_events = [event for event in events.published_events if event["event_type"] == "estimate.converted"]
    assert len(converted_events) == 1
    assert converted_events[0]["work_order_id"] == str(first.work_order.id)


def test_convert_records_success_activity(db_session: Session) -> None:
    client, prop = _seed_client(db_session)
    estimate = estimate_service.create_estimate(db_session, _ctx(), _estimate_payload(client, prop))

    result = estimate_service.convert_estimate(db_session, _ctx(), estimate.id)

    entry = db_session.scalar(select(ActivityLogEntry).where(ActivityLogEntry.action == "Converted estimate"))
    assert entry is not None
    assert entry.severity == "SUCCESS"
    assert entry.actor_name == "Dana Ops"
    assert entry.entity_id == str(estimate.id)
    assert entry.description == f"Converted EST-001 to work order {result.work_order.code}."


def test_convert_missing_estimate_is_not_found(db_session: Session) -> None:
    with pytest.raises(NotFoundError):
        estimate_service.convert_estimate(db_session, _ctx(), uuid.uuid4())


def test_estimate_number_is_generated_when_omitted(db_session: Session) -> None:
    client, prop = _seed_client(db_session)

    estimate = estimate_service.create_estimate(
        db_session, _ctx(), _estimate_payload(client, prop, estimate_number=None)
    )

    assert estimate.estimate_number.startswith("EST-")


def test_duplicate_estimate_number_is_rejected(db_session: Session) -> None:
    client, prop = _seed_client(db_session)
    estimate_service.create_estimate(db_session, _ctx(), _estimate_payload(client, prop))

    with pytest.raises(ValidationFailedError):
        estimate_service.create_estimate(db_session, _ctx(), _estimate_payload(client, prop, title="Second pass"))


def test_converted_status_cannot_be_written_directly(db_session: Session) -> None:
    client, prop = _seed_client(db_session)

    with pytest.raises(ValidationFailedError):
        estimate_service.create_estimate(
            db_session, _ctx(), _estimate_payload(client, prop, status=EstimateStatus.CONVERTED)
        )

    estimate = estimate_service.create_estimate(db_session, _ctx(), _estimate_payload(client, prop))
    with pytest.raises(ValidationFailedError):
        estimate_service.update_estimate(
            db_session, _ctx(), estimate.id, EstimateUpdate(status=EstimateStatus.CONVERTED)
        )

    stored = db_session.get(Estimate, estimate.id)
    assert stored is not None
    assert stored.status == EstimateStatus.SENT
    assert stored.converted_work_order_id is None


def test_converted_estimate_keeps_its_status(db_session: Session) -> None:
    client, prop = _seed_client(db_session)
    estimate = estimate_service.create_estimate(db_session, _ctx(), _estimate_payload(client, prop))
    estimate_service.convert_estimate(db_session, _ctx(), estimate.id)

    with pytest.raises(ValidationFailedError):
        estimate_service.update_estimate(
            db_session, _ctx(), estimate.id, EstimateUpdate(status=EstimateStatus.APPROVED)
        )


def test_work_order_from_estimate_cannot_be_deleted(db_session: Session) -> None:
    client, prop = _seed_client(db_session)
    estimate = estimate_service.create_estimate(db_session, _ctx(), _estimate_payload(client, prop))
    result = estimate_service.convert_estimate(db_session, _ctx(), estimate.id)

    with pytest.raises(ValidationFailedError):
        work_order_service.delete_work_order(db_session, _ctx(), result.work_order.id)

    assert db_session.get(WorkOrder, result.work_order.id) is not None


def _failing_record(self, *args, **kwargs):
    raise RuntimeError("activity store unavailable")


def test_failed_activity_write_rolls_back_conversion(db_session: Session, monkeypatch: pytest.MonkeyPatch) -> None:
    client, prop = _seed_client(db_session)
    estimate = estimate_service.create_estimate(db_session, _ctx(), _estimate_payload(client, prop))
    activity_before = db_session.scalar(select(func.count()).select_from(ActivityLogEntry))
    monkeypatch.setattr(ActivityRecorder, "record", _failing_record)

    with pytest.raises(RuntimeError):
        estimate_service.convert_estimate(db_session, _ctx(), estimate.id)

    assert db_session.scalar(select(func.count()).select_from(WorkOrder)) == 0
    stored = db_session.get(Estimate, estimate.id)
    assert stored is not None
    assert stored.status == EstimateStatus.SENT
    assert stored.converted_work_order_id is None
    assert db_session.scalar(select(func.count()).select_from(ActivityLogEntry)) == activity_before
    assert not [event for event in events.published_events if event["event_type"] == "estimate.converted"]


def _visit(**overrides) -> ScheduleItemCreate:
    data = {
        "title": "Lobby repaint visit",
        "service_type": "Painting",
        "start_at": datetime(2026, 10, 20, 9, 0, tzinfo=timezone.utc),
        "end_at": datetime(2026, 10, 20, 12, 0, tzinfo=timezone.utc),
        "location": "Harbor Plaza",
    }
    data.update(overrides)
    return ScheduleItemCreate(**data)


def test_schedule_item_update_and_delete(db_session: Session) -> None:
    item = work_order_service.create_schedule_item(db_session, _ctx(), _visit())

    moved = work_order_service.update_schedule_item(
        db_session,
        _ctx(),
        item.id,
        ScheduleItemUpdate(end_at=datetime(2026, 10, 20, 15, 0, tzinfo=timezone.utc), notes="Bring drop cloths."),
    )
    assert moved.notes == "Bring drop cloths."
    assert moved.title == "Lobby repaint visit"

    work_order_service.delete_schedule_item(db_session, _ctx(), item.id)

    assert db_session.get(ScheduleItem, item.id) is None
    actions = db_session.scalars(
        select(ActivityLogEntry.action).where(ActivityLogEntry.entity_type == "schedule_item")
    ).all()
    assert sorted(actions) == ["Deleted schedule item", "Scheduled visit", "Updated schedule item"]


def test_schedule_item_update_keeps_end_after_start(db_session: Session) -> None:
    item = work_order_service.create_schedule_item(db_session, _ctx(), _visit())

    with pytest.raises(ValidationFailedError):
        work_order_service.update_schedule_item(
            db_session,
            _ctx(),
            item.id,
            ScheduleItemUpdate(start_at=datetime(2026, 10, 20, 13, 0, tzinfo=timezone.utc)),
        )

    stored = db_session.get(ScheduleItem, item.id)
    assert stored is not None
    assert stored.start_at.hour == 9


def test_missing_schedule_item_is_not_found(db_session: Session) -> None:
    with pytest.raises(NotFoundError):
        work_order_service.delete_schedule_item(db_session, _ctx(), uuid.uuid4())
