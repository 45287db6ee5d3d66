from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import Select, and_, update
from sqlalchemy.orm import Session

from propops import events
from propops.activity.recorder import ActivityRecorder
from propops.core.config import get_settings
from propops.core.database import unit_of_work
from propops.crm.models import BookingRequest, ContactPerson, Lead, utcnow
from propops.crm.repositories import BookingRepository, ClientRepository, ContactRepository, LeadRepository
from propops.crm.schemas import (
    BookingCreate,
    BookingIntakeRead,
    BookingRead,
    BookingUpdate,
    ContactCreate,
    ContactRead,
    ContactUpdate,
    LeadCreate,
    LeadRead,
    LeadUpdate,
)
from propops.metrics import observe_public_intake
from propops.platform.patching import apply_changes, require_changes
from propops.platform.security.access import is_elevated
from propops.platform.security.context import AuthContext
from propops.statuses import ActivitySeverity, BookingStatus, ContactStatus, LeadStatus, parse_optional_status


logger = logging.getLogger("propops.crm")

DEFAULT_BOOKING_MESSAGE = "Booking request submitted."


@dataclass(slots=True)
class LeadService:
    lead_repository: LeadRepository = LeadRepository()
    activity: ActivityRecorder = ActivityRecorder()

    def create_lead(self, session: Session, ctx: AuthContext, payload: LeadCreate) -> LeadRead:
        data = payload.model_dump(mode="python")
        data["email"] = str(data["email"])
        if not is_elevated(ctx):
            data["status"] = LeadStatus.NEW
            data["source"] = get_settings().public_lead_source

        with unit_of_work(session):
            lead = Lead(**data)
            session.add(lead)
            session.flush()
            self.activity.record(
                session,
                ctx,
                action="Captured lead",
                entity_type="lead",
                entity_id=lead.id,
                description=f"Lead {lead.name} captured from {lead.source}.",
            )
        session.refresh(lead)

        if not is_elevated(ctx):
            observe_public_intake("lead")
        events.publish({"event_type": "lead.created", "lead_id": str(lead.id), "source": lead.source})
        return LeadRead.model_validate(lead)

    def list_leads(self, session: Session, ctx: AuthContext, *, status: str | None, limit: int) -> list[LeadRead]:
        stmt: Select[tuple[Lead]] = self.lead_repository.query()
        parsed = parse_optional_status(LeadStatus, status)
        if parsed is not None:
            stmt = stmt.where(Lead.status == parsed)
        return [LeadRead.model_validate(row) for row in self.lead_repository.list_recent(session, stmt, limit=limit)]

    def get_lead(self, session: Session, ctx: AuthContext, lead_id: uuid.UUID) -> LeadRead:
        return LeadRead.model_validate(self.lead_repository.get(session, lead_id))

    def update_lead(self, session: Session, ctx: AuthContext, lead_id: uuid.UUID, payload: LeadUpdate) -> LeadRead:
        changes = payload.model_dump(mode="python", exclude_unset=True)
        require_changes(changes)
        if changes.get("email") is not None:
            changes["email"] = str(changes["email"])

        with unit_of_work(session):
            lead = self.lead_repository.get(session, lead_id)
            fields = apply_changes(lead, changes, non_nullable=("name", "email", "message", "source", "status"))
            self.activity.record(
                session,
                ctx,
                action="Updated lead",
                entity_type="lead",
                entity_id=lead.id,
                description=f"Updated {', '.join(fields)} on lead {lead.name}.",
            )
        session.refresh(lead)
        return LeadRead.model_validate(lead)

    def delete_lead(self, session: Session, ctx: AuthContext, lead_id: uuid.UUID) -> None:
        with unit_of_work(session):
            lead = self.lead_repository.get(session, lead_id)
            self.activity.record(
                session,
                ctx,
                action="Deleted lead",
                entity_type="lead",
                entity_id=lead.id,
                description=f"Deleted lead {lead.name}.",
                severity=ActivitySeverity.WARNING,
            )
            session.delete(lead)


@dataclass(slots=True)
class BookingService:
    booking_repository: BookingRepository = BookingRepository()
    lead_repository: LeadRepository = LeadRepository()
    client_repository: ClientRepository = ClientRepository()
    activity: ActivityRecorder = ActivityRecorder()

    def create_booking(self, session: Session, ctx: AuthContext, payload: BookingCreate) -> BookingIntakeRead:
        """Record a booking request, creating its lead unless one is linked.

        Lead, booking and activity entry are committed together.
        """
        data = payload.model_dump(mode="python")
        data["email"] = str(data["email"])
        elevated = is_elevated(ctx)
        if not elevated:
            data["status"] = BookingStatus.NEW
            data["source"] = get_settings().public_booking_source

        lead_auto_created = False
        with unit_of_work(session):
            self.client_repository.get_optional(session, data["client_id"])
            if data["converted_lead_id"] is not None:
                lead = self.lead_repository.get(session, data["converted_lead_id"])
            else:
                lead = Lead(
                    name=data["name"],
                    email=data["email"],
                    phone=data["phone"],
                    company=data["company"],
                    service_needed=data["service_type"],
                    message=data["notes"] or DEFAULT_BOOKING_MESSAGE,
                    source=data["source"],
                    status=LeadStatus.NEW,
                )
                session.add(lead)
                session.flush()
                lead_auto_created = True

            data["converted_lead_id"] = lead.id
            booking = BookingRequest(**data)
            session.add(booking)
            session.flush()
            self.activity.record(
                session,
                ctx,
                action="Created booking request",
                entity_type="booking_request",
                entity_id=booking.id,
                description=f"Booking request from {booking.name} for {booking.service_type}.",
                client_id=booking.client_id,
            )
        session.refresh(booking)

        if not elevated:
            observe_public_intake("booking")
        logger.info(
            "booking.created",
            extra={"entity_type": "booking_request", "entity_id": str(booking.id), "status": booking.status},
        )
        events.publish(
            {
                "event_type": "booking.created",
                "booking_id": str(booking.id),
                "lead_id": str(lead.id),
                "lead_auto_created": lead_auto_created,
            }
        )
        return BookingIntakeRead(
            booking=BookingRead.model_validate(booking),
            linked_lead_id=booking.converted_lead_id,
            lead_auto_created=lead_auto_created,
        )

    def list_bookings(self, session: Session, ctx: AuthContext, *, status: str | None, limit: int) -> list[BookingRead]:
        stmt: Select[tuple[BookingRequest]] = self.booking_repository.query()
        parsed = parse_optional_status(BookingStatus, status)
        if parsed is not None:
            stmt = stmt.where(BookingRequest.status == parsed)
        rows = self.booking_repository.list_recent(session, stmt, limit=limit)
        return [BookingRead.model_validate(row) for row in rows]

    def update_booking(
        self,
        session: Session,
        ctx: AuthContext,
        booking_id: uuid.UUID,
        payload: BookingUpdate,
    ) -> BookingRead:
        changes = payload.model_dump(mode="python", exclude_unset=True)
        require_changes(changes)

        with unit_of_work(session):
            booking = self.booking_repository.get(session, booking_id)
            if "client_id" in changes:
                self.client_repository.get_optional(session, changes["client_id"])
            fields = apply_changes(booking, changes, non_nullable=("status",))
            self.activity.record(
                session,
                ctx,
                action="Updated booking request",
                entity_type="booking_request",
                entity_id=booking.id,
                description=f"Updated {', '.join(fields)} on booking request from {booking.name}.",
                client_id=booking.client_id,
            )
        session.refresh(booking)
        return BookingRead.model_validate(booking)

    def delete_booking(self, session: Session, ctx: AuthContext, booking_id: uuid.UUID) -> None:
        with unit_of_work(session):
            booking = self.booking_repository.get(session, booking_id)
            self.activity.record(
                session,
                ctx,
                action="Deleted booking request",
                entity_type="booking_request",
                entity_id=booking.id,
                description=f"Deleted booking request from {booking.name}.",
                severity=ActivitySeverity.WARNING,
                client_id=booking.client_id,
            )
            session.delete(booking)


@dataclass(slots=True)
class ContactService:
    contact_repository: ContactRepository = ContactRepository()
    client_repository: ClientRepository = ClientRepository()
    activity: ActivityRecorder = ActivityRecorder()

    def create_contact(self, session: Session, ctx: AuthContext, payload: ContactCreate) -> ContactRead:
        data = payload.model_dump(mode="python")
        if data["email"] is not None:
            data["email"] = str(data["email"])

        with unit_of_work(session):
            client = self.client_repository.get(session, data["client_id"])
            if data["is_primary"]:
                self._clear_primary(session, client.id)

            contact = ContactPerson(**data)
            session.add(contact)
            session.flush()
            self.activity.record(
                session,
                ctx,
                action="Created contact",
                entity_type="contact",
                entity_id=contact.id,
                description=f"Added {contact.full_name} as a contact for {client.company_name}.",
                client_id=client.id,
            )
        session.refresh(contact)
        return ContactRead.model_validate(contact)

    def update_contact(
        self,
        session: Session,
        ctx: AuthContext,
        contact_id: uuid.UUID,
        payload: ContactUpdate,
    ) -> ContactRead:
        changes = payload.model_dump(mode="python", exclude_unset=True)
        require_changes(changes)
        if changes.get("email") is not None:
            changes["email"] = str(changes["email"])

        with unit_of_work(session):
            contact = self.contact_repository.get(session, contact_id)
            target_client_id = changes.get("client_id") or contact.client_id
            if target_client_id != contact.client_id:
                self.client_repository.get(session, target_client_id)

            if changes.get("is_primary", contact.is_primary):
                self._clear_primary(session, target_client_id, keep_contact_id=contact.id)

            fields = apply_changes(
                contact,
                changes,
                non_nullable=("client_id", "full_name", "status", "is_primary", "is_billing"),
            )
            self.activity.record(
                session,
                ctx,
                action="Updated contact",
                entity_type="contact",
                entity_id=contact.id,
                description=f"Updated {', '.join(fields)} on contact {contact.full_name}.",
                client_id=target_client_id,
            )
        session.refresh(contact)
        return ContactRead.model_validate(contact)

    def list_contacts(
        self,
        session: Session,
        ctx: AuthContext,
        *,
        client_id: uuid.UUID | None,
        status: str | None,
        limit: int,
    ) -> list[ContactRead]:
        stmt: Select[tuple[ContactPerson]] = self.contact_repository.query()
        if client_id is not None:
            stmt = stmt.where(ContactPerson.client_id == client_id)
        parsed = parse_optional_status(ContactStatus, status)
        if parsed is not None:
            stmt = stmt.where(ContactPerson.status == parsed)
        rows = self.contact_repository.list_recent(session, stmt, limit=limit)
        return [ContactRead.model_validate(row) for row in rows]

    def delete_contact(self, session: Session, ctx: AuthContext, contact_id: uuid.UUID) -> None:
        with unit_of_work(session):
            contact = self.contact_repository.get(session, contact_id)
            self.activity.record(
                session,
                ctx,
                action="Deleted contact",
                entity_type="contact",
                entity_id=contact.id,
                description=f"Deleted contact {contact.full_name}.",
                severity=ActivitySeverity.WARNING,
                client_id=contact.client_id,
            )
            session.delete(contact)

    @staticmethod
    def _clear_primary(session: Session, client_id: uuid.UUID, *, keep_contact_id: uuid.UUID | None = None) -> None:
        criteria = [ContactPerson.client_id == client_id, ContactPerson.is_primary.is_(True)]
        if keep_contact_id is not None:
            criteria.append(ContactPerson.id != keep_contact_id)
        session.execute(
            update(ContactPerson)
            .where(and_(*criteria))
            .values(is_primary=False, updated_at=utcnow())
        )


lead_service = LeadService()
booking_service = BookingService()
contact_service = ContactService()
