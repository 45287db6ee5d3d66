from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from propops.api.params import list_limit
from propops.core.database import get_db
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
from propops.crm.service import booking_service, contact_service, lead_service
from propops.platform.security import AuthContext, get_auth_context, require_admin, require_staff


leads_router = APIRouter(prefix="/api/leads", tags=["leads"])
bookings_router = APIRouter(prefix="/api/bookings", tags=["bookings"])
contacts_router = APIRouter(prefix="/api/contacts", tags=["contacts"])


@leads_router.post("", response_model=LeadRead, status_code=status.HTTP_201_CREATED)
def create_lead(
    payload: LeadCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
) -> LeadRead:
    return lead_service.create_lead(db, ctx, payload)


@leads_router.get("", response_model=list[LeadRead])
def list_leads(
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = Depends(list_limit),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> list[LeadRead]:
    return lead_service.list_leads(db, ctx, status=status_filter, limit=limit)


@leads_router.get("/{lead_id}", response_model=LeadRead)
def get_lead(
    lead_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> LeadRead:
    return lead_service.get_lead(db, ctx, lead_id)


@leads_router.patch("/{lead_id}", response_model=LeadRead)
def update_lead(
    lead_id: uuid.UUID,
    payload: LeadUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> LeadRead:
    return lead_service.update_lead(db, ctx, lead_id, payload)


@leads_router.delete("/{lead_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_lead(
    lead_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
) -> Response:
    lead_service.delete_lead(db, ctx, lead_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@bookings_router.post("", response_model=BookingIntakeRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
) -> BookingIntakeRead:
    return booking_service.create_booking(db, ctx, payload)


@bookings_router.get("", response_model=list[BookingRead])
def list_bookings(
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = Depends(list_limit),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> list[BookingRead]:
    return booking_service.list_bookings(db, ctx, status=status_filter, limit=limit)


@bookings_router.patch("/{booking_id}", response_model=BookingRead)
def update_booking(
    booking_id: uuid.UUID,
    payload: BookingUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> BookingRead:
    return booking_service.update_booking(db, ctx, booking_id, payload)


@bookings_router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_booking(
    booking_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
) -> Response:
    booking_service.delete_booking(db, ctx, booking_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@contacts_router.post("", response_model=ContactRead, status_code=status.HTTP_201_CREATED)
def create_contact(
    payload: ContactCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> ContactRead:
    return contact_service.create_contact(db, ctx, payload)


@contacts_router.get("", response_model=list[ContactRead])
def list_contacts(
    client_id: uuid.UUID | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = Depends(list_limit),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> list[ContactRead]:
    return contact_service.list_contacts(db, ctx, client_id=client_id, status=status_filter, limit=limit)


@contacts_router.patch("/{contact_id}", response_model=ContactRead)
def update_contact(
    contact_id: uuid.UUID,
    payload: ContactUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> ContactRead:
    return contact_service.update_contact(db, ctx, contact_id, payload)


@contacts_router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contact(
    contact_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
) -> Response:
    contact_service.delete_contact(db, ctx, contact_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
