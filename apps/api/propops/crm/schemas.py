from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from propops.statuses import BookingStatus, ContactStatus, LeadStatus


class _Input(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


class LeadCreate(_Input):
    name: str = Field(min_length=2, max_length=120)
    email: EmailStr
    phone: str | None = Field(default=None, min_length=7, max_length=25)
    company: str | None = Field(default=None, max_length=120)
    service_needed: str | None = Field(default=None, max_length=120)
    message: str = Field(min_length=10, max_length=3000)
    source: str = Field(default="website", max_length=60)
    status: LeadStatus = LeadStatus.NEW


class LeadUpdate(_Input):
    name: str | None = Field(default=None, min_length=2, max_length=120)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, min_length=7, max_length=25)
    company: str | None = Field(default=None, max_length=120)
    service_needed: str | None = Field(default=None, max_length=120)
    message: str | None = Field(default=None, min_length=10, max_length=3000)
    source: str | None = Field(default=None, max_length=60)
    status: LeadStatus | None = None


class LeadRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    phone: str | None
    company: str | None
    service_needed: str | None
    message: str
    source: str
    status: LeadStatus
    created_at: datetime
    updated_at: datetime


class BookingCreate(_Input):
    name: str = Field(min_length=2, max_length=120)
    email: EmailStr
    phone: str | None = Field(default=None, min_length=7, max_length=25)
    company: str | None = Field(default=None, max_length=120)
    address: str | None = Field(default=None, max_length=240)
    service_type: str = Field(min_length=2, max_length=120)
    frequency: str | None = Field(default=None, max_length=60)
    preferred_date: datetime | None = None
    source: str = Field(default="website-booking", max_length=60)
    status: BookingStatus = BookingStatus.NEW
    notes: str | None = Field(default=None, max_length=2000)
    converted_lead_id: UUID | None = None
    client_id: UUID | None = None


class BookingUpdate(_Input):
    status: BookingStatus | None = None
    notes: str | None = Field(default=None, max_length=2000)
    preferred_date: datetime | None = None
    client_id: UUID | None = None


class BookingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    phone: str | None
    company: str | None
    address: str | None
    service_type: str
    frequency: str | None
    preferred_date: datetime | None
    source: str
    status: BookingStatus
    notes: str | None
    converted_lead_id: UUID | None
    client_id: UUID | None
    created_at: datetime


class BookingIntakeRead(BaseModel):
    booking: BookingRead
    linked_lead_id: UUID | None
    lead_auto_created: bool


class ContactCreate(_Input):
    client_id: UUID
    full_name: str = Field(min_length=2, max_length=120)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, min_length=7, max_length=25)
    title: str | None = Field(default=None, max_length=120)
    status: ContactStatus = ContactStatus.ACTIVE
    is_primary: bool = False
    is_billing: bool = False
    notes: str | None = Field(default=None, max_length=1000)


class ContactUpdate(_Input):
    client_id: UUID | None = None
    full_name: str | None = Field(default=None, min_length=2, max_length=120)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, min_length=7, max_length=25)
    title: str | None = Field(default=None, max_length=120)
    status: ContactStatus | None = None
    is_primary: bool | None = None
    is_billing: bool | None = None
    notes: str | None = Field(default=None, max_length=1000)


class ContactRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    client_id: UUID
    full_name: str
    email: str | None
    phone: str | None
    title: str | None
    status: ContactStatus
    is_primary: bool
    is_billing: bool
    notes: str | None
    created_at: datetime
    updated_at: datetime
