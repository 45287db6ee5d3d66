from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from propops.statuses import InvoiceStatus


class InvoiceCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    invoice_number: str | None = Field(default=None, min_length=3, max_length=40)
    amount_cents: int = Field(ge=1, le=500_000_000)
    status: InvoiceStatus = InvoiceStatus.DRAFT
    issued_at: datetime | None = None
    due_date: datetime
    notes: str | None = Field(default=None, max_length=2000)
    client_id: UUID
    work_order_id: UUID | None = None


class InvoiceUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    invoice_number: str | None = Field(default=None, min_length=3, max_length=40)
    status: InvoiceStatus | None = None
    issued_at: datetime | None = None
    due_date: datetime | None = None
    notes: str | None = Field(default=None, max_length=2000)
    client_id: UUID | None = None
    work_order_id: UUID | None = None


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    invoice_number: str
    amount_cents: int
    status: InvoiceStatus
    issued_at: datetime
    due_date: datetime
    paid_at: datetime | None
    notes: str | None
    client_id: UUID
    work_order_id: UUID | None
    created_at: datetime
    updated_at: datetime
