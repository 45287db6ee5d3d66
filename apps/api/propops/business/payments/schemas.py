from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from propops.business.billing.schemas import InvoiceRead
from propops.statuses import PaymentStatus


class PaymentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    amount_cents: int = Field(ge=1, le=500_000_000)
    processor: str = Field(min_length=2, max_length=60)
    external_reference: str | None = Field(default=None, max_length=120)
    paid_at: datetime | None = None
    notes: str | None = Field(default=None, max_length=1000)


class PaymentRecordRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    invoice_id: UUID
    amount_cents: int
    processor: str
    external_reference: str | None
    status: PaymentStatus
    paid_at: datetime
    notes: str | None
    created_at: datetime


class PaymentSettlementRead(BaseModel):
    message: str
    settled: bool
    settled_amount_cents: int
    invoice: InvoiceRead
    payment: PaymentRecordRead | None = None
