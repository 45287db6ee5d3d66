from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from propops.business.work_orders.schemas import WorkOrderRead
from propops.statuses import EstimateStatus


class EstimateCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    estimate_number: str | None = Field(default=None, min_length=3, max_length=40)
    title: str = Field(min_length=3, max_length=160)
    description: str = Field(min_length=10, max_length=4000)
    amount_cents: int = Field(ge=1, le=500_000_000)
    status: EstimateStatus = EstimateStatus.DRAFT
    valid_until: datetime | None = None
    prepared_by: str | None = Field(default=None, max_length=120)
    notes: str | None = Field(default=None, max_length=2000)
    client_id: UUID | None = None
    property_id: UUID | None = None
    lead_id: UUID | None = None


class EstimateUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    estimate_number: str | None = Field(default=None, min_length=3, max_length=40)
    title: str | None = Field(default=None, min_length=3, max_length=160)
    description: str | None = Field(default=None, min_length=10, max_length=4000)
    amount_cents: int | None = Field(default=None, ge=1, le=500_000_000)
    status: EstimateStatus | None = None
    valid_until: datetime | None = None
    prepared_by: str | None = Field(default=None, max_length=120)
    notes: str | None = Field(default=None, max_length=2000)
    client_id: UUID | None = None
    property_id: UUID | None = None
    lead_id: UUID | None = None


class EstimateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    estimate_number: str
    title: str
    description: str
    amount_cents: int
    status: EstimateStatus
    valid_until: datetime | None
    prepared_by: str | None
    notes: str | None
    client_id: UUID | None
    property_id: UUID | None
    lead_id: UUID | None
    converted_work_order_id: UUID | None
    created_at: datetime
    updated_at: datetime


class EstimateConversionRead(BaseModel):
    message: str
    already_converted: bool
    estimate: EstimateRead
    work_order: WorkOrderRead
