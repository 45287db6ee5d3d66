from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from propops.platform.clock import as_utc
from propops.statuses import Priority, ScheduleStatus, WorkOrderStatus


class WorkOrderCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    title: str = Field(min_length=3, max_length=160)
    description: str = Field(min_length=10, max_length=4000)
    priority: Priority = Priority.MEDIUM
    status: WorkOrderStatus = WorkOrderStatus.BACKLOG
    estimated_hours: int | None = Field(default=None, ge=1, le=240)
    actual_hours: int | None = Field(default=None, ge=0, le=240)
    estimated_value_cents: int | None = Field(default=None, ge=0, le=500_000_000)
    location_label: str | None = Field(default=None, max_length=160)
    scheduled_for: datetime | None = None
    completed_at: datetime | None = None
    client_id: UUID | None = None
    property_id: UUID | None = None
    assigned_employee_id: UUID | None = None


class WorkOrderUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    title: str | None = Field(default=None, min_length=3, max_length=160)
    description: str | None = Field(default=None, min_length=10, max_length=4000)
    priority: Priority | None = None
    status: WorkOrderStatus | None = None
    estimated_hours: int | None = Field(default=None, ge=1, le=240)
    actual_hours: int | None = Field(default=None, ge=0, le=240)
    estimated_value_cents: int | None = Field(default=None, ge=0, le=500_000_000)
    location_label: str | None = Field(default=None, max_length=160)
    scheduled_for: datetime | None = None
    completed_at: datetime | None = None
    client_id: UUID | None = None
    property_id: UUID | None = None
    assigned_employee_id: UUID | None = None


class WorkOrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    title: str
    description: str
    priority: Priority
    status: WorkOrderStatus
    estimated_hours: int | None
    actual_hours: int | None
    estimated_value_cents: int | None
    location_label: str | None
    scheduled_for: datetime | None
    completed_at: datetime | None
    client_id: UUID | None
    property_id: UUID | None
    assigned_employee_id: UUID | None
    created_at: datetime
    updated_at: datetime


class ScheduleItemCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    title: str = Field(min_length=2, max_length=160)
    service_type: str = Field(min_length=2, max_length=120)
    start_at: datetime
    end_at: datetime
    status: ScheduleStatus = ScheduleStatus.SCHEDULED
    location: str = Field(min_length=2, max_length=200)
    notes: str | None = Field(default=None, max_length=2000)
    employee_id: UUID | None = None
    work_order_id: UUID | None = None
    client_id: UUID | None = None
    property_id: UUID | None = None

    @model_validator(mode="after")
    def _check_window(self) -> ScheduleItemCreate:
        if as_utc(self.end_at) <= as_utc(self.start_at):
            raise ValueError("end_at must be after start_at")
        return self


class ScheduleItemUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    title: str | None = Field(default=None, min_length=2, max_length=160)
    service_type: str | None = Field(default=None, min_length=2, max_length=120)
    start_at: datetime | None = None
    end_at: datetime | None = None
    status: ScheduleStatus | None = None
    location: str | None = Field(default=None, min_length=2, max_length=200)
    notes: str | None = Field(default=None, max_length=2000)
    employee_id: UUID | None = None
    work_order_id: UUID | None = None
    client_id: UUID | None = None
    property_id: UUID | None = None

class ScheduleItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    service_type: str
    start_at: datetime
    end_at: datetime
    status: ScheduleStatus
    location: str
    notes: str | None
    employee_id: UUID | None
    work_order_id: UUID | None
    client_id: UUID | None
    property_id: UUID | None
    created_at: datetime
