from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from propops.platform.clock import as_utc
from propops.statuses import PayrollStatus


GROSS_INPUT_FIELDS = frozenset({"hours_worked", "base_rate_cents", "bonus_cents"})


def derive_gross_cents(hours_worked: float, base_rate_cents: int, bonus_cents: int) -> int:
    return round(hours_worked * base_rate_cents) + bonus_cents


class PayrollRunCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    period_start: datetime
    period_end: datetime
    status: PayrollStatus = PayrollStatus.DRAFT
    processed_at: datetime | None = None
    notes: str | None = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def _check_period(self) -> PayrollRunCreate:
        if as_utc(self.period_end) <= as_utc(self.period_start):
            raise ValueError("period_end must be after period_start")
        return self


class PayrollRunUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    period_start: datetime | None = None
    period_end: datetime | None = None
    status: PayrollStatus | None = None
    processed_at: datetime | None = None
    notes: str | None = Field(default=None, max_length=2000)


class PayrollRunRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    period_start: datetime
    period_end: datetime
    status: PayrollStatus
    total_gross_cents: int
    processed_at: datetime | None
    notes: str | None
    created_at: datetime
    updated_at: datetime


class PayrollEntryCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    payroll_run_id: UUID
    employee_id: UUID
    hours_worked: float = Field(default=0, ge=0, le=744)
    base_rate_cents: int = Field(default=0, ge=0, le=1_000_000)
    bonus_cents: int = Field(default=0, ge=0, le=10_000_000)
    gross_cents: int | None = Field(default=None, ge=0, le=100_000_000)
    notes: str | None = Field(default=None, max_length=1000)

    def resolved_gross_cents(self) -> int:
        if self.gross_cents is not None:
            return self.gross_cents
        return derive_gross_cents(self.hours_worked, self.base_rate_cents, self.bonus_cents)


class PayrollEntryUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    payroll_run_id: UUID | None = None
    employee_id: UUID | None = None
    hours_worked: float | None = Field(default=None, ge=0, le=744)
    base_rate_cents: int | None = Field(default=None, ge=0, le=1_000_000)
    bonus_cents: int | None = Field(default=None, ge=0, le=10_000_000)
    gross_cents: int | None = Field(default=None, ge=0, le=100_000_000)
    notes: str | None = Field(default=None, max_length=1000)


class PayrollEntryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    payroll_run_id: UUID
    employee_id: UUID
    hours_worked: float
    base_rate_cents: int
    bonus_cents: int
    gross_cents: int
    notes: str | None
    created_at: datetime
    updated_at: datetime
