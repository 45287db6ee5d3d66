from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propops.core.database import Base
from propops.crm.models import Employee, utcnow
from propops.statuses import PayrollStatus


class PayrollRun(Base):
    __tablename__ = "payroll_run"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    period_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=PayrollStatus.DRAFT,
        server_default=PayrollStatus.DRAFT.value,
    )
    # Maintained by entry writes as in-database increments.
    total_gross_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    entries: Mapped[list[PayrollEntry]] = relationship(
        back_populates="payroll_run",
        cascade="all, delete-orphan",
    )


class PayrollEntry(Base):
    __tablename__ = "payroll_entry"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    payroll_run_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("payroll_run.id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("crm_employee.id", ondelete="RESTRICT"),
        nullable=False,
    )
    hours_worked: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    base_rate_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bonus_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    gross_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    payroll_run: Mapped[PayrollRun] = relationship(back_populates="entries")
    employee: Mapped[Employee] = relationship(Employee)


Index("ix_payroll_run_period_end", PayrollRun.period_end)
Index("ix_payroll_entry_payroll_run_id", PayrollEntry.payroll_run_id)
Index("ix_payroll_entry_employee_id", PayrollEntry.employee_id)
