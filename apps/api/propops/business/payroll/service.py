from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy.orm import Session

from propops.activity.recorder import ActivityRecorder
from propops.business.payroll.models import PayrollEntry, PayrollRun
from propops.business.payroll.repository import PayrollEntryRepository, PayrollRunRepository
from propops.business.payroll.schemas import (
    GROSS_INPUT_FIELDS,
    PayrollEntryCreate,
    PayrollEntryRead,
    PayrollEntryUpdate,
    PayrollRunCreate,
    PayrollRunRead,
    PayrollRunUpdate,
    derive_gross_cents,
)
from propops.core.database import unit_of_work
from propops.core.errors import ValidationFailedError
from propops.crm.repositories import EmployeeRepository
from propops.platform.clock import as_utc
from propops.platform.patching import apply_changes, require_changes
from propops.platform.security.context import AuthContext
from propops.statuses import ActivitySeverity, PayrollStatus, parse_optional_status


@dataclass(slots=True)
class PayrollService:
    run_repository: PayrollRunRepository = PayrollRunRepository()
    entry_repository: PayrollEntryRepository = PayrollEntryRepository()
    employee_repository: EmployeeRepository = EmployeeRepository()
    activity: ActivityRecorder = ActivityRecorder()

    def create_run(self, session: Session, ctx: AuthContext, payload: PayrollRunCreate) -> PayrollRunRead:
        with unit_of_work(session):
            run = PayrollRun(**payload.model_dump(mode="python"), total_gross_cents=0)
            session.add(run)
            session.flush()
            self.activity.record(
                session,
                ctx,
                action="Created payroll run",
                entity_type="payroll_run",
                entity_id=run.id,
                description=f"Opened payroll run {run.period_start:%Y-%m-%d} to {run.period_end:%Y-%m-%d}.",
            )
        session.refresh(run)
        return PayrollRunRead.model_validate(run)

    def list_runs(self, session: Session, ctx: AuthContext, *, status: str | None, limit: int) -> list[PayrollRunRead]:
        stmt = self.run_repository.query()
        parsed = parse_optional_status(PayrollStatus, status)
        if parsed is not None:
            stmt = stmt.where(PayrollRun.status == parsed)
        rows = session.scalars(stmt.order_by(PayrollRun.period_end.desc()).limit(limit)).all()
        return [PayrollRunRead.model_validate(row) for row in rows]

    def get_run(self, session: Session, ctx: AuthContext, run_id: uuid.UUID) -> PayrollRunRead:
        return PayrollRunRead.model_validate(self.run_repository.get(session, run_id))

    def update_run(
        self,
        session: Session,
        ctx: AuthContext,
        run_id: uuid.UUID,
        payload: PayrollRunUpdate,
    ) -> PayrollRunRead:
        changes = payload.model_dump(mode="python", exclude_unset=True)
        require_changes(changes)

        with unit_of_work(session):
            run = self.run_repository.get(session, run_id, for_update=True)
            fields = apply_changes(run, changes, non_nullable=("period_start", "period_end", "status"))
            if as_utc(run.period_end) <= as_utc(run.period_start):
                raise ValidationFailedError("period_end must be after period_start", details={"field": "period_end"})
            self.activity.record(
                session,
                ctx,
                action="Updated payroll run",
                entity_type="payroll_run",
                entity_id=run.id,
                description=f"Updated {', '.join(fields)} on payroll run.",
            )
        session.refresh(run)
        return PayrollRunRead.model_validate(run)

    def delete_run(self, session: Session, ctx: AuthContext, run_id: uuid.UUID) -> None:
        with unit_of_work(session):
            run = self.run_repository.get(session, run_id)
            self.activity.record(
                session,
                ctx,
                action="Deleted payroll run",
                entity_type="payroll_run",
                entity_id=run.id,
                description=f"Deleted payroll run with {len(run.entries)} entries.",
                severity=ActivitySeverity.WARNING,
            )
            session.delete(run)

    def create_entry(self, session: Session, ctx: AuthContext, payload: PayrollEntryCreate) -> PayrollEntryRead:
        data = payload.model_dump(mode="python")
        data["gross_cents"] = payload.resolved_gross_cents()

        with unit_of_work(session):
            run = self.run_repository.get(session, data["payroll_run_id"])
            self.employee_repository.get(session, data["employee_id"])
            entry = PayrollEntry(**data)
            session.add(entry)
            session.flush()
            self.run_repository.apply_gross_delta(session, run.id, entry.gross_cents)
            self.activity.record(
                session,
                ctx,
                action="Added payroll entry",
                entity_type="payroll_entry",
                entity_id=entry.id,
                description=f"Added {entry.gross_cents} cents gross to payroll run.",
            )
        session.refresh(entry)
        return PayrollEntryRead.model_validate(entry)

    def list_entries(
        self,
        session: Session,
        ctx: AuthContext,
        *,
        payroll_run_id: uuid.UUID | None,
        employee_id: uuid.UUID | None,
        limit: int,
    ) -> list[PayrollEntryRead]:
        stmt = self.entry_repository.query()
        if payroll_run_id is not None:
            stmt = stmt.where(PayrollEntry.payroll_run_id == payroll_run_id)
        if employee_id is not None:
            stmt = stmt.where(PayrollEntry.employee_id == employee_id)
        rows = self.entry_repository.list_recent(session, stmt, limit=limit)
        return [PayrollEntryRead.model_validate(row) for row in rows]

    def update_entry(
        self,
        session: Session,
        ctx: AuthContext,
        entry_id: uuid.UUID,
        payload: PayrollEntryUpdate,
    ) -> PayrollEntryRead:
        changes = payload.model_dump(mode="python", exclude_unset=True)
        require_changes(changes)

        with unit_of_work(session):
            entry = self.entry_repository.get(session, entry_id, for_update=True)
            previous_run_id = entry.payroll_run_id
            previous_gross = entry.gross_cents
            if changes.get("payroll_run_id") is not None:
                self.run_repository.get(session, changes["payroll_run_id"])
            if changes.get("employee_id") is not None:
                self.employee_repository.get(session, changes["employee_id"])

            fields = apply_changes(
                entry,
                changes,
                non_nullable=(
                    "payroll_run_id",
                    "employee_id",
                    "hours_worked",
                    "base_rate_cents",
                    "bonus_cents",
                    "gross_cents",
                ),
            )
            if "gross_cents" not in changes and GROSS_INPUT_FIELDS & changes.keys():
                entry.gross_cents = derive_gross_cents(entry.hours_worked, entry.base_rate_cents, entry.bonus_cents)
            session.flush()
            if entry.payroll_run_id != previous_run_id:
                self.run_repository.apply_gross_delta(session, previous_run_id, -previous_gross)
                self.run_repository.apply_gross_delta(session, entry.payroll_run_id, entry.gross_cents)
            else:
                self.run_repository.apply_gross_delta(session, entry.payroll_run_id, entry.gross_cents - previous_gross)
            self.activity.record(
                session,
                ctx,
                action="Updated payroll entry",
                entity_type="payroll_entry",
                entity_id=entry.id,
                description=f"Updated {', '.join(fields)} on payroll entry.",
            )
        session.refresh(entry)
        return PayrollEntryRead.model_validate(entry)

    def delete_entry(self, session: Session, ctx: AuthContext, entry_id: uuid.UUID) -> None:
        with unit_of_work(session):
            entry = self.entry_repository.get(session, entry_id, for_update=True)
            run_id = entry.payroll_run_id
            gross = entry.gross_cents
            session.delete(entry)
            session.flush()
            self.run_repository.apply_gross_delta(session, run_id, -gross)
            self.activity.record(
                session,
                ctx,
                action="Deleted payroll entry",
                entity_type="payroll_entry",
                entity_id=entry_id,
                description=f"Removed {gross} cents gross from payroll run.",
                severity=ActivitySeverity.WARNING,
            )


payroll_service = PayrollService()
