from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from propops.api.params import list_limit
from propops.business.payroll.schemas import (
    PayrollEntryCreate,
    PayrollEntryRead,
    PayrollEntryUpdate,
    PayrollRunCreate,
    PayrollRunRead,
    PayrollRunUpdate,
)
from propops.business.payroll.service import payroll_service
from propops.core.database import get_db
from propops.platform.security import AuthContext, require_admin, require_staff


runs_router = APIRouter(prefix="/api/payroll-runs", tags=["payroll"])
entries_router = APIRouter(prefix="/api/payroll-entries", tags=["payroll"])


@runs_router.post("", response_model=PayrollRunRead, status_code=status.HTTP_201_CREATED)
def create_payroll_run(
    payload: PayrollRunCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> PayrollRunRead:
    return payroll_service.create_run(db, ctx, payload)


@runs_router.get("", response_model=list[PayrollRunRead])
def list_payroll_runs(
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = Depends(list_limit),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> list[PayrollRunRead]:
    return payroll_service.list_runs(db, ctx, status=status_filter, limit=limit)


@runs_router.get("/{run_id}", response_model=PayrollRunRead)
def get_payroll_run(
    run_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> PayrollRunRead:
    return payroll_service.get_run(db, ctx, run_id)


@runs_router.patch("/{run_id}", response_model=PayrollRunRead)
def update_payroll_run(
    run_id: uuid.UUID,
    payload: PayrollRunUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> PayrollRunRead:
    return payroll_service.update_run(db, ctx, run_id, payload)


@runs_router.delete("/{run_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payroll_run(
    run_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
) -> Response:
    payroll_service.delete_run(db, ctx, run_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@entries_router.post("", response_model=PayrollEntryRead, status_code=status.HTTP_201_CREATED)
def create_payroll_entry(
    payload: PayrollEntryCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> PayrollEntryRead:
    return payroll_service.create_entry(db, ctx, payload)


@entries_router.get("", response_model=list[PayrollEntryRead])
def list_payroll_entries(
    payroll_run_id: uuid.UUID | None = Query(default=None),
    employee_id: uuid.UUID | None = Query(default=None),
    limit: int = Depends(list_limit),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> list[PayrollEntryRead]:
    return payroll_service.list_entries(db, ctx, payroll_run_id=payroll_run_id, employee_id=employee_id, limit=limit)


@entries_router.patch("/{entry_id}", response_model=PayrollEntryRead)
def update_payroll_entry(
    entry_id: uuid.UUID,
    payload: PayrollEntryUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> PayrollEntryRead:
    return payroll_service.update_entry(db, ctx, entry_id, payload)


@entries_router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payroll_entry(
    entry_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
) -> Response:
    payroll_service.delete_entry(db, ctx, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
