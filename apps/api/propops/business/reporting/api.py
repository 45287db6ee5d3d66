from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from propops.api.params import list_limit
from propops.business.reporting.export import csv_export_service
from propops.business.reporting.schemas import DashboardOverviewRead, ExportJobRead, ReportSummaryRead
from propops.business.reporting.service import reporting_service
from propops.core.database import get_db
from propops.platform.security import AuthContext, require_staff


dashboard_router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])
router = APIRouter(prefix="/api/reports", tags=["reports"])


@dashboard_router.get("/overview", response_model=DashboardOverviewRead)
def dashboard_overview(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> DashboardOverviewRead:
    return reporting_service.dashboard_overview(db, ctx)


@router.get("/summary", response_model=ReportSummaryRead)
def report_summary(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> ReportSummaryRead:
    return reporting_service.quarterly_summary(db, ctx)


@router.get("/export")
def export_report(
    resource: str | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> Response:
    export = csv_export_service.export(db, ctx, resource)
    return Response(
        content=export.content,
        media_type="text/csv; charset=utf-8",
        headers={"content-disposition": f'attachment; filename="{export.filename}"'},
    )


@router.get("/export-jobs", response_model=list[ExportJobRead])
def list_export_jobs(
    limit: int = Depends(list_limit),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> list[ExportJobRead]:
    return [ExportJobRead.model_validate(job) for job in csv_export_service.list_jobs(db, ctx, limit=limit)]
