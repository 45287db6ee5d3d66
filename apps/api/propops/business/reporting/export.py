from __future__ import annotations

import csv
import io
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from propops.business.billing.models import Invoice
from propops.business.payments.models import PaymentRecord
from propops.business.reporting.models import ExportJob
from propops.business.work_orders.models import WorkOrder
from propops.core.config import get_settings
from propops.core.database import unit_of_work
from propops.core.errors import ValidationFailedError
from propops.crm.models import BookingRequest, Lead, utcnow
from propops.metrics import observe_csv_export
from propops.platform.clock import as_utc
from propops.platform.security.context import AuthContext


logger = logging.getLogger("propops.reports")

DEFAULT_RESOURCE = "invoices"


def _iso(value: datetime | None) -> str:
    return as_utc(value).isoformat() if value is not None else ""


def _invoice_rows(session: Session, limit: int) -> list[dict[str, Any]]:
    invoices = session.scalars(
        select(Invoice).options(selectinload(Invoice.client)).order_by(Invoice.created_at.desc()).limit(limit)
    ).all()
    return [
        {
            "invoice_number": item.invoice_number,
            "client": item.client.company_name,
            "amount_cents": item.amount_cents,
            "status": item.status,
            "issued_at": _iso(item.issued_at),
            "due_date": _iso(item.due_date),
            "paid_at": _iso(item.paid_at),
        }
        for item in invoices
    ]


def _lead_rows(session: Session, limit: int) -> list[dict[str, Any]]:
    leads = session.scalars(select(Lead).order_by(Lead.created_at.desc()).limit(limit)).all()
    return [
        {
            "name": item.name,
            "email": item.email,
            "company": item.company or "",
            "service_needed": item.service_needed or "",
            "source": item.source,
            "status": item.status,
            "created_at": _iso(item.created_at),
        }
        for item in leads
    ]


def _work_order_rows(session: Session, limit: int) -> list[dict[str, Any]]:
    work_orders = session.scalars(
        select(WorkOrder)
        .options(selectinload(WorkOrder.client), selectinload(WorkOrder.property))
        .order_by(WorkOrder.created_at.desc())
        .limit(limit)
    ).all()
    return [
        {
            "code": item.code,
            "title": item.title,
            "status": item.status,
            "priority": item.priority,
            "client": item.client.company_name if item.client else "",
            "property": item.property.name if item.property else "",
            "created_at": _iso(item.created_at),
        }
        for item in work_orders
    ]


def _booking_rows(session: Session, limit: int) -> list[dict[str, Any]]:
    bookings = session.scalars(select(BookingRequest).order_by(BookingRequest.created_at.desc()).limit(limit)).all()
    return [
        {
            "name": item.name,
            "email": item.email,
            "service_type": item.service_type,
            "status": item.status,
            "source": item.source,
            "preferred_date": _iso(item.preferred_date),
            "created_at": _iso(item.created_at),
        }
        for item in bookings
    ]


def _payment_rows(session: Session, limit: int) -> list[dict[str, Any]]:
    payments = session.scalars(
        select(PaymentRecord)
        .options(selectinload(PaymentRecord.invoice))
        .order_by(PaymentRecord.created_at.desc())
        .limit(limit)
    ).all()
    return [
        {
            "invoice_number": item.invoice.invoice_number,
            "amount_cents": item.amount_cents,
            "processor": item.processor,
            "status": item.status,
            "paid_at": _iso(item.paid_at),
            "created_at": _iso(item.created_at),
        }
        for item in payments
    ]


@dataclass(frozen=True, slots=True)
class ExportResource:
    fieldnames: tuple[str, ...]
    load_rows: Callable[[Session, int], list[dict[str, Any]]]


EXPORT_RESOURCES: dict[str, ExportResource] = {
    "invoices": ExportResource(
        ("invoice_number", "client", "amount_cents", "status", "issued_at", "due_date", "paid_at"),
        _invoice_rows,
    ),
    "leads": ExportResource(
        ("name", "email", "company", "service_needed", "source", "status", "created_at"),
        _lead_rows,
    ),
    "work-orders": ExportResource(
        ("code", "title", "status", "priority", "client", "property", "created_at"),
        _work_order_rows,
    ),
    "bookings": ExportResource(
        ("name", "email", "service_type", "status", "source", "preferred_date", "created_at"),
        _booking_rows,
    ),
    "payments": ExportResource(
        ("invoice_number", "amount_cents", "processor", "status", "paid_at", "created_at"),
        _payment_rows,
    ),
}


@dataclass(frozen=True, slots=True)
class CsvExport:
    resource: str
    filename: str
    content: str
    row_count: int


def render_csv(fieldnames: tuple[str, ...], rows: list[dict[str, Any]]) -> str:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=list(fieldnames))
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return output.getvalue()


class CsvExportService:
    def export(self, session: Session, ctx: AuthContext, resource: str | None) -> CsvExport:
        """Render up to ``export_row_limit`` rows of ``resource`` newest first and log an ExportJob."""
        key = (resource or DEFAULT_RESOURCE).strip().lower()
        target = EXPORT_RESOURCES.get(key)
        if target is None:
            raise ValidationFailedError(
                "Unsupported resource. Use invoices, leads, work-orders, bookings, or payments.",
                details={"field": "resource", "allowed": sorted(EXPORT_RESOURCES)},
            )

        rows = target.load_rows(session, get_settings().export_row_limit)
        content = render_csv(target.fieldnames, rows)

        with unit_of_work(session):
            session.add(
                ExportJob(
                    resource=key,
                    format="csv",
                    status="COMPLETED",
                    requested_by=ctx.actor_label,
                    row_count=len(rows),
                    notes=f"Exported {len(rows)} rows.",
                    completed_at=utcnow(),
                )
            )

        observe_csv_export(key)
        logger.info("report.exported", extra={"resource": key, "row_count": len(rows), "actor": ctx.actor_label})
        return CsvExport(resource=key, filename=f"{key}-export.csv", content=content, row_count=len(rows))

    def list_jobs(self, session: Session, ctx: AuthContext, *, limit: int) -> list[ExportJob]:
        return list(session.scalars(select(ExportJob).order_by(ExportJob.created_at.desc()).limit(limit)).all())


csv_export_service = CsvExportService()
