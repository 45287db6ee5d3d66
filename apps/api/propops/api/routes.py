from fastapi import APIRouter, HTTPException, status
from fastapi.responses import Response

from propops.activity.api import router as activity_router
from propops.business.billing.api import router as invoices_router
from propops.business.estimates.api import router as estimates_router
from propops.business.payments.api import invoice_payments_router, router as payments_router
from propops.business.payroll.api import entries_router as payroll_entries_router, runs_router as payroll_runs_router
from propops.business.reporting.api import dashboard_router, router as reports_router
from propops.business.work_orders.api import router as work_orders_router, schedule_router
from propops.core.config import get_settings
from propops.crm.api import bookings_router, contacts_router, leads_router
from propops.metrics import generate_metrics_payload, metrics_content_type

router = APIRouter()
router.include_router(leads_router)
router.include_router(bookings_router)
router.include_router(contacts_router)
router.include_router(estimates_router)
router.include_router(work_orders_router)
router.include_router(schedule_router)
router.include_router(invoices_router)
router.include_router(invoice_payments_router)
router.include_router(payments_router)
router.include_router(payroll_runs_router)
router.include_router(payroll_entries_router)
router.include_router(dashboard_router)
router.include_router(reports_router)
router.include_router(activity_router)


@router.get("/health", tags=["system"])
def health() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.app_env,
    }


@router.get("/metrics", tags=["system"])
def metrics() -> Response:
    settings = get_settings()
    if not settings.metrics_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")
    return Response(content=generate_metrics_payload(), media_type=metrics_content_type())
