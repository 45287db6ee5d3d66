from propops.business.billing.api import router
from propops.business.billing.models import Invoice
from propops.business.billing.schemas import InvoiceCreate, InvoiceRead, InvoiceUpdate
from propops.business.billing.service import InvoiceService, invoice_service

__all__ = [
    "router",
    "Invoice",
    "InvoiceCreate",
    "InvoiceRead",
    "InvoiceUpdate",
    "InvoiceService",
    "invoice_service",
]
