from propops.business.payments.api import invoice_payments_router, router
from propops.business.payments.models import PaymentRecord
from propops.business.payments.schemas import PaymentCreate, PaymentRecordRead, PaymentSettlementRead
from propops.business.payments.service import PaymentService, payment_service

__all__ = [
    "router",
    "invoice_payments_router",
    "PaymentRecord",
    "PaymentCreate",
    "PaymentRecordRead",
    "PaymentSettlementRead",
    "PaymentService",
    "payment_service",
]
