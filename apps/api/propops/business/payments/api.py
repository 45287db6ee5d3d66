from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from propops.api.params import list_limit
from propops.business.payments.schemas import PaymentCreate, PaymentRecordRead, PaymentSettlementRead
from propops.business.payments.service import payment_service
from propops.core.database import get_db
from propops.platform.security import AuthContext, require_staff


invoice_payments_router = APIRouter(prefix="/api/invoices", tags=["payments"])
router = APIRouter(prefix="/api/payments", tags=["payments"])


@invoice_payments_router.post("/{invoice_id}/payment", response_model=PaymentSettlementRead)
def apply_payment(
    invoice_id: uuid.UUID,
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> PaymentSettlementRead:
    return payment_service.settle_payment(db, ctx, invoice_id, payload)


@invoice_payments_router.post("/{invoice_id}/quick-settle", response_model=PaymentSettlementRead)
def quick_settle(
    invoice_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> PaymentSettlementRead:
    return payment_service.quick_settle(db, ctx, invoice_id)


@invoice_payments_router.get("/{invoice_id}/payments", response_model=list[PaymentRecordRead])
def list_invoice_payments(
    invoice_id: uuid.UUID,
    limit: int = Depends(list_limit),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> list[PaymentRecordRead]:
    return payment_service.list_invoice_payments(db, ctx, invoice_id, limit=limit)


@router.get("", response_model=list[PaymentRecordRead])
def list_payments(
    limit: int = Depends(list_limit),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> list[PaymentRecordRead]:
    return payment_service.list_payments(db, ctx, limit=limit)
