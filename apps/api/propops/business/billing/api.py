from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from propops.api.params import list_limit
from propops.business.billing.schemas import InvoiceCreate, InvoiceRead, InvoiceUpdate
from propops.business.billing.service import invoice_service
from propops.core.database import get_db
from propops.platform.security import AuthContext, require_admin, require_staff


router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.post("", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> InvoiceRead:
    return invoice_service.create_invoice(db, ctx, payload)


@router.get("", response_model=list[InvoiceRead])
def list_invoices(
    status_filter: str | None = Query(default=None, alias="status"),
    client_id: uuid.UUID | None = Query(default=None),
    limit: int = Depends(list_limit),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> list[InvoiceRead]:
    return invoice_service.list_invoices(db, ctx, status=status_filter, client_id=client_id, limit=limit)


@router.get("/{invoice_id}", response_model=InvoiceRead)
def get_invoice(
    invoice_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> InvoiceRead:
    return invoice_service.get_invoice(db, ctx, invoice_id)


@router.patch("/{invoice_id}", response_model=InvoiceRead)
def update_invoice(
    invoice_id: uuid.UUID,
    payload: InvoiceUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> InvoiceRead:
    return invoice_service.update_invoice(db, ctx, invoice_id, payload)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(
    invoice_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
) -> Response:
    invoice_service.delete_invoice(db, ctx, invoice_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
