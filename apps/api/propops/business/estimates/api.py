from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from propops.api.params import list_limit
from propops.business.estimates.schemas import (
    EstimateConversionRead,
    EstimateCreate,
    EstimateRead,
    EstimateUpdate,
)
from propops.business.estimates.service import estimate_service
from propops.core.database import get_db
from propops.platform.security import AuthContext, require_admin, require_staff


router = APIRouter(prefix="/api/estimates", tags=["estimates"])


@router.post("", response_model=EstimateRead, status_code=status.HTTP_201_CREATED)
def create_estimate(
    payload: EstimateCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> EstimateRead:
    return estimate_service.create_estimate(db, ctx, payload)


@router.get("", response_model=list[EstimateRead])
def list_estimates(
    status_filter: str | None = Query(default=None, alias="status"),
    client_id: uuid.UUID | None = Query(default=None),
    limit: int = Depends(list_limit),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> list[EstimateRead]:
    return estimate_service.list_estimates(db, ctx, status=status_filter, client_id=client_id, limit=limit)


@router.get("/{estimate_id}", response_model=EstimateRead)
def get_estimate(
    estimate_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> EstimateRead:
    return estimate_service.get_estimate(db, ctx, estimate_id)


@router.patch("/{estimate_id}", response_model=EstimateRead)
def update_estimate(
    estimate_id: uuid.UUID,
    payload: EstimateUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> EstimateRead:
    return estimate_service.update_estimate(db, ctx, estimate_id, payload)


@router.delete("/{estimate_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_estimate(
    estimate_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
) -> Response:
    estimate_service.delete_estimate(db, ctx, estimate_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{estimate_id}/convert", response_model=EstimateConversionRead)
def convert_estimate(
    estimate_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> EstimateConversionRead:
    return estimate_service.convert_estimate(db, ctx, estimate_id)
