from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from propops.api.params import list_limit
from propops.business.work_orders.schemas import (
    ScheduleItemCreate,
    ScheduleItemRead,
    ScheduleItemUpdate,
    WorkOrderCreate,
    WorkOrderRead,
    WorkOrderUpdate,
)
from propops.business.work_orders.service import work_order_service
from propops.core.database import get_db
from propops.platform.security import AuthContext, require_admin, require_staff


router = APIRouter(prefix="/api/work-orders", tags=["work-orders"])
schedule_router = APIRouter(prefix="/api/schedule", tags=["schedule"])


@router.post("", response_model=WorkOrderRead, status_code=status.HTTP_201_CREATED)
def create_work_order(
    payload: WorkOrderCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> WorkOrderRead:
    return work_order_service.create_work_order(db, ctx, payload)


@router.get("", response_model=list[WorkOrderRead])
def list_work_orders(
    status_filter: str | None = Query(default=None, alias="status"),
    client_id: uuid.UUID | None = Query(default=None),
    limit: int = Depends(list_limit),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> list[WorkOrderRead]:
    return work_order_service.list_work_orders(db, ctx, status=status_filter, client_id=client_id, limit=limit)


@router.get("/{work_order_id}", response_model=WorkOrderRead)
def get_work_order(
    work_order_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> WorkOrderRead:
    return work_order_service.get_work_order(db, ctx, work_order_id)


@router.patch("/{work_order_id}", response_model=WorkOrderRead)
def update_work_order(
    work_order_id: uuid.UUID,
    payload: WorkOrderUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> WorkOrderRead:
    return work_order_service.update_work_order(db, ctx, work_order_id, payload)


@router.delete("/{work_order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_work_order(
    work_order_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
) -> Response:
    work_order_service.delete_work_order(db, ctx, work_order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@schedule_router.post("", response_model=ScheduleItemRead, status_code=status.HTTP_201_CREATED)
def create_schedule_item(
    payload: ScheduleItemCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> ScheduleItemRead:
    return work_order_service.create_schedule_item(db, ctx, payload)


@schedule_router.get("", response_model=list[ScheduleItemRead])
def list_schedule(
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    employee_id: uuid.UUID | None = Query(default=None),
    limit: int = Depends(list_limit),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> list[ScheduleItemRead]:
    return work_order_service.list_schedule(db, ctx, start=start, end=end, employee_id=employee_id, limit=limit)


@schedule_router.patch("/{item_id}", response_model=ScheduleItemRead)
def update_schedule_item(
    item_id: uuid.UUID,
    payload: ScheduleItemUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_staff),
) -> ScheduleItemRead:
    return work_order_service.update_schedule_item(db, ctx, item_id, payload)


@schedule_router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule_item(
    item_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
) -> Response:
    work_order_service.delete_schedule_item(db, ctx, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
