from __future__ import annotations

from propops.business.work_orders.models import ScheduleItem, WorkOrder
from propops.platform.repository import BaseRepository


class WorkOrderRepository(BaseRepository[WorkOrder]):
    model = WorkOrder
    entity_label = "Work order"


class ScheduleItemRepository(BaseRepository[ScheduleItem]):
    model = ScheduleItem
    entity_label = "Schedule item"
