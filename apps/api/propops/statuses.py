from __future__ import annotations

from enum import StrEnum
from typing import TypeVar

from propops.core.errors import ValidationFailedError


class LeadStatus(StrEnum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    QUALIFIED = "QUALIFIED"
    WON = "WON"
    LOST = "LOST"


class BookingStatus(StrEnum):
    NEW = "NEW"
    REVIEWED = "REVIEWED"
    QUOTED = "QUOTED"
    CONFIRMED = "CONFIRMED"
    CANCELED = "CANCELED"


class ContactStatus(StrEnum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class EmployeeRole(StrEnum):
    FIELD_TECH = "FIELD_TECH"
    SUPERVISOR = "SUPERVISOR"
    ACCOUNT_MANAGER = "ACCOUNT_MANAGER"
    DISPATCH = "DISPATCH"
    COORDINATOR = "COORDINATOR"


class EmployeeStatus(StrEnum):
    ACTIVE = "ACTIVE"
    ON_LEAVE = "ON_LEAVE"
    INACTIVE = "INACTIVE"


class EstimateStatus(StrEnum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    CONVERTED = "CONVERTED"


class Priority(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class WorkOrderStatus(StrEnum):
    BACKLOG = "BACKLOG"
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


class ScheduleStatus(StrEnum):
    SCHEDULED = "SCHEDULED"
    DISPATCHED = "DISPATCHED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


class InvoiceStatus(StrEnum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    VOID = "VOID"


class PaymentStatus(StrEnum):
    PENDING = "PENDING"
    SETTLED = "SETTLED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PayrollStatus(StrEnum):
    DRAFT = "DRAFT"
    APPROVED = "APPROVED"
    PAID = "PAID"


class ActivitySeverity(StrEnum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    URGENT = "URGENT"


ACTIVE_ESTIMATE_STATUSES = (EstimateStatus.DRAFT, EstimateStatus.SENT, EstimateStatus.APPROVED)
OPEN_WORK_ORDER_STATUSES = (
    WorkOrderStatus.BACKLOG,
    WorkOrderStatus.SCHEDULED,
    WorkOrderStatus.IN_PROGRESS,
    WorkOrderStatus.ON_HOLD,
)
ACTIVE_BOOKING_STATUSES = (BookingStatus.NEW, BookingStatus.REVIEWED, BookingStatus.QUOTED)
RECEIVABLE_INVOICE_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.PARTIAL, InvoiceStatus.OVERDUE)
SETTLEMENT_DERIVED_INVOICE_STATUSES = (InvoiceStatus.PARTIAL, InvoiceStatus.PAID)


StatusT = TypeVar("StatusT", bound=StrEnum)


def parse_status(enum_type: type[StatusT], raw: str, *, field: str = "status") -> StatusT:
    """Map ``raw`` onto a member of ``enum_type`` or raise ``ValidationFailedError``."""
    normalized = raw.strip().upper()
    try:
        return enum_type(normalized)
    except ValueError:
        allowed = [member.value for member in enum_type]
        raise ValidationFailedError(
            f"Unsupported {field} '{raw}'",
            details={"field": field, "allowed": allowed},
        ) from None


def parse_optional_status(enum_type: type[StatusT], raw: str | None, *, field: str = "status") -> StatusT | None:
    if raw is None or not raw.strip():
        return None
    return parse_status(enum_type, raw, field=field)
