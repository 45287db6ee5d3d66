from __future__ import annotations

import re

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.requests import Request


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

estimate_conversions_total = Counter(
    "estimate_conversions_total",
    "Estimate to work order conversions by outcome",
    ["outcome"],
)

payment_settlements_total = Counter(
    "payment_settlements_total",
    "Invoice payment settlements by resulting invoice status",
    ["invoice_status"],
)

payment_settled_cents_total = Counter(
    "payment_settled_cents_total",
    "Total settled payment amount in cents",
)

activity_entries_total = Counter(
    "activity_entries_total",
    "Activity log entries appended by entity type",
    ["entity_type"],
)

public_intake_total = Counter(
    "public_intake_total",
    "Public lead and booking submissions",
    ["kind"],
)

csv_exports_total = Counter(
    "csv_exports_total",
    "CSV exports by resource",
    ["resource"],
)


_UUID_RE = re.compile(
    r"\b[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[1-5][0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}\b"
)
_PATH_PARAM_RE = re.compile(r"\{[^{}]+\}")


def resolve_http_path_label(request: Request) -> str:
    route = request.scope.get("route")
    route_path = getattr(route, "path_format", None) or getattr(route, "path", None)
    if isinstance(route_path, str) and route_path:
        return _PATH_PARAM_RE.sub("{id}", route_path)
    return _UUID_RE.sub("{id}", request.url.path)


def observe_http_request(method: str, path: str, status: int, duration: float) -> None:
    http_requests_total.labels(method=method, path=path, status=str(status)).inc()
    http_request_duration_seconds.labels(method=method, path=path).observe(duration)


def observe_estimate_conversion(outcome: str) -> None:
    estimate_conversions_total.labels(outcome=outcome).inc()


def observe_payment_settlement(invoice_status: str, amount_cents: int) -> None:
    payment_settlements_total.labels(invoice_status=invoice_status).inc()
    if amount_cents > 0:
        payment_settled_cents_total.inc(amount_cents)


def observe_activity_entry(entity_type: str) -> None:
    activity_entries_total.labels(entity_type=entity_type).inc()


def observe_public_intake(kind: str) -> None:
    public_intake_total.labels(kind=kind).inc()


def observe_csv_export(resource: str) -> None:
    csv_exports_total.labels(resource=resource).inc()


def generate_metrics_payload() -> bytes:
    return generate_latest()


def metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
