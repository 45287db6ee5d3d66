from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from propops.api.errors import register_exception_handlers
from propops.api.routes import router as api_router
from propops.core.config import get_settings
from propops.events import DomainEvent, event_bus
from propops.logging import configure_logging
from propops.middleware.correlation_id import CorrelationIdMiddleware
from propops.middleware.rate_limit import PublicIntakeRateLimitMiddleware
from propops.middleware.request_logging import RequestLoggingMiddleware
from propops.otel import get_fastapi_server_request_hook, setup_otel


configure_logging()
logger = logging.getLogger("propops.lifecycle")
_subscriptions_registered = False

_logged_event_types = [
    "lead.created",
    "booking.created",
    "estimate.converted",
    "invoice.payment_settled",
]


def _on_domain_event(event: DomainEvent) -> None:
    logger.info("domain_event", extra={"event_type": event.event_type})


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _subscriptions_registered
    if not _subscriptions_registered:
        for event_type in _logged_event_types:
            event_bus.subscribe(event_type, _on_domain_event)
        _subscriptions_registered = True
    logger.info("app.started")
    yield


settings = get_settings()

app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)
app.add_middleware(PublicIntakeRateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
register_exception_handlers(app)
app.include_router(api_router)

if settings.otel_enabled:
    setup_otel("propops-api", True)

if not getattr(app, "_is_instrumented_by_opentelemetry", False):
    FastAPIInstrumentor().instrument_app(app, server_request_hook=get_fastapi_server_request_hook())
