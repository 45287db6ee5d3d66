from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from propops.context import get_correlation_id
from propops.core.errors import DomainError, UnexpectedStoreError
from propops.platform.security.errors import AuthorizationError


logger = logging.getLogger("propops.errors")


@dataclass
class ErrorEnvelope:
    code: str
    message: str
    details: Any
    correlation_id: str | None


def error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
) -> JSONResponse:
    correlation_id = get_correlation_id() or getattr(request.state, "correlation_id", None)
    payload = ErrorEnvelope(
        code=code,
        message=message,
        details=details,
        correlation_id=correlation_id,
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(asdict(payload)))


async def _domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if isinstance(exc, UnexpectedStoreError):
        logger.error("request.store_failure", extra={"path": request.url.path, "error": repr(exc.__cause__ or exc)})
    return error_response(
        request,
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )


async def _authorization_error_handler(request: Request, exc: AuthorizationError) -> JSONResponse:
    return error_response(
        request,
        status_code=status.HTTP_401_UNAUTHORIZED,
        code="UNAUTHORIZED",
        message="Unauthorized",
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    violations = [
        {"field": ".".join(str(part) for part in error["loc"] if part != "body"), "message": error["msg"]}
        for error in exc.errors()
    ]
    return error_response(
        request,
        status_code=status.HTTP_400_BAD_REQUEST,
        code="VALIDATION_FAILED",
        message="Validation failed",
        details=violations,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, _domain_error_handler)
    app.add_exception_handler(AuthorizationError, _authorization_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
