from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for failures that map onto a client-facing error envelope."""

    status_code = 400
    code = "DOMAIN_ERROR"

    def __init__(self, message: str, *, details: Any = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationFailedError(DomainError):
    status_code = 400
    code = "VALIDATION_FAILED"


class NotFoundError(DomainError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, entity: str) -> None:
        self.entity = entity
        super().__init__(f"{entity} not found")


class UnexpectedStoreError(DomainError):
    """Raised when the relational store rejects or fails a unit of work."""

    status_code = 500
    code = "STORE_FAILURE"
