"""Map invoiceflow exceptions onto JSON error responses.

Every error body has the same shape::

    {"error": "<code>", "message": "<text>", "details": {...}}

``details`` is omitted when empty.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from invoiceflow.core.exceptions import (
    ConflictError,
    InvalidStatusTransitionError,
    InvoiceItemsWriteError,
    NotFoundError,
    OrganizationResolutionError,
    PersistenceError,
    ValidationError,
)

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

# Starlette renamed the 422 constant; the number is stable.
HTTP_422 = 422


def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    content: dict[str, Any] = {"error": error, "message": message}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def _validation_error(_: Request, exc: ValidationError) -> JSONResponse:
    return _error_response(
        HTTP_422,
        "validation_error",
        exc.message,
        {"field": exc.field, **exc.details},
    )


async def _invalid_transition(_: Request, exc: InvalidStatusTransitionError) -> JSONResponse:
    return _error_response(
        HTTP_422,
        "invalid_status_transition",
        exc.message,
        {"current": exc.current, "requested": exc.requested, **exc.details},
    )


async def _not_found(_: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, "not_found", exc.message, exc.details)


async def _conflict(_: Request, exc: ConflictError) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, "conflict", exc.message, exc.details)


async def _organization_resolution(_: Request, exc: OrganizationResolutionError) -> JSONResponse:
    logger.warning("Organization resolution failed: %s", exc.message)
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "organization_resolution_failed",
        exc.message,
        exc.details,
    )


async def _items_write_failed(_: Request, exc: InvoiceItemsWriteError) -> JSONResponse:
    number = exc.invoice.invoice_number
    if exc.updated:
        message = (
            f"Invoice {number} header updated, previous items kept; totals no longer "
            "match items. Retry the update or delete the invoice."
        )
    else:
        message = (
            f"Invoice {number} was saved without its items; "
            "retry the update or delete the invoice."
        )
    return _error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "invoice_items_not_saved",
        message,
        {"invoice_id": exc.invoice.id, "invoice_number": number, "updated": exc.updated},
    )


async def _persistence(_: Request, exc: PersistenceError) -> JSONResponse:
    logger.error("Persistence error: %s", exc.message)
    return _error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "persistence_error",
        "The invoice store is unavailable; please retry.",
        {"operation": exc.operation},
    )


async def _request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    fields = [
        ".".join(str(part) for part in error["loc"] if part != "body") for error in errors
    ]
    first = f"{fields[0]}: {errors[0]['msg']}" if errors else "invalid request"
    return _error_response(
        HTTP_422,
        "validation_error",
        first,
        {"fields": fields},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers on *app*; the most specific exception class wins."""
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(InvalidStatusTransitionError, _invalid_transition)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(ConflictError, _conflict)
    app.add_exception_handler(OrganizationResolutionError, _organization_resolution)
    app.add_exception_handler(PersistenceError, _persistence)
    app.add_exception_handler(InvoiceItemsWriteError, _items_write_failed)
    app.add_exception_handler(RequestValidationError, _request_validation)


__all__ = ["register_exception_handlers"]
