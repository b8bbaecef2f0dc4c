"""FastAPI dependency-injection helpers for the invoice API."""
from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, Request

from invoiceflow.core.exceptions import OrganizationResolutionError

if TYPE_CHECKING:
    from invoiceflow.core.config import InvoicingConfig
    from invoiceflow.core.types import Organization
    from invoiceflow.service import InvoiceService


def get_invoice_service(request: Request) -> InvoiceService:
    """Return the :class:`InvoiceService` published by the lifespan."""
    service = getattr(request.app.state, "invoice_service", None)
    if service is None:
        raise RuntimeError(
            "invoice_service not found on app.state. "
            "Did you forget to use InvoicingManager.create_lifespan()?"
        )
    return service


def get_invoicing_config(request: Request) -> InvoicingConfig:
    return request.app.state.invoicing_config


def get_organization_id(request: Request) -> str:
    """Read the caller's organization id from the configured header.

    Example
    -------
    .. code-block:: python

        @router.get("/invoices")
        async def list_invoices(org_id: str = Depends(get_organization_id)):
            ...
    """
    header = get_invoicing_config(request).organization_header_name
    value = (request.headers.get(header) or "").strip()
    if not value:
        raise OrganizationResolutionError(
            f"missing {header} header", details={"header": header}
        )
    return value


async def get_current_organization(
    request: Request,
    organization_id: Annotated[str, Depends(get_organization_id)],
) -> Organization:
    """Return the organization named by the request header (404 if unknown)."""
    return await get_invoice_service(request).get_organization(organization_id)


__all__ = [
    "get_current_organization",
    "get_invoice_service",
    "get_invoicing_config",
    "get_organization_id",
]
