"""Organization, customer, invoice and dashboard routes."""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import JSONResponse

from invoiceflow.api.dependencies import (
    get_current_organization,
    get_invoice_service,
    get_organization_id,
)
from invoiceflow.api.schemas import (
    CustomerCreate,
    CustomerUpdate,
    InvoiceCreate,
    InvoiceStatusUpdate,
    InvoiceUpdate,
    OrganizationCreate,
    OrganizationUpdate,
)
from invoiceflow.core.types import (
    Customer,
    DashboardSummary,
    Invoice,
    InvoiceWithItems,
    Organization,
)
from invoiceflow.service import InvoiceService

router = APIRouter()

Service = Annotated[InvoiceService, Depends(get_invoice_service)]
OrganizationId = Annotated[str, Depends(get_organization_id)]
CurrentOrganization = Annotated[Organization, Depends(get_current_organization)]


# ── Health ────────────────────────────────────────────────────────────────────

@router.get("/health", tags=["health"])
async def health(request: Request) -> JSONResponse:
    manager = request.app.state.invoicing_manager
    report = await manager.health_check()
    healthy = report["status"] == "healthy"
    code = status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=report)


# ── Organizations ─────────────────────────────────────────────────────────────

@router.post(
    "/organizations",
    response_model=Organization,
    status_code=201,
    tags=["organizations"],
)
async def create_organization(body: OrganizationCreate, service: Service) -> Organization:
    return await service.create_organization(**body.model_dump())


@router.get("/organization", response_model=Organization, tags=["organizations"])
async def get_organization(organization: CurrentOrganization) -> Organization:
    return organization


@router.patch("/organization", response_model=Organization, tags=["organizations"])
async def update_organization(
    body: OrganizationUpdate,
    organization_id: OrganizationId,
    service: Service,
) -> Organization:
    """Update settings, e.g. the default terms copied onto new invoices."""
    return await service.update_organization(organization_id, body.model_dump(exclude_unset=True))


# ── Customers ─────────────────────────────────────────────────────────────────

@router.get("/customers", response_model=list[Customer], tags=["customers"])
async def list_customers(organization: CurrentOrganization, service: Service) -> list[Customer]:
    return await service.list_customers(organization.id)


@router.post("/customers", response_model=Customer, status_code=201, tags=["customers"])
async def create_customer(
    body: CustomerCreate,
    organization: CurrentOrganization,
    service: Service,
) -> Customer:
    return await service.create_customer(organization.id, **body.model_dump())


@router.patch("/customers/{customer_id}", response_model=Customer, tags=["customers"])
async def update_customer(
    customer_id: str,
    body: CustomerUpdate,
    organization_id: OrganizationId,
    service: Service,
) -> Customer:
    """Edit a customer. Invoices already issued keep their customer snapshot."""
    return await service.update_customer(
        customer_id, body.model_dump(exclude_unset=True), organization_id=organization_id
    )


# ── Invoices ──────────────────────────────────────────────────────────────────

@router.get("/invoices", response_model=list[Invoice], tags=["invoices"])
async def list_invoices(
    organization: CurrentOrganization,
    service: Service,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    q: str | None = None,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> list[Invoice]:
    """List invoices, newest first, optionally filtered by status or search text."""
    return await service.list_invoices(
        organization.id, status=status_filter, search=q, skip=skip, limit=limit
    )


@router.post("/invoices", response_model=InvoiceWithItems, status_code=201, tags=["invoices"])
async def create_invoice(
    body: InvoiceCreate,
    organization: CurrentOrganization,
    service: Service,
) -> InvoiceWithItems:
    return await service.create_invoice(
        organization.id,
        customer=body.customer.model_dump(),
        items=[item.model_dump() for item in body.items],
        issue_date=body.issue_date,
        due_date=body.due_date,
        notes=body.notes,
        terms=body.terms,
        customer_id=body.customer_id,
        currency=body.currency,
        send=body.send,
    )


@router.get("/invoices/{invoice_id}", response_model=InvoiceWithItems, tags=["invoices"])
async def get_invoice(
    invoice_id: str,
    organization_id: OrganizationId,
    service: Service,
) -> InvoiceWithItems:
    return await service.get_invoice(invoice_id, organization_id=organization_id)


@router.put("/invoices/{invoice_id}", response_model=InvoiceWithItems, tags=["invoices"])
async def update_invoice(
    invoice_id: str,
    body: InvoiceUpdate,
    organization_id: OrganizationId,
    service: Service,
) -> InvoiceWithItems:
    """Replace customer details, dates, notes, terms and all line items."""
    return await service.update_invoice(
        invoice_id,
        customer=body.customer.model_dump(),
        items=[item.model_dump() for item in body.items],
        issue_date=body.issue_date,
        due_date=body.due_date,
        notes=body.notes,
        terms=body.terms,
        customer_id=body.customer_id,
        organization_id=organization_id,
    )


@router.patch("/invoices/{invoice_id}/status", response_model=Invoice, tags=["invoices"])
async def set_invoice_status(
    invoice_id: str,
    body: InvoiceStatusUpdate,
    organization_id: OrganizationId,
    service: Service,
) -> Invoice:
    """Move an invoice along draft → sent → paid (or overdue / cancelled)."""
    return await service.set_invoice_status(
        invoice_id, body.status, organization_id=organization_id
    )


@router.delete("/invoices/{invoice_id}", status_code=204, tags=["invoices"])
async def delete_invoice(
    invoice_id: str,
    organization_id: OrganizationId,
    service: Service,
) -> Response:
    await service.delete_invoice(invoice_id, organization_id=organization_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Dashboard ─────────────────────────────────────────────────────────────────

@router.get("/dashboard", response_model=DashboardSummary, tags=["dashboard"])
async def dashboard(organization: CurrentOrganization, service: Service) -> DashboardSummary:
    return await service.dashboard(organization.id)


__all__ = ["router"]
