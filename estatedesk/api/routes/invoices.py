from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from estatedesk.api.deps import SessionDep, require_permission
from estatedesk.core.errors import NotFound
from estatedesk.models.invoice import Invoice, Payment
from estatedesk.models.property import Tenant
from estatedesk.models.user import Role, User
from estatedesk.schemas.invoice import InvoiceCreate, InvoiceRead, LateFeeRequest, PaymentCreate, PaymentRead
from estatedesk.services import invoices as invoice_service

router = APIRouter(prefix="/invoices", tags=["invoices"])

ReaderDep = Annotated[User, Depends(require_permission("invoices:read"))]
WriterDep = Annotated[User, Depends(require_permission("invoices:write"))]


def _ensure_visible(session: SessionDep, invoice: Invoice, user: User) -> None:
    # Tenants only see invoices addressed to their own email.
    if user.role != Role.TENANT:
        return
    tenant = session.get(Tenant, invoice.tenant_id)
    if tenant is None or tenant.email.lower() != user.email.lower():
        raise NotFound("Invoice", invoice.id)


@router.post("", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
def create_invoice(payload: InvoiceCreate, session: SessionDep, current_user: WriterDep) -> Invoice:
    return invoice_service.create_invoice(
        session,
        tenant_id=payload.tenant_id,
        property_id=payload.property_id,
        base_rent=payload.base_rent,
        service_charges=payload.service_charges,
        parking_fees=payload.parking_fees,
        invoice_date=payload.invoice_date,
        due_date=payload.due_date,
        notes=payload.notes,
        created_by=current_user.id,
    )


@router.get("/{invoice_id}", response_model=InvoiceRead)
def get_invoice(invoice_id: int, session: SessionDep, current_user: ReaderDep) -> Invoice:
    invoice = invoice_service.get_invoice(session, invoice_id)
    _ensure_visible(session, invoice, current_user)
    return invoice


@router.post("/{invoice_id}/send", response_model=InvoiceRead)
def send_invoice(invoice_id: int, session: SessionDep, current_user: WriterDep) -> Invoice:
    return invoice_service.send_invoice(session, invoice_id)


@router.post("/{invoice_id}/cancel", response_model=InvoiceRead)
def cancel_invoice(invoice_id: int, session: SessionDep, current_user: WriterDep) -> Invoice:
    return invoice_service.cancel_invoice(session, invoice_id)


@router.post("/{invoice_id}/late-fee", response_model=InvoiceRead)
def apply_late_fee(
    invoice_id: int,
    payload: LateFeeRequest,
    session: SessionDep,
    current_user: WriterDep,
) -> Invoice:
    return invoice_service.apply_late_fee(session, invoice_id, amount=payload.amount)


@router.post("/{invoice_id}/payments", response_model=PaymentRead, status_code=status.HTTP_201_CREATED)
def record_payment(
    invoice_id: int,
    payload: PaymentCreate,
    session: SessionDep,
    current_user: WriterDep,
) -> Payment:
    return invoice_service.record_payment(
        session,
        invoice_id,
        amount=payload.amount,
        payment_date=payload.payment_date,
        method=payload.method,
        reference=payload.reference,
        notes=payload.notes,
        recorded_by=current_user.id,
    )
