from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlmodel import Session, col, select

from estatedesk.core.config import settings
from estatedesk.core.errors import Conflict, NotFound, ValidationFailed
from estatedesk.models.base import utcnow
from estatedesk.models.invoice import ZERO, Invoice, PaymentMethod
from estatedesk.models.pdc import PDC, PDCStatus
from estatedesk.models.property import Tenant
from estatedesk.services.email import notify
from estatedesk.services.invoices import apply_payment
from estatedesk.services.notification_templates import build_pdc_bounced_email

logger = logging.getLogger(__name__)


def get_pdc(session: Session, pdc_id: int) -> PDC:
    pdc = session.get(PDC, pdc_id)
    if pdc is None:
        raise NotFound("PDC", pdc_id)
    return pdc


def _ensure_transition(pdc: PDC, target: PDCStatus) -> None:
    if not pdc.can_transition_to(target):
        raise ValidationFailed(
            f"PDC cannot move from {pdc.status.value} to {target.value}",
            errors={"status": [f"Current status is {pdc.status.value}"]},
        )


def _not_in_future(value: date, field: str, today: date) -> None:
    if value > today:
        raise ValidationFailed(f"{field} cannot be in the future", errors={field: ["Cannot be in the future"]})


def _save(session: Session, pdc: PDC, now: datetime) -> PDC:
    pdc.touch_updated(now)
    session.add(pdc)
    session.commit()
    session.refresh(pdc)
    return pdc


def register_pdc(
    session: Session,
    *,
    tenant_id: int,
    cheque_number: str,
    bank_name: str,
    amount: Decimal,
    cheque_date: date,
    invoice_id: int | None = None,
    notes: str | None = None,
    created_by: int | None = None,
    original_pdc_id: int | None = None,
) -> PDC:
    if session.get(Tenant, tenant_id) is None:
        raise NotFound("Tenant", tenant_id)
    if Decimal(amount) <= ZERO:
        raise ValidationFailed("PDC amount must be positive", errors={"amount": ["Must be positive"]})

    if invoice_id is not None:
        invoice = session.get(Invoice, invoice_id)
        if invoice is None:
            raise NotFound("Invoice", invoice_id)
        if invoice.tenant_id != tenant_id:
            raise ValidationFailed(
                "Invoice belongs to a different tenant",
                errors={"invoiceId": ["Invoice belongs to a different tenant"]},
            )

    duplicate = session.exec(
        select(PDC).where(PDC.tenant_id == tenant_id, PDC.cheque_number == cheque_number.strip())
    ).first()
    if duplicate is not None:
        raise Conflict(f"Cheque {cheque_number} is already registered for this tenant")

    pdc = PDC(
        tenant_id=tenant_id,
        invoice_id=invoice_id,
        cheque_number=cheque_number.strip(),
        bank_name=bank_name.strip(),
        amount=Decimal(amount),
        cheque_date=cheque_date,
        notes=notes,
        created_by=created_by,
        original_pdc_id=original_pdc_id,
    )
    session.add(pdc)
    session.commit()
    session.refresh(pdc)
    logger.info("pdc_registered: %s", pdc.cheque_number)
    return pdc


def deposit_pdc(session: Session, pdc_id: int, *, deposit_date: date, now: datetime | None = None) -> PDC:
    now = now or utcnow()
    pdc = get_pdc(session, pdc_id)
    _ensure_transition(pdc, PDCStatus.DEPOSITED)
    _not_in_future(deposit_date, "depositDate", now.date())
    pdc.status = PDCStatus.DEPOSITED
    pdc.deposit_date = deposit_date
    return _save(session, pdc, now)


def clear_pdc(session: Session, pdc_id: int, *, cleared_date: date, now: datetime | None = None) -> PDC:
    """Mark a deposited cheque as cleared and pay its linked invoice."""
    now = now or utcnow()
    pdc = get_pdc(session, pdc_id)
    _ensure_transition(pdc, PDCStatus.CLEARED)
    _not_in_future(cleared_date, "clearedDate", now.date())
    pdc.status = PDCStatus.CLEARED
    pdc.cleared_date = cleared_date

    if pdc.invoice_id is not None:
        invoice = session.get(Invoice, pdc.invoice_id)
        if invoice is not None:
            try:
                apply_payment(
                    session,
                    invoice,
                    amount=pdc.amount,
                    payment_date=cleared_date,
                    method=PaymentMethod.PDC,
                    reference=pdc.cheque_number,
                    notes=f"Cleared PDC {pdc.cheque_number}",
                    now=now,
                )
            except ValidationFailed as exc:
                logger.warning(
                    "pdc_payment_not_recorded: %s",
                    pdc.cheque_number,
                    extra={"reason": exc.message},
                )

    return _save(session, pdc, now)


def bounce_pdc(
    session: Session,
    pdc_id: int,
    *,
    bounced_date: date,
    reason: str,
    now: datetime | None = None,
) -> PDC:
    now = now or utcnow()
    pdc = get_pdc(session, pdc_id)
    _ensure_transition(pdc, PDCStatus.BOUNCED)
    if not reason or not reason.strip():
        raise ValidationFailed("Bounce reason is required", errors={"reason": ["Required"]})
    pdc.status = PDCStatus.BOUNCED
    pdc.bounced_date = bounced_date
    pdc.bounce_reason = reason.strip()
    pdc = _save(session, pdc, now)

    tenant = session.get(Tenant, pdc.tenant_id)
    notify(
        to_address=tenant.email if tenant else None,
        content=build_pdc_bounced_email(
            tenant_name=tenant.full_name if tenant else "Tenant",
            cheque_number=pdc.cheque_number,
            amount=pdc.amount,
            reason=pdc.bounce_reason or "",
        ),
    )
    return pdc


def replace_pdc(
    session: Session,
    pdc_id: int,
    *,
    cheque_number: str,
    bank_name: str,
    amount: Decimal,
    cheque_date: date,
    notes: str | None = None,
    created_by: int | None = None,
    now: datetime | None = None,
) -> PDC:
    """Register a replacement for a bounced cheque. Returns the new cheque."""
    now = now or utcnow()
    original = get_pdc(session, pdc_id)
    _ensure_transition(original, PDCStatus.REPLACED)

    replacement = register_pdc(
        session,
        tenant_id=original.tenant_id,
        invoice_id=original.invoice_id,
        cheque_number=cheque_number,
        bank_name=bank_name,
        amount=amount,
        cheque_date=cheque_date,
        notes=notes,
        created_by=created_by,
        original_pdc_id=original.id,
    )
    original.status = PDCStatus.REPLACED
    original.replacement_pdc_id = replacement.id
    _save(session, original, now)
    return replacement


def withdraw_pdc(
    session: Session,
    pdc_id: int,
    *,
    withdrawal_date: date,
    reason: str,
    now: datetime | None = None,
) -> PDC:
    now = now or utcnow()
    pdc = get_pdc(session, pdc_id)
    _ensure_transition(pdc, PDCStatus.WITHDRAWN)
    if not reason or not reason.strip():
        raise ValidationFailed("Withdrawal reason is required", errors={"reason": ["Required"]})
    pdc.status = PDCStatus.WITHDRAWN
    pdc.withdrawal_date = withdrawal_date
    pdc.withdrawal_reason = reason.strip()
    return _save(session, pdc, now)


def cancel_pdc(session: Session, pdc_id: int, *, now: datetime | None = None) -> PDC:
    now = now or utcnow()
    pdc = get_pdc(session, pdc_id)
    _ensure_transition(pdc, PDCStatus.CANCELLED)
    pdc.status = PDCStatus.CANCELLED
    return _save(session, pdc, now)


def mark_due_pdcs(session: Session, *, now: datetime | None = None) -> int:
    now = now or utcnow()
    today = now.date()
    window_end = today + timedelta(days=settings.PDC_DUE_WINDOW_DAYS)
    statement = select(PDC).where(
        PDC.status == PDCStatus.RECEIVED,
        col(PDC.cheque_date) >= today,
        col(PDC.cheque_date) <= window_end,
    )
    due = list(session.exec(statement).all())
    for pdc in due:
        pdc.status = PDCStatus.DUE
        pdc.touch_updated(now)
        session.add(pdc)
    session.commit()
    return len(due)
