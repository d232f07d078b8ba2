from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from sqlmodel import Session, col, select

from estatedesk.core.config import settings
from estatedesk.core.errors import NotFound, ValidationFailed
from estatedesk.models.base import utcnow
from estatedesk.models.invoice import (
    AGING_STATUSES,
    ZERO,
    Invoice,
    InvoiceStatus,
    Payment,
    PaymentMethod,
)
from estatedesk.models.property import Tenant
from estatedesk.services.email import notify
from estatedesk.services.notification_templates import (
    build_invoice_overdue_email,
    build_invoice_reminder_email,
    build_invoice_sent_email,
    build_late_fee_email,
)
from estatedesk.services.numbering import next_number
from estatedesk.services.properties import get_property, get_tenant

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _money(value: Decimal | int | str | None) -> Decimal:
    return Decimal(str(value if value is not None else "0")).quantize(CENTS, rounding=ROUND_HALF_UP)


def late_fee_percentage() -> Decimal:
    return Decimal(str(settings.INVOICE_LATE_FEE_PERCENTAGE))


def calculate_late_fee(total: Decimal, percentage: Decimal | None = None) -> Decimal:
    rate = late_fee_percentage() if percentage is None else percentage
    return (Decimal(total) * rate / Decimal("100")).quantize(CENTS, rounding=ROUND_HALF_UP)


def get_invoice(session: Session, invoice_id: int) -> Invoice:
    invoice = session.get(Invoice, invoice_id)
    if invoice is None:
        raise NotFound("Invoice", invoice_id)
    return invoice


def _tenant_contact(session: Session, invoice: Invoice) -> tuple[str, str | None]:
    tenant = session.get(Tenant, invoice.tenant_id)
    if tenant is None:
        return "Tenant", None
    return tenant.full_name, tenant.email


def create_invoice(
    session: Session,
    *,
    tenant_id: int,
    property_id: int,
    base_rent: Decimal,
    service_charges: Decimal | None = None,
    parking_fees: Decimal | None = None,
    invoice_date: date | None = None,
    due_date: date | None = None,
    notes: str | None = None,
    created_by: int | None = None,
    today: date | None = None,
) -> Invoice:
    today = today or utcnow().date()
    tenant = get_tenant(session, tenant_id)
    if not tenant.is_active:
        raise ValidationFailed("Tenant is not active", errors={"tenantId": ["Tenant is not active"]})

    get_property(session, property_id)

    errors: dict[str, list[str]] = {}
    base_rent = _money(base_rent)
    service_charges = _money(service_charges)
    parking_fees = _money(parking_fees)
    if base_rent <= ZERO:
        errors["baseRent"] = ["Base rent must be positive"]
    if service_charges < ZERO:
        errors["serviceCharges"] = ["Service charges cannot be negative"]
    if parking_fees < ZERO:
        errors["parkingFees"] = ["Parking fees cannot be negative"]

    invoice_date = invoice_date or today
    due_date = due_date or invoice_date + timedelta(days=settings.INVOICE_DUE_DAYS)
    if due_date < invoice_date:
        errors["dueDate"] = ["Due date cannot be before the invoice date"]
    if errors:
        raise ValidationFailed("Invoice is invalid", errors=errors)

    invoice = Invoice(
        invoice_number=next_number(session, Invoice.invoice_number, "INV", invoice_date.year),
        tenant_id=tenant_id,
        property_id=property_id,
        invoice_date=invoice_date,
        due_date=due_date,
        base_rent=base_rent,
        service_charges=service_charges,
        parking_fees=parking_fees,
        notes=notes,
        created_by=created_by,
    )
    invoice.calculate_totals()
    session.add(invoice)
    session.commit()
    session.refresh(invoice)
    logger.info("invoice_created: %s", invoice.invoice_number)
    return invoice


def send_invoice(session: Session, invoice_id: int, *, now: datetime | None = None) -> Invoice:
    now = now or utcnow()
    invoice = get_invoice(session, invoice_id)
    if invoice.status != InvoiceStatus.DRAFT:
        raise ValidationFailed(f"Invoice cannot be sent in current status: {invoice.status.value}")

    invoice.status = InvoiceStatus.SENT
    invoice.sent_at = now
    invoice.touch_updated(now)
    session.add(invoice)
    session.commit()
    session.refresh(invoice)

    tenant_name, tenant_email = _tenant_contact(session, invoice)
    notify(
        to_address=tenant_email,
        content=build_invoice_sent_email(
            tenant_name=tenant_name,
            invoice_number=invoice.invoice_number,
            total=invoice.total_amount,
            due_date=invoice.due_date,
        ),
    )
    return invoice


def cancel_invoice(session: Session, invoice_id: int, *, now: datetime | None = None) -> Invoice:
    now = now or utcnow()
    invoice = get_invoice(session, invoice_id)
    if not invoice.can_be_cancelled():
        raise ValidationFailed(f"Invoice cannot be cancelled in current status: {invoice.status.value}")
    invoice.status = InvoiceStatus.CANCELLED
    invoice.touch_updated(now)
    session.add(invoice)
    session.commit()
    session.refresh(invoice)
    return invoice


def apply_payment(
    session: Session,
    invoice: Invoice,
    *,
    amount: Decimal,
    payment_date: date,
    method: PaymentMethod,
    reference: str | None = None,
    notes: str | None = None,
    recorded_by: int | None = None,
    today: date | None = None,
    now: datetime | None = None,
) -> Payment:
    """Validate and record a payment against an invoice. Does not commit."""
    now = now or utcnow()
    today = today or now.date()
    amount = _money(amount)

    if not invoice.can_receive_payment():
        raise ValidationFailed(f"Invoice cannot receive payment in current status: {invoice.status.value}")
    if amount <= ZERO:
        raise ValidationFailed("Payment amount must be positive", errors={"amount": ["Must be positive"]})
    if amount > invoice.balance_amount:
        raise ValidationFailed(
            f"Payment amount cannot exceed outstanding balance of {invoice.balance_amount}",
            errors={"amount": ["Exceeds outstanding balance"]},
        )
    if payment_date > today:
        raise ValidationFailed(
            "Payment date cannot be in the future",
            errors={"paymentDate": ["Cannot be in the future"]},
        )

    payment = Payment(
        payment_number=next_number(session, Payment.payment_number, "PMT", payment_date.year),
        invoice_id=invoice.id,
        tenant_id=invoice.tenant_id,
        amount=amount,
        payment_date=payment_date,
        method=method,
        reference=reference,
        notes=notes,
        recorded_by=recorded_by,
    )
    session.add(payment)

    invoice.paid_amount = (invoice.paid_amount or ZERO) + amount
    invoice.calculate_totals()
    if invoice.balance_amount <= ZERO:
        invoice.status = InvoiceStatus.PAID
        invoice.paid_at = now
    elif invoice.status != InvoiceStatus.OVERDUE:
        # a part payment does not lift an overdue invoice back into aging
        invoice.status = InvoiceStatus.PARTIALLY_PAID
    invoice.touch_updated(now)
    session.add(invoice)
    session.flush()
    return payment


def record_payment(
    session: Session,
    invoice_id: int,
    *,
    amount: Decimal,
    payment_date: date,
    method: PaymentMethod,
    reference: str | None = None,
    notes: str | None = None,
    recorded_by: int | None = None,
    now: datetime | None = None,
) -> Payment:
    invoice = get_invoice(session, invoice_id)
    payment = apply_payment(
        session,
        invoice,
        amount=amount,
        payment_date=payment_date,
        method=method,
        reference=reference,
        notes=notes,
        recorded_by=recorded_by,
        now=now,
    )
    session.commit()
    session.refresh(payment)
    logger.info("payment_recorded: %s for %s", payment.payment_number, invoice.invoice_number)
    return payment


def apply_late_fee(
    session: Session,
    invoice_id: int,
    *,
    amount: Decimal | None = None,
    now: datetime | None = None,
) -> Invoice:
    """Add a late fee to an overdue invoice, at most once."""
    now = now or utcnow()
    invoice = get_invoice(session, invoice_id)
    if invoice.status != InvoiceStatus.OVERDUE:
        raise ValidationFailed("Cannot apply late fee to non-overdue invoice")
    if invoice.late_fee_applied:
        raise ValidationFailed("Late fee has already been applied")

    fee = _money(amount) if amount is not None else calculate_late_fee(invoice.total_amount)
    if fee <= ZERO:
        raise ValidationFailed("Late fee amount must be positive", errors={"amount": ["Must be positive"]})

    _charge_late_fee(invoice, fee, now)
    session.add(invoice)
    session.commit()
    session.refresh(invoice)
    _send_late_fee_notice(session, invoice)
    return invoice


def _charge_late_fee(invoice: Invoice, fee: Decimal, now: datetime) -> None:
    invoice.late_fee = fee
    invoice.late_fee_applied = True
    invoice.calculate_totals()
    invoice.touch_updated(now)


def _send_late_fee_notice(session: Session, invoice: Invoice) -> None:
    tenant_name, tenant_email = _tenant_contact(session, invoice)
    notify(
        to_address=tenant_email,
        content=build_late_fee_email(
            tenant_name=tenant_name,
            invoice_number=invoice.invoice_number,
            late_fee=invoice.late_fee,
            balance=invoice.balance_amount,
        ),
    )


def mark_overdue_invoices(session: Session, *, now: datetime | None = None) -> int:
    now = now or utcnow()
    today = now.date()
    statement = select(Invoice).where(
        col(Invoice.status).in_(AGING_STATUSES),
        col(Invoice.due_date) < today,
    )
    overdue = list(session.exec(statement).all())
    for invoice in overdue:
        invoice.status = InvoiceStatus.OVERDUE
        invoice.touch_updated(now)
        session.add(invoice)
    session.commit()

    for invoice in overdue:
        tenant_name, tenant_email = _tenant_contact(session, invoice)
        notify(
            to_address=tenant_email,
            content=build_invoice_overdue_email(
                tenant_name=tenant_name,
                invoice_number=invoice.invoice_number,
                balance=invoice.balance_amount,
                due_date=invoice.due_date,
            ),
        )
    return len(overdue)


def apply_late_fees(session: Session, *, now: datetime | None = None) -> int:
    now = now or utcnow()
    statement = select(Invoice).where(
        Invoice.status == InvoiceStatus.OVERDUE,
        col(Invoice.late_fee_applied).is_(False),
    )
    charged = []
    for invoice in session.exec(statement).all():
        fee = calculate_late_fee(invoice.total_amount)
        if fee <= ZERO:
            continue
        _charge_late_fee(invoice, fee, now)
        session.add(invoice)
        charged.append(invoice)
    session.commit()

    for invoice in charged:
        _send_late_fee_notice(session, invoice)
    return len(charged)


def send_payment_reminders(
    session: Session,
    *,
    now: datetime | None = None,
    days_before: int | None = None,
) -> int:
    now = now or utcnow()
    today = now.date()
    days = settings.INVOICE_REMINDER_DAYS_BEFORE if days_before is None else days_before
    target = today + timedelta(days=days)

    statement = select(Invoice).where(
        col(Invoice.status).in_(AGING_STATUSES),
        Invoice.due_date == target,
    )
    reminded = []
    for invoice in session.exec(statement).all():
        if invoice.last_reminder_sent_on == today:
            continue
        invoice.last_reminder_sent_on = today
        session.add(invoice)
        reminded.append(invoice)
    session.commit()

    for invoice in reminded:
        tenant_name, tenant_email = _tenant_contact(session, invoice)
        notify(
            to_address=tenant_email,
            content=build_invoice_reminder_email(
                tenant_name=tenant_name,
                invoice_number=invoice.invoice_number,
                balance=invoice.balance_amount,
                due_date=invoice.due_date,
                days_before=days,
            ),
        )
    return len(reminded)
