from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from estatedesk.core.errors import NotFound, ValidationFailed
from estatedesk.models.base import utcnow
from estatedesk.models.invoice import InvoiceStatus, PaymentMethod
from estatedesk.models.user import Role
from estatedesk.services import invoices as invoice_service

NOW = datetime(2026, 5, 10, 9, 0, 0)
TODAY = NOW.date()


@pytest.fixture
def sent_mail(monkeypatch) -> list[dict]:
    sent: list[dict] = []

    def fake_notify(*, to_address, content):
        sent.append({"to": to_address, "subject": content["subject"]})
        return True

    monkeypatch.setattr(invoice_service, "notify", fake_notify)
    return sent


def test_create_invoice_numbers_and_totals(db: Session, tenant) -> None:
    first = invoice_service.create_invoice(
        db,
        tenant_id=tenant.id,
        property_id=tenant.property_id,
        base_rent=Decimal("1000"),
        service_charges=Decimal("150.50"),
        parking_fees=Decimal("49.50"),
        invoice_date=date(2026, 5, 1),
    )
    second = invoice_service.create_invoice(
        db,
        tenant_id=tenant.id,
        property_id=tenant.property_id,
        base_rent=Decimal("800"),
        invoice_date=date(2026, 5, 2),
    )

    assert first.invoice_number == "INV-2026-0001"
    assert second.invoice_number == "INV-2026-0002"
    assert first.total_amount == Decimal("1200.00")
    assert first.balance_amount == Decimal("1200.00")
    assert first.due_date == date(2026, 5, 31)
    assert first.status == InvoiceStatus.DRAFT


def test_create_invoice_rejects_inactive_tenant(db: Session, tenant) -> None:
    tenant.is_active = False
    db.add(tenant)
    db.commit()

    with pytest.raises(ValidationFailed):
        invoice_service.create_invoice(
            db,
            tenant_id=tenant.id,
            property_id=tenant.property_id,
            base_rent=Decimal("1000"),
        )


def test_overdue_marking_is_idempotent(db: Session, sent_invoice, sent_mail) -> None:
    late = sent_invoice(invoice_date=date(2026, 4, 1), due_date=date(2026, 5, 1))
    on_time = sent_invoice(invoice_date=date(2026, 5, 1), due_date=date(2026, 5, 31))
    draft = sent_invoice(invoice_date=date(2026, 4, 1), due_date=date(2026, 5, 1), status=InvoiceStatus.DRAFT)

    assert invoice_service.mark_overdue_invoices(db, now=NOW) == 1
    assert invoice_service.mark_overdue_invoices(db, now=NOW) == 0

    db.refresh(late)
    db.refresh(on_time)
    db.refresh(draft)
    assert late.status == InvoiceStatus.OVERDUE
    assert on_time.status == InvoiceStatus.SENT
    assert draft.status == InvoiceStatus.DRAFT
    assert len(sent_mail) == 1
    assert sent_mail[0]["to"] == "dana@tenant.dev"


def test_overdue_marking_skips_settled_invoices(db: Session, sent_invoice, sent_mail) -> None:
    partial = sent_invoice(
        invoice_date=date(2026, 4, 1),
        due_date=date(2026, 5, 1),
        status=InvoiceStatus.PARTIALLY_PAID,
    )
    paid = sent_invoice(invoice_date=date(2026, 4, 1), due_date=date(2026, 5, 1), status=InvoiceStatus.PAID)
    cancelled = sent_invoice(
        invoice_date=date(2026, 4, 1),
        due_date=date(2026, 5, 1),
        status=InvoiceStatus.CANCELLED,
    )
    due_today = sent_invoice(invoice_date=date(2026, 4, 10), due_date=TODAY)

    assert invoice_service.mark_overdue_invoices(db, now=NOW) == 1

    for invoice in (partial, paid, cancelled, due_today):
        db.refresh(invoice)
    assert partial.status == InvoiceStatus.OVERDUE
    assert paid.status == InvoiceStatus.PAID
    assert cancelled.status == InvoiceStatus.CANCELLED
    assert due_today.status == InvoiceStatus.SENT


def test_late_fee_applied_once(db: Session, sent_invoice, sent_mail) -> None:
    invoice = sent_invoice(invoice_date=date(2026, 4, 1), due_date=date(2026, 5, 1), base_rent="1234.50")
    invoice_service.mark_overdue_invoices(db, now=NOW)

    assert invoice_service.apply_late_fees(db, now=NOW) == 1
    assert invoice_service.apply_late_fees(db, now=NOW) == 0

    db.refresh(invoice)
    assert invoice.late_fee == Decimal("61.73")
    assert invoice.total_amount == Decimal("1296.23")
    assert invoice.late_fee_applied is True

    with pytest.raises(ValidationFailed):
        invoice_service.apply_late_fee(db, invoice.id, now=NOW)


def test_manual_late_fee_requires_overdue(db: Session, sent_invoice, sent_mail) -> None:
    invoice = sent_invoice(invoice_date=date(2026, 5, 1), due_date=date(2026, 5, 31))

    with pytest.raises(ValidationFailed):
        invoice_service.apply_late_fee(db, invoice.id, amount=Decimal("25"), now=NOW)


def test_partial_payment_keeps_overdue_status(db: Session, sent_invoice, sent_mail) -> None:
    invoice = sent_invoice(invoice_date=date(2026, 4, 1), due_date=date(2026, 5, 1))
    invoice_service.mark_overdue_invoices(db, now=NOW)

    invoice_service.record_payment(
        db,
        invoice.id,
        amount=Decimal("400"),
        payment_date=TODAY,
        method=PaymentMethod.BANK_TRANSFER,
        now=NOW,
    )
    db.refresh(invoice)
    assert invoice.status == InvoiceStatus.OVERDUE
    assert invoice.balance_amount == Decimal("600.00")
    assert invoice_service.mark_overdue_invoices(db, now=NOW) == 0

    payment = invoice_service.record_payment(
        db,
        invoice.id,
        amount=Decimal("600"),
        payment_date=TODAY,
        method=PaymentMethod.CASH,
        now=NOW,
    )
    db.refresh(invoice)
    assert payment.payment_number == "PMT-2026-0002"
    assert invoice.status == InvoiceStatus.PAID
    assert invoice.balance_amount == Decimal("0.00")


def test_payment_validation(db: Session, sent_invoice) -> None:
    invoice = sent_invoice(invoice_date=date(2026, 5, 1), due_date=date(2026, 5, 31))

    with pytest.raises(ValidationFailed):
        invoice_service.record_payment(
            db,
            invoice.id,
            amount=Decimal("1000.01"),
            payment_date=TODAY,
            method=PaymentMethod.CASH,
            now=NOW,
        )
    with pytest.raises(ValidationFailed):
        invoice_service.record_payment(
            db,
            invoice.id,
            amount=Decimal("10"),
            payment_date=TODAY + timedelta(days=1),
            method=PaymentMethod.CASH,
            now=NOW,
        )
    with pytest.raises(NotFound):
        invoice_service.record_payment(
            db,
            9999,
            amount=Decimal("10"),
            payment_date=TODAY,
            method=PaymentMethod.CASH,
            now=NOW,
        )

    invoice_service.record_payment(
        db,
        invoice.id,
        amount=Decimal("100"),
        payment_date=TODAY,
        method=PaymentMethod.CARD,
        now=NOW,
    )
    db.refresh(invoice)
    assert invoice.status == InvoiceStatus.PARTIALLY_PAID
    with pytest.raises(ValidationFailed):
        invoice_service.cancel_invoice(db, invoice.id, now=NOW)


def test_payment_reminders_sent_once_per_day(db: Session, sent_invoice, sent_mail) -> None:
    due_soon = sent_invoice(invoice_date=date(2026, 4, 17), due_date=TODAY + timedelta(days=7))
    sent_invoice(invoice_date=date(2026, 4, 20), due_date=TODAY + timedelta(days=8))

    assert invoice_service.send_payment_reminders(db, now=NOW) == 1
    assert invoice_service.send_payment_reminders(db, now=NOW) == 0

    db.refresh(due_soon)
    assert due_soon.last_reminder_sent_on == TODAY
    assert len(sent_mail) == 1


def _auth(tokens: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {tokens['accessToken']}"}


def test_invoice_routes_follow_permissions(client: TestClient, make_user, login, tenant) -> None:
    make_user("finance@estatedesk.dev", role=Role.FINANCE_MANAGER)
    make_user("dana@tenant.dev", role=Role.TENANT)
    make_user("someone@tenant.dev", role=Role.TENANT)
    finance = login("finance@estatedesk.dev")

    created = client.post(
        "/invoices",
        json={"tenantId": tenant.id, "propertyId": tenant.property_id, "baseRent": "1500.00"},
        headers=_auth(finance),
    )
    assert created.status_code == 201
    invoice = created.json()
    assert invoice["status"] == "DRAFT"
    assert Decimal(invoice["totalAmount"]) == Decimal("1500")

    sent = client.post(f"/invoices/{invoice['id']}/send", headers=_auth(finance))
    assert sent.status_code == 200
    assert sent.json()["status"] == "SENT"

    again = client.post(f"/invoices/{invoice['id']}/send", headers=_auth(finance))
    assert again.status_code == 422

    payment = client.post(
        f"/invoices/{invoice['id']}/payments",
        json={"amount": "500.00", "paymentDate": utcnow().date().isoformat(), "method": "CARD"},
        headers=_auth(finance),
    )
    assert payment.status_code == 201
    assert payment.json()["method"] == "CARD"

    owner = login("dana@tenant.dev")
    assert client.get(f"/invoices/{invoice['id']}", headers=_auth(owner)).status_code == 200
    assert client.post(f"/invoices/{invoice['id']}/cancel", headers=_auth(owner)).status_code == 403

    stranger = login("someone@tenant.dev")
    assert client.get(f"/invoices/{invoice['id']}", headers=_auth(stranger)).status_code == 404
