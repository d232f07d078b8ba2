from __future__ import annotations

from datetime import date
from decimal import Decimal

from estatedesk.core.config import settings


def _join_text(*lines: str) -> str:
    return "\n".join(line for line in lines if line)


def _money(amount: Decimal | None) -> str:
    return f"{(amount or Decimal('0')):,.2f}"


def _base_url() -> str:
    return settings.APP_BASE_URL.rstrip("/")


def build_password_reset_email(*, full_name: str, token: str, expires_minutes: int) -> dict[str, str]:
    link = f"{_base_url()}/reset-password?token={token}"
    subject = "Reset your password"
    html = (
        f"<p>Hello {full_name},</p>"
        f"<p>We received a request to reset your password.</p>"
        f"<p><a href=\"{link}\">Choose a new password</a></p>"
        f"<p>This link expires in {expires_minutes} minutes. "
        f"If you did not ask for it, you can ignore this email.</p>"
    )
    text = _join_text(
        f"Hello {full_name},",
        "We received a request to reset your password.",
        f"Reset link: {link}",
        f"This link expires in {expires_minutes} minutes.",
    )
    return {"subject": subject, "html": html, "text": text}


def build_invoice_sent_email(*, tenant_name: str, invoice_number: str, total: Decimal, due_date: date) -> dict[str, str]:
    link = f"{_base_url()}/invoices?number={invoice_number}"
    subject = f"Invoice {invoice_number}"
    html = (
        f"<p>Dear {tenant_name},</p>"
        f"<p>Invoice <strong>{invoice_number}</strong> for {_money(total)} is due on {due_date.isoformat()}.</p>"
        f"<p><a href=\"{link}\">View invoice</a></p>"
    )
    text = _join_text(
        f"Dear {tenant_name},",
        f"Invoice {invoice_number} for {_money(total)} is due on {due_date.isoformat()}.",
        f"View: {link}",
    )
    return {"subject": subject, "html": html, "text": text}


def build_invoice_reminder_email(
    *, tenant_name: str, invoice_number: str, balance: Decimal, due_date: date, days_before: int
) -> dict[str, str]:
    subject = f"Reminder: invoice {invoice_number} is due in {days_before} days"
    html = (
        f"<p>Dear {tenant_name},</p>"
        f"<p>This is a reminder that invoice <strong>{invoice_number}</strong> "
        f"has an outstanding balance of {_money(balance)} due on {due_date.isoformat()}.</p>"
    )
    text = _join_text(
        f"Dear {tenant_name},",
        f"Invoice {invoice_number} has an outstanding balance of {_money(balance)} due on {due_date.isoformat()}.",
    )
    return {"subject": subject, "html": html, "text": text}


def build_invoice_overdue_email(
    *, tenant_name: str, invoice_number: str, balance: Decimal, due_date: date
) -> dict[str, str]:
    subject = f"Invoice {invoice_number} is overdue"
    html = (
        f"<p>Dear {tenant_name},</p>"
        f"<p>Invoice <strong>{invoice_number}</strong> was due on {due_date.isoformat()} "
        f"and has an outstanding balance of {_money(balance)}.</p>"
        f"<p>Please arrange payment as soon as possible.</p>"
    )
    text = _join_text(
        f"Dear {tenant_name},",
        f"Invoice {invoice_number} was due on {due_date.isoformat()} and has an outstanding balance of {_money(balance)}.",
        "Please arrange payment as soon as possible.",
    )
    return {"subject": subject, "html": html, "text": text}


def build_late_fee_email(
    *, tenant_name: str, invoice_number: str, late_fee: Decimal, balance: Decimal
) -> dict[str, str]:
    subject = f"Late fee applied to invoice {invoice_number}"
    html = (
        f"<p>Dear {tenant_name},</p>"
        f"<p>A late fee of {_money(late_fee)} was added to invoice <strong>{invoice_number}</strong>. "
        f"The new balance is {_money(balance)}.</p>"
    )
    text = _join_text(
        f"Dear {tenant_name},",
        f"A late fee of {_money(late_fee)} was added to invoice {invoice_number}.",
        f"New balance: {_money(balance)}",
    )
    return {"subject": subject, "html": html, "text": text}


def build_pdc_bounced_email(*, tenant_name: str, cheque_number: str, amount: Decimal, reason: str) -> dict[str, str]:
    subject = f"Cheque {cheque_number} was returned"
    html = (
        f"<p>Dear {tenant_name},</p>"
        f"<p>Cheque <strong>{cheque_number}</strong> for {_money(amount)} was returned by the bank.</p>"
        f"<p>Reason: {reason}</p>"
        f"<p>Please provide a replacement cheque.</p>"
    )
    text = _join_text(
        f"Dear {tenant_name},",
        f"Cheque {cheque_number} for {_money(amount)} was returned by the bank.",
        f"Reason: {reason}",
        "Please provide a replacement cheque.",
    )
    return {"subject": subject, "html": html, "text": text}
