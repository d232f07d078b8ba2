from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlmodel import Field

from estatedesk.models.base import BaseTable

ZERO = Decimal("0.00")


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


PAYABLE_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.OVERDUE)
AGING_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID)


class PaymentMethod(str, Enum):
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    CARD = "CARD"
    CHEQUE = "CHEQUE"
    PDC = "PDC"


class Invoice(BaseTable, table=True):
    __tablename__: str = "invoices"  # type: ignore[assignment]

    invoice_number: str = Field(nullable=False, unique=True, index=True, max_length=20)
    tenant_id: int = Field(nullable=False, foreign_key="tenants.id", index=True)
    property_id: int = Field(nullable=False, foreign_key="properties.id", index=True)

    invoice_date: date = Field(nullable=False, index=True)
    due_date: date = Field(nullable=False, index=True)
    sent_at: datetime | None = Field(default=None)
    paid_at: datetime | None = Field(default=None)

    base_rent: Decimal = Field(default=ZERO, max_digits=12, decimal_places=2)
    service_charges: Decimal = Field(default=ZERO, max_digits=12, decimal_places=2)
    parking_fees: Decimal = Field(default=ZERO, max_digits=12, decimal_places=2)
    late_fee: Decimal = Field(default=ZERO, max_digits=12, decimal_places=2)
    total_amount: Decimal = Field(default=ZERO, max_digits=12, decimal_places=2)
    paid_amount: Decimal = Field(default=ZERO, max_digits=12, decimal_places=2)
    balance_amount: Decimal = Field(default=ZERO, max_digits=12, decimal_places=2)

    status: InvoiceStatus = Field(default=InvoiceStatus.DRAFT, nullable=False, index=True)
    late_fee_applied: bool = Field(default=False, nullable=False)
    last_reminder_sent_on: date | None = Field(default=None)
    notes: str | None = Field(default=None, max_length=500)
    created_by: int | None = Field(default=None, foreign_key="users.id")

    def calculate_totals(self) -> None:
        self.total_amount = (
            (self.base_rent or ZERO)
            + (self.service_charges or ZERO)
            + (self.parking_fees or ZERO)
            + (self.late_fee or ZERO)
        )
        self.balance_amount = self.total_amount - (self.paid_amount or ZERO)

    def can_receive_payment(self) -> bool:
        return self.status in PAYABLE_STATUSES

    def can_be_cancelled(self) -> bool:
        if self.status == InvoiceStatus.DRAFT:
            return True
        return self.status == InvoiceStatus.SENT and (self.paid_amount or ZERO) == ZERO


class Payment(BaseTable, table=True):
    __tablename__: str = "payments"  # type: ignore[assignment]

    payment_number: str = Field(nullable=False, unique=True, index=True, max_length=20)
    invoice_id: int = Field(nullable=False, foreign_key="invoices.id", index=True)
    tenant_id: int = Field(nullable=False, foreign_key="tenants.id", index=True)
    amount: Decimal = Field(max_digits=12, decimal_places=2)
    payment_date: date = Field(nullable=False)
    method: PaymentMethod = Field(nullable=False)
    reference: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=500)
    recorded_by: int | None = Field(default=None, foreign_key="users.id")
