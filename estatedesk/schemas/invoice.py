from datetime import date, datetime
from decimal import Decimal

from pydantic import Field

from estatedesk.models.invoice import InvoiceStatus, PaymentMethod
from estatedesk.schemas.camel_model import CamelModel


class InvoiceCreate(CamelModel):
    tenant_id: int
    property_id: int
    base_rent: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    service_charges: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    parking_fees: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    invoice_date: date | None = None
    due_date: date | None = None
    notes: str | None = Field(default=None, max_length=500)


class InvoiceRead(CamelModel):
    id: int
    invoice_number: str
    tenant_id: int
    property_id: int
    invoice_date: date
    due_date: date
    base_rent: Decimal
    service_charges: Decimal
    parking_fees: Decimal
    late_fee: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    status: InvoiceStatus
    late_fee_applied: bool
    sent_at: datetime | None = None
    paid_at: datetime | None = None
    last_reminder_sent_on: date | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class PaymentCreate(CamelModel):
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    payment_date: date
    method: PaymentMethod
    reference: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=500)


class PaymentRead(CamelModel):
    id: int
    payment_number: str
    invoice_id: int
    tenant_id: int
    amount: Decimal
    payment_date: date
    method: PaymentMethod
    reference: str | None = None
    notes: str | None = None
    created_at: datetime


class LateFeeRequest(CamelModel):
    amount: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
