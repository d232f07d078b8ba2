from datetime import date, datetime
from decimal import Decimal

from pydantic import Field

from estatedesk.models.pdc import PDCStatus
from estatedesk.schemas.camel_model import CamelModel


class PDCCreate(CamelModel):
    tenant_id: int
    invoice_id: int | None = None
    cheque_number: str = Field(min_length=1, max_length=50)
    bank_name: str = Field(min_length=1, max_length=100)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    cheque_date: date
    notes: str | None = Field(default=None, max_length=500)


class PDCReplace(CamelModel):
    cheque_number: str = Field(min_length=1, max_length=50)
    bank_name: str = Field(min_length=1, max_length=100)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    cheque_date: date
    notes: str | None = Field(default=None, max_length=500)


class PDCDeposit(CamelModel):
    deposit_date: date


class PDCClear(CamelModel):
    cleared_date: date


class PDCBounce(CamelModel):
    bounced_date: date
    reason: str = Field(min_length=1, max_length=255)


class PDCWithdraw(CamelModel):
    withdrawal_date: date
    reason: str = Field(min_length=1, max_length=255)


class PDCRead(CamelModel):
    id: int
    cheque_number: str
    bank_name: str
    tenant_id: int
    invoice_id: int | None = None
    amount: Decimal
    cheque_date: date
    status: PDCStatus
    deposit_date: date | None = None
    cleared_date: date | None = None
    bounced_date: date | None = None
    withdrawal_date: date | None = None
    bounce_reason: str | None = None
    withdrawal_reason: str | None = None
    replacement_pdc_id: int | None = None
    original_pdc_id: int | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
