from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from estatedesk.models.base import BaseTable


class PDCStatus(str, Enum):
    RECEIVED = "RECEIVED"
    DUE = "DUE"
    DEPOSITED = "DEPOSITED"
    CLEARED = "CLEARED"
    BOUNCED = "BOUNCED"
    REPLACED = "REPLACED"
    WITHDRAWN = "WITHDRAWN"
    CANCELLED = "CANCELLED"


# status -> statuses it may move to
PDC_TRANSITIONS: dict[PDCStatus, tuple[PDCStatus, ...]] = {
    PDCStatus.RECEIVED: (PDCStatus.DUE, PDCStatus.WITHDRAWN, PDCStatus.CANCELLED),
    PDCStatus.DUE: (PDCStatus.DEPOSITED, PDCStatus.WITHDRAWN),
    PDCStatus.DEPOSITED: (PDCStatus.CLEARED, PDCStatus.BOUNCED),
    PDCStatus.BOUNCED: (PDCStatus.REPLACED,),
    PDCStatus.CLEARED: (),
    PDCStatus.REPLACED: (),
    PDCStatus.WITHDRAWN: (),
    PDCStatus.CANCELLED: (),
}


class PDC(BaseTable, table=True):
    __tablename__: str = "pdcs"  # type: ignore[assignment]
    __table_args__ = (
        UniqueConstraint("cheque_number", "tenant_id", name="uq_pdcs_cheque_number_tenant_id"),
    )

    cheque_number: str = Field(nullable=False, index=True, max_length=50)
    bank_name: str = Field(nullable=False, max_length=100)
    tenant_id: int = Field(nullable=False, foreign_key="tenants.id", index=True)
    invoice_id: int | None = Field(default=None, foreign_key="invoices.id", index=True)

    amount: Decimal = Field(max_digits=12, decimal_places=2)
    cheque_date: date = Field(nullable=False, index=True)
    deposit_date: date | None = Field(default=None)
    cleared_date: date | None = Field(default=None)
    bounced_date: date | None = Field(default=None)
    withdrawal_date: date | None = Field(default=None)

    status: PDCStatus = Field(default=PDCStatus.RECEIVED, nullable=False, index=True)
    bounce_reason: str | None = Field(default=None, max_length=255)
    withdrawal_reason: str | None = Field(default=None, max_length=255)

    replacement_pdc_id: int | None = Field(default=None, foreign_key="pdcs.id")
    original_pdc_id: int | None = Field(default=None, foreign_key="pdcs.id")
    notes: str | None = Field(default=None, max_length=500)
    created_by: int | None = Field(default=None, foreign_key="users.id")

    def can_transition_to(self, target: PDCStatus) -> bool:
        return target in PDC_TRANSITIONS.get(self.status, ())
