from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from estatedesk.api.deps import SessionDep, require_permission
from estatedesk.models.pdc import PDC
from estatedesk.models.user import User
from estatedesk.schemas.pdc import PDCBounce, PDCClear, PDCCreate, PDCDeposit, PDCRead, PDCReplace, PDCWithdraw
from estatedesk.services import pdcs as pdc_service

router = APIRouter(prefix="/pdcs", tags=["pdcs"])

ReaderDep = Annotated[User, Depends(require_permission("pdcs:read"))]
WriterDep = Annotated[User, Depends(require_permission("pdcs:write"))]


@router.post("", response_model=PDCRead, status_code=status.HTTP_201_CREATED)
def register_pdc(payload: PDCCreate, session: SessionDep, current_user: WriterDep) -> PDC:
    return pdc_service.register_pdc(
        session,
        tenant_id=payload.tenant_id,
        invoice_id=payload.invoice_id,
        cheque_number=payload.cheque_number,
        bank_name=payload.bank_name,
        amount=payload.amount,
        cheque_date=payload.cheque_date,
        notes=payload.notes,
        created_by=current_user.id,
    )


@router.get("/{pdc_id}", response_model=PDCRead)
def get_pdc(pdc_id: int, session: SessionDep, current_user: ReaderDep) -> PDC:
    return pdc_service.get_pdc(session, pdc_id)


@router.post("/{pdc_id}/deposit", response_model=PDCRead)
def deposit_pdc(pdc_id: int, payload: PDCDeposit, session: SessionDep, current_user: WriterDep) -> PDC:
    return pdc_service.deposit_pdc(session, pdc_id, deposit_date=payload.deposit_date)


@router.post("/{pdc_id}/clear", response_model=PDCRead)
def clear_pdc(pdc_id: int, payload: PDCClear, session: SessionDep, current_user: WriterDep) -> PDC:
    return pdc_service.clear_pdc(session, pdc_id, cleared_date=payload.cleared_date)


@router.post("/{pdc_id}/bounce", response_model=PDCRead)
def bounce_pdc(pdc_id: int, payload: PDCBounce, session: SessionDep, current_user: WriterDep) -> PDC:
    return pdc_service.bounce_pdc(
        session,
        pdc_id,
        bounced_date=payload.bounced_date,
        reason=payload.reason,
    )


@router.post("/{pdc_id}/replace", response_model=PDCRead, status_code=status.HTTP_201_CREATED)
def replace_pdc(pdc_id: int, payload: PDCReplace, session: SessionDep, current_user: WriterDep) -> PDC:
    return pdc_service.replace_pdc(
        session,
        pdc_id,
        cheque_number=payload.cheque_number,
        bank_name=payload.bank_name,
        amount=payload.amount,
        cheque_date=payload.cheque_date,
        notes=payload.notes,
        created_by=current_user.id,
    )


@router.post("/{pdc_id}/withdraw", response_model=PDCRead)
def withdraw_pdc(pdc_id: int, payload: PDCWithdraw, session: SessionDep, current_user: WriterDep) -> PDC:
    return pdc_service.withdraw_pdc(
        session,
        pdc_id,
        withdrawal_date=payload.withdrawal_date,
        reason=payload.reason,
    )


@router.post("/{pdc_id}/cancel", response_model=PDCRead)
def cancel_pdc(pdc_id: int, session: SessionDep, current_user: WriterDep) -> PDC:
    return pdc_service.cancel_pdc(session, pdc_id)
