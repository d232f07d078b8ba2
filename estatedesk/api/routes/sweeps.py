from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from estatedesk.api.deps import SessionDep, require_roles
from estatedesk.core.errors import NotFound
from estatedesk.models.user import Role, User
from estatedesk.schemas.sweep import SweepResultRead
from estatedesk.services.sweeps import SWEEPS, run_sweep

router = APIRouter(prefix="/sweeps", tags=["sweeps"])

AdminDep = Annotated[User, Depends(require_roles(Role.SUPER_ADMIN))]


@router.post("/{name}", response_model=SweepResultRead)
def run_named_sweep(name: str, session: SessionDep, current_user: AdminDep) -> SweepResultRead:
    if name not in SWEEPS:
        raise NotFound("Sweep", name)
    result = run_sweep(session, name)
    return SweepResultRead(name=result.name, ok=result.ok, affected=result.affected, error=result.error)
