from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from estatedesk.api.deps import SessionDep, require_permission
from estatedesk.models.property import Property, Tenant
from estatedesk.models.user import User
from estatedesk.schemas.property import PropertyCreate, PropertyRead, TenantCreate, TenantRead
from estatedesk.services import properties as property_service

router = APIRouter(tags=["properties"])

ReaderDep = Annotated[User, Depends(require_permission("properties:read"))]
WriterDep = Annotated[User, Depends(require_permission("properties:write"))]


@router.post("/properties", response_model=PropertyRead, status_code=status.HTTP_201_CREATED)
def create_property(payload: PropertyCreate, session: SessionDep, current_user: WriterDep) -> Property:
    return property_service.create_property(session, name=payload.name, address=payload.address)


@router.get("/properties", response_model=list[PropertyRead])
def list_properties(session: SessionDep, current_user: ReaderDep) -> list[Property]:
    return property_service.list_properties(session)


@router.get("/properties/{property_id}", response_model=PropertyRead)
def get_property(property_id: int, session: SessionDep, current_user: ReaderDep) -> Property:
    return property_service.get_property(session, property_id)


@router.delete("/properties/{property_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_property(property_id: int, session: SessionDep, current_user: WriterDep) -> None:
    property_service.delete_property(session, property_id)


@router.get("/properties/{property_id}/tenants", response_model=list[TenantRead])
def list_tenants(property_id: int, session: SessionDep, current_user: ReaderDep) -> list[Tenant]:
    return property_service.list_tenants(session, property_id)


@router.post("/tenants", response_model=TenantRead, status_code=status.HTTP_201_CREATED)
def create_tenant(payload: TenantCreate, session: SessionDep, current_user: WriterDep) -> Tenant:
    return property_service.create_tenant(
        session,
        property_id=payload.property_id,
        full_name=payload.full_name,
        email=payload.email,
    )


@router.get("/tenants/{tenant_id}", response_model=TenantRead)
def get_tenant(tenant_id: int, session: SessionDep, current_user: ReaderDep) -> Tenant:
    return property_service.get_tenant(session, tenant_id)


@router.post("/tenants/{tenant_id}/deactivate", response_model=TenantRead)
def deactivate_tenant(tenant_id: int, session: SessionDep, current_user: WriterDep) -> Tenant:
    return property_service.deactivate_tenant(session, tenant_id)
