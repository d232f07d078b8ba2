from __future__ import annotations

import logging
from datetime import datetime

from sqlmodel import Session, col, func, select

from estatedesk.core.errors import Conflict, NotFound, ValidationFailed
from estatedesk.models.base import utcnow
from estatedesk.models.property import Property, Tenant

logger = logging.getLogger(__name__)


def get_property(session: Session, property_id: int) -> Property:
    prop = session.get(Property, property_id)
    if prop is None or prop.is_deleted:
        raise NotFound("Property", property_id)
    return prop


def list_properties(session: Session) -> list[Property]:
    return list(session.exec(select(Property).where(Property.not_deleted()).order_by(Property.name)).all())


def create_property(session: Session, *, name: str, address: str | None = None) -> Property:
    """Register a property. Names are unique among properties that are not deleted."""
    name = name.strip()
    if not name:
        raise ValidationFailed("Property name is required", errors={"name": ["Required"]})

    duplicate = session.exec(
        select(Property).where(
            func.lower(Property.name) == name.lower(),
            Property.not_deleted(),
        )
    ).first()
    if duplicate is not None:
        raise ValidationFailed(
            "Property with this name already exists",
            errors={"name": ["Property with this name already exists"]},
        )

    prop = Property(name=name, address=address.strip() if address else None)
    session.add(prop)
    session.commit()
    session.refresh(prop)
    logger.info("property_created: %s", prop.id)
    return prop


def delete_property(session: Session, property_id: int, *, now: datetime | None = None) -> None:
    now = now or utcnow()
    prop = get_property(session, property_id)
    occupied = session.exec(
        select(Tenant).where(Tenant.property_id == prop.id, col(Tenant.is_active).is_(True))
    ).first()
    if occupied is not None:
        raise ValidationFailed("Cannot delete property with active tenants")

    prop.mark_deleted(now)
    prop.touch_updated(now)
    session.add(prop)
    session.commit()


def get_tenant(session: Session, tenant_id: int) -> Tenant:
    tenant = session.get(Tenant, tenant_id)
    if tenant is None:
        raise NotFound("Tenant", tenant_id)
    return tenant


def list_tenants(session: Session, property_id: int) -> list[Tenant]:
    get_property(session, property_id)
    return list(session.exec(select(Tenant).where(Tenant.property_id == property_id).order_by(Tenant.id)).all())


def create_tenant(session: Session, *, property_id: int, full_name: str, email: str) -> Tenant:
    prop = get_property(session, property_id)

    full_name = full_name.strip()
    email = email.strip().lower()
    if not full_name:
        raise ValidationFailed("Tenant name is required", errors={"fullName": ["Required"]})

    if session.exec(select(Tenant).where(func.lower(Tenant.email) == email)).first() is not None:
        raise Conflict(f"Email already exists: {email}")

    tenant = Tenant(property_id=prop.id, full_name=full_name, email=email)
    session.add(tenant)
    session.commit()
    session.refresh(tenant)
    logger.info("tenant_created: %s (property %s)", tenant.id, prop.id)
    return tenant


def deactivate_tenant(session: Session, tenant_id: int, *, now: datetime | None = None) -> Tenant:
    now = now or utcnow()
    tenant = get_tenant(session, tenant_id)
    if tenant.is_active:
        tenant.is_active = False
        tenant.touch_updated(now)
        session.add(tenant)
        session.commit()
        session.refresh(tenant)
    return tenant
