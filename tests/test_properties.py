from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from estatedesk.core.errors import Conflict, NotFound, ValidationFailed
from estatedesk.models.user import Role
from estatedesk.services import invoices as invoice_service
from estatedesk.services import properties as property_service


def _auth(tokens: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {tokens['accessToken']}"}


def test_manager_creates_property_and_tenant(client: TestClient, make_user, login) -> None:
    make_user("manager@estatedesk.dev", role=Role.PROPERTY_MANAGER)
    headers = _auth(login("manager@estatedesk.dev"))

    created = client.post("/properties", json={"name": "Palm Residence", "address": "7 Creek Lane"}, headers=headers)
    assert created.status_code == 201, created.text
    property_id = created.json()["id"]

    tenant = client.post(
        "/tenants",
        json={"propertyId": property_id, "fullName": "Omar Said", "email": "Omar@Tenant.dev"},
        headers=headers,
    )
    assert tenant.status_code == 201, tenant.text
    assert tenant.json()["email"] == "omar@tenant.dev"
    assert tenant.json()["isActive"] is True

    listed = client.get(f"/properties/{property_id}/tenants", headers=headers)
    assert [item["fullName"] for item in listed.json()] == ["Omar Said"]

    duplicate = client.post(
        "/tenants",
        json={"propertyId": property_id, "fullName": "Someone Else", "email": "omar@tenant.dev"},
        headers=headers,
    )
    assert duplicate.status_code == 409


def test_property_routes_respect_permissions(client: TestClient, make_user, login) -> None:
    make_user("finance@estatedesk.dev", role=Role.FINANCE_MANAGER)
    make_user("tenant@estatedesk.dev", role=Role.TENANT)
    finance = _auth(login("finance@estatedesk.dev"))
    tenant = _auth(login("tenant@estatedesk.dev"))

    assert client.post("/properties", json={"name": "Blocked"}, headers=finance).status_code == 403
    assert client.get("/properties", headers=finance).status_code == 200
    assert client.get("/properties", headers=tenant).status_code == 403
    assert client.get("/properties/999", headers=finance).status_code == 404


def test_property_names_are_unique_among_live_properties(db: Session) -> None:
    prop = property_service.create_property(db, name="Marina Tower")

    with pytest.raises(ValidationFailed):
        property_service.create_property(db, name="  marina tower ")

    property_service.delete_property(db, prop.id)
    again = property_service.create_property(db, name="Marina Tower")
    assert again.id != prop.id
    assert [item.id for item in property_service.list_properties(db)] == [again.id]


def test_tenant_requires_live_property(db: Session) -> None:
    prop = property_service.create_property(db, name="Old Warehouse")
    property_service.delete_property(db, prop.id)

    with pytest.raises(NotFound):
        property_service.create_tenant(db, property_id=prop.id, full_name="Late Arrival", email="late@tenant.dev")
    with pytest.raises(NotFound):
        property_service.create_tenant(db, property_id=404, full_name="Nobody", email="nobody@tenant.dev")


def test_property_with_active_tenant_cannot_be_deleted(db: Session) -> None:
    prop = property_service.create_property(db, name="Garden Villas")
    tenant = property_service.create_tenant(db, property_id=prop.id, full_name="Lina Haddad", email="lina@tenant.dev")

    with pytest.raises(ValidationFailed):
        property_service.delete_property(db, prop.id)
    with pytest.raises(Conflict):
        property_service.create_tenant(db, property_id=prop.id, full_name="Lina H", email="LINA@tenant.dev")

    property_service.deactivate_tenant(db, tenant.id)
    assert property_service.deactivate_tenant(db, tenant.id).is_active is False
    with pytest.raises(ValidationFailed):
        invoice_service.create_invoice(
            db,
            tenant_id=tenant.id,
            property_id=prop.id,
            base_rent=Decimal("900.00"),
            invoice_date=date(2026, 5, 1),
            due_date=date(2026, 5, 31),
        )

    property_service.delete_property(db, prop.id)
    with pytest.raises(NotFound):
        property_service.get_property(db, prop.id)
