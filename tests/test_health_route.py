from fastapi.testclient import TestClient

from estatedesk.core.rbac import has_permission
from estatedesk.models.user import Role


def test_health(client: TestClient) -> None:
    response = client.get("/health", headers={"X-Request-Id": "req-123"})

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "EstateDesk Backend"}
    assert response.headers["X-Request-Id"] == "req-123"


def test_role_permissions() -> None:
    assert has_permission(Role.SUPER_ADMIN, "anything:at-all")
    assert has_permission(Role.FINANCE_MANAGER, "invoices:write")
    assert not has_permission(Role.FINANCE_MANAGER, "pm:write")
    assert not has_permission(Role.TENANT, "invoices:write")
    assert has_permission(Role.VENDOR, "pm:read")
