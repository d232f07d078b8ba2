from __future__ import annotations

from functools import lru_cache

from estatedesk.models.user import Role

_ROLE_PERMISSIONS: dict[Role, frozenset[str]] = {
    Role.SUPER_ADMIN: frozenset({"*"}),
    Role.PROPERTY_MANAGER: frozenset(
        {
            "properties:read",
            "properties:write",
            "invoices:read",
            "invoices:write",
            "pdcs:read",
            "pdcs:write",
            "compliance:read",
            "compliance:write",
            "pm:read",
            "pm:write",
        }
    ),
    Role.FINANCE_MANAGER: frozenset(
        {
            "properties:read",
            "invoices:read",
            "invoices:write",
            "pdcs:read",
            "pdcs:write",
        }
    ),
    Role.MAINTENANCE_SUPERVISOR: frozenset(
        {
            "properties:read",
            "compliance:read",
            "compliance:write",
            "pm:read",
            "pm:write",
        }
    ),
    Role.TENANT: frozenset({"invoices:read"}),
    Role.VENDOR: frozenset({"pm:read"}),
}


def permissions_for_role(role: Role) -> frozenset[str]:
    """Pure lookup of the permission set granted to a role."""
    return _ROLE_PERMISSIONS.get(role, frozenset())


cached_permissions_for_role = lru_cache(maxsize=None)(permissions_for_role)


def has_permission(role: Role, permission: str) -> bool:
    granted = cached_permissions_for_role(role)
    return "*" in granted or permission in granted
