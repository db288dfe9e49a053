# Overview: Permission system package.
# Re-exports all public APIs.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    SALES_PERMISSIONS,
    PURCHASING_PERMISSIONS,
    INVENTORY_PERMISSIONS,
    PARTY_PERMISSIONS,
    ACCOUNTING_PERMISSIONS,
    REPORT_PERMISSIONS,
    SYSTEM_PERMISSIONS,
)
from .roles import ALL_PERMISSION_CODES, DEFAULT_ROLE_PERMISSIONS, ROLE_ROUTE_ACCESS


def permissions_for_role(role: str | None) -> frozenset:
    """Unknown roles get nothing (fail closed)."""
    return DEFAULT_ROLE_PERMISSIONS.get(role or "", frozenset())


def role_can_access_path(role: str | None, path: str) -> bool:
    allowed = ROLE_ROUTE_ACCESS.get(role or "", [])
    if "*" in allowed or path in allowed:
        return True
    return any(path.startswith(prefix) for prefix in allowed if prefix != "/")


__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "SALES_PERMISSIONS",
    "PURCHASING_PERMISSIONS",
    "INVENTORY_PERMISSIONS",
    "PARTY_PERMISSIONS",
    "ACCOUNTING_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "SYSTEM_PERMISSIONS",
    "ALL_PERMISSION_CODES",
    "DEFAULT_ROLE_PERMISSIONS",
    "ROLE_ROUTE_ACCESS",
    "permissions_for_role",
    "role_can_access_path",
]
