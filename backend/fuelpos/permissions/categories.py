# Overview: Groups used when listing permissions by area.


class PermissionCategory:
    """Area a permission belongs to; used by GET /api/auth/permissions."""
    SALES = "SALES"
    PURCHASING = "PURCHASING"
    INVENTORY = "INVENTORY"
    PARTIES = "PARTIES"
    ACCOUNTING = "ACCOUNTING"
    REPORTS = "REPORTS"
    SYSTEM = "SYSTEM"
