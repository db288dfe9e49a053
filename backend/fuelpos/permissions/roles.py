# Overview: Static role -> permission mapping and the UI route table.

from .definitions import PERMISSION_DEFINITIONS

ALL_PERMISSION_CODES = frozenset(code for code, _, _, _ in PERMISSION_DEFINITIONS)

DEFAULT_ROLE_PERMISSIONS = {
    # Admin has every permission and is not pinned to a station
    "admin": ALL_PERMISSION_CODES,
    "manager": frozenset({
        "VIEW_SALES", "CREATE_SALE", "EDIT_SALE", "DELETE_SALE",
        "VIEW_PURCHASE_ORDERS", "MANAGE_PURCHASE_ORDERS", "RECEIVE_DELIVERIES",
        "VIEW_INVENTORY", "MANAGE_TANKS", "ADJUST_STOCK", "RECORD_PUMP_READINGS",
        "VIEW_CUSTOMERS", "MANAGE_CUSTOMERS", "VIEW_SUPPLIERS", "MANAGE_SUPPLIERS",
        "RECORD_PAYMENTS", "RECORD_EXPENSES", "VIEW_LEDGER", "POST_JOURNAL",
        "VIEW_DASHBOARD",
    }),
    "cashier": frozenset({
        "VIEW_SALES", "CREATE_SALE",
        "VIEW_CUSTOMERS",
        "VIEW_INVENTORY", "RECORD_PUMP_READINGS",
        "VIEW_DASHBOARD",
    }),
}

# Path prefixes each role may navigate to in the web client. UX only:
# enforcement is always the permission check on the API route.
ROLE_ROUTE_ACCESS = {
    "admin": ["*"],
    "manager": [
        "/", "/profile", "/pos", "/sales-history", "/customers", "/stock",
        "/purchase-orders", "/accounts-receivable", "/accounts-payable",
        "/cash-reconciliation", "/expenses", "/suppliers", "/pricing",
        "/financial-reports", "/tanks", "/pumps", "/daily-reports",
        "/aging-reports", "/general-ledger", "/customer-activity", "/settings",
    ],
    "cashier": ["/", "/profile", "/pos", "/sales-history", "/customers"],
}
