# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- SALES --

SALES_PERMISSIONS = [
    ("VIEW_SALES", "View Sales", "List and read sales transactions", PermissionCategory.SALES),
    ("CREATE_SALE", "Create Sale", "Record sales transactions at the POS", PermissionCategory.SALES),
    ("EDIT_SALE", "Edit Sale", "Change a recorded sales transaction", PermissionCategory.SALES),
    ("DELETE_SALE", "Delete Sale", "Delete a sales transaction and reverse its effects", PermissionCategory.SALES),
]


# -- PURCHASING --

PURCHASING_PERMISSIONS = [
    ("VIEW_PURCHASE_ORDERS", "View Purchase Orders", "List and read purchase orders", PermissionCategory.PURCHASING),
    ("MANAGE_PURCHASE_ORDERS", "Manage Purchase Orders", "Create, edit and delete purchase orders", PermissionCategory.PURCHASING),
    ("RECEIVE_DELIVERIES", "Receive Deliveries", "Approve purchase orders and mark them delivered", PermissionCategory.PURCHASING),
]


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    ("VIEW_INVENTORY", "View Inventory", "View tanks, pumps and stock movements", PermissionCategory.INVENTORY),
    ("MANAGE_TANKS", "Manage Tanks", "Create tanks and pumps", PermissionCategory.INVENTORY),
    ("ADJUST_STOCK", "Adjust Stock", "Set tank stock from a dip reading", PermissionCategory.INVENTORY),
    ("RECORD_PUMP_READINGS", "Record Pump Readings", "Record shift meter readings", PermissionCategory.INVENTORY),
    ("MANAGE_PRODUCTS", "Manage Products", "Create products and change prices", PermissionCategory.INVENTORY),
]


# -- PARTIES --

PARTY_PERMISSIONS = [
    ("VIEW_CUSTOMERS", "View Customers", "List customers and balances", PermissionCategory.PARTIES),
    ("MANAGE_CUSTOMERS", "Manage Customers", "Create and edit customers", PermissionCategory.PARTIES),
    ("VIEW_SUPPLIERS", "View Suppliers", "List suppliers and balances", PermissionCategory.PARTIES),
    ("MANAGE_SUPPLIERS", "Manage Suppliers", "Create and edit suppliers", PermissionCategory.PARTIES),
    ("CORRECT_BALANCES", "Correct Balances", "Overwrite a customer or supplier balance", PermissionCategory.PARTIES),
]


# -- ACCOUNTING --

ACCOUNTING_PERMISSIONS = [
    ("RECORD_PAYMENTS", "Record Payments", "Record customer and supplier payments", PermissionCategory.ACCOUNTING),
    ("RECORD_EXPENSES", "Record Expenses", "Record operating expenses", PermissionCategory.ACCOUNTING),
    ("VIEW_LEDGER", "View Ledger", "View accounts, journal entries and trial balance", PermissionCategory.ACCOUNTING),
    ("POST_JOURNAL", "Post Journal", "Post manual and reversing journal entries", PermissionCategory.ACCOUNTING),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    ("VIEW_DASHBOARD", "View Dashboard", "View station dashboard rollups", PermissionCategory.REPORTS),
]


# -- SYSTEM --

SYSTEM_PERMISSIONS = [
    ("MANAGE_STATIONS", "Manage Stations", "Create stations and edit station settings", PermissionCategory.SYSTEM),
    ("BULK_IMPORT", "Bulk Import", "Import historical records from CSV", PermissionCategory.SYSTEM),
]


PERMISSION_DEFINITIONS = (
    SALES_PERMISSIONS
    + PURCHASING_PERMISSIONS
    + INVENTORY_PERMISSIONS
    + PARTY_PERMISSIONS
    + ACCOUNTING_PERMISSIONS
    + REPORT_PERMISSIONS
    + SYSTEM_PERMISSIONS
)
