from .stations import Station, StationSettings, DocumentSequence
from .auth import User, SessionToken, ROLES
from .security import SecurityEvent
from .catalog import Product, PriceHistory, PRODUCT_CATEGORIES
from .tanks import Tank, StockMovement, Pump, PumpReading, MOVEMENT_TYPES, TANK_STATUSES
from .parties import Customer, Supplier, CUSTOMER_TYPES
from .finance import Payment, Expense, PAYMENT_TYPES, PAYMENT_METHODS
from .sales import SalesTransaction, SalesTransactionItem, SALE_PAYMENT_METHODS, DOCUMENT_SOURCES
from .purchasing import PurchaseOrder, PurchaseOrderItem, PO_STATUSES
from .accounting import Account, JournalEntry, JournalLine, ACCOUNT_TYPES, NORMAL_BALANCES

__all__ = [
    'Station', 'StationSettings', 'DocumentSequence',
    'User', 'SessionToken', 'SecurityEvent',
    'Product', 'PriceHistory',
    'Tank', 'StockMovement', 'Pump', 'PumpReading',
    'Customer', 'Supplier',
    'Payment', 'Expense',
    'SalesTransaction', 'SalesTransactionItem',
    'PurchaseOrder', 'PurchaseOrderItem',
    'Account', 'JournalEntry', 'JournalLine',
    'ROLES', 'PRODUCT_CATEGORIES', 'MOVEMENT_TYPES', 'TANK_STATUSES', 'CUSTOMER_TYPES',
    'PAYMENT_TYPES', 'PAYMENT_METHODS', 'SALE_PAYMENT_METHODS', 'DOCUMENT_SOURCES',
    'PO_STATUSES', 'ACCOUNT_TYPES', 'NORMAL_BALANCES',
]
