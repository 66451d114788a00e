from .tenancy import Shop
from .catalog import Category, Product, DEFAULT_LOW_STOCK_THRESHOLD
from .customers import Customer
from .sales import Transaction, TransactionLine, WALK_IN_CUSTOMER_NAME

__all__ = [
    'Shop',
    'Category', 'Product', 'DEFAULT_LOW_STOCK_THRESHOLD',
    'Customer',
    'Transaction', 'TransactionLine', 'WALK_IN_CUSTOMER_NAME',
]
