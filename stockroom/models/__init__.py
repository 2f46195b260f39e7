from .product import Product, EXPORT_FIELDS
from .inventory_history import InventoryHistory
from .user import User

# This ensures all models are registered with SQLAlchemy
__all__ = [
    'Product',
    'EXPORT_FIELDS',
    'InventoryHistory',
    'User',
]
