"""
Schema exports for the application.
"""

# Base schemas
from .base import BaseSchema

# Product schemas
from .product import (
    ProductBase,
    ProductCreate,
    ProductUpdate,
    ProductRead,
    ProductSummary
)

# History schemas
from .inventory_history import InventoryHistoryRead

# User schemas
from .user import UserRegister, UserLogin, UserPublic, UserRead
