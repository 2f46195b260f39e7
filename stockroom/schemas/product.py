"""
Schemas for product-related API endpoints.
"""

from typing import Optional
from pydantic import field_validator

from stockroom.schemas.base import BaseSchema

# Largest value a 32-bit INTEGER column holds
MAX_STOCK = 2**31 - 1


class ProductValidationMixin(BaseSchema):
    """
    --- Mixin class for shared validation logic ---
    Create and update accept the same body, so both inherit these rules.
    """

    @field_validator('name', mode='before', check_fields=False)
    @classmethod
    def validate_name(cls, v):
        if v is None or not isinstance(v, str) or not v.strip():
            raise ValueError('Name is required')
        return v

    @field_validator('stock', mode='before', check_fields=False)
    @classmethod
    def validate_stock(cls, v):
        """Stock must be a whole number between 0 and MAX_STOCK; numeric strings are accepted"""
        if v is None or v == '' or isinstance(v, bool):
            raise ValueError('Stock must be a number >= 0')
        if isinstance(v, float):
            if not v.is_integer():
                raise ValueError('Stock must be a number >= 0')
            v = int(v)
        elif isinstance(v, str):
            try:
                v = int(v.strip())
            except ValueError:
                raise ValueError('Stock must be a number >= 0')
        elif not isinstance(v, int):
            raise ValueError('Stock must be a number >= 0')
        if v < 0 or v > MAX_STOCK:
            raise ValueError('Stock must be a number >= 0')
        return v

    @field_validator('unit', 'category', 'brand', 'status', 'image', mode='before', check_fields=False)
    @classmethod
    def validate_optional_text(cls, v):
        if v is None:
            return ""
        return str(v)


class ProductBase(ProductValidationMixin):
    """Base model for product data common to all operations"""
    name: str
    stock: int

    # Optional descriptive fields
    unit: str = ""
    category: str = ""
    brand: str = ""
    status: str = ""
    image: str = ""


class ProductCreate(ProductBase):
    """Body for POST /products"""
    pass


class ProductUpdate(ProductBase):
    """Body for PUT /products/{id}; a full replacement, same rules as create"""
    pass


class ProductRead(BaseSchema):
    id: int
    name: str
    unit: Optional[str] = ""
    category: Optional[str] = ""
    brand: Optional[str] = ""
    stock: int
    status: Optional[str] = ""
    image: Optional[str] = ""


class ProductSummary(BaseSchema):
    """Identity of the product a history listing belongs to"""
    id: int
    name: str


