"""
Purpose: The central service for managing the core Product entity.

Role: Every write to a product goes through here, including the rows added
by CSV import, so validation and name uniqueness are enforced in one place.

This is a class which provides standard CRUD operations :
- List, search and fetch products
- Create a product (name must be unique, stock >= 0)
- Update a product, recording a stock-change history entry when stock moves
- Delete a product together with its history

Audit writes are best-effort. The product write is committed first; a
failure to append or purge history afterwards is logged and does not undo
or fail the product operation.

Uniqueness is check-then-insert without a lock. Two concurrent writers can
both pass the check; the unique constraint rejects the loser, which is
reported as a ConflictError.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from sqlalchemy import select, func, asc, desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.core.config import get_settings
from stockroom.core.exceptions import (
    BaseServiceError,
    ConflictError,
    DatabaseError,
    InvalidArgumentError,
    ProductNotFoundError,
)
from stockroom.core.utils import model_to_schema, models_to_schemas, validation_errors_to_fields
from stockroom.models.product import Product
from stockroom.schemas.product import ProductCreate, ProductRead, ProductUpdate
from stockroom.services.inventory_history_service import InventoryHistoryService

logger = logging.getLogger(__name__)

# Fields accepted by ?sort=; anything else falls back to id
SORTABLE_FIELDS = {
    "id": Product.id,
    "name": Product.name,
    "category": Product.category,
    "brand": Product.brand,
    "stock": Product.stock,
    "status": Product.status,
}


class ProductService:
    def __init__(self, db: AsyncSession, history_service: Optional[InventoryHistoryService] = None):
        self.db = db
        self.history = history_service or InventoryHistoryService(db)

    @staticmethod
    def _validate(data: Union[Dict[str, Any], ProductCreate, ProductUpdate], schema):
        """Accept either an already-validated schema or a raw dict."""
        if isinstance(data, schema):
            return data
        try:
            return schema.model_validate(data or {})
        except ValidationError as e:
            raise InvalidArgumentError("Validation failed", errors=validation_errors_to_fields(e.errors()))

    async def find_by_name(self, name: str, exclude_id: Optional[int] = None) -> Optional[Product]:
        """Exact, case-sensitive name lookup, optionally ignoring one product."""
        query = select(Product).where(Product.name == name)
        if exclude_id is not None:
            query = query.where(Product.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.scalars().first()

    async def find_by_name_insensitive(self, name: str) -> Optional[Product]:
        """Case-insensitive name lookup, used for import duplicate detection."""
        query = select(Product).where(func.lower(Product.name) == name.lower()).limit(1)
        result = await self.db.execute(query)
        return result.scalars().first()

    async def list_products(
        self,
        category: Optional[str] = None,
        sort: Optional[str] = None,
        order: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[ProductRead]:
        """
        List products with optional filtering, sorting and pagination.

        Args:
            category: Exact category to filter on
            sort: One of SORTABLE_FIELDS; unknown values sort by id
            order: "desc" for descending, anything else ascending
            page: 1-based page number; ignored unless limit is also given
            limit: Page size; ignored unless page is also given

        Returns:
            Products for the requested page; an empty list past the last page
        """
        query = select(Product)

        if category:
            query = query.where(Product.category == category)

        sort_column = SORTABLE_FIELDS.get(sort or "id", Product.id)
        direction = desc if (order or "").lower() == "desc" else asc
        query = query.order_by(direction(sort_column), direction(Product.id))

        if page is not None and limit is not None and limit > 0:
            offset = max((page - 1) * limit, 0)
            query = query.offset(offset).limit(limit)

        result = await self.db.execute(query)
        return await models_to_schemas(result.scalars().all(), ProductRead)

    async def search_products(self, name: Optional[str]) -> List[ProductRead]:
        """Case-insensitive substring search on product name."""
        if not name:
            raise InvalidArgumentError(
                "Search query is required",
                errors=[{"field": "name", "message": "Search query is required"}]
            )

        query = (
            select(Product)
            .where(Product.name.icontains(name, autoescape=True))
            .order_by(Product.id)
        )
        result = await self.db.execute(query)
        return await models_to_schemas(result.scalars().all(), ProductRead)

    async def get_product_model(self, product_id: int) -> Product:
        product = await self.db.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(f"Product with ID {product_id} not found")
        return product

    async def get_product(self, product_id: int) -> ProductRead:
        """
        Retrieves a product by ID.

        Raises:
            ProductNotFoundError: If product not found
        """
        product = await self.get_product_model(product_id)
        return await model_to_schema(product, ProductRead)

    async def create_product(self, product_data: Union[Dict[str, Any], ProductCreate]) -> ProductRead:
        """
        Creates a product.

        Args:
            product_data: Raw or validated product data

        Returns:
            The stored product

        Raises:
            InvalidArgumentError: If name/stock are missing or invalid
            ConflictError: If the name is already taken (case-sensitive)
            DatabaseError: If the insert fails for any other reason
        """
        data = self._validate(product_data, ProductCreate)

        if await self.find_by_name(data.name):
            raise ConflictError("Product name already exists")

        product = Product(**data.model_dump())
        try:
            self.db.add(product)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Product name already exists")
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to create product: {str(e)}")

        await self.db.refresh(product)
        logger.info(f"Created product {product.id} ({product.name!r}) with stock {product.stock}")
        return await model_to_schema(product, ProductRead)

    async def update_product(
        self,
        product_id: int,
        product_data: Union[Dict[str, Any], ProductUpdate],
        actor: Optional[str] = None
    ) -> ProductRead:
        """
        Replace a product's fields.

        A history entry is appended if and only if the stock value changed.

        Args:
            product_id: Product ID
            product_data: Raw or validated product data
            actor: Recorded on the history entry; defaults to AUDIT_ACTOR

        Returns:
            Updated product data

        Raises:
            InvalidArgumentError: If name/stock are missing or invalid
            ProductNotFoundError: If product not found
            ConflictError: If another product already has the name
        """
        data = self._validate(product_data, ProductUpdate)
        product = await self.get_product_model(product_id)

        if await self.find_by_name(data.name, exclude_id=product_id):
            raise ConflictError("Product name already exists")

        old_stock = product.stock
        for key, value in data.model_dump().items():
            setattr(product, key, value)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Product name already exists")
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to update product: {str(e)}")

        await self.db.refresh(product)
        updated = await model_to_schema(product, ProductRead)

        if old_stock != updated.stock:
            try:
                await self.history.record_change(
                    product_id=product_id,
                    old_quantity=old_stock,
                    new_quantity=updated.stock,
                    actor=actor or get_settings().AUDIT_ACTOR
                )
            except BaseServiceError as e:
                logger.error(f"Error logging inventory history for product {product_id}: {str(e)}")

        return updated

    async def delete_product(self, product_id: int) -> ProductRead:
        """
        Delete a product and its stock-change history.

        Returns:
            The product as it was before deletion

        Raises:
            ProductNotFoundError: If product not found
        """
        product = await self.get_product_model(product_id)
        deleted = await model_to_schema(product, ProductRead)

        try:
            await self.db.delete(product)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to delete product: {str(e)}")

        try:
            await self.history.purge_product_history(product_id)
        except BaseServiceError as e:
            logger.error(f"Error deleting inventory history for product {product_id}: {str(e)}")

        logger.info(f"Deleted product {product_id} ({deleted.name!r})")
        return deleted
