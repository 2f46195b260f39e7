# stockroom/services/inventory_history_service.py
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select, delete, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.core.exceptions import DatabaseError, InvalidArgumentError, ProductNotFoundError
from stockroom.models.inventory_history import InventoryHistory
from stockroom.models.product import Product

logger = logging.getLogger(__name__)


class InventoryHistoryService:
    """
    Append-only audit trail of stock transitions.

    Entries are written by ``ProductService.update_product`` whenever the stock
    count changes and are only ever removed together with their product.
    Callers treat writes here as best-effort: a failed append or purge is
    reported through the raised ``DatabaseError`` and the caller decides to
    log and carry on.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record_change(
        self,
        product_id: int,
        old_quantity: int,
        new_quantity: int,
        actor: Optional[str] = None
    ) -> InventoryHistory:
        """
        Append one stock-change entry and commit it.

        Args:
            product_id: ID of the product whose stock changed
            old_quantity: Stock before the update
            new_quantity: Stock after the update
            actor: Who made the change

        Returns:
            The created InventoryHistory instance

        Raises:
            InvalidArgumentError: If either quantity is negative
            DatabaseError: If the insert fails (the session is rolled back)
        """
        if old_quantity is None or new_quantity is None or old_quantity < 0 or new_quantity < 0:
            raise InvalidArgumentError(
                "Quantities must be non-negative",
                errors=[{"field": "quantity", "message": "Quantities must be non-negative"}]
            )

        entry = InventoryHistory(
            product_id=product_id,
            old_quantity=old_quantity,
            new_quantity=new_quantity,
            changed_at=datetime.now(timezone.utc),
            actor=actor
        )
        try:
            self.db.add(entry)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to record stock change: {str(e)}")

        logger.debug(
            f"Stock change logged: product {product_id} {old_quantity} -> {new_quantity} "
            f"(actor: {actor or 'N/A'})"
        )
        return entry

    async def get_history(self, product_id: int) -> Tuple[Product, List[InventoryHistory]]:
        """
        Return the product and its stock changes, newest first.

        Raises:
            ProductNotFoundError: If the product does not exist, regardless of
                whether orphaned history rows remain
        """
        product = await self.db.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(f"Product with ID {product_id} not found")

        query = (
            select(InventoryHistory)
            .where(InventoryHistory.product_id == product_id)
            .order_by(desc(InventoryHistory.changed_at), desc(InventoryHistory.id))
        )
        result = await self.db.execute(query)
        return product, list(result.scalars().all())

    async def purge_product_history(self, product_id: int) -> int:
        """
        Delete every history entry for a product and commit.

        Returns:
            Number of entries removed
        """
        try:
            result = await self.db.execute(
                delete(InventoryHistory).where(InventoryHistory.product_id == product_id)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to delete inventory history: {str(e)}")

        removed = result.rowcount or 0
        logger.debug(f"Removed {removed} history entries for product {product_id}")
        return removed
