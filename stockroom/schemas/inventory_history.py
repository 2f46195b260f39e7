"""
Schemas for stock-change history entries.
"""
from datetime import datetime
from typing import Optional

from stockroom.schemas.base import BaseSchema


class InventoryHistoryRead(BaseSchema):
    id: int
    product_id: int
    old_quantity: int
    new_quantity: int
    changed_at: datetime
    actor: Optional[str] = None
