# stockroom/models/inventory_history.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from stockroom.database import Base


class InventoryHistory(Base):
    """
    One stock transition of one product.

    Rows are written once per stock-changing update and never modified.
    They disappear only when their product is deleted.
    """
    __tablename__ = "inventory_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    old_quantity = Column(Integer, nullable=False)
    new_quantity = Column(Integer, nullable=False)
    changed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    actor = Column(String(100), nullable=True)

    product = relationship("Product", back_populates="history", lazy="raise")

    def __repr__(self):
        return f"<InventoryHistory product={self.product_id} {self.old_quantity}->{self.new_quantity}>"
