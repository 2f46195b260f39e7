"""
Models for the inventory system's core product records.

A product is a stockable item with a unique name and a non-negative stock
count. Every change to ``stock`` made through an update is recorded as an
``InventoryHistory`` row (see ``inventory_history.py``).
"""

from sqlalchemy import Column, Integer, String, CheckConstraint
from sqlalchemy.orm import relationship

from ..database import Base

# Column order here is also the CSV export column order
EXPORT_FIELDS = ['id', 'name', 'unit', 'category', 'brand', 'stock', 'status', 'image']


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False, index=True)
    unit = Column(String, default="")
    category = Column(String, default="", index=True)
    brand = Column(String, default="")
    stock = Column(Integer, nullable=False, default=0)
    status = Column(String, default="")
    image = Column(String, default="")

    # passive_deletes: the service purges history itself, best-effort
    history = relationship(
        "InventoryHistory",
        back_populates="product",
        passive_deletes=True,
        lazy="raise"
    )

    def __repr__(self):
        return f"<Product {self.id} {self.name!r} stock={self.stock}>"
