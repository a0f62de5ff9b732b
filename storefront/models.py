from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from .database import Base  # Import the Base class from our database setup


# A purchasable product. Rows are only written by the startup seed.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    image = Column(String, nullable=False)  # Static asset filename or bucket key.


# Order header; owns its line items.
class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)  # Buyer name.
    address = Column(String, nullable=False)
    total = Column(Float, nullable=False)  # Sum of productPrice * quantity over the items.
    created_at = Column("createdAt", DateTime, nullable=False, server_default=func.now())

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


# A line item, with the product's name and price copied at order time.
class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    product_name = Column("productName", String, nullable=False)
    product_price = Column("productPrice", Float, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    order = relationship("Order", back_populates="items")
