from datetime import datetime, timezone
import enum

from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from marketplace.database import Base


class OrderStatus(str, enum.Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Order(Base):
    """A buyer's order.

    Orders are not owned by a single seller; every seller with a product in
    the order gets one ``OrderOwner`` row instead.
    """

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    order_date = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value, index=True)
    tracking_number = Column(String(100), nullable=True)
    tracking_image = Column(String(500), nullable=True)

    line_items = relationship("OrderLineItem", back_populates="order", cascade="all, delete-orphan")
    owners = relationship("OrderOwner", back_populates="order", cascade="all, delete-orphan")


class OrderLineItem(Base):
    """One product within an order.

    ``unit_price`` is copied from the product when the order is placed so
    later price edits never rewrite history.
    """

    __tablename__ = "order_line_items"
    __table_args__ = (
        UniqueConstraint("order_id", "product_id", name="uq_order_line_items_order_product"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="line_items")
    product = relationship("Product")


class OrderOwner(Base):
    __tablename__ = "order_owners"
    __table_args__ = (
        UniqueConstraint("order_id", "user_id", name="uq_order_owners_order_user"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    order = relationship("Order", back_populates="owners")
