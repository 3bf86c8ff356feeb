from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketplace.database import MAX_ID
from marketplace.db_models import Order, OrderLineItem, OrderOwner, OrderStatus, Product
from marketplace.models.order import OrderCreate, OrderedProduct, OrderProductView, OrderView
from marketplace.services.errors import (
    Forbidden,
    InsufficientStock,
    InternalError,
    InvalidInput,
    NotFound,
    ProductNotFound,
    ServiceError,
)
from marketplace.utils.logger import logger


SellerItems = List[Tuple[OrderLineItem, Product]]


def consolidate_items(items: Iterable[OrderedProduct]) -> Dict[int, int]:
    """Sum the requested quantities per product id.

    Duplicate cart entries for one product collapse into a single line item.
    Ids no product row can have are reported as unknown products.
    """
    consolidated: Dict[int, int] = {}
    for item in items:
        if not 1 <= item.productID <= MAX_ID:
            raise ProductNotFound(item.productID)
        if item.count <= 0:
            raise InvalidInput(f"invalid count for product ID {item.productID}")
        consolidated[item.productID] = consolidated.get(item.productID, 0) + item.count
    return consolidated


def _format_date(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ""


class OrderService:

    def create_order(self, db: Session, payload: OrderCreate) -> int:
        """Validate a cart and commit it as a new order.

        Everything happens in one transaction: stock checks, the order row,
        one ``OrderOwner`` per distinct seller, the line items (with the
        product's current price) and the stock decrements. Any failure rolls
        the whole thing back. Returns the new order id.
        """
        customer_name = (payload.customerName or "").strip()
        customer_email = (payload.customerEmail or "").strip()
        if not customer_name or not customer_email:
            raise InvalidInput("Customer name and email are required")
        if not payload.orderedProducts:
            raise InvalidInput("Order must contain at least one product")

        quantities = consolidate_items(payload.orderedProducts)

        try:
            order_id = self._commit_order(db, customer_name, customer_email, quantities)
        except ServiceError as e:
            db.rollback()
            logger.warning(f"Order rejected: {e.message}")
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Order transaction failed: {type(e).__name__}: {e}")
            raise InternalError("Internal server error during order processing") from e

        logger.info(f"Created order {order_id} with {len(quantities)} product(s)")
        return order_id

    def _commit_order(
        self,
        db: Session,
        customer_name: str,
        customer_email: str,
        quantities: Dict[int, int],
    ) -> int:
        # Rows are locked in ascending id order so two orders sharing
        # products cannot deadlock each other.
        product_ids = sorted(quantities)

        products: Dict[int, Product] = {}
        for product_id in product_ids:
            product = (
                db.query(Product)
                .filter(Product.id == product_id)
                .with_for_update()
                .first()
            )
            if product is None:
                raise ProductNotFound(product_id)

            requested = quantities[product_id]
            if requested > product.stock:
                raise InsufficientStock(product_id, requested, product.stock)
            products[product_id] = product

        seller_ids = sorted({product.user_id for product in products.values()})

        order = Order(
            customer_name=customer_name,
            customer_email=customer_email,
            status=OrderStatus.PENDING.value,
        )
        db.add(order)
        db.flush()

        for seller_id in seller_ids:
            db.add(OrderOwner(order_id=order.id, user_id=seller_id))

        for product_id in product_ids:
            product = products[product_id]
            requested = quantities[product_id]
            db.add(
                OrderLineItem(
                    order_id=order.id,
                    product_id=product_id,
                    quantity=requested,
                    unit_price=product.price,
                )
            )
            # Guarded decrement: never lets stock go negative, even if a
            # concurrent order changed it after the check above.
            result = db.execute(
                update(Product)
                .where(Product.id == product_id, Product.stock >= requested)
                .values(stock=Product.stock - requested)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                available = db.query(Product.stock).filter(Product.id == product_id).scalar()
                raise InsufficientStock(product_id, requested, available or 0)

        order_id = order.id
        db.commit()
        return order_id

    def get_order(self, db: Session, order_id: int, seller_id: int) -> OrderView:
        """Return ``order_id`` filtered down to the items ``seller_id`` sold.

        Raises NotFound when the order does not exist and Forbidden when the
        seller has no ownership link to it.
        """
        owner = (
            db.query(OrderOwner)
            .filter(OrderOwner.order_id == order_id, OrderOwner.user_id == seller_id)
            .first()
        )
        if owner is None:
            exists = db.query(Order.id).filter(Order.id == order_id).first()
            if exists is None:
                raise NotFound(f"Order with ID {order_id} not found")
            logger.warning(f"User {seller_id} attempted to read order {order_id} they are not linked to")
            raise Forbidden("Permission denied: You are not associated with this order")

        order = db.query(Order).filter(Order.id == order_id).first()
        if order is None:
            raise NotFound(f"Order with ID {order_id} not found")

        items = self._seller_items(db, [order_id], seller_id).get(order_id, [])
        return self._to_view(order, items)

    def get_orders(self, db: Session, seller_id: int) -> List[OrderView]:
        """Every order linked to ``seller_id``, newest first.

        Orders in which the seller ends up owning no line items are left out.
        """
        orders = (
            db.query(Order)
            .join(OrderOwner, OrderOwner.order_id == Order.id)
            .filter(OrderOwner.user_id == seller_id)
            .order_by(Order.order_date.desc(), Order.id.desc())
            .all()
        )
        if not orders:
            return []

        items_by_order = self._seller_items(db, [o.id for o in orders], seller_id)

        views: List[OrderView] = []
        for order in orders:
            items = items_by_order.get(order.id)
            if not items:
                continue
            views.append(self._to_view(order, items))
        return views

    @staticmethod
    def _seller_items(db: Session, order_ids: List[int], seller_id: int) -> Dict[int, SellerItems]:
        rows = (
            db.query(OrderLineItem, Product)
            .join(Product, Product.id == OrderLineItem.product_id)
            .filter(OrderLineItem.order_id.in_(order_ids), Product.user_id == seller_id)
            .order_by(OrderLineItem.order_id, OrderLineItem.id)
            .all()
        )
        grouped: Dict[int, SellerItems] = {}
        for line_item, product in rows:
            grouped.setdefault(line_item.order_id, []).append((line_item, product))
        return grouped

    @staticmethod
    def _to_view(order: Order, items: SellerItems) -> OrderView:
        total = Decimal("0")
        ordered_products = []
        for line_item, product in items:
            price = Decimal(line_item.unit_price)
            total += price * line_item.quantity
            ordered_products.append(
                OrderProductView(
                    productID=product.id,
                    productName=product.name,
                    count=line_item.quantity,
                    price=float(price),
                )
            )

        return OrderView(
            orderID=order.id,
            customerName=order.customer_name,
            customerEmail=order.customer_email,
            orderDate=_format_date(order.order_date),
            status=order.status,
            trackingNumber=order.tracking_number,
            total=float(total),
            orderedProducts=ordered_products,
        )


order_service = OrderService()
