from marketplace.db_models.user import User
from marketplace.db_models.product import Product
from marketplace.db_models.order import Order, OrderLineItem, OrderOwner, OrderStatus
from marketplace.db_models.storefront import StorefrontLink

__all__ = [
    "User",
    "Product",
    "Order",
    "OrderLineItem",
    "OrderOwner",
    "OrderStatus",
    "StorefrontLink",
]
