from decimal import Decimal
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.db_models import OrderLineItem, Product
from marketplace.models.product import ProductCreate, ProductResponse, ProductUpdate
from marketplace.services.errors import Conflict, Forbidden, InvalidInput, NotFound
from marketplace.utils.logger import logger


def to_response(product: Product) -> ProductResponse:
    return ProductResponse(
        prodID=product.id,
        prodName=product.name,
        prodDesc=product.description or "",
        prodPrice=float(product.price),
        prodCount=product.stock,
        prodTags=product.tags,
    )


def _price(value: float) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"))


class ProductService:

    def add_product(self, db: Session, seller_id: int, data: ProductCreate) -> Product:
        name = data.productName.strip()
        if not name:
            raise InvalidInput("Missing required field: productName")

        product = Product(
            user_id=seller_id,
            name=name,
            description=data.description,
            price=_price(data.price),
            stock=data.count,
            tags=data.tags,
        )
        db.add(product)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict(f"A product named {name!r} already exists for your account.")
        db.refresh(product)
        logger.info(f"Created product {product.id} ({name}) for user {seller_id}")
        return product

    def get_owned_product(self, db: Session, seller_id: int, product_id: int) -> Product:
        """Fetch a product, ensuring it belongs to ``seller_id``."""
        product = db.query(Product).filter(Product.id == product_id).first()
        if product is None:
            raise NotFound(f"Product with ID {product_id} not found")
        if product.user_id != seller_id:
            logger.warning(f"User {seller_id} attempted to access product {product_id} owned by user {product.user_id}")
            raise Forbidden("Permission denied")
        return product

    def get_products(self, db: Session, seller_id: int) -> List[Product]:
        return (
            db.query(Product)
            .filter(Product.user_id == seller_id)
            .order_by(Product.id)
            .all()
        )

    def update_product(self, db: Session, seller_id: int, product_id: int, updates: ProductUpdate) -> Product:
        product = self.get_owned_product(db, seller_id, product_id)

        if updates.productName is not None:
            name = updates.productName.strip()
            if not name:
                raise InvalidInput("productName cannot be empty")
            product.name = name
        if updates.description is not None:
            product.description = updates.description
        if updates.price is not None:
            product.price = _price(updates.price)
        if updates.count is not None:
            product.stock = updates.count
        if updates.tags is not None:
            product.tags = updates.tags

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("A product with this name already exists for your account.")
        db.refresh(product)
        logger.info(f"Updated product {product_id} for user {seller_id}")
        return product

    def delete_product(self, db: Session, seller_id: int, product_id: int) -> None:
        product = self.get_owned_product(db, seller_id, product_id)

        # Line items reference the product for name and ownership lookups.
        in_orders = (
            db.query(OrderLineItem.id)
            .filter(OrderLineItem.product_id == product_id)
            .first()
        )
        if in_orders is not None:
            raise Conflict("Product appears in existing orders and cannot be deleted")

        db.delete(product)
        db.commit()
        logger.info(f"Deleted product {product_id} for user {seller_id}")


product_service = ProductService()
