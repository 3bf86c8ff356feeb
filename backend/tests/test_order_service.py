from decimal import Decimal

import pytest
from sqlalchemy import update
from sqlalchemy.sql.expression import Update

from marketplace.db_models import Order, OrderLineItem, OrderOwner, Product
from marketplace.models.order import OrderCreate, OrderedProduct
from marketplace.services.errors import InsufficientStock, InvalidInput, ProductNotFound
from marketplace.database import MAX_ID
from marketplace.services.order_service import consolidate_items, order_service


def _cart(*items, name="Alice Buyer", email="alice@example.com"):
    return OrderCreate(
        customerName=name,
        customerEmail=email,
        orderedProducts=[OrderedProduct(productID=pid, count=count) for pid, count in items],
    )


def test_consolidate_items_sums_duplicates():
    items = [
        OrderedProduct(productID=1, count=2),
        OrderedProduct(productID=2, count=1),
        OrderedProduct(productID=1, count=3),
    ]
    assert consolidate_items(items) == {1: 5, 2: 1}


@pytest.mark.parametrize("count", [0, -1])
def test_consolidate_items_rejects_non_positive_counts(count):
    with pytest.raises(InvalidInput):
        consolidate_items([OrderedProduct(productID=1, count=count)])


def test_create_order_decrements_stock_and_snapshots_price(db, make_user, make_product):
    seller = make_user("seller@example.com")
    product = make_product(seller, "Widget", price="10.00", stock=5)

    order_id = order_service.create_order(db, _cart((product.id, 2)))

    db.expire_all()
    assert db.get(Product, product.id).stock == 3

    order = db.get(Order, order_id)
    assert order.status == "Pending"
    assert order.customer_name == "Alice Buyer"

    (line_item,) = order.line_items
    assert line_item.quantity == 2
    assert Decimal(line_item.unit_price) == Decimal("10.00")


def test_create_order_links_each_seller_once(db, make_user, make_product):
    seller_a = make_user("a@example.com")
    seller_b = make_user("b@example.com")
    a1 = make_product(seller_a, "A1")
    a2 = make_product(seller_a, "A2")
    b1 = make_product(seller_b, "B1")

    order_id = order_service.create_order(db, _cart((a1.id, 1), (a2.id, 1), (b1.id, 1)))

    owners = db.query(OrderOwner).filter(OrderOwner.order_id == order_id).all()
    assert sorted(o.user_id for o in owners) == sorted([seller_a.id, seller_b.id])


def test_duplicate_cart_entries_become_one_line_item(db, make_user, make_product):
    seller = make_user("seller@example.com")
    product = make_product(seller, "Widget", stock=10)

    order_id = order_service.create_order(db, _cart((product.id, 2), (product.id, 3)))

    items = db.query(OrderLineItem).filter(OrderLineItem.order_id == order_id).all()
    assert len(items) == 1
    assert items[0].quantity == 5
    db.expire_all()
    assert db.get(Product, product.id).stock == 5


def test_unknown_product_leaves_database_unchanged(db, make_user, make_product):
    seller = make_user("seller@example.com")
    product = make_product(seller, "Widget", stock=5)

    with pytest.raises(ProductNotFound) as exc:
        order_service.create_order(db, _cart((product.id, 1), (9999, 1)))

    assert exc.value.product_id == 9999
    db.expire_all()
    assert db.get(Product, product.id).stock == 5
    assert db.query(Order).count() == 0
    assert db.query(OrderOwner).count() == 0


def test_insufficient_stock_leaves_database_unchanged(db, make_user, make_product):
    seller = make_user("seller@example.com")
    plenty = make_product(seller, "Plenty", stock=10)
    scarce = make_product(seller, "Scarce", stock=1)

    with pytest.raises(InsufficientStock) as exc:
        order_service.create_order(db, _cart((plenty.id, 3), (scarce.id, 2)))

    assert exc.value.requested == 2
    assert exc.value.available == 1
    db.expire_all()
    assert db.get(Product, plenty.id).stock == 10
    assert db.get(Product, scarce.id).stock == 1
    assert db.query(Order).count() == 0


def test_exact_stock_can_be_ordered(db, make_user, make_product):
    seller = make_user("seller@example.com")
    product = make_product(seller, "Last one", stock=1)

    order_service.create_order(db, _cart((product.id, 1)))

    db.expire_all()
    assert db.get(Product, product.id).stock == 0


@pytest.mark.parametrize(
    "payload",
    [
        OrderCreate(customerName="", customerEmail="a@example.com", orderedProducts=[OrderedProduct(productID=1, count=1)]),
        OrderCreate(customerName="Alice", customerEmail="   ", orderedProducts=[OrderedProduct(productID=1, count=1)]),
        OrderCreate(customerName="Alice", customerEmail="a@example.com", orderedProducts=[]),
    ],
)
def test_create_order_rejects_incomplete_payload(db, payload):
    with pytest.raises(InvalidInput):
        order_service.create_order(db, payload)
    assert db.query(Order).count() == 0


def test_later_price_change_does_not_rewrite_orders(db, make_user, make_product):
    seller = make_user("seller@example.com")
    product = make_product(seller, "Widget", price="10.00", stock=5)
    order_id = order_service.create_order(db, _cart((product.id, 2)))

    product = db.get(Product, product.id)
    product.price = Decimal("99.00")
    db.commit()

    view = order_service.get_order(db, order_id, seller.id)
    assert view.total == 20.0
    assert view.orderedProducts[0].price == 10.0


@pytest.mark.parametrize("product_id", [0, MAX_ID + 1, 2**63])
def test_consolidate_items_rejects_impossible_ids(product_id):
    with pytest.raises(ProductNotFound):
        consolidate_items([OrderedProduct(productID=product_id, count=1)])


def test_stock_sold_between_check_and_decrement(db, make_user, make_product, monkeypatch):
    seller = make_user("seller@example.com")
    product = make_product(seller, "Widget", stock=5)
    product_id = product.id
    real_execute = db.execute
    competing_sale = []

    def execute(statement, *args, **kwargs):
        if isinstance(statement, Update) and not competing_sale:
            competing_sale.append(True)
            real_execute(
                update(Product)
                .where(Product.id == product_id)
                .values(stock=1)
                .execution_options(synchronize_session=False)
            )
        return real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db, "execute", execute)

    with pytest.raises(InsufficientStock) as exc:
        order_service.create_order(db, _cart((product_id, 2)))

    monkeypatch.undo()
    assert competing_sale
    assert exc.value.requested == 2
    assert exc.value.available == 1
    assert db.query(Order).count() == 0
    assert db.query(OrderOwner).count() == 0
    assert db.query(OrderLineItem).count() == 0
    db.expire_all()
    assert db.get(Product, product_id).stock == 5


def test_get_orders_skips_orders_without_owned_items(db, make_user, make_product):
    seller = make_user("seller@example.com")
    linked_only = make_user("linked@example.com")
    product = make_product(seller, "Widget")
    order_id = order_service.create_order(db, _cart((product.id, 1)))

    db.add(OrderOwner(order_id=order_id, user_id=linked_only.id))
    db.commit()

    assert order_service.get_orders(db, linked_only.id) == []
    assert [o.orderID for o in order_service.get_orders(db, seller.id)] == [order_id]
