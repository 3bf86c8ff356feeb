from pydantic import BaseModel
from typing import List, Optional


class OrderedProduct(BaseModel):
    productID: int
    count: int


class OrderCreate(BaseModel):
    # Field-level rules (non-empty names, positive counts) are checked by the
    # order service so they are reported as InvalidInput.
    customerName: str = ""
    customerEmail: str = ""
    orderedProducts: List[OrderedProduct] = []


class OrderCreated(BaseModel):
    orderID: int


class OrderProductView(BaseModel):
    productID: int
    productName: str
    count: int
    price: float


class OrderView(BaseModel):
    """An order as seen by one seller: only that seller's items and total."""

    orderID: int
    customerName: str
    customerEmail: str
    orderDate: str
    status: str
    trackingNumber: Optional[str] = None
    total: float
    orderedProducts: List[OrderProductView] = []
