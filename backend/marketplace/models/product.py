from pydantic import BaseModel, Field
from typing import Optional


class ProductCreate(BaseModel):
    productName: str
    description: str = ""
    price: float = Field(..., ge=0)
    count: int = Field(0, ge=0)
    tags: Optional[str] = None


class ProductUpdate(BaseModel):
    """Partial update; fields left as ``None`` keep their current value."""

    productName: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    count: Optional[int] = Field(None, ge=0)
    tags: Optional[str] = None


class ProductResponse(BaseModel):
    prodID: int
    prodName: str
    prodDesc: str
    prodPrice: float
    prodCount: int
    prodTags: Optional[str] = None
