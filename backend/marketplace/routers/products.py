from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketplace.database import MAX_ID, get_db
from marketplace.models.product import ProductCreate, ProductResponse, ProductUpdate
from marketplace.models.user import AuthenticatedUser
from marketplace.services.auth import get_current_user
from marketplace.services.errors import ServiceError
from marketplace.services.product_service import product_service, to_response
from marketplace.utils.logger import logger

router = APIRouter(prefix="/api", tags=["products"])


@router.post("/add_product", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def add_product(
    payload: ProductCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        product = product_service.add_product(db, current_user.id, payload)
    except ServiceError as e:
        raise e.as_http()
    except SQLAlchemyError as e:
        logger.error(f"Error saving product for user {current_user.id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Error saving product")
    return to_response(product)


@router.get("/get_product", response_model=ProductResponse)
def get_product(
    id: int = Query(..., ge=1, le=MAX_ID, description="Product ID"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        product = product_service.get_owned_product(db, current_user.id, id)
    except ServiceError as e:
        raise e.as_http()
    except SQLAlchemyError as e:
        logger.error(f"Error retrieving product {id} for user {current_user.id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Database error fetching product")
    return to_response(product)


@router.get("/get_products", response_model=List[ProductResponse])
def get_products(
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        products = product_service.get_products(db, current_user.id)
    except SQLAlchemyError as e:
        logger.error(f"Error retrieving products for user {current_user.id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Database error fetching products")
    return [to_response(p) for p in products]


@router.put("/update_product", response_model=ProductResponse)
def update_product(
    updates: ProductUpdate,
    id: int = Query(..., ge=1, le=MAX_ID, description="Product ID"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update the given fields of a product; omitted fields stay unchanged."""
    try:
        product = product_service.update_product(db, current_user.id, id, updates)
    except ServiceError as e:
        raise e.as_http()
    except SQLAlchemyError as e:
        logger.error(f"Error updating product {id} for user {current_user.id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Error updating product")
    return to_response(product)


@router.delete("/delete_product")
def delete_product(
    id: int = Query(..., ge=1, le=MAX_ID, description="Product ID"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        product_service.delete_product(db, current_user.id, id)
    except ServiceError as e:
        raise e.as_http()
    except SQLAlchemyError as e:
        logger.error(f"Error deleting product {id} for user {current_user.id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Error deleting product")
    return {"status": "success", "message": "Product deleted successfully"}
