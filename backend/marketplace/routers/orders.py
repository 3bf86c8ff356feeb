from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketplace.database import MAX_ID, get_db
from marketplace.models.order import OrderCreate, OrderCreated, OrderView
from marketplace.models.user import AuthenticatedUser
from marketplace.services.auth import get_current_user
from marketplace.services.errors import ServiceError
from marketplace.services.order_service import order_service
from marketplace.utils.logger import logger

router = APIRouter(prefix="/api", tags=["orders"])


@router.post("/create_order", response_model=OrderCreated, status_code=status.HTTP_201_CREATED)
def create_order(payload: OrderCreate, db: Session = Depends(get_db)):
    """Place an order. Public: buyers do not need an account."""
    try:
        order_id = order_service.create_order(db, payload)
    except ServiceError as e:
        raise e.as_http()
    return OrderCreated(orderID=order_id)


@router.get("/get_order", response_model=OrderView)
def get_order(
    id: int = Query(..., ge=1, le=MAX_ID, description="Order ID"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get one order, restricted to the products the current user sells."""
    try:
        return order_service.get_order(db, id, current_user.id)
    except ServiceError as e:
        raise e.as_http()
    except SQLAlchemyError as e:
        logger.error(f"Error retrieving order {id} for user {current_user.id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Database error fetching order details")


@router.get("/get_orders", response_model=List[OrderView])
def get_orders(
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get every order containing products sold by the current user."""
    try:
        orders = order_service.get_orders(db, current_user.id)
    except SQLAlchemyError as e:
        logger.error(f"Error retrieving orders for user {current_user.id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Database error fetching user orders")

    logger.info(f"Retrieved {len(orders)} orders for user {current_user.id}")
    return orders
