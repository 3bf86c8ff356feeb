from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketplace.database import MAX_ID, get_db
from marketplace.models.storefront import StorefrontLinkCreate, StorefrontLinkResponse, StorefrontLinkUpdate
from marketplace.models.user import AuthenticatedUser
from marketplace.services.auth import get_current_user
from marketplace.services.errors import ServiceError
from marketplace.services.storefront_service import StorefrontService, get_storefront_service, to_response
from marketplace.utils.logger import logger

router = APIRouter(prefix="/api", tags=["storefronts"])


@router.post("/add_storefront", response_model=StorefrontLinkResponse, status_code=status.HTTP_201_CREATED)
def add_storefront(
    payload: StorefrontLinkCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: StorefrontService = Depends(get_storefront_service),
):
    """Link a new external storefront; credentials are stored encrypted."""
    try:
        link = service.add_link(db, current_user.id, payload)
    except ServiceError as e:
        raise e.as_http()
    except SQLAlchemyError as e:
        logger.error(f"Error saving storefront link for user {current_user.id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to save storefront link due to a database error")
    return to_response(link)


@router.get("/get_storefronts", response_model=List[StorefrontLinkResponse])
def get_storefronts(
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: StorefrontService = Depends(get_storefront_service),
):
    try:
        links = service.get_links(db, current_user.id)
    except SQLAlchemyError as e:
        logger.error(f"Error retrieving storefront links for user {current_user.id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to retrieve storefront links")
    return [to_response(link) for link in links]


@router.put("/update_storefront", response_model=StorefrontLinkResponse)
def update_storefront(
    payload: StorefrontLinkUpdate,
    id: int = Query(..., ge=1, le=MAX_ID, description="ID of the storefront link to update"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: StorefrontService = Depends(get_storefront_service),
):
    """Update name, store id and URL. Store type and credentials cannot change."""
    try:
        link = service.update_link(db, current_user.id, id, payload)
    except ServiceError as e:
        raise e.as_http()
    except SQLAlchemyError as e:
        logger.error(f"Error updating storefront link {id} for user {current_user.id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update storefront link due to a database error")
    return to_response(link)


@router.delete("/delete_storefront")
def delete_storefront(
    id: int = Query(..., ge=1, le=MAX_ID, description="ID of the storefront link to delete"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: StorefrontService = Depends(get_storefront_service),
):
    try:
        service.delete_link(db, current_user.id, id)
    except ServiceError as e:
        raise e.as_http()
    except SQLAlchemyError as e:
        logger.error(f"Error deleting storefront link {id} for user {current_user.id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to delete storefront link due to a database error")
    return {"status": "success", "message": f"Storefront link (ID: {id}) unlinked successfully"}
