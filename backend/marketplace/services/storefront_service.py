from datetime import datetime, timezone
from typing import List

from fastapi import Request
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.db_models import StorefrontLink
from marketplace.models.storefront import (
    StorefrontCredentials,
    StorefrontLinkCreate,
    StorefrontLinkResponse,
    StorefrontLinkUpdate,
)
from marketplace.services.errors import Conflict, Forbidden, InternalError, InvalidInput, NotFound
from marketplace.utils.crypto import CredentialCipher, CredentialCipherError
from marketplace.utils.logger import logger, redact


# Store types whose links are useless without API credentials.
REQUIRED_CREDENTIALS = {
    "amazon": ("apiKey", "apiSecret"),
}


def to_response(link: StorefrontLink) -> StorefrontLinkResponse:
    return StorefrontLinkResponse(
        id=link.id,
        storeType=link.store_type,
        storeName=link.store_name,
        storeId=link.store_id,
        storeUrl=link.store_url,
    )


def _default_name(store_type: str) -> str:
    return f"{store_type} Link"


class StorefrontService:
    """CRUD over a user's storefront links.

    Credentials are encrypted with the injected :class:`CredentialCipher`
    before they touch the session and are never part of a response model.
    """

    def __init__(self, cipher: CredentialCipher):
        self.cipher = cipher

    def _encrypt(self, credentials: StorefrontCredentials) -> str:
        try:
            return self.cipher.encrypt(credentials.model_dump_json())
        except CredentialCipherError as e:
            logger.error(f"Error encrypting storefront credentials: {type(e).__name__}")
            raise InternalError("Failed to secure credentials") from None

    def add_link(self, db: Session, user_id: int, payload: StorefrontLinkCreate) -> StorefrontLink:
        logger.info(f"Adding storefront link for user {user_id}: {redact(payload.model_dump())}")

        store_type = payload.storeType.strip()
        if not store_type:
            raise InvalidInput("Missing required field: storeType")

        required = REQUIRED_CREDENTIALS.get(store_type.lower(), ())
        missing = [field for field in required if not getattr(payload, field)]
        if missing:
            raise InvalidInput(f"{' and '.join(required)} are required for {store_type} links")

        entries = {}
        if payload.apiKey:
            entries["apiKey"] = payload.apiKey
        if payload.apiSecret:
            entries["apiSecret"] = payload.apiSecret
        if not entries:
            logger.warning(f"No credentials provided for storefront type {store_type} for user {user_id}")

        link = StorefrontLink(
            user_id=user_id,
            store_type=store_type,
            store_name=payload.storeName.strip() or _default_name(store_type),
            credentials=self._encrypt(StorefrontCredentials(entries=entries)),
            store_id=payload.storeId,
            store_url=payload.storeUrl,
        )
        db.add(link)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("A storefront link with this type and name already exists for your account.")
        db.refresh(link)
        logger.info(f"Created storefront link {link.id} ({link.store_type}) for user {user_id}")
        return link

    def get_links(self, db: Session, user_id: int) -> List[StorefrontLink]:
        return (
            db.query(StorefrontLink)
            .filter(StorefrontLink.user_id == user_id)
            .order_by(StorefrontLink.store_type.asc(), StorefrontLink.store_name.asc())
            .all()
        )

    def get_owned_link(self, db: Session, user_id: int, link_id: int) -> StorefrontLink:
        link = db.query(StorefrontLink).filter(StorefrontLink.id == link_id).first()
        if link is None:
            raise NotFound(f"Storefront link with ID {link_id} not found")
        if link.user_id != user_id:
            logger.warning(
                f"Security violation: user {user_id} attempted to access storefront link {link_id} "
                f"owned by user {link.user_id}"
            )
            raise Forbidden("Forbidden: You do not have permission to access this storefront link")
        return link

    def update_link(self, db: Session, user_id: int, link_id: int, payload: StorefrontLinkUpdate) -> StorefrontLink:
        """Update name, store id and URL. Store type and credentials are fixed."""
        link = self.get_owned_link(db, user_id, link_id)

        link.store_name = payload.storeName.strip() or _default_name(link.store_type)
        link.store_id = payload.storeId
        link.store_url = payload.storeUrl
        link.updated_at = datetime.now(timezone.utc)

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("Update failed: A storefront link with the new name already exists for this type.")
        db.refresh(link)
        logger.info(f"Updated storefront link {link_id} for user {user_id}")
        return link

    def delete_link(self, db: Session, user_id: int, link_id: int) -> None:
        link = self.get_owned_link(db, user_id, link_id)
        db.delete(link)
        db.commit()
        logger.info(f"Deleted storefront link {link_id} for user {user_id}")

    def get_credentials(self, db: Session, user_id: int, link_id: int) -> StorefrontCredentials:
        """Decrypt the credentials of a link for server-side integrations.

        Every decryption problem is reported as the same generic error.
        """
        link = self.get_owned_link(db, user_id, link_id)
        try:
            plaintext = self.cipher.decrypt(link.credentials)
            return StorefrontCredentials.model_validate_json(plaintext)
        except (CredentialCipherError, ValidationError) as e:
            logger.error(f"Could not read credentials for storefront link {link_id}: {type(e).__name__}")
            raise InternalError("Failed to decrypt credentials") from None


def get_storefront_service(request: Request) -> StorefrontService:
    return request.app.state.storefront_service
