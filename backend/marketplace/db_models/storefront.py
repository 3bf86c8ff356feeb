from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from marketplace.database import Base


class StorefrontLink(Base):
    """An external storefront (Amazon, Etsy, ...) linked to a user.

    ``credentials`` only ever holds a token produced by
    :class:`marketplace.utils.crypto.CredentialCipher`.
    """

    __tablename__ = "storefront_links"
    __table_args__ = (
        UniqueConstraint("user_id", "store_type", "store_name", name="uq_storefront_links_user_store"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    store_type = Column(String(50), nullable=False)
    store_name = Column(String(255), nullable=False)
    credentials = Column(Text, nullable=False)
    store_id = Column(String(255), nullable=True, index=True)
    store_url = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="storefront_links")
