from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from marketplace.database import Base


class User(Base):
    """A marketplace account.

    Sellers are ordinary users that own at least one product. Credentials
    for logging in live with the identity provider; this table only keeps
    the linkage (``provider`` / ``provider_id``).
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    business_name = Column(String(255), nullable=True)
    provider = Column(String(50), nullable=False, default="local", index=True)
    provider_id = Column(String(255), nullable=False, default="", index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    products = relationship("Product", back_populates="owner")
    storefront_links = relationship("StorefrontLink", back_populates="user", cascade="all, delete-orphan")
