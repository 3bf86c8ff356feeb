from pydantic import BaseModel, Field
from typing import Dict, Optional

CREDENTIALS_VERSION = 1


class StorefrontCredentials(BaseModel):
    """Versioned credential map that is encrypted as a whole.

    ``entries`` keeps insertion order so the serialized plaintext is stable.
    """

    version: int = CREDENTIALS_VERSION
    entries: Dict[str, str] = Field(default_factory=dict)


class StorefrontLinkCreate(BaseModel):
    storeType: str = ""
    storeName: str = ""
    apiKey: str = ""
    apiSecret: str = ""
    storeId: str = ""
    storeUrl: str = ""


class StorefrontLinkUpdate(BaseModel):
    storeName: str = ""
    storeId: str = ""
    storeUrl: str = ""


class StorefrontLinkResponse(BaseModel):
    """Storefront link as returned to clients. Never carries credentials."""

    id: int
    storeType: str
    storeName: str
    storeId: Optional[str] = None
    storeUrl: Optional[str] = None
