from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Optional


class UserCreate(BaseModel):
    email: EmailStr
    name: Optional[str] = None
    business_name: Optional[str] = None
    provider: str = "local"
    provider_id: str = ""


class AuthenticatedUser(BaseModel):
    """The principal resolved from a request's session token."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    email: str
    name: Optional[str] = None
    business_name: Optional[str] = None
