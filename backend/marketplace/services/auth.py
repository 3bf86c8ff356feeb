from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from marketplace.config import Settings
from marketplace.database import get_db
from marketplace.models.user import AuthenticatedUser
from marketplace.services.user_service import user_service
from marketplace.utils.logger import logger


def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a session token.

    ``data["sub"]`` must identify the user; it is stored as a string as
    RFC 7519 requires.
    """
    to_encode = data.copy()
    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.ALGORITHM)


def _token_from_request(request: Request, settings: Settings) -> Optional[str]:
    """Session token from the Authorization header, else the session cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):].strip() or None
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_current_user(request: Request, db: Session = Depends(get_db)) -> AuthenticatedUser:
    """Resolve the authenticated principal for a request or fail with 401."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="User not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )
    settings: Settings = request.app.state.settings

    token = _token_from_request(request, settings)
    if not token:
        raise credentials_exception

    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.ALGORITHM])
        user_id = int(payload.get("sub"))
    except JWTError as e:
        logger.warning(f"Session token validation error: {str(e)}")
        raise credentials_exception
    except (TypeError, ValueError):
        logger.warning("Session token carries no usable subject")
        raise credentials_exception

    user = user_service.get_user_by_id(db, user_id)
    if user is None:
        logger.warning(f"User not found for session token: {user_id}")
        raise credentials_exception

    return AuthenticatedUser.model_validate(user)
