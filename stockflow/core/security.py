"""
Token and password handling plus the FastAPI dependencies that guard routes.

Access tokens are HS256 JWTs carrying ``{id, role, email}``. Role checks go
through ``is_authorized`` so the ADMIN-satisfies-everything rule lives in one place.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError
from werkzeug.security import check_password_hash, generate_password_hash

from stockflow.core.config import get_settings
from stockflow.core.enums import Role
from stockflow.core.exceptions import AuthenticationError, AuthorizationError
from stockflow.schemas.auth import TokenClaims

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return check_password_hash(password_hash, password)


def generate_refresh_token() -> str:
    """Opaque random refresh token."""
    return secrets.token_urlsafe(48)


def create_access_token(claims: TokenClaims, expires_delta: Optional[timedelta] = None) -> str:
    """Sign an access token for the given user claims."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "id": claims.id,
        "role": claims.role.value,
        "email": claims.email,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[TokenClaims]:
    """Verify an access token. Returns its claims or None."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return TokenClaims.model_validate(payload)
    except (JWTError, PydanticValidationError):
        return None


def is_authorized(user_role: Role, required_role: Role) -> bool:
    """ADMIN may use every role-gated route; other roles only their own."""
    return user_role == Role.ADMIN or user_role == required_role


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenClaims:
    """Verify the Bearer JWT and return its claims."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Not authenticated")

    claims = decode_access_token(credentials.credentials)
    if claims is None:
        raise AuthenticationError("Invalid or expired token")
    return claims


def require_role(required_role: Role):
    """
    Dependency factory for role-gated routes.
    Usage: @router.get("/", dependencies=[Depends(require_role(Role.ADMIN))])
    """
    def _check(user: TokenClaims = Depends(get_current_user)) -> TokenClaims:
        if not is_authorized(user.role, required_role):
            logger.info(f"User {user.email} ({user.role.value}) denied {required_role.value} route")
            raise AuthorizationError("Forbidden")
        return user

    return _check
