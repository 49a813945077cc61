"""
User registration, credential checks and the access/refresh token pair.

Refresh tokens are single use: ``refresh`` deletes the presented token with one
conditional ``DELETE ... RETURNING`` so two concurrent refreshes of the same
token cannot both succeed.
"""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stockflow.core.config import get_settings
from stockflow.core.enums import Role
from stockflow.core.exceptions import ConflictError
from stockflow.core.security import (
    create_access_token,
    generate_refresh_token,
    hash_password,
    verify_password,
)
from stockflow.core.utils import utcnow
from stockflow.models.user import User, RefreshToken
from stockflow.schemas.auth import TokenClaims, TokenPair

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()

    async def register(self, email: str, password: str, role: Role) -> User:
        """
        Create a user with a hashed password.

        Raises:
            ConflictError: If the email is already registered
        """
        existing = await self.db.scalar(select(User.id).where(User.email == email))
        if existing:
            raise ConflictError(f"Email {email} is already registered")

        user = User(email=email, password=hash_password(password), role=role)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(f"Email {email} is already registered")

        logger.info(f"Registered user {user.id} ({role.value})")
        return user

    async def validate(self, email: str, password: str) -> Optional[User]:
        """Return the user when the password matches, else None."""
        user = await self.db.scalar(select(User).where(User.email == email))
        if user is None:
            return None
        return user if verify_password(password, user.password) else None

    async def login(self, user: TokenClaims) -> TokenPair:
        """Sign an access token and persist a fresh refresh token."""
        access_token = create_access_token(user)

        refresh_token = generate_refresh_token()
        self.db.add(RefreshToken(
            token=refresh_token,
            user_id=user.id,
            expires_at=utcnow() + timedelta(days=self.settings.REFRESH_TOKEN_TTL_DAYS),
        ))
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    async def refresh(self, token: str) -> Optional[TokenPair]:
        """
        Exchange a refresh token for a new pair.

        Returns:
            A new token pair, or None if the token is unknown, already used or expired
        """
        result = await self.db.execute(
            delete(RefreshToken)
            .where(RefreshToken.token == token)
            .returning(RefreshToken.user_id, RefreshToken.expires_at)
        )
        consumed = result.first()
        await self.db.commit()

        if consumed is None:
            return None
        if consumed.expires_at < utcnow():
            logger.info(f"Rejected expired refresh token for user {consumed.user_id}")
            return None

        user = await self.db.get(User, consumed.user_id)
        if user is None:
            return None

        return await self.login(self.claims_for(user))

    @staticmethod
    def claims_for(user: User) -> TokenClaims:
        return TokenClaims(id=user.id, role=user.role, email=user.email)
