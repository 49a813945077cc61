from datetime import datetime

from pydantic import Field, field_validator

from stockflow.core.enums import Role
from stockflow.schemas.base import BaseSchema


class LoginRequest(BaseSchema):
    email: str
    password: str = Field(min_length=6)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        v = v.strip()
        local, _, domain = v.partition('@')
        if not local or '.' not in domain or ' ' in v:
            raise ValueError('Invalid email address')
        return v

class RegisterRequest(LoginRequest):
    role: Role

class RefreshRequest(BaseSchema):
    refresh_token: str = Field(min_length=1)

class TokenPair(BaseSchema):
    access_token: str
    refresh_token: str

class UserRead(BaseSchema):
    id: str
    email: str
    role: Role
    created_at: datetime


class TokenClaims(BaseSchema):
    """Claims carried by an access token."""
    id: str
    role: Role
    email: str
