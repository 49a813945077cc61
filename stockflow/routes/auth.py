"""
Registration, login and refresh-token rotation.
"""
from fastapi import APIRouter, Depends, HTTPException, status

from stockflow.core.exceptions import ConflictError
from stockflow.dependencies import get_auth_service
from stockflow.schemas.auth import LoginRequest, RegisterRequest, RefreshRequest, TokenPair, UserRead
from stockflow.services.auth_service import AuthService

router = APIRouter(prefix="/v1/auth", tags=["auth"])


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    try:
        return await auth_service.register(body.email, body.password, body.role)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/login", response_model=TokenPair)
async def login(
    body: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    user = await auth_service.validate(body.email, body.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return await auth_service.login(auth_service.claims_for(user))


@router.post("/refresh", response_model=TokenPair)
async def refresh(
    body: RefreshRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Rotate a refresh token. The presented token is consumed whether or not a
    new pair is issued.
    """
    tokens = await auth_service.refresh(body.refresh_token)
    if tokens is None:
        raise HTTPException(status_code=401, detail="Invalid or expired refresh token")
    return tokens
