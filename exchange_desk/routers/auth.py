"""
Authentication router — signup and login endpoints.

These are the only public (unauthenticated) endpoints besides /health.

Endpoints:
  POST /auth/signup  — Register a new user and get a token
  POST /auth/login   — Authenticate and get a token

Plaintext passwords exist only in memory during request processing; they
are hashed before any database operation and never logged.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.database import get_db
from exchange_desk.schemas.auth import (
    UserSignupRequest,
    UserLoginRequest,
    TokenResponse,
    SignupResponse,
)
from exchange_desk.services import auth_service

router = APIRouter()


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def signup(
    request: UserSignupRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new desk user.

    The first user of a fresh installation becomes the manager; everyone
    after that has no role until a manager assigns one.
    """
    user, token = await auth_service.signup(
        db=db,
        email=request.email,
        password=request.password,
        name=request.name,
        phone=request.phone,
    )
    return SignupResponse(
        user_id=user.id,
        email=user.email,
        role_name=user.role_name,
        token=token,
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and get a token",
)
async def login(
    request: UserLoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with email and password.

    Send the returned token as ``Authorization: Bearer <token>``.
    """
    user, token = await auth_service.login(
        db=db,
        email=request.email,
        password=request.password,
    )
    return TokenResponse(token=token, user_id=user.id, role_name=user.role_name)
