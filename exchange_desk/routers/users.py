"""
Users and roles router.

Endpoints:
  GET   /users/me              — The authenticated user
  PATCH /users/me              — Edit own name / phone
  GET   /users                 — [Manager] List users
  POST  /users                 — [Manager] Create a staff account with a role
  GET   /users/{id}            — [Manager] Get a user
  PATCH /users/{id}            — [Manager] Edit name, phone, role or active flag
  PUT   /users/{id}/role       — [Manager] Assign a role
  GET   /roles                 — List roles
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.database import get_db
from exchange_desk.dependencies import get_current_user, require_manager
from exchange_desk.models.user import User
from exchange_desk.schemas.user import (
    RoleAssignRequest,
    RoleResponse,
    UserCreateRequest,
    UserProfileUpdateRequest,
    UserResponse,
    UserUpdateRequest,
)
from exchange_desk.services import role_service, user_service

router = APIRouter()
roles_router = APIRouter()


@router.get("/me", response_model=UserResponse, summary="Current user")
async def read_me(user: User = Depends(get_current_user)):
    return user


@router.patch("/me", response_model=UserResponse, summary="Update own profile")
async def update_me(
    request: UserProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Only name and phone can change; email is fixed at signup."""
    return await user_service.update_user_profile(
        db, user.id, name=request.name, phone=request.phone
    )


@router.get("", response_model=list[UserResponse], summary="[Manager] List users")
async def list_users(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.list_users(db, limit=limit, offset=offset)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="[Manager] Create a user",
)
async def create_user(
    request: UserCreateRequest,
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    """
    Open an account for a staff member. A duplicate email is 409
    duplicate_email; a name another user already has is 409 conflict.
    """
    return await user_service.create_user(
        db,
        email=request.email,
        password=request.password,
        name=request.name,
        phone=request.phone,
        role_id=request.role_id,
    )


@router.get("/{user_id}", response_model=UserResponse, summary="[Manager] Get a user")
async def get_user(
    user_id: uuid.UUID,
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_user(db, user_id)


@router.patch("/{user_id}", response_model=UserResponse, summary="[Manager] Edit a user")
async def update_user(
    user_id: uuid.UUID,
    request: UserUpdateRequest,
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.update_user(
        db,
        user_id,
        name=request.name,
        phone=request.phone,
        role_id=request.role_id,
        is_active=request.is_active,
    )


@router.put("/{user_id}/role", response_model=UserResponse, summary="[Manager] Assign a role")
async def assign_role(
    user_id: uuid.UUID,
    request: RoleAssignRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Give a user a role. The manager check happens in the service so that
    non-managers get the same permission_denied error everywhere.
    """
    return await role_service.assign_role_to_user(db, user, user_id, request.role_id)


@roles_router.get("", response_model=list[RoleResponse], summary="List roles")
async def list_roles(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await role_service.list_roles(db)
