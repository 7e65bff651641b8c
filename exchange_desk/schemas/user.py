"""
Pydantic schemas for users and roles.

hashed_password is never part of any response schema.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class UserResponse(BaseModel):
    id: uuid.UUID
    email: EmailStr
    name: str
    phone: str | None
    role_id: uuid.UUID | None
    role_name: str | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    """Short form used in pickers (cashier / treasurer lists)."""
    id: uuid.UUID
    name: str
    email: EmailStr
    role_name: str | None

    model_config = {"from_attributes": True}


class UserProfileUpdateRequest(BaseModel):
    """Request body for PATCH /users/me. Email is not editable."""
    name: str | None = Field(None, min_length=1, max_length=200)
    phone: str | None = None


class RoleResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None

    model_config = {"from_attributes": True}


class RoleAssignRequest(BaseModel):
    """Request body for PUT /users/{id}/role."""
    role_id: uuid.UUID


class UserCreateRequest(BaseModel):
    """Request body for POST /users (a manager creates a staff account)."""
    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=1, max_length=200)
    phone: str | None = None
    role_id: uuid.UUID | None = None


class UserUpdateRequest(BaseModel):
    """Request body for PATCH /users/{id}. Omitted fields are left alone."""
    name: str | None = Field(None, min_length=1, max_length=200)
    phone: str | None = None
    role_id: uuid.UUID | None = None
    is_active: bool | None = None
