"""
Pydantic schemas for authentication endpoints (signup and login).

Pydantic validates incoming data automatically: a missing or malformed
field gets a 422 before any service code runs.
"""

import uuid

from pydantic import BaseModel, EmailStr, Field


class UserSignupRequest(BaseModel):
    """Request body for POST /auth/signup."""
    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=1, max_length=200)
    phone: str | None = None


class UserLoginRequest(BaseModel):
    """Request body for POST /auth/login."""
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Response body for a successful login."""
    token: str
    token_type: str = "bearer"
    user_id: uuid.UUID
    role_name: str | None


class SignupResponse(BaseModel):
    """Response body for a successful signup: user info plus JWT."""
    user_id: uuid.UUID
    email: str
    role_name: str | None
    token: str
    token_type: str = "bearer"
