"""Pydantic schemas for authentication endpoints"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .password import validate_password_strength


class LoginRequest(BaseModel):
    """Request schema for user login."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    """Self-service registration. New accounts always get the ``user`` role."""
    email: EmailStr
    password: str
    name: str = Field(..., min_length=1, max_length=200)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        ok, message = validate_password_strength(value)
        if not ok:
            raise ValueError(message)
        return value


class LoginResponse(BaseModel):
    """Response schema for successful login.

    Attributes:
        access_token: JWT access token
        token_type: Token type (always "bearer")
        expires_in: Token expiry in seconds
    """
    access_token: str
    token_type: str = "bearer"
    expires_in: int = 3600


class UserResponse(BaseModel):
    """User information response (excludes password_hash)."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    role: str
    status: str
    citizen_id: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[dict] = None
    created_at: datetime
    updated_at: datetime


class RegisterResponse(BaseModel):
    user: UserResponse
    tokens: LoginResponse


class MeResponse(BaseModel):
    """Response schema for GET /auth/me endpoint."""
    user: UserResponse
