"""Pydantic schemas for User management endpoints.

These schemas define the request/response contracts for user CRUD operations.
All schemas exclude password_hash (never returned in API responses).
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from auth.password import validate_password_strength
from auth.schemas import UserResponse


class Address(BaseModel):
    province: Optional[str] = None
    district: Optional[str] = None
    town: Optional[str] = None
    street: Optional[str] = None


class UserCreate(BaseModel):
    """Request schema for creating a new user (POST /users)."""
    email: EmailStr = Field(..., examples=["requester@example.com"])
    name: str = Field(..., min_length=1, max_length=200, examples=["Nguyen Van A"])
    role: str = Field(..., pattern="^(user|admin|notary|secretary)$", examples=["notary"])
    password: str = Field(..., examples=["notary2024"])

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        ok, message = validate_password_strength(value)
        if not ok:
            raise ValueError(message)
        return value


class UserUpdate(BaseModel):
    """Request schema for updating an existing user (PATCH /users/{id}).

    All fields are optional but at least one must be present.
    """
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    role: Optional[str] = Field(None, pattern="^(user|admin|notary|secretary)$")
    status: Optional[str] = Field(None, pattern="^(active|inactive|suspended|deleted)$")
    citizen_id: Optional[str] = Field(None, alias="citizenId")
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    address: Optional[Address] = None

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError("at least one field must be provided")
        return self

