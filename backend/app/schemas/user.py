"""
Storefront Backend — User Schemas
===================================

What:  Request bodies and responses for /api/users.

Wire names are camelCase in both directions, following the existing
frontend contract (currentPassword, newPassword, profilePicture,
createdAt); Python attributes stay snake_case through aliases.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(BaseModel):
    """All three fields are required and must be non-empty."""
    username: str = Field(min_length=1, max_length=150)
    email: EmailStr
    password: str = Field(min_length=1)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class ProfileUpdateRequest(BaseModel):
    """Both fields optional; only the ones sent are changed."""
    username: Optional[str] = Field(default=None, min_length=1, max_length=150)
    email: Optional[EmailStr] = None


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(alias="currentPassword", min_length=1)
    new_password: str = Field(alias="newPassword", min_length=1)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UserSummary(BaseModel):
    """Sanitized user returned right after registration."""
    id: uuid.UUID
    username: str
    email: str

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class RegisterResponse(BaseModel):
    token: str
    user: UserSummary


class LoginResponse(BaseModel):
    token: str
    username: str
    role: str


class UserResponse(BaseModel):
    """
    What:  Full user record minus the password hash.
    Who:   Returned by GET /api/users/profile and PUT /api/users/update.
    """
    id: uuid.UUID
    username: str
    email: str
    role: str
    profile_picture: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class UserEnvelope(BaseModel):
    """{"user": {...}}"""
    user: UserResponse
