"""Schemas for sign-in, password reset and the delete-user function."""
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SessionResponse(BaseModel):
    """Tokens and identity of a signed-in user."""
    access_token: str
    refresh_token: Optional[str] = None
    user_id: UUID
    role: str
    is_admin: bool = False


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetResponse(BaseModel):
    message: str


class DeleteUserRequest(BaseModel):
    """
    Body of the delete-user function.

    userId is left untyped so that a malformed value produces the
    function's own {"error": ...} response instead of a 422.
    """
    userId: Any = None


class DeleteUserResponse(BaseModel):
    success: bool
