"""
Auth Router

Email/password sign-in, session lookup, password reset and the admin
delete-user function.
"""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from djagency.core.auth import bearer_token, get_current_profile
from djagency.core.database import get_db
from djagency.models import Profile
from djagency.schemas.auth import (
    DeleteUserRequest,
    DeleteUserResponse,
    PasswordResetRequest,
    PasswordResetResponse,
    SessionResponse,
    SignInRequest,
)
from djagency.schemas.people import ProfileResponse
from djagency.services.accounts import AccountService, AuthenticationError, get_account_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
functions_router = APIRouter(prefix="/functions", tags=["functions"])


@router.post("/sign-in", response_model=SessionResponse)
async def sign_in(
    request: SignInRequest,
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_account_service),
):
    """Sign in with email and password."""
    try:
        result = await accounts.sign_in(db, request.email, request.password)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    return {
        "access_token": result.access_token,
        "refresh_token": result.refresh_token,
        "user_id": result.user_id,
        "role": result.role,
        "is_admin": result.is_admin,
    }


@router.get("/session", response_model=ProfileResponse)
async def get_session(profile: Profile = Depends(get_current_profile)):
    """Profile of the current session; the role field drives the client UI."""
    return profile


@router.post("/password-reset", response_model=PasswordResetResponse, status_code=status.HTTP_202_ACCEPTED)
async def request_password_reset(
    request: PasswordResetRequest,
    accounts: AccountService = Depends(get_account_service),
):
    """Send a password reset email if the address is registered."""
    accounts.request_password_reset(request.email)
    return {"message": "If the address is registered, a reset email has been sent"}


@functions_router.post("/delete-user", response_model=DeleteUserResponse)
async def delete_user(
    request: DeleteUserRequest,
    authorization: str = Header(None),
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_account_service),
):
    """
    Delete an auth user (admins only).

    Body: {"userId": "<uuid>"}
    Returns {"success": true}, or {"error": "..."} with status 400 when the
    caller is not an admin, the id is malformed or the deletion fails.
    """
    try:
        await accounts.delete_user(db, bearer_token(authorization), request.userId)
    except Exception as e:
        message = getattr(e, "message", None) or str(e) or "Unknown error"
        logger.warning(f"delete-user rejected: {message}")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})
    return {"success": True}
