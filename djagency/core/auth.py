"""Authentication dependencies for the API routers."""
import logging

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from djagency.core.database import get_db
from djagency.models import Profile
from djagency.services.accounts import AccountService, AuthenticationError, get_account_service

logger = logging.getLogger(__name__)


def bearer_token(authorization: str | None) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        return ""
    return authorization[len("Bearer "):].strip()


async def get_current_profile(
    authorization: str = Header(None),
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_account_service),
) -> Profile:
    """Profile of the authenticated user (401 when missing or invalid)."""
    token = bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    try:
        return await accounts.get_profile_for_token(db, token)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)


async def require_admin(profile: Profile = Depends(get_current_profile)) -> Profile:
    """Current profile, only when it is an admin."""
    if not profile.is_admin_user:
        logger.warning(f"Profile {profile.id} ({profile.role}) denied admin access")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return profile
