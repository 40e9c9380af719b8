"""
Account operations backed by Supabase Auth.

Sign-in and password reset go through the anon client; token lookups and
user deletion need the service role client.
"""
import logging
import re
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from djagency.core.config import settings
from djagency.core.errors import (
    DomainError,
    ErrorKind,
    PermissionDeniedError,
    ValidationError,
    classify_exception,
    to_domain_error,
)
from djagency.core.supabase_client import get_supabase_admin_client, get_supabase_client
from djagency.models import Profile, ProfileRole

logger = logging.getLogger(__name__)

# UUID versions 1-5 with the RFC 4122 variant
USER_ID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[1-5][0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}$"
)


class AuthenticationError(DomainError):
    """Missing, invalid or expired credentials."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(kind=ErrorKind.UNAUTHORIZED, message=message)


@dataclass
class SignInResult:
    access_token: str
    refresh_token: Optional[str]
    user_id: uuid.UUID
    role: str
    is_admin: bool = False


def validate_user_id(value: Any) -> str:
    """Return the user id when it is a well-formed UUID string."""
    if not value or not isinstance(value, str):
        raise ValidationError("Invalid userId")
    if not USER_ID_PATTERN.match(value):
        raise ValidationError("userId must be a UUID")
    return value


def role_from_metadata(user: Any) -> Optional[str]:
    """role claim stored in the auth user's metadata, if any."""
    for attr in ("app_metadata", "user_metadata"):
        metadata = getattr(user, attr, None) or {}
        role = metadata.get("role") if isinstance(metadata, dict) else None
        if role in {r.value for r in ProfileRole}:
            return role
    return None


class AccountService:
    """
    Supabase Auth operations.

    Client factories are injectable so tests can run with fakes.
    """

    def __init__(
        self,
        client_factory: Callable[[], Any] | None = None,
        admin_client_factory: Callable[[], Any] | None = None,
    ):
        self.client_factory = client_factory or get_supabase_client
        self.admin_client_factory = admin_client_factory or get_supabase_admin_client

    async def sign_in(self, db: AsyncSession, email: str, password: str) -> SignInResult:
        """
        Sign in with email and password.

        Raises:
            AuthenticationError: wrong credentials
        """
        try:
            response = self.client_factory().auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            kind = classify_exception(e)
            if kind in (ErrorKind.VALIDATION, ErrorKind.UNAUTHORIZED, ErrorKind.NOT_FOUND):
                logger.info(f"Sign-in rejected for {email}")
                raise AuthenticationError("Invalid email or password") from e
            raise to_domain_error(e) from e

        session = getattr(response, "session", None)
        user = getattr(response, "user", None)
        if session is None or user is None:
            raise AuthenticationError("Invalid email or password")

        user_id = uuid.UUID(str(user.id))
        profile = await db.get(Profile, user_id)
        role = profile.role if profile else (role_from_metadata(user) or ProfileRole.DJ.value)

        logger.info(f"User {user_id} signed in (role={role})")
        return SignInResult(
            access_token=session.access_token,
            refresh_token=getattr(session, "refresh_token", None),
            user_id=user_id,
            role=role,
            is_admin=bool(profile and profile.is_admin_user),
        )

    def get_user_id(self, token: str) -> uuid.UUID:
        """
        Resolve the auth user behind an access token.

        Raises:
            AuthenticationError: invalid or expired token
        """
        if not token:
            raise AuthenticationError()
        try:
            response = self.admin_client_factory().auth.get_user(token)
        except Exception as e:
            kind = classify_exception(e)
            if kind in (ErrorKind.CONFIGURATION, ErrorKind.UNAVAILABLE):
                raise to_domain_error(e) from e
            logger.debug(f"Token validation failed: {e}")
            raise AuthenticationError("Invalid or expired token") from e

        user = getattr(response, "user", None)
        if user is None:
            raise AuthenticationError("Invalid or expired token")
        return uuid.UUID(str(user.id))

    async def get_profile_for_token(self, db: AsyncSession, token: str) -> Profile:
        """Profile of the bearer of an access token."""
        user_id = self.get_user_id(token)
        profile = await db.get(Profile, user_id)
        if profile is None:
            raise AuthenticationError("No profile for this user")
        return profile

    def request_password_reset(self, email: str) -> None:
        """
        Send a password reset email.

        Unknown addresses are not reported to the caller; only configuration
        and connectivity failures are raised.
        """
        options = {}
        if settings.PASSWORD_RESET_REDIRECT_URL:
            options["redirect_to"] = settings.PASSWORD_RESET_REDIRECT_URL
        try:
            self.client_factory().auth.reset_password_for_email(email, options)
        except Exception as e:
            kind = classify_exception(e)
            if kind in (ErrorKind.CONFIGURATION, ErrorKind.UNAVAILABLE):
                raise to_domain_error(e) from e
            logger.warning(f"Password reset for {email} failed ({kind.value}): {e}")
            return
        logger.info(f"Password reset requested for {email}")

    async def delete_user(self, db: AsyncSession, token: str, user_id: Any) -> None:
        """
        Delete an auth user on behalf of an admin.

        Raises:
            AuthenticationError: caller not authenticated
            PermissionDeniedError: caller is not an admin
            ValidationError: user_id is not a UUID string
        """
        actor = await self.get_profile_for_token(db, token)
        if not actor.is_admin_user:
            raise PermissionDeniedError("Only admins can delete users")

        target = validate_user_id(user_id)

        try:
            self.admin_client_factory().auth.admin.delete_user(target)
        except Exception as e:
            error = to_domain_error(e)
            logger.error(f"Deleting user {target} failed: {error}")
            raise error from e

        logger.info(f"User {target} deleted by admin {actor.id}")


account_service = AccountService()


def get_account_service() -> AccountService:
    """FastAPI dependency returning the account service."""
    return account_service
