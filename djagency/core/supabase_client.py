"""Supabase clients for authentication and storage operations."""
from djagency.core.config import settings
from djagency.core.errors import ConfigurationError


def get_supabase_admin_client():
    """
    Get Supabase client with service role key for admin operations.

    This client can:
    - Delete users
    - Upload to storage buckets regardless of bucket policies
    - Bypass Row Level Security
    """
    from supabase import create_client

    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise ConfigurationError("SUPABASE_SERVICE_ROLE_KEY not configured")

    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_ROLE_KEY
    )


def get_supabase_client():
    """
    Get Supabase client with anon key for sign-in and session lookups.
    """
    from supabase import create_client

    if not settings.supabase_configured:
        raise ConfigurationError("SUPABASE_URL / SUPABASE_ANON_KEY not configured")

    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_ANON_KEY
    )
