"""
Storefront - Supabase Client.

Low-level store access. The onboarding core receives this client
through dependency injection; nothing in it opens connections itself.
"""

import logging

from supabase import AsyncClient, acreate_client

from storefront.config import settings

logger = logging.getLogger(__name__)

# Singleton client instance
_client: AsyncClient | None = None


async def get_client() -> AsyncClient:
    """
    Get the async Supabase client.

    Uses the service role key; row ownership is enforced by always
    filtering on business_id.
    """
    global _client

    if _client is None:
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        _client = await acreate_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )
        logger.info("Supabase client created")

    return _client


def reset_client() -> None:
    """Drop the cached client (tests, key rotation)."""
    global _client
    _client = None
