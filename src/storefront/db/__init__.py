"""
Storefront - Database Client.

Async Supabase access for the onboarding synchronizers.
"""

from storefront.db.adapter import StoreClient
from storefront.db.client import get_client

__all__ = [
    "StoreClient",
    "get_client",
]
