"""
Draft Snapshots.

The in-progress draft is stored as JSON in onboarding_sessions so a
reload can resume where the operator left off, before anything has been
synchronized. Cleared once the final save succeeds.
"""

import logging
from datetime import datetime, timezone

from storefront.db.adapter import StoreClient

from .state import OnboardingDraft

logger = logging.getLogger(__name__)

SESSION_TABLE = "onboarding_sessions"


async def save_snapshot(client: StoreClient, business_id: str, draft: OnboardingDraft) -> None:
    """Upsert the serialized draft. Raises on store failure."""
    try:
        await client.table(SESSION_TABLE).upsert({
            "business_id": business_id,
            "state": draft.to_dict(),
            "current_step": draft.current_step,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }).execute()
    except Exception as e:
        logger.error(f"Failed to save onboarding snapshot: {e}")
        raise


async def load_snapshot(client: StoreClient, business_id: str) -> dict | None:
    """
    Return the stored draft dict, or None.

    The dict is meant for LoadState, which merges it over the current draft.
    """
    try:
        result = await client.table(SESSION_TABLE).select("*").eq("business_id", business_id).execute()
    except Exception as e:
        logger.warning(f"Failed to load onboarding snapshot: {e}")
        return None

    if not result.data:
        return None
    return result.data[0].get("state") or None


async def clear_snapshot(client: StoreClient, business_id: str) -> None:
    """Delete the snapshot after completion."""
    try:
        await client.table(SESSION_TABLE).delete().eq("business_id", business_id).execute()
    except Exception as e:
        logger.warning(f"Failed to clear onboarding snapshot: {e}")
