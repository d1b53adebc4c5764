"""
Onboarding Assistant.

Ties one business's draft store to the store client: loads persisted
data once on entry, runs the save stages in dependency order on
completion, and keeps the flags a UI needs (loaded, saving, error).
"""

import logging
from dataclasses import replace

from storefront.db.adapter import StoreClient

from . import saver
from .actions import LoadState, SetLocations
from .loader import load_draft
from .session import clear_snapshot, load_snapshot, save_snapshot
from .state import OnboardingDraft
from .store import DraftStore, StepNavigator

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Une erreur est survenue"


def error_message(exc: BaseException) -> str:
    """Human-readable message for a failed save."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or GENERIC_ERROR_MESSAGE


class OnboardingAssistant:
    """
    Load/save orchestration for one business.

    save_all() is latched: a second call while one is running returns
    False without touching the store. Nothing retries automatically;
    running save_all() again after a failure is safe because every
    stage is idempotent.
    """

    def __init__(self, client: StoreClient, business_id: str, store: DraftStore | None = None):
        self.client = client
        self.business_id = business_id
        self.store = store or DraftStore()
        self.navigator = StepNavigator(self.store)

        self.loaded = False
        self.saving = False
        self.error: str | None = None
        self._load_started = False

    @property
    def state(self) -> OnboardingDraft:
        return self.store.state

    # =========================================================================
    # Load
    # =========================================================================

    async def load(self, resume_snapshot: bool = True) -> OnboardingDraft:
        """
        Fold persisted data (then any unsaved snapshot) into the draft.

        Runs once per assistant. Errors are logged, not raised: the wizard
        opens with whatever was loaded before the failure.
        """
        if self._load_started:
            return self.state
        self._load_started = True

        try:
            await load_draft(self.client, self.store, self.business_id)
            if resume_snapshot:
                snapshot = await load_snapshot(self.client, self.business_id)
                if snapshot:
                    self.store.dispatch(LoadState(state=snapshot))
        except Exception as e:
            logger.error(f"Error loading existing data for {self.business_id}: {e}")
        finally:
            self.loaded = True

        return self.state

    async def persist_snapshot(self) -> None:
        await save_snapshot(self.client, self.business_id, self.state)

    # =========================================================================
    # Save stages
    # =========================================================================

    async def save_locations(self) -> list[str]:
        return await saver.save_locations(self.client, self.business_id, self.state)

    async def persist_locations(self) -> list[str]:
        """Upsert the draft locations and adopt the ids the store returned."""
        draft = self.state
        location_ids = await self.save_locations()
        if location_ids:
            self.store.dispatch(SetLocations(locations=[
                replace(location, id=location_id)
                for location, location_id in zip(draft.locations, location_ids)
            ]))
        return location_ids

    async def save_schedules(self, location_ids: list[str]) -> None:
        await saver.save_schedules(self.client, self.business_id, self.state, location_ids)

    async def save_menu(self) -> None:
        await saver.save_menu(self.client, self.business_id, self.state)

    async def save_offers(self) -> None:
        await saver.save_offers(self.client, self.business_id, self.state)

    async def save_settings(self) -> None:
        await saver.save_settings(self.client, self.business_id, self.state)

    async def save_all(self) -> bool:
        """
        Persist the whole draft: locations, schedules, menu, offers, settings.

        Returns:
            True on success; on failure False, with self.error set
        """
        if self.saving:
            logger.warning(f"Save already in progress for {self.business_id}")
            return False

        self.saving = True
        self.error = None

        try:
            location_ids = await self.save_locations()
            await self.save_schedules(location_ids)
            await self.save_menu()
            await self.save_offers()
            await self.save_settings()

            await clear_snapshot(self.client, self.business_id)
            logger.info(f"Onboarding completed for {self.business_id}")
            return True
        except Exception as e:
            logger.error(f"Error saving onboarding data for {self.business_id}: {e}")
            self.error = error_message(e)
            return False
        finally:
            self.saving = False

    async def save_step_data(self, completed_step: int) -> None:
        """
        Save just the stage owned by a step the operator has completed.

        Best effort: failures are logged and the full save at the end
        will try again.
        """
        draft = self.state
        try:
            match completed_step:
                case 1:
                    if draft.locations:
                        await self.persist_locations()
                case 2:
                    # Schedules reference locations, which must exist first
                    if draft.schedules and draft.locations:
                        location_ids = await self.persist_locations()
                        await saver.save_schedules(self.client, self.business_id, draft, location_ids)
                case 3:
                    if draft.categories:
                        await self.save_menu()
                case 4:
                    if draft.offers:
                        await self.save_offers()
                case 5:
                    await self.save_settings()
        except Exception as e:
            logger.error(f"Error saving step {completed_step} data: {e}")

    async def update_progress(self, step: int) -> None:
        """Record the step reached on the business so a reload resumes there."""
        await saver.update_progress(self.client, self.business_id, step)
