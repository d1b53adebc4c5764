"""
Storefront Onboarding.

Five-step setup wizard for a new storefront:
1. Locations
2. Weekly schedule
3. Menu (categories, option groups, items)
4. Offers
5. Settings

The draft lives in memory (DraftStore) and is reconciled with the store
only on entry (loader) and on completion (saver).
"""

from .assistant import OnboardingAssistant
from .state import MenuSubStep, OnboardingDraft, initial_draft
from .store import DraftStore, StepNavigator

__all__ = [
    "DraftStore",
    "MenuSubStep",
    "OnboardingAssistant",
    "OnboardingDraft",
    "StepNavigator",
    "initial_draft",
]
