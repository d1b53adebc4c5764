"""
Draft Store and Step Navigator.

DraftStore holds the single current draft and is the only entry point
for changing it. Dispatch is synchronous; listeners are called after
each state change with the new draft.
"""

import logging
from typing import Callable

from .actions import Action, CompleteStep, SetStep
from .reducer import reduce
from .state import OnboardingDraft, initial_draft

logger = logging.getLogger(__name__)

Listener = Callable[[OnboardingDraft], None]


class DraftStore:
    """Container for the wizard draft."""

    def __init__(self, draft: OnboardingDraft | None = None):
        self._draft = draft if draft is not None else initial_draft()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> OnboardingDraft:
        return self._draft

    def dispatch(self, action: Action) -> OnboardingDraft:
        """Reduce one action into the draft and notify listeners."""
        logger.debug(f"dispatch {type(action).__name__}")
        next_draft = reduce(self._draft, action)
        if next_draft is not self._draft:
            self._draft = next_draft
            for listener in list(self._listeners):
                listener(next_draft)
        return self._draft

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


class StepNavigator:
    """
    Forward/back/jump over the five wizard steps.

    go_to() does not mark skipped steps complete; readiness checks are
    left to the caller.
    """

    def __init__(self, store: DraftStore):
        self.store = store

    @property
    def current_step(self) -> int:
        return self.store.state.current_step

    def next(self) -> OnboardingDraft:
        step = self.current_step
        self.store.dispatch(CompleteStep(step=step))
        return self.store.dispatch(SetStep(step=step + 1))

    def previous(self) -> OnboardingDraft:
        return self.store.dispatch(SetStep(step=max(1, self.current_step - 1)))

    def go_to(self, step: int) -> OnboardingDraft:
        return self.store.dispatch(SetStep(step=step))
