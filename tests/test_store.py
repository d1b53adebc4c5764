"""Tests for DraftStore dispatch/subscribe and the StepNavigator."""

from onboarding.actions import CompleteStep, SetStep
from onboarding.state import TOTAL_STEPS
from onboarding.store import DraftStore, StepNavigator


class TestDraftStore:
    def test_dispatch_returns_new_state(self):
        store = DraftStore()
        state = store.dispatch(SetStep(step=2))

        assert state is store.state
        assert store.state.current_step == 2

    def test_listeners_notified_on_change(self):
        store = DraftStore()
        seen = []
        store.subscribe(lambda draft: seen.append(draft.current_step))

        store.dispatch(SetStep(step=2))
        store.dispatch(SetStep(step=3))

        assert seen == [2, 3]

    def test_no_notification_when_unchanged(self):
        store = DraftStore()
        store.dispatch(CompleteStep(step=1))
        seen = []
        store.subscribe(seen.append)

        store.dispatch(CompleteStep(step=1))
        assert seen == []

    def test_unsubscribe(self):
        store = DraftStore()
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        unsubscribe()

        store.dispatch(SetStep(step=2))
        assert seen == []


class TestStepNavigator:
    def test_next_completes_and_advances(self):
        navigator = StepNavigator(DraftStore())
        navigator.next()

        assert navigator.current_step == 2
        assert navigator.store.state.completed_steps == [1]

    def test_previous_floors_at_one(self):
        navigator = StepNavigator(DraftStore())
        navigator.previous()
        assert navigator.current_step == 1

        navigator.go_to(3)
        navigator.previous()
        assert navigator.current_step == 2

    def test_go_to_does_not_complete(self):
        navigator = StepNavigator(DraftStore())
        navigator.go_to(4)

        assert navigator.current_step == 4
        assert navigator.store.state.completed_steps == []

    def test_completed_steps_are_distinct(self):
        """Any sequence of next/previous/go_to keeps completed steps duplicate-free."""
        navigator = StepNavigator(DraftStore())
        moves = ["next", "next", "previous", "next", "go_to", "next", "previous", "previous", "next"]

        for move in moves:
            if move == "go_to":
                navigator.go_to(1)
            else:
                getattr(navigator, move)()
            completed = navigator.store.state.completed_steps
            assert len(completed) == len(set(completed))
            assert navigator.current_step >= 1

    def test_walk_through_all_steps(self):
        navigator = StepNavigator(DraftStore())
        for _ in range(TOTAL_STEPS):
            navigator.next()

        assert navigator.store.state.completed_steps == [1, 2, 3, 4, 5]
        assert navigator.current_step == TOTAL_STEPS + 1
