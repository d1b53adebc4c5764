"""
Onboarding Reducer.

reduce(draft, action) -> new draft. Pure and total: the input draft is
never mutated, collections are rebuilt rather than edited in place, and
an unknown action returns the draft unchanged.

Item and option-group edits target a category by id in the committed
list and, independently, the current category when its id matches, so
the two copies never share mutable lists.
"""

import logging
from dataclasses import replace
from typing import Callable

from .actions import (
    Action,
    AddCategory,
    AddItemToCategory,
    AddLocation,
    AddOffer,
    AddOptionGroupToCategory,
    AddSchedule,
    CompleteStep,
    FinalizeCategory,
    LoadState,
    RemoveCategory,
    RemoveItemFromCategory,
    RemoveOptionGroupFromCategory,
    ReplaceOptionGroupInCategory,
    ResetCurrentLocation,
    ResetState,
    SetBusiness,
    SetCategories,
    SetCurrentCategory,
    SetCurrentDayIndex,
    SetLocations,
    SetMenuSubStep,
    SetOffers,
    SetSchedules,
    SetSelectedDays,
    SetShowAddAnother,
    SetStep,
    SetSubStep,
    SetWantsOffers,
    UpdateCurrentCategory,
    UpdateCurrentLocation,
    UpdateItemInCategory,
    UpdateSettings,
)
from .state import (
    CATEGORY_ADAPTER,
    LOCATION_ADAPTER,
    SETTINGS_ADAPTER,
    Category,
    Location,
    MenuSubStep,
    OnboardingDraft,
    initial_draft,
)

logger = logging.getLogger(__name__)

CategoryEdit = Callable[[Category], Category]


def _patched(adapter, obj, patch: dict):
    """Shallow-merge patch into a dataclass, revalidating nested values."""
    return adapter.validate_python({**adapter.dump_python(obj), **patch})


def _edit_category(draft: OnboardingDraft, category_id: str, edit: CategoryEdit) -> OnboardingDraft:
    """Apply edit to the category with this id, in the list and in the current slot."""
    categories = [edit(cat) if cat.id == category_id else cat for cat in draft.categories]
    current = draft.current_category
    if current is not None and current.id == category_id:
        current = edit(current)
    return replace(draft, categories=categories, current_category=current)


def _finalize_category(draft: OnboardingDraft) -> OnboardingDraft:
    current = draft.current_category
    if current is None:
        return draft

    categories = list(draft.categories)
    for index, cat in enumerate(categories):
        if cat.id == current.id:
            categories[index] = current
            break
    else:
        categories.append(current)

    return replace(
        draft,
        categories=categories,
        current_category=None,
        menu_sub_step=MenuSubStep.DONE,
    )


def _add_schedule(draft: OnboardingDraft, action: AddSchedule) -> OnboardingDraft:
    # One entry per weekday: reconfiguring a day replaces its entry
    entry = action.schedule
    schedules = list(draft.schedules)
    for index, existing in enumerate(schedules):
        if existing.day_of_week == entry.day_of_week:
            schedules[index] = entry
            break
    else:
        schedules.append(entry)
    return replace(draft, schedules=schedules)


def reduce(draft: OnboardingDraft, action: Action) -> OnboardingDraft:
    """Apply one action to the draft and return the next draft."""
    match action:
        # Step control
        case SetStep(step=step):
            return replace(draft, current_step=step)

        case SetSubStep(sub_step=sub_step):
            return replace(draft, current_sub_step=sub_step)

        case CompleteStep(step=step):
            if step in draft.completed_steps:
                return draft
            return replace(draft, completed_steps=[*draft.completed_steps, step])

        case SetBusiness(business=business):
            return replace(draft, business=business)

        # Locations
        case AddLocation(location=location):
            return replace(
                draft,
                locations=[*draft.locations, location],
                current_location=Location(),
                show_add_another=True,
            )

        case UpdateCurrentLocation(location=patch):
            return replace(
                draft,
                current_location=_patched(LOCATION_ADAPTER, draft.current_location, patch),
            )

        case SetShowAddAnother(show=show):
            return replace(draft, show_add_another=show)

        case ResetCurrentLocation():
            return replace(draft, current_location=Location(), show_add_another=False)

        case SetLocations(locations=locations):
            return replace(draft, locations=list(locations))

        # Schedule
        case SetSelectedDays(days=days):
            return replace(draft, selected_days=list(days))

        case AddSchedule():
            return _add_schedule(draft, action)

        case SetSchedules(schedules=schedules):
            return replace(draft, schedules=list(schedules))

        case SetCurrentDayIndex(index=index):
            return replace(draft, current_day_index=index)

        # Menu
        case SetMenuSubStep(sub_step=sub_step):
            return replace(draft, menu_sub_step=sub_step)

        case AddCategory(category=category):
            return replace(
                draft,
                categories=[*draft.categories, category],
                current_category=category,
            )

        case UpdateCurrentCategory(category=patch):
            if draft.current_category is None or patch is None:
                return replace(draft, current_category=None)
            return replace(
                draft,
                current_category=_patched(CATEGORY_ADAPTER, draft.current_category, patch),
            )

        case SetCurrentCategory(category=category):
            return replace(draft, current_category=category)

        case AddItemToCategory(category_id=category_id, item=item):
            return _edit_category(
                draft, category_id,
                lambda cat: replace(cat, items=[*cat.items, item]),
            )

        case UpdateItemInCategory(category_id=category_id, item=item):
            return _edit_category(
                draft, category_id,
                lambda cat: replace(
                    cat, items=[item if i.id == item.id else i for i in cat.items]
                ),
            )

        case RemoveItemFromCategory(category_id=category_id, item_id=item_id):
            return _edit_category(
                draft, category_id,
                lambda cat: replace(cat, items=[i for i in cat.items if i.id != item_id]),
            )

        case AddOptionGroupToCategory(category_id=category_id, option_group=group):
            return _edit_category(
                draft, category_id,
                lambda cat: replace(cat, option_groups=[*cat.option_groups, group]),
            )

        case ReplaceOptionGroupInCategory(
            category_id=category_id, old_group_id=old_group_id, option_group=group
        ):
            return _edit_category(
                draft, category_id,
                lambda cat: replace(
                    cat,
                    option_groups=[
                        group if og.id == old_group_id else og for og in cat.option_groups
                    ],
                ),
            )

        case RemoveOptionGroupFromCategory(category_id=category_id, group_id=group_id):
            return _edit_category(
                draft, category_id,
                lambda cat: replace(
                    cat, option_groups=[og for og in cat.option_groups if og.id != group_id]
                ),
            )

        case RemoveCategory(category_id=category_id):
            current = draft.current_category
            if current is not None and current.id == category_id:
                current = None
            return replace(
                draft,
                categories=[cat for cat in draft.categories if cat.id != category_id],
                current_category=current,
            )

        case FinalizeCategory():
            return _finalize_category(draft)

        case SetCategories(categories=categories):
            return replace(draft, categories=list(categories))

        # Offers
        case SetWantsOffers(wants=wants):
            return replace(draft, wants_offers=wants)

        case AddOffer(offer=offer):
            return replace(draft, offers=[*draft.offers, offer])

        case SetOffers(offers=offers):
            return replace(draft, offers=list(offers))

        # Settings
        case UpdateSettings(settings=patch):
            return replace(draft, settings=_patched(SETTINGS_ADAPTER, draft.settings, patch))

        # Bulk
        case ResetState():
            return initial_draft()

        case LoadState(state=partial):
            return OnboardingDraft.from_dict({**draft.to_dict(), **partial})

    logger.warning(f"Ignoring unknown onboarding action: {action!r}")
    return draft
