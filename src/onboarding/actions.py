"""
Onboarding Actions.

Every change to the draft is one of these named actions, applied by
reducer.reduce(). Actions are pydantic models so the HTTP layer can
build them straight from JSON: the literal `type` field discriminates.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .state import (
    BusinessRef,
    Category,
    Location,
    MenuItem,
    MenuSubStep,
    Offer,
    OptionGroup,
    ScheduleEntry,
)


class Action(BaseModel):
    model_config = ConfigDict(frozen=True)


# =============================================================================
# Step control
# =============================================================================


class SetStep(Action):
    type: Literal["set_step"] = "set_step"
    step: int = Field(ge=1)


class SetSubStep(Action):
    type: Literal["set_sub_step"] = "set_sub_step"
    sub_step: int = Field(ge=0)


class CompleteStep(Action):
    type: Literal["complete_step"] = "complete_step"
    step: int = Field(ge=1)


class SetBusiness(Action):
    type: Literal["set_business"] = "set_business"
    business: BusinessRef | None


# =============================================================================
# Locations
# =============================================================================


class AddLocation(Action):
    type: Literal["add_location"] = "add_location"
    location: Location


class UpdateCurrentLocation(Action):
    """Patch the scratch location form."""
    type: Literal["update_current_location"] = "update_current_location"
    location: dict[str, Any]


class SetShowAddAnother(Action):
    type: Literal["set_show_add_another"] = "set_show_add_another"
    show: bool


class ResetCurrentLocation(Action):
    type: Literal["reset_current_location"] = "reset_current_location"


class SetLocations(Action):
    type: Literal["set_locations"] = "set_locations"
    locations: list[Location]


# =============================================================================
# Schedule
# =============================================================================


class SetSelectedDays(Action):
    type: Literal["set_selected_days"] = "set_selected_days"
    days: list[Annotated[int, Field(ge=0, le=6)]]


class AddSchedule(Action):
    type: Literal["add_schedule"] = "add_schedule"
    schedule: ScheduleEntry


class SetSchedules(Action):
    type: Literal["set_schedules"] = "set_schedules"
    schedules: list[ScheduleEntry]


class SetCurrentDayIndex(Action):
    type: Literal["set_current_day_index"] = "set_current_day_index"
    index: int = Field(ge=0)


# =============================================================================
# Menu
# =============================================================================


class SetMenuSubStep(Action):
    type: Literal["set_menu_sub_step"] = "set_menu_sub_step"
    sub_step: MenuSubStep


class AddCategory(Action):
    type: Literal["add_category"] = "add_category"
    category: Category


class UpdateCurrentCategory(Action):
    """Patch the current category; a None patch clears it."""
    type: Literal["update_current_category"] = "update_current_category"
    category: dict[str, Any] | None


class SetCurrentCategory(Action):
    type: Literal["set_current_category"] = "set_current_category"
    category: Category | None


class AddItemToCategory(Action):
    type: Literal["add_item_to_category"] = "add_item_to_category"
    category_id: str
    item: MenuItem


class UpdateItemInCategory(Action):
    type: Literal["update_item_in_category"] = "update_item_in_category"
    category_id: str
    item: MenuItem


class RemoveItemFromCategory(Action):
    type: Literal["remove_item_from_category"] = "remove_item_from_category"
    category_id: str
    item_id: str


class AddOptionGroupToCategory(Action):
    type: Literal["add_option_group_to_category"] = "add_option_group_to_category"
    category_id: str
    option_group: OptionGroup


class ReplaceOptionGroupInCategory(Action):
    type: Literal["replace_option_group_in_category"] = "replace_option_group_in_category"
    category_id: str
    old_group_id: str
    option_group: OptionGroup


class RemoveOptionGroupFromCategory(Action):
    type: Literal["remove_option_group_from_category"] = "remove_option_group_from_category"
    category_id: str
    group_id: str


class RemoveCategory(Action):
    type: Literal["remove_category"] = "remove_category"
    category_id: str


class FinalizeCategory(Action):
    """Upsert the current category into the list by id and close it."""
    type: Literal["finalize_category"] = "finalize_category"


class SetCategories(Action):
    type: Literal["set_categories"] = "set_categories"
    categories: list[Category]


# =============================================================================
# Offers
# =============================================================================


class SetWantsOffers(Action):
    type: Literal["set_wants_offers"] = "set_wants_offers"
    wants: bool | None


class AddOffer(Action):
    type: Literal["add_offer"] = "add_offer"
    offer: Offer


class SetOffers(Action):
    type: Literal["set_offers"] = "set_offers"
    offers: list[Offer]


# =============================================================================
# Settings / bulk
# =============================================================================


class UpdateSettings(Action):
    """Shallow-merge into the settings."""
    type: Literal["update_settings"] = "update_settings"
    settings: dict[str, Any]


class ResetState(Action):
    type: Literal["reset_state"] = "reset_state"


class LoadState(Action):
    """Shallow-merge a partial draft (snapshot or storage) over the current one."""
    type: Literal["load_state"] = "load_state"
    state: dict[str, Any]


AnyAction = Annotated[
    Union[
        SetStep,
        SetSubStep,
        CompleteStep,
        SetBusiness,
        AddLocation,
        UpdateCurrentLocation,
        SetShowAddAnother,
        ResetCurrentLocation,
        SetLocations,
        SetSelectedDays,
        AddSchedule,
        SetSchedules,
        SetCurrentDayIndex,
        SetMenuSubStep,
        AddCategory,
        UpdateCurrentCategory,
        SetCurrentCategory,
        AddItemToCategory,
        UpdateItemInCategory,
        RemoveItemFromCategory,
        AddOptionGroupToCategory,
        ReplaceOptionGroupInCategory,
        RemoveOptionGroupFromCategory,
        RemoveCategory,
        FinalizeCategory,
        SetCategories,
        SetWantsOffers,
        AddOffer,
        SetOffers,
        UpdateSettings,
        ResetState,
        LoadState,
    ],
    Field(discriminator="type"),
]

_ACTION_ADAPTER = TypeAdapter(AnyAction)


def parse_action(data: dict) -> Action:
    """
    Build an action from its JSON form, e.g. {"type": "set_step", "step": 2}.

    Raises pydantic.ValidationError for unknown types or bad payloads.
    """
    return _ACTION_ADAPTER.validate_python(data)
