"""
Onboarding Draft State.

The wizard accumulates everything the operator enters in one in-memory
draft. Nothing here talks to the store: the draft is folded in from
storage by the loader and written back out by the saver.

Monetary values keep the units they were entered in: item prices and
option price modifiers are integer minor units (cents), offer configs
hold display currency (euros) until the saver normalises them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from pydantic import TypeAdapter

TOTAL_STEPS = 5
COMPLETED_STEP_MARKER = 6  # onboarding_step value once the storefront is live

BASE_PRICE_KEY = "base"
DEFAULT_PAYMENT_METHODS = ("cash", "card")
DEFAULT_PICKUP_SLOT_INTERVAL = 15

OptionGroupKind = Literal["size", "supplement", "other"]
OfferType = Literal["bundle", "buy_x_get_y", "promo_code", "threshold_discount"]


class MenuSubStep(Enum):
    """Menu sub-flow: category -> options -> items -> done."""
    CATEGORY = "category"
    OPTIONS = "options"
    ITEMS = "items"
    DONE = "done"


@dataclass
class BusinessRef:
    """Identity of the business being onboarded (created before the wizard)."""
    id: str
    name: str = ""
    slug: str = ""


@dataclass
class Location:
    """A pickup location. id is None until persisted, or a client placeholder."""
    name: str = ""
    address: str = ""
    latitude: float | None = None
    longitude: float | None = None
    external_place_id: str = ""
    id: str | None = None


@dataclass
class ScheduleEntry:
    """
    One weekday slot.

    location_ref may be a persisted location id, a client placeholder id,
    or a location name; it is resolved to a real id only at save time.
    """
    day_of_week: int  # 0 = Sunday
    location_ref: str
    start_time: str  # "HH:MM"
    end_time: str


@dataclass
class OptionChoice:
    name: str
    price_modifier: int | None = None  # minor units


@dataclass
class OptionGroup:
    id: str
    name: str
    kind: OptionGroupKind = "supplement"
    options: list[OptionChoice] = field(default_factory=list)


@dataclass
class MenuItem:
    """
    A menu item.

    prices maps "base" -> amount for single-priced items, or one
    size option name -> amount per size.
    """
    id: str
    name: str
    prices: dict[str, int] = field(default_factory=dict)


@dataclass
class Category:
    id: str
    name: str
    option_groups: list[OptionGroup] = field(default_factory=list)
    items: list[MenuItem] = field(default_factory=list)

    def size_group(self) -> OptionGroup | None:
        """The first size option group, if the category has one."""
        for group in self.option_groups:
            if group.kind == "size":
                return group
        return None


@dataclass
class Offer:
    """An offer drafted in display units, with category/item names rather than ids."""
    type: OfferType
    name: str
    config: dict[str, Any] = field(default_factory=dict)


@dataclass
class WizardSettings:
    payment_methods: list[str] = field(default_factory=lambda: list(DEFAULT_PAYMENT_METHODS))
    pickup_slot_interval: int = DEFAULT_PICKUP_SLOT_INTERVAL  # minutes
    description: str = ""
    loyalty_enabled: bool = False


@dataclass
class OnboardingDraft:
    """
    Root of the wizard draft.

    current_category is either None or the category being edited. When it
    is also in categories (same id), item and option-group edits apply to
    both copies; patching the current category touches only the current
    copy until finalize writes it back into the list.
    """
    # Progress
    current_step: int = 1
    current_sub_step: int = 0
    completed_steps: list[int] = field(default_factory=list)

    business: BusinessRef | None = None

    # Step 1: Locations
    locations: list[Location] = field(default_factory=list)
    current_location: Location = field(default_factory=Location)
    show_add_another: bool = False

    # Step 2: Schedule
    selected_days: list[int] = field(default_factory=list)
    schedules: list[ScheduleEntry] = field(default_factory=list)
    current_day_index: int = 0

    # Step 3: Menu
    categories: list[Category] = field(default_factory=list)
    current_category: Category | None = None
    menu_sub_step: MenuSubStep = MenuSubStep.CATEGORY

    # Step 4: Offers
    offers: list[Offer] = field(default_factory=list)
    wants_offers: bool | None = None  # None = not answered yet

    # Step 5: Settings
    settings: WizardSettings = field(default_factory=WizardSettings)

    def to_dict(self) -> dict:
        """Serialize draft to a JSON-compatible dict."""
        return DRAFT_ADAPTER.dump_python(self, mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> "OnboardingDraft":
        """Deserialize draft from dict (missing keys take their defaults)."""
        return DRAFT_ADAPTER.validate_python(data)

    def to_json(self) -> str:
        return DRAFT_ADAPTER.dump_json(self).decode()

    @classmethod
    def from_json(cls, json_str: str) -> "OnboardingDraft":
        return DRAFT_ADAPTER.validate_json(json_str)


DRAFT_ADAPTER = TypeAdapter(OnboardingDraft)
LOCATION_ADAPTER = TypeAdapter(Location)
CATEGORY_ADAPTER = TypeAdapter(Category)
SETTINGS_ADAPTER = TypeAdapter(WizardSettings)


def initial_draft() -> OnboardingDraft:
    """A pristine draft: step 1, nothing entered, default settings."""
    return OnboardingDraft()
