"""
Onboarding Forms - Pre-save validation.

Everything here runs before the save synchronizer is ever invoked:
a draft that fails these checks is reported back to the operator and
never reaches the store.
"""

import logging
import re
from typing import Literal

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .offers import discount_type_of
from .state import Category, Location, Offer, OptionGroup, ScheduleEntry, WizardSettings

logger = logging.getLogger(__name__)


# =============================================================================
# Valid Options
# =============================================================================

VALID_PAYMENT_METHODS = {
    "cash",
    "card",
    "contactless",
    "meal_voucher",
    "check",
    "online",
}

PICKUP_SLOT_INTERVALS = [5, 10, 15, 20, 30, 60]

OFFER_TYPE_OPTIONS = [
    {"type": "bundle", "label": "Menu / Formule"},
    {"type": "buy_x_get_y", "label": "X achetés = Y offert"},
    {"type": "promo_code", "label": "Code promo"},
    {"type": "threshold_discount", "label": "Remise dès X€"},
]

MIN_BUNDLE_CATEGORIES = 2

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class OfferValidationError(ValueError):
    """A drafted offer failed validation; .errors lists every reason."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


def _messages(exc: ValidationError) -> list[str]:
    return [err["msg"].removeprefix("Value error, ") for err in exc.errors()]


# =============================================================================
# Form Models
# =============================================================================


class LocationForm(BaseModel):
    name: str = Field(min_length=1)
    address: str = ""
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def coordinates_paired(self) -> "LocationForm":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("Latitude and longitude must be set together")
        return self


class ScheduleForm(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    location_ref: str = Field(min_length=1)
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def zero_padded_time(cls, v: str) -> str:
        if not _TIME_RE.match(v):
            raise ValueError(f"Time must be HH:MM (24h), got {v!r}")
        return v

    @model_validator(mode="after")
    def starts_before_end(self) -> "ScheduleForm":
        # Zero-padded 24h strings compare correctly as text
        if self.start_time >= self.end_time:
            raise ValueError("Start time must be before end time")
        return self


class OptionGroupForm(BaseModel):
    name: str = Field(min_length=1)
    kind: Literal["size", "supplement", "other"]
    option_names: list[str] = Field(min_length=1)

    @model_validator(mode="after")
    def unique_option_names(self) -> "OptionGroupForm":
        if len(set(self.option_names)) != len(self.option_names):
            raise ValueError("Option names must be unique within a group")
        return self


class SettingsForm(BaseModel):
    payment_methods: list[str] = Field(min_length=1)
    pickup_slot_interval: int = Field(gt=0)

    @field_validator("payment_methods")
    @classmethod
    def known_methods(cls, v: list[str]) -> list[str]:
        unknown = set(v) - VALID_PAYMENT_METHODS
        if unknown:
            # Accepted: storefront may support methods added later
            logger.info(f"Custom payment methods submitted: {unknown}")
        return v


# =============================================================================
# Validators
# =============================================================================


def validate_location(location: Location) -> tuple[bool, list[str]]:
    try:
        LocationForm(
            name=location.name,
            address=location.address,
            latitude=location.latitude,
            longitude=location.longitude,
        )
    except ValidationError as e:
        return (False, _messages(e))
    return (True, [])


def validate_schedule(entry: ScheduleEntry) -> tuple[bool, list[str]]:
    try:
        ScheduleForm(
            day_of_week=entry.day_of_week,
            location_ref=entry.location_ref,
            start_time=entry.start_time,
            end_time=entry.end_time,
        )
    except ValidationError as e:
        return (False, _messages(e))
    return (True, [])


def validate_option_group(group: OptionGroup) -> tuple[bool, list[str]]:
    try:
        OptionGroupForm(
            name=group.name,
            kind=group.kind,
            option_names=[opt.name for opt in group.options],
        )
    except ValidationError as e:
        return (False, _messages(e))
    return (True, [])


def validate_settings(wizard_settings: WizardSettings) -> tuple[bool, list[str]]:
    try:
        SettingsForm(
            payment_methods=wizard_settings.payment_methods,
            pickup_slot_interval=wizard_settings.pickup_slot_interval,
        )
    except ValidationError as e:
        return (False, _messages(e))
    return (True, [])


def _positive(value) -> bool:
    try:
        return float(value) > 0
    except (TypeError, ValueError):
        return False


def _validate_bundle(config: dict, categories: list[Category]) -> list[str]:
    errors = []
    if not _positive(config.get("fixed_price")):
        errors.append("Bundle price must be greater than 0")

    names = config.get("bundle_category_names") or []
    if len(names) < MIN_BUNDLE_CATEGORIES:
        errors.append(f"A bundle needs at least {MIN_BUNDLE_CATEGORIES} categories")

    selection = config.get("bundle_selection") or {}
    by_name = {cat.name: cat for cat in categories}
    for name in names:
        cat = by_name.get(name)
        if cat is None:
            errors.append(f"Unknown category: {name}")
            continue
        excluded = set((selection.get(name) or {}).get("excluded_items") or [])
        if not [item for item in cat.items if item.name not in excluded]:
            errors.append(f"Category {name} has no item left in the bundle")
    return errors


def validate_offer(offer: Offer, categories: list[Category]) -> tuple[bool, list[str]]:
    """
    Validate a drafted offer against the drafted menu.

    Returns:
        (is_valid, error_messages)
    """
    errors = []
    config = offer.config

    if not offer.name.strip():
        errors.append("Offer name is required")

    match offer.type:
        case "bundle":
            errors.extend(_validate_bundle(config, categories))
        case "buy_x_get_y":
            if not (_positive(config.get("trigger_quantity")) and _positive(config.get("reward_quantity"))):
                errors.append("Trigger and reward quantities must be greater than 0")
        case "promo_code":
            if not str(config.get("code") or "").strip():
                errors.append("Promo code is required")
            if not _positive(config.get("discount_value")):
                errors.append("Discount must be greater than 0")
            elif discount_type_of(offer.type, config) == "percentage" and float(config["discount_value"]) > 100:
                errors.append("Percentage discount cannot exceed 100")
        case "threshold_discount":
            if not _positive(config.get("min_amount")):
                errors.append("Minimum amount must be greater than 0")
            if not _positive(config.get("discount_value")):
                errors.append("Discount must be greater than 0")

    return (len(errors) == 0, errors)


def ensure_valid_offer(offer: Offer, categories: list[Category]) -> None:
    """Raise OfferValidationError if the offer cannot be added."""
    is_valid, errors = validate_offer(offer, categories)
    if not is_valid:
        raise OfferValidationError(errors)


# =============================================================================
# API Response Helpers
# =============================================================================

def get_form_options() -> dict:
    """Options the wizard renders as choices."""
    return {
        "payment_methods": sorted(VALID_PAYMENT_METHODS),
        "pickup_slot_intervals": PICKUP_SLOT_INTERVALS,
        "offer_types": OFFER_TYPE_OPTIONS,
        "option_group_kinds": ["size", "supplement", "other"],
        "min_bundle_categories": MIN_BUNDLE_CATEGORIES,
    }
