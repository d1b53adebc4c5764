"""
Offer Configuration Resolver.

Offers are drafted in display units: euros, and category/item *names*.
Storage wants minor units (cents) and ids. This module is the only
place that conversion happens, in both directions:

- resolve_offer(): draft offer + persisted menu catalog -> stored config
  (money in cents, names replaced by ids) and, for bundles, the eligible
  line items across all selected categories.
- draft_offer_from_row(): stored offer row -> draft offer, for resume.

References that no longer resolve (a renamed category, a deleted item)
are dropped silently: excluding something that does not exist is
already satisfied, and ids are never invented.
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from .state import Offer

logger = logging.getLogger(__name__)

MINOR_UNITS_PER_MAJOR = 100
BUNDLE_ITEM_ROLE = "bundle_item"
CATEGORY_CHOICE = "category_choice"
DEFAULT_DISCOUNT_TYPES = {"promo_code": "percentage", "threshold_discount": "fixed"}


# =============================================================================
# Currency
# =============================================================================


def to_minor_units(amount: Any) -> int:
    """Display currency (euros, as number or numeric string) -> integer cents."""
    value = Decimal(str(amount if amount not in (None, "") else 0))
    return int((value * MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: Any) -> float:
    """Integer cents -> display currency."""
    return float(Decimal(int(amount or 0)) / MINOR_UNITS_PER_MAJOR)


def _number(value: Any) -> int | float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return float(Decimal(str(value or 0)))


def discount_type_of(offer_type: str, config: dict) -> str:
    """Stored discount type, defaulted per offer type when the draft left it out."""
    return str(config.get("discount_type") or DEFAULT_DISCOUNT_TYPES.get(offer_type, "percentage"))


def _discount_to_minor(discount_type: str, value: Any) -> int | float:
    # Fixed discounts are money; percentages pass through untouched
    if discount_type == "fixed":
        return to_minor_units(value)
    return _number(value)


def _discount_from_minor(discount_type: str, value: Any) -> int | float:
    if discount_type == "fixed":
        return from_minor_units(value)
    return value or 0


# =============================================================================
# Persisted catalog
# =============================================================================


@dataclass
class MenuCatalog:
    """
    Persisted categories and items, as read back from the store.

    categories: rows with at least {id, name}
    items: rows with at least {id, name, category_id}
    """
    categories: list[dict] = field(default_factory=list)
    items: list[dict] = field(default_factory=list)

    def category_named(self, name: str) -> dict | None:
        return next((c for c in self.categories if c.get("name") == name), None)

    def items_in(self, category_id: str) -> list[dict]:
        return [i for i in self.items if i.get("category_id") == category_id]

    def item(self, item_id: str) -> dict | None:
        return next((i for i in self.items if i.get("id") == item_id), None)

    @classmethod
    def from_nested(cls, category_rows: list[dict]) -> "MenuCatalog":
        """Build from category rows that embed their menu_items."""
        items = []
        for cat in category_rows:
            for item in cat.get("menu_items") or []:
                items.append({**item, "category_id": item.get("category_id", cat["id"])})
        return cls(
            categories=[{"id": c["id"], "name": c["name"]} for c in category_rows],
            items=items,
        )


@dataclass
class ResolvedOffer:
    """Stored form of one offer."""
    config: dict
    eligible_item_ids: list[str] = field(default_factory=list)

    def offer_item_rows(self, offer_id: str) -> list[dict]:
        """offer_items rows: one purchasable line item per eligible menu item."""
        return [
            {
                "offer_id": offer_id,
                "menu_item_id": item_id,
                "role": BUNDLE_ITEM_ROLE,
                "quantity": 1,
            }
            for item_id in self.eligible_item_ids
        ]


# =============================================================================
# Draft -> stored
# =============================================================================


def normalize_offer_config(offer: Offer) -> dict:
    """Re-express money fields in minor units; everything else passes through."""
    config = offer.config

    match offer.type:
        case "bundle":
            return {"fixed_price": to_minor_units(config.get("fixed_price"))}
        case "buy_x_get_y":
            return {
                "trigger_quantity": int(config.get("trigger_quantity") or 0),
                "reward_quantity": int(config.get("reward_quantity") or 0),
                "reward_type": "free",
            }
        case "promo_code":
            discount_type = discount_type_of(offer.type, config)
            return {
                "code": str(config.get("code") or "").strip().upper(),
                "discount_type": discount_type,
                "discount_value": _discount_to_minor(discount_type, config.get("discount_value")),
            }
        case "threshold_discount":
            discount_type = discount_type_of(offer.type, config)
            return {
                "min_amount": to_minor_units(config.get("min_amount")),
                "discount_type": discount_type,
                "discount_value": _discount_to_minor(discount_type, config.get("discount_value")),
            }
    return {}


def _selection_for(config: dict, category_name: str) -> dict:
    return (config.get("bundle_selection") or {}).get(category_name) or {}


def resolve_bundle_categories(config: dict, catalog: MenuCatalog) -> list[dict]:
    """Map drafted category names and exclusions to a category_choice slot list."""
    slots = []
    for name in config.get("bundle_category_names") or []:
        category = catalog.category_named(name)
        if category is None:
            logger.info(f"Bundle category not found, skipped: {name}")
            continue

        by_name = {item["name"]: item for item in catalog.items_in(category["id"])}
        selection = _selection_for(config, name)

        excluded_items = [
            by_name[item_name]["id"]
            for item_name in selection.get("excluded_items") or []
            if item_name in by_name
        ]
        excluded_sizes = {
            by_name[item_name]["id"]: list(option_names)
            for item_name, option_names in (selection.get("excluded_options") or {}).items()
            if item_name in by_name and option_names
        }

        slot = {
            "category_ids": [category["id"]],
            "quantity": 1,
            "label": name,
        }
        if excluded_items:
            slot["excluded_items"] = excluded_items
        if excluded_sizes:
            slot["excluded_sizes"] = excluded_sizes
        slots.append(slot)
    return slots


def eligible_bundle_item_ids(config: dict, catalog: MenuCatalog) -> list[str]:
    """Every non-excluded item across the selected categories, in catalog order."""
    eligible = []
    for name in config.get("bundle_category_names") or []:
        category = catalog.category_named(name)
        if category is None:
            continue
        excluded = set(_selection_for(config, name).get("excluded_items") or [])
        eligible.extend(
            item["id"] for item in catalog.items_in(category["id"])
            if item.get("id") and item["name"] not in excluded
        )
    return eligible


def resolve_offer(offer: Offer, catalog: MenuCatalog) -> ResolvedOffer:
    """
    Turn a drafted offer into its stored config.

    Bundles with category names get a category_choice config and the
    flat list of eligible items; an all-excluded category simply
    contributes no items.
    """
    config = normalize_offer_config(offer)

    if offer.type != "bundle" or not offer.config.get("bundle_category_names"):
        return ResolvedOffer(config=config)

    config = {
        **config,
        "type": CATEGORY_CHOICE,
        "bundle_categories": resolve_bundle_categories(offer.config, catalog),
    }
    return ResolvedOffer(
        config=config,
        eligible_item_ids=eligible_bundle_item_ids(offer.config, catalog),
    )


# =============================================================================
# Stored -> draft
# =============================================================================


def _item_name(catalog: MenuCatalog, item_id: str) -> str | None:
    item = catalog.item(item_id)
    return item["name"] if item else None


def _bundle_draft_config(cfg: dict, catalog: MenuCatalog) -> dict:
    config: dict[str, Any] = {"fixed_price": from_minor_units(cfg.get("fixed_price"))}
    if cfg.get("type") != CATEGORY_CHOICE:
        return config

    names = []
    selection = {}
    for slot in cfg.get("bundle_categories") or []:
        label = slot.get("label")
        if not label:
            continue
        names.append(label)

        excluded_items = [
            name for name in (_item_name(catalog, i) for i in slot.get("excluded_items") or [])
            if name
        ]
        excluded_options = {
            _item_name(catalog, item_id): list(options)
            for item_id, options in (slot.get("excluded_sizes") or {}).items()
            if _item_name(catalog, item_id)
        }
        entry: dict[str, Any] = {}
        if excluded_items:
            entry["excluded_items"] = excluded_items
        if excluded_options:
            entry["excluded_options"] = excluded_options
        if entry:
            selection[label] = entry

    config["bundle_category_names"] = names
    if selection:
        config["bundle_selection"] = selection
    return config


def draft_offer_from_row(row: dict, catalog: MenuCatalog | None = None) -> Offer:
    """Rebuild a draft offer (display units, names) from a stored offers row."""
    cfg = row.get("config") or {}
    offer_type = row.get("offer_type")
    catalog = catalog or MenuCatalog()

    match offer_type:
        case "bundle":
            config = _bundle_draft_config(cfg, catalog)
        case "buy_x_get_y":
            config = {
                "trigger_quantity": cfg.get("trigger_quantity") or 0,
                "reward_quantity": cfg.get("reward_quantity") or 0,
            }
        case "promo_code":
            discount_type = discount_type_of(offer_type, cfg)
            config = {
                "code": cfg.get("code") or "",
                "discount_type": discount_type,
                "discount_value": _discount_from_minor(discount_type, cfg.get("discount_value")),
            }
        case "threshold_discount":
            discount_type = discount_type_of(offer_type, cfg)
            config = {
                "min_amount": from_minor_units(cfg.get("min_amount")),
                "discount_type": discount_type,
                "discount_value": _discount_from_minor(discount_type, cfg.get("discount_value")),
            }
        case _:
            config = {}

    return Offer(type=offer_type, name=row.get("name") or "", config=config)
