"""
Save Synchronizer.

Per-entity save strategies, run in dependency order by the assistant:
locations -> schedules -> menu -> offers -> settings.

The store has no multi-table transactions, so every strategy is
idempotent on its own and the whole sequence can be re-run from the
top after a partial failure:
- locations are upserted by id (client placeholder ids included);
- schedules and offers are deleted for the business, then re-inserted;
- a category found by name is cleaned (option groups, items) before
  its children are re-inserted.

Store errors are not caught here: they abort the remaining stages.
"""

import logging
from datetime import datetime, timezone

from storefront.db.adapter import StoreClient

from .offers import MenuCatalog, resolve_offer
from .state import (
    BASE_PRICE_KEY,
    COMPLETED_STEP_MARKER,
    Category,
    Location,
    MenuItem,
    OnboardingDraft,
    OptionGroup,
)

logger = logging.getLogger(__name__)


class StoreWriteError(RuntimeError):
    """A write that should return a row returned nothing."""


def _first_row(response, table: str) -> dict:
    if not response.data:
        raise StoreWriteError(f"Write to {table} returned no row")
    return response.data[0]


# =============================================================================
# Locations
# =============================================================================


def location_payload(business_id: str, location: Location) -> dict:
    payload = {
        "business_id": business_id,
        "name": location.name,
        "address": location.address,
        "latitude": location.latitude,
        "longitude": location.longitude,
        "external_place_id": location.external_place_id,
    }
    if location.id:
        return {"id": location.id, **payload}
    return payload


async def save_locations(client: StoreClient, business_id: str, draft: OnboardingDraft) -> list[str]:
    """
    Upsert every draft location.

    Upsert, not update: step 1 assigns placeholder ids that do not exist
    in the store yet, and an update on them would touch zero rows.

    Returns:
        Persisted ids, in draft order
    """
    location_ids = []
    for location in draft.locations:
        response = await client.table("locations").upsert(location_payload(business_id, location)).execute()
        location_ids.append(_first_row(response, "locations")["id"])
    return location_ids


# =============================================================================
# Schedules
# =============================================================================


class LocationResolver:
    """
    Resolves a schedule's location_ref: by name, then by draft id, then
    the first persisted location.

    Two locations sharing a name resolve to the later one.
    """

    def __init__(self, locations: list[Location], location_ids: list[str]):
        self.by_name: dict[str, str] = {}
        self.by_id: dict[str, str] = {}
        self.first_id = location_ids[0] if location_ids else None

        for index, location in enumerate(locations):
            persisted_id = location_ids[index] if index < len(location_ids) else location.id
            if not persisted_id:
                continue
            self.by_name[location.name] = persisted_id
            if location.id:
                self.by_id[location.id] = persisted_id

    def resolve(self, ref: str) -> str | None:
        resolved = self.by_name.get(ref) or self.by_id.get(ref) or self.first_id
        # No persisted location at all: keep the reference as given
        return resolved or ref or None


async def save_schedules(
    client: StoreClient,
    business_id: str,
    draft: OnboardingDraft,
    location_ids: list[str],
) -> None:
    """Replace all schedule rows of the business with the draft entries."""
    if not draft.schedules:
        return

    resolver = LocationResolver(draft.locations, location_ids)

    await client.table("schedules").delete().eq("business_id", business_id).execute()

    rows = [
        {
            "business_id": business_id,
            "day_of_week": entry.day_of_week,
            "location_id": resolver.resolve(entry.location_ref),
            "start_time": entry.start_time,
            "end_time": entry.end_time,
            "is_active": True,
        }
        for entry in draft.schedules
    ]
    await client.table("schedules").insert(rows).execute()


# =============================================================================
# Menu
# =============================================================================


def item_price_fields(
    item: MenuItem,
    size_group: OptionGroup | None,
    size_option_ids: dict[str, str],
) -> tuple[int, dict[str, int] | None]:
    """
    Stored price and option_prices for one item.

    With a size group: price is the cheapest size, option_prices maps
    persisted option id -> price. Without one the item is base-priced and
    never carries option_prices, whatever its draft map holds.
    """
    if size_group is not None:
        size_prices = {
            opt.name: item.prices[opt.name]
            for opt in size_group.options
            if opt.name in item.prices
        }
        if size_prices:
            option_prices = {
                size_option_ids[name]: price
                for name, price in size_prices.items()
                if name in size_option_ids
            }
            return min(size_prices.values()), option_prices or None

    if BASE_PRICE_KEY in item.prices:
        return item.prices[BASE_PRICE_KEY], None
    return next(iter(item.prices.values()), 0), None


async def _prepare_category(
    client: StoreClient,
    business_id: str,
    category: Category,
    display_order: int,
) -> str:
    """Return the persisted category id, cleaning or creating the row."""
    response = await (
        client.table("categories")
        .select("id")
        .eq("business_id", business_id)
        .eq("name", category.name)
        .limit(1)
        .execute()
    )
    if response.data:
        category_id = response.data[0]["id"]
        # Clean slate: option groups cascade to their options
        await client.table("category_option_groups").delete().eq("category_id", category_id).execute()
        await (
            client.table("menu_items")
            .delete()
            .eq("category_id", category_id)
            .eq("business_id", business_id)
            .execute()
        )
        return category_id

    response = await client.table("categories").insert({
        "business_id": business_id,
        "name": category.name,
        "display_order": display_order,
    }).execute()
    return _first_row(response, "categories")["id"]


async def _save_option_groups(client: StoreClient, category_id: str, category: Category) -> dict[str, str]:
    """Insert groups and options in order; returns size option name -> id."""
    size_group = category.size_group()
    size_option_ids: dict[str, str] = {}

    for group_index, group in enumerate(category.option_groups):
        response = await client.table("category_option_groups").insert({
            "category_id": category_id,
            "name": group.name,
            "is_required": group.kind == "size",
            "is_multiple": group.kind == "supplement",
            "display_order": group_index,
        }).execute()
        group_id = _first_row(response, "category_option_groups")["id"]

        if not group.options:
            continue

        response = await client.table("category_options").insert([
            {
                "option_group_id": group_id,
                "name": option.name,
                "price_modifier": option.price_modifier or 0,
                "display_order": option_index,
            }
            for option_index, option in enumerate(group.options)
        ]).execute()

        if group is size_group:
            size_option_ids = {row["name"]: row["id"] for row in response.data or []}

    return size_option_ids


async def save_menu(client: StoreClient, business_id: str, draft: OnboardingDraft) -> None:
    """
    Persist categories, option groups, options and items.

    Categories are handled one after another: each one's cleanup and
    re-insert completes before the next starts.
    """
    for category_index, category in enumerate(draft.categories):
        category_id = await _prepare_category(client, business_id, category, category_index)
        size_option_ids = await _save_option_groups(client, category_id, category)

        if not category.items:
            continue

        size_group = category.size_group()
        rows = []
        for item_index, item in enumerate(category.items):
            price, option_prices = item_price_fields(item, size_group, size_option_ids)
            row = {
                "business_id": business_id,
                "category_id": category_id,
                "name": item.name,
                "price": price,
                "display_order": item_index,
                "is_available": True,
            }
            if option_prices:
                row["option_prices"] = option_prices
            rows.append(row)
        await client.table("menu_items").insert(rows).execute()

        logger.debug(f"Saved category {category.name!r} ({len(rows)} items)")


# =============================================================================
# Offers
# =============================================================================


async def fetch_catalog(client: StoreClient, business_id: str) -> MenuCatalog:
    categories = await client.table("categories").select("id, name").eq("business_id", business_id).execute()
    items = await (
        client.table("menu_items")
        .select("id, name, category_id")
        .eq("business_id", business_id)
        .execute()
    )
    return MenuCatalog(categories=categories.data or [], items=items.data or [])


async def save_offers(client: StoreClient, business_id: str, draft: OnboardingDraft) -> None:
    """Replace all offers of the business (their offer_items cascade)."""
    if not draft.offers:
        return

    await client.table("offers").delete().eq("business_id", business_id).execute()

    catalog = await fetch_catalog(client, business_id)

    for offer in draft.offers:
        resolved = resolve_offer(offer, catalog)
        response = await client.table("offers").insert({
            "business_id": business_id,
            "name": offer.name,
            "offer_type": offer.type,
            "config": resolved.config,
            "is_active": True,
        }).execute()
        offer_id = _first_row(response, "offers")["id"]

        offer_items = resolved.offer_item_rows(offer_id)
        if offer_items:
            await client.table("offer_items").insert(offer_items).execute()


# =============================================================================
# Settings / progress
# =============================================================================


async def save_settings(client: StoreClient, business_id: str, draft: OnboardingDraft) -> None:
    """
    Write operating settings and mark onboarding complete.

    This flips the business live, so it must run last.
    """
    settings = draft.settings
    await client.table("businesses").update({
        "payment_methods": list(settings.payment_methods),
        "pickup_slot_interval": settings.pickup_slot_interval,
        "description": settings.description,
        "loyalty_enabled": settings.loyalty_enabled,
        "onboarding_completed_at": datetime.now(timezone.utc).isoformat(),
        "onboarding_step": COMPLETED_STEP_MARKER,
    }).eq("id", business_id).execute()


async def update_progress(client: StoreClient, business_id: str, step: int) -> None:
    await client.table("businesses").update({"onboarding_step": step}).eq("id", business_id).execute()
