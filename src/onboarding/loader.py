"""
Load Synchronizer.

On wizard entry, reads whatever a previous session already persisted
for the business and folds it into the draft through the wholesale
replace actions. Reads only; nothing is written here.

Two reconciliations are not plain field mapping:
- selected days are derived from the distinct weekdays of the loaded
  schedule rows, never stored on their own;
- per-size prices are rebuilt by inverting the stored option_prices map
  (keyed by option id) through the category's size option group.
"""

import logging

from storefront.db.adapter import StoreClient

from .actions import (
    Action,
    CompleteStep,
    SetBusiness,
    SetCategories,
    SetLocations,
    SetMenuSubStep,
    SetOffers,
    SetSchedules,
    SetSelectedDays,
    SetStep,
    SetWantsOffers,
)
from .offers import MenuCatalog, draft_offer_from_row
from .state import (
    BASE_PRICE_KEY,
    COMPLETED_STEP_MARKER,
    TOTAL_STEPS,
    BusinessRef,
    Category,
    Location,
    MenuItem,
    MenuSubStep,
    OptionChoice,
    OptionGroup,
    ScheduleEntry,
)
from .store import DraftStore

logger = logging.getLogger(__name__)

CATEGORY_SELECT = "*, category_option_groups(*, category_options(*)), menu_items(*)"
OFFER_TYPES = {"bundle", "buy_x_get_y", "promo_code", "threshold_discount"}


def _ordered(rows: list[dict] | None) -> list[dict]:
    """Embedded rows come back unordered; sort by display_order when present."""
    return sorted(rows or [], key=lambda r: r.get("display_order") or 0)


# =============================================================================
# Row -> draft mapping
# =============================================================================


def location_from_row(row: dict) -> Location:
    return Location(
        id=row["id"],
        name=row.get("name") or "",
        address=row.get("address") or "",
        latitude=row.get("latitude"),
        longitude=row.get("longitude"),
        external_place_id=row.get("external_place_id") or "",
    )


def schedule_from_row(row: dict) -> ScheduleEntry:
    # Stored as time columns ("HH:MM:SS"); the draft keeps "HH:MM"
    return ScheduleEntry(
        day_of_week=row["day_of_week"],
        location_ref=row.get("location_id") or "",
        start_time=(row.get("start_time") or "")[:5],
        end_time=(row.get("end_time") or "")[:5],
    )


def selected_days_from_rows(rows: list[dict]) -> list[int]:
    """Distinct weekdays, in first-seen order."""
    return list(dict.fromkeys(row["day_of_week"] for row in rows))


def option_group_kind(row: dict) -> str:
    if row.get("is_required"):
        return "size"
    if row.get("is_multiple"):
        return "supplement"
    return "other"


def option_group_from_row(row: dict) -> OptionGroup:
    return OptionGroup(
        id=row["id"],
        name=row.get("name") or "",
        kind=option_group_kind(row),
        options=[
            OptionChoice(name=opt["name"], price_modifier=opt.get("price_modifier"))
            for opt in _ordered(row.get("category_options"))
        ],
    )


def size_group_row(category_row: dict) -> dict | None:
    for group in _ordered(category_row.get("category_option_groups")):
        if group.get("is_required"):
            return group
    return None


def item_prices_from_row(item_row: dict, size_group: dict | None) -> dict[str, int]:
    """
    Rebuild the draft price map of a stored item.

    option_prices is keyed by option id; ids the size group no longer
    has are skipped. Without a usable map the item is base-priced.
    """
    option_prices = item_row.get("option_prices") or {}
    if option_prices and size_group is not None:
        names_by_id = {
            opt["id"]: opt["name"] for opt in size_group.get("category_options") or []
        }
        prices = {
            names_by_id[option_id]: int(price)
            for option_id, price in option_prices.items()
            if option_id in names_by_id and price is not None
        }
        if prices:
            return prices
    return {BASE_PRICE_KEY: int(item_row.get("price") or 0)}


def category_from_row(row: dict) -> Category:
    size_group = size_group_row(row)
    return Category(
        id=row["id"],
        name=row.get("name") or "",
        option_groups=[option_group_from_row(og) for og in _ordered(row.get("category_option_groups"))],
        items=[
            MenuItem(
                id=item["id"],
                name=item.get("name") or "",
                prices=item_prices_from_row(item, size_group),
            )
            for item in _ordered(row.get("menu_items"))
        ],
    )


def progress_actions(saved_step: int | None) -> list[Action]:
    """
    Replay stored progress into step actions.

    2..5 resumes at that step with the earlier ones complete; the
    terminal marker marks every step complete and stays where it is so
    the operator can reconfigure from the start.
    """
    if not saved_step:
        return []
    if 1 < saved_step <= TOTAL_STEPS:
        return [*(CompleteStep(step=i) for i in range(1, saved_step)), SetStep(step=saved_step)]
    if saved_step == COMPLETED_STEP_MARKER:
        return [CompleteStep(step=i) for i in range(1, TOTAL_STEPS + 1)]
    return []


# =============================================================================
# Fetch + fold
# =============================================================================


async def load_locations(client: StoreClient, store: DraftStore, business_id: str) -> None:
    response = await client.table("locations").select("*").eq("business_id", business_id).execute()
    rows = response.data or []
    if rows:
        store.dispatch(SetLocations(locations=[location_from_row(r) for r in rows]))


async def load_schedules(client: StoreClient, store: DraftStore, business_id: str) -> None:
    response = await (
        client.table("schedules")
        .select("*")
        .eq("business_id", business_id)
        .eq("is_active", True)
        .execute()
    )
    rows = response.data or []
    if rows:
        store.dispatch(SetSchedules(schedules=[schedule_from_row(r) for r in rows]))
        store.dispatch(SetSelectedDays(days=selected_days_from_rows(rows)))


async def load_menu(client: StoreClient, store: DraftStore, business_id: str) -> list[dict]:
    """Load categories with their option groups and items; returns the raw rows."""
    response = await (
        client.table("categories")
        .select(CATEGORY_SELECT)
        .eq("business_id", business_id)
        .order("display_order")
        .execute()
    )
    rows = response.data or []
    if rows:
        store.dispatch(SetCategories(categories=[category_from_row(r) for r in rows]))
        store.dispatch(SetMenuSubStep(sub_step=MenuSubStep.DONE))
    return rows


async def load_offers(
    client: StoreClient,
    store: DraftStore,
    business_id: str,
    catalog: MenuCatalog,
) -> None:
    response = await (
        client.table("offers")
        .select("*")
        .eq("business_id", business_id)
        .eq("is_active", True)
        .execute()
    )
    rows = [r for r in response.data or [] if r.get("offer_type") in OFFER_TYPES]
    if rows:
        store.dispatch(SetOffers(offers=[draft_offer_from_row(r, catalog) for r in rows]))
        store.dispatch(SetWantsOffers(wants=True))


async def load_progress(client: StoreClient, store: DraftStore, business_id: str) -> None:
    response = await (
        client.table("businesses")
        .select("id, name, slug, onboarding_step")
        .eq("id", business_id)
        .limit(1)
        .execute()
    )
    rows = response.data or []
    if not rows:
        logger.warning(f"Business {business_id} not found while restoring progress")
        return

    business = rows[0]
    if store.state.business is None:
        store.dispatch(SetBusiness(business=BusinessRef(
            id=business["id"],
            name=business.get("name") or "",
            slug=business.get("slug") or "",
        )))
    for action in progress_actions(business.get("onboarding_step")):
        store.dispatch(action)


async def load_draft(client: StoreClient, store: DraftStore, business_id: str) -> None:
    """
    Fold everything persisted for the business into the draft.

    Reads are sequential; a store error propagates to the caller.
    """
    await load_locations(client, store, business_id)
    await load_schedules(client, store, business_id)
    category_rows = await load_menu(client, store, business_id)
    await load_offers(client, store, business_id, MenuCatalog.from_nested(category_rows))
    await load_progress(client, store, business_id)
    logger.info(
        f"Loaded onboarding draft for {business_id}: "
        f"{len(store.state.locations)} locations, {len(store.state.schedules)} schedules, "
        f"{len(store.state.categories)} categories, {len(store.state.offers)} offers"
    )
