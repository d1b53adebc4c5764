"""Tests for the load synchronizer: row mapping and folding into the draft."""

import asyncio

import pytest
from postgrest.exceptions import APIError

from onboarding.actions import CompleteStep, SetStep
from onboarding.loader import (
    category_from_row,
    item_prices_from_row,
    load_draft,
    option_group_kind,
    progress_actions,
    schedule_from_row,
    selected_days_from_rows,
)
from onboarding.state import MenuSubStep
from onboarding.store import DraftStore


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


SIZE_GROUP = {
    "id": "og-size",
    "name": "Taille",
    "is_required": True,
    "is_multiple": False,
    "display_order": 0,
    "category_options": [
        {"id": "opt-s", "name": "S", "display_order": 0},
        {"id": "opt-m", "name": "M", "display_order": 1},
        {"id": "opt-l", "name": "L", "display_order": 2},
    ],
}


class TestItemPrices:
    def test_inverts_option_prices(self):
        row = {"price": 900, "option_prices": {"opt-s": 900, "opt-m": 1100, "opt-l": 1300}}
        assert item_prices_from_row(row, SIZE_GROUP) == {"S": 900, "M": 1100, "L": 1300}

    def test_unknown_option_ids_skipped(self):
        row = {"price": 900, "option_prices": {"opt-s": 900, "opt-gone": 1500}}
        assert item_prices_from_row(row, SIZE_GROUP) == {"S": 900}

    def test_null_map_falls_back_to_base(self):
        assert item_prices_from_row({"price": 650, "option_prices": None}, SIZE_GROUP) == {"base": 650}

    def test_no_size_group_is_base(self):
        row = {"price": 650, "option_prices": {"opt-s": 900}}
        assert item_prices_from_row(row, None) == {"base": 650}

    def test_only_unknown_ids_falls_back_to_base(self):
        row = {"price": 700, "option_prices": {"opt-gone": 900}}
        assert item_prices_from_row(row, SIZE_GROUP) == {"base": 700}


class TestRowMapping:
    def test_selected_days_distinct_in_order(self):
        rows = [{"day_of_week": 5}, {"day_of_week": 1}, {"day_of_week": 5}, {"day_of_week": 3}]
        assert selected_days_from_rows(rows) == [5, 1, 3]

    def test_schedule_times_trimmed(self):
        entry = schedule_from_row({
            "day_of_week": 2, "location_id": "loc-1", "start_time": "11:30:00", "end_time": "14:00:00",
        })
        assert (entry.start_time, entry.end_time, entry.location_ref) == ("11:30", "14:00", "loc-1")

    @pytest.mark.parametrize("row,kind", [
        ({"is_required": True}, "size"),
        ({"is_required": False, "is_multiple": True}, "supplement"),
        ({}, "other"),
    ])
    def test_option_group_kind(self, row, kind):
        assert option_group_kind(row) == kind

    def test_category_ordered(self):
        row = {
            "id": "c1",
            "name": "Pizzas",
            "category_option_groups": [
                {"id": "og-x", "name": "Extras", "is_multiple": True, "display_order": 1,
                 "category_options": [{"id": "o1", "name": "Burrata", "price_modifier": 250}]},
                SIZE_GROUP,
            ],
            "menu_items": [
                {"id": "i2", "name": "Napoli", "price": 1000, "display_order": 1,
                 "option_prices": {"opt-s": 1000, "opt-l": 1400}},
                {"id": "i1", "name": "Margherita", "price": 900, "display_order": 0},
            ],
        }

        category = category_from_row(row)

        assert [g.name for g in category.option_groups] == ["Taille", "Extras"]
        assert category.option_groups[1].options[0].price_modifier == 250
        assert [i.name for i in category.items] == ["Margherita", "Napoli"]
        assert category.items[1].prices == {"S": 1000, "L": 1400}


class TestProgressActions:
    def test_nothing_saved(self):
        assert progress_actions(None) == []
        assert progress_actions(1) == []

    def test_mid_wizard(self):
        assert progress_actions(3) == [CompleteStep(step=1), CompleteStep(step=2), SetStep(step=3)]

    def test_completed_marker(self):
        actions = progress_actions(6)
        assert actions == [CompleteStep(step=i) for i in range(1, 6)]


class TestLoadDraft:
    def test_empty_store_leaves_initial_draft(self, seeded_store):
        store = DraftStore()
        _run(load_draft(seeded_store, store, "biz-1"))

        draft = store.state
        assert draft.locations == []
        assert draft.categories == []
        assert draft.menu_sub_step == MenuSubStep.CATEGORY
        assert draft.business.name == "Chez Marco"

    def test_folds_everything(self, seeded_store):
        seeded_store.seed("locations", [
            {"id": "loc-1", "business_id": "biz-1", "name": "Place du Marché", "address": "Lyon"},
        ])
        seeded_store.seed("schedules", [
            {"id": "s1", "business_id": "biz-1", "day_of_week": 2, "location_id": "loc-1",
             "start_time": "11:00:00", "end_time": "14:00:00", "is_active": True},
            {"id": "s2", "business_id": "biz-1", "day_of_week": 4, "location_id": "loc-1",
             "start_time": "11:00:00", "end_time": "14:00:00", "is_active": True},
            {"id": "s3", "business_id": "biz-1", "day_of_week": 6, "location_id": "loc-1",
             "start_time": "11:00:00", "end_time": "14:00:00", "is_active": False},
        ])
        seeded_store.seed("categories", [{"id": "c1", "business_id": "biz-1", "name": "Desserts", "display_order": 0}])
        seeded_store.seed("menu_items", [
            {"id": "d1", "business_id": "biz-1", "category_id": "c1", "name": "Tiramisu", "price": 550},
        ])
        seeded_store.seed("offers", [
            {"id": "o1", "business_id": "biz-1", "name": "2+1", "offer_type": "buy_x_get_y",
             "config": {"trigger_quantity": 2, "reward_quantity": 1}, "is_active": True},
            {"id": "o2", "business_id": "biz-1", "name": "Legacy", "offer_type": "loyalty_stamp",
             "config": {}, "is_active": True},
        ])
        seeded_store.tables["businesses"][0]["onboarding_step"] = 4

        store = DraftStore()
        _run(load_draft(seeded_store, store, "biz-1"))
        draft = store.state

        assert [loc.id for loc in draft.locations] == ["loc-1"]
        assert [s.day_of_week for s in draft.schedules] == [2, 4]
        assert draft.selected_days == [2, 4]
        assert draft.categories[0].items[0].prices == {"base": 550}
        assert draft.menu_sub_step == MenuSubStep.DONE
        assert [o.name for o in draft.offers] == ["2+1"]
        assert draft.wants_offers is True
        assert draft.current_step == 4
        assert draft.completed_steps == [1, 2, 3]

    def test_other_business_not_loaded(self, seeded_store):
        seeded_store.seed("locations", [{"id": "loc-x", "business_id": "biz-2", "name": "Ailleurs"}])

        store = DraftStore()
        _run(load_draft(seeded_store, store, "biz-1"))
        assert store.state.locations == []

    def test_store_error_propagates(self, seeded_store):
        seeded_store.failures.add(("schedules", "select"))

        with pytest.raises(APIError):
            _run(load_draft(seeded_store, DraftStore(), "biz-1"))
