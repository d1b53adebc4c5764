"""
Pytest configuration and fixtures for storefront onboarding tests.
"""

import copy
import os
from collections import defaultdict
from typing import Any

import pytest
from postgrest.exceptions import APIError

# Set test environment before importing storefront modules
os.environ["STOREFRONT_ENV"] = "development"
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key-not-real")

from onboarding.state import (  # noqa: E402
    Category,
    Location,
    MenuItem,
    OptionChoice,
    OptionGroup,
)


# ---------------------------------------------------------------------------
# In-memory store with the PostgREST query-builder surface
# ---------------------------------------------------------------------------

# parent table -> [(child table, foreign key)]; used for embedding and cascades
RELATIONS = {
    "categories": [("category_option_groups", "category_id"), ("menu_items", "category_id")],
    "category_option_groups": [("category_options", "option_group_id")],
    "offers": [("offer_items", "offer_id")],
}


class FakeResponse:
    def __init__(self, data: list[dict]):
        self.data = data


class FakeQuery:
    """One fluent query; nothing happens until execute() is awaited."""

    def __init__(self, store: "FakeStore", table: str):
        self.store = store
        self.table = table
        self.op: str | None = None
        self.columns = "*"
        self.payload: Any = None
        self.filters: list[tuple[str, Any]] = []
        self.order_by: str | None = None
        self.desc = False
        self.limit_to: int | None = None

    def select(self, columns: str = "*"):
        self.op = self.op or "select"
        self.columns = columns
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def upsert(self, payload):
        self.op, self.payload = "upsert", payload
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, field: str, value: Any):
        self.filters.append((field, value))
        return self

    def order(self, column: str, desc: bool = False):
        self.order_by, self.desc = column, desc
        return self

    def limit(self, count: int):
        self.limit_to = count
        return self

    def _matches(self, row: dict) -> bool:
        return all(row.get(field) == value for field, value in self.filters)

    async def execute(self) -> FakeResponse:
        self.store.calls.append((self.table, self.op))
        if (self.table, self.op) in self.store.failures:
            raise APIError({"message": f"{self.op} on {self.table} failed", "code": "500"})
        return FakeResponse(getattr(self.store, f"_{self.op}")(self))


class FakeStore:
    """
    Async Supabase stand-in for tests.

    Rows are plain dicts per table; generated ids are "<table>-<n>".
    failures holds (table, op) pairs whose execute() raises APIError.
    """

    def __init__(self):
        self.tables: dict[str, list[dict]] = defaultdict(list)
        self.calls: list[tuple[str, str]] = []
        self.failures: set[tuple[str, str]] = set()
        self._next_id = 0

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def seed(self, table: str, rows: list[dict]) -> None:
        self.tables[table].extend(copy.deepcopy(rows))

    def rows(self, table: str, **filters) -> list[dict]:
        return [
            r for r in self.tables[table]
            if all(r.get(k) == v for k, v in filters.items())
        ]

    def _new_id(self, table: str) -> str:
        self._next_id += 1
        return f"{table}-{self._next_id}"

    def _embed(self, table: str, row: dict, columns: str) -> dict:
        for child, fk in RELATIONS.get(table, []):
            if child in columns:
                row[child] = [
                    self._embed(child, copy.deepcopy(c), columns)
                    for c in self.tables[child] if c.get(fk) == row.get("id")
                ]
        return row

    def _select(self, q: FakeQuery) -> list[dict]:
        rows = [self._embed(q.table, copy.deepcopy(r), q.columns) for r in self.tables[q.table] if q._matches(r)]
        if q.order_by:
            rows.sort(key=lambda r: r.get(q.order_by) or 0, reverse=q.desc)
        if q.limit_to is not None:
            rows = rows[: q.limit_to]
        return rows

    def _insert(self, q: FakeQuery) -> list[dict]:
        payload = q.payload if isinstance(q.payload, list) else [q.payload]
        inserted = []
        for row in payload:
            row = {"id": self._new_id(q.table), **copy.deepcopy(row)}
            self.tables[q.table].append(row)
            inserted.append(copy.deepcopy(row))
        return inserted

    def _upsert(self, q: FakeQuery) -> list[dict]:
        key = "business_id" if q.table == "onboarding_sessions" else "id"
        row = copy.deepcopy(q.payload)
        for existing in self.tables[q.table]:
            if key in row and existing.get(key) == row[key]:
                existing.update(row)
                return [copy.deepcopy(existing)]
        if "id" not in row:
            row["id"] = self._new_id(q.table)
        self.tables[q.table].append(row)
        return [copy.deepcopy(row)]

    def _update(self, q: FakeQuery) -> list[dict]:
        updated = []
        for row in self.tables[q.table]:
            if q._matches(row):
                row.update(copy.deepcopy(q.payload))
                updated.append(copy.deepcopy(row))
        return updated

    def _delete(self, q: FakeQuery) -> list[dict]:
        removed = [r for r in self.tables[q.table] if q._matches(r)]
        self.tables[q.table] = [r for r in self.tables[q.table] if not q._matches(r)]
        for row in removed:
            self._cascade(q.table, row["id"])
        return removed

    def _cascade(self, table: str, row_id: str) -> None:
        for child, fk in RELATIONS.get(table, []):
            children = [c for c in self.tables[child] if c.get(fk) == row_id]
            self.tables[child] = [c for c in self.tables[child] if c.get(fk) != row_id]
            for c in children:
                self._cascade(child, c["id"])


@pytest.fixture
def fake_store():
    """Empty in-memory store."""
    return FakeStore()


@pytest.fixture
def business_row():
    return {
        "id": "biz-1",
        "name": "Chez Marco",
        "slug": "chez-marco",
        "onboarding_step": 1,
    }


@pytest.fixture
def seeded_store(fake_store, business_row):
    """Store holding just the business record."""
    fake_store.seed("businesses", [business_row])
    return fake_store


# ---------------------------------------------------------------------------
# Draft samples
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_locations():
    return [
        Location(id="tmp-loc-1", name="Place du Marché", address="1 place du Marché, Lyon",
                 latitude=45.76, longitude=4.83, external_place_id="gp-1"),
        Location(id="tmp-loc-2", name="Gare Part-Dieu", address="Bd Vivier Merle, Lyon"),
    ]


@pytest.fixture
def pizza_category():
    return Category(
        id="cat-pizzas",
        name="Pizzas",
        option_groups=[
            OptionGroup(
                id="og-size",
                name="Taille",
                kind="size",
                options=[OptionChoice(name="S"), OptionChoice(name="M"), OptionChoice(name="L")],
            ),
            OptionGroup(
                id="og-extra",
                name="Suppléments",
                kind="supplement",
                options=[OptionChoice(name="Burrata", price_modifier=250)],
            ),
        ],
        items=[
            MenuItem(id="item-margherita", name="Margherita", prices={"S": 900, "M": 1100, "L": 1300}),
            MenuItem(id="item-napoli", name="Napoli", prices={"S": 1000, "M": 1200, "L": 1400}),
        ],
    )


@pytest.fixture
def dessert_category():
    return Category(
        id="cat-desserts",
        name="Desserts",
        items=[MenuItem(id="item-tiramisu", name="Tiramisu", prices={"base": 550})],
    )
