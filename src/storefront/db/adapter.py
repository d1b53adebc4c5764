"""
Store Client Protocol.

Defines the interface the onboarding synchronizers expect from the
relational store. It matches the Supabase/PostgREST query builder
pattern: table() returns a builder, filters chain fluently, and
execute() is awaited and yields a response with .data.

Failed calls raise (postgrest.exceptions.APIError for Supabase); the
synchronizers never catch those, so a failure aborts the current save.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class StoreClient(Protocol):
    """
    Abstract async store access.

    The returned builder must support:
    .select(), .insert(), .upsert(), .update(), .delete(),
    .eq(), .order(), .limit(), and an awaitable .execute().
    """

    def table(self, name: str) -> Any:
        """Return a query builder for the given table."""
        ...
