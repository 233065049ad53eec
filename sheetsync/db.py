"""
Database Client
===============
Supabase-backed store used by the write strategies.

SupabaseStore wraps a supabase client with the four operations the sync
engine needs (select, insert, upsert, delete) and turns PostgREST and
transport errors into StoreError so executors can isolate them per table.
"""

from functools import lru_cache
from typing import Optional

import httpx
from postgrest.exceptions import APIError

from sheetsync.config import ConfigurationError, get_settings


class StoreError(Exception):
    """The store rejected an operation."""


@lru_cache
def get_supabase_client():
    """
    Get Supabase client.

    Returns:
        Supabase client instance authenticated with the service key
    """
    # Import here to avoid requiring supabase for all operations
    from supabase import create_client

    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_service_key:
        raise ConfigurationError("Missing SUPABASE_URL or SUPABASE_SERVICE_KEY")
    return create_client(settings.supabase_url, settings.supabase_service_key)


def get_store() -> "SupabaseStore":
    """Store handle for runs where the caller did not supply one."""
    return SupabaseStore(get_supabase_client())


class SupabaseStore:
    """
    Store implementation over a supabase client.

    Pass a client created with a user's session to keep row level security
    in force, or the service-role client for scheduled runs.
    """

    def __init__(self, client):
        self.client = client

    def _execute(self, query, action: str, table: str):
        try:
            return query.execute()
        except APIError as e:
            raise StoreError(f"{action} on {table} failed: {e.message or e}") from e
        except httpx.HTTPError as e:
            raise StoreError(f"{action} on {table} failed: {e}") from e

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[dict] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[dict]:
        """
        Read records from a table.

        Args:
            table: Table name
            columns: Columns to select (default: all)
            filters: Optional filters as {column: value}
            limit: Optional row limit, applied from `offset`
            offset: First row to return when limit is set

        Returns:
            List of records
        """
        query = self.client.table(table).select(columns)

        for col, val in (filters or {}).items():
            query = query.eq(col, val)

        if limit:
            query = query.range(offset, offset + limit - 1)

        result = self._execute(query, "select", table)
        return list(result.data)  # type: ignore[arg-type]

    def insert(self, table: str, records: list[dict]) -> None:
        """Insert records in a single request."""
        if records:
            self._execute(self.client.table(table).insert(records), "insert", table)

    def upsert(self, table: str, records: list[dict], on_conflict: str) -> None:
        """Upsert records, resolving conflicts on the given columns."""
        if records:
            self._execute(
                self.client.table(table).upsert(records, on_conflict=on_conflict),
                "upsert",
                table,
            )

    def delete(
        self,
        table: str,
        filters: dict,
        not_equal: Optional[dict] = None,
        any_of: Optional[dict] = None,
    ) -> None:
        """
        Delete rows matching every filter.

        Args:
            table: Table name
            filters: Equality filters as {column: value}
            not_equal: Inequality filters as {column: value}
            any_of: Membership filters as {column: [values]}
        """
        if not (filters or not_equal or any_of):
            raise ValueError(f"refusing unfiltered delete on {table}")

        query = self.client.table(table).delete()
        for col, val in (filters or {}).items():
            query = query.eq(col, val)
        for col, val in (not_equal or {}).items():
            query = query.neq(col, val)
        for col, values in (any_of or {}).items():
            query = query.in_(col, list(values))

        self._execute(query, "delete", table)
