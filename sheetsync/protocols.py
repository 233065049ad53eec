"""
Collaborator Protocols
======================
Type contracts for the spreadsheet source and the relational store.

The sync engine only ever talks to these two interfaces, so tests and
alternative backends can stand in for Google Sheets and Supabase.
"""

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class SpreadsheetSource(Protocol):
    """
    Contract for a tabular source of named ranges.

    Grids are lists of rows, each row a list of scalar cell values.
    """

    def list_ranges(self) -> list[str]:
        """Names of the tabs currently present in the source."""
        ...

    def fetch_values(self, ranges: list[str]) -> dict[str, list[list[Any]]]:
        """Fetch several ranges in one call. Keys are the requested ranges."""
        ...

    def fetch_range(self, range_name: str) -> list[list[Any]]:
        """Fetch a single range."""
        ...


@runtime_checkable
class Store(Protocol):
    """
    Contract for the relational store.

    Every write raises StoreError when the store rejects it.
    """

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[dict] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[dict]:
        """Read rows matching equality filters."""
        ...

    def insert(self, table: str, records: list[dict]) -> None:
        """Insert records."""
        ...

    def upsert(self, table: str, records: list[dict], on_conflict: str) -> None:
        """Insert or update records on the given conflict columns."""
        ...

    def delete(
        self,
        table: str,
        filters: dict,
        not_equal: Optional[dict] = None,
        any_of: Optional[dict] = None,
    ) -> None:
        """Delete rows matching all filters."""
        ...
