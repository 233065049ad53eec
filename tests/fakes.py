"""
Test Doubles
============
In-memory stand-ins for the spreadsheet source and the store.
"""

import threading
from collections import defaultdict
from typing import Optional

from sheetsync.db import StoreError
from sheetsync.extract.sheets_client import SheetsError


class FakeStore:
    """
    Thread-safe in-memory Store.

    Rows get an auto-increment `id`. Upserts match on the conflict columns
    and, like PostgreSQL, reject a batch that hits the same key twice.
    Use fail() to make chosen calls raise StoreError.
    """

    def __init__(self, tables: Optional[dict] = None):
        self._lock = threading.Lock()
        self._next_id = 1
        self.tables: dict[str, list[dict]] = defaultdict(list)
        self.calls: list[tuple[str, str]] = []
        self._counts: dict[tuple[str, str], int] = defaultdict(int)
        self._failures: dict[tuple[str, str], Optional[set]] = {}
        for table, rows in (tables or {}).items():
            for row in rows:
                self._add(table, row)

    # -- test helpers --------------------------------------------------------

    def fail(self, op: str, table: str, calls: Optional[list[int]] = None) -> None:
        """Make `op` on `table` raise; only the given 1-based call numbers when set."""
        self._failures[(op, table)] = set(calls) if calls else None

    def rows(self, table: str) -> list[dict]:
        """Stored rows without their ids."""
        with self._lock:
            return [{k: v for k, v in r.items() if k != "id"} for r in self.tables[table]]

    def count(self, op: str, table: str) -> int:
        return self._counts[(op, table)]

    # -- internals -----------------------------------------------------------

    def _add(self, table: str, record: dict) -> None:
        self.tables[table].append({"id": self._next_id, **record})
        self._next_id += 1

    def _record_call(self, op: str, table: str) -> None:
        self.calls.append((op, table))
        self._counts[(op, table)] += 1
        key = (op, table)
        if key in self._failures:
            calls = self._failures[key]
            if calls is None or self._counts[key] in calls:
                raise StoreError(f"{op} on {table} failed: injected failure")

    @staticmethod
    def _matches(row: dict, filters: dict, not_equal: dict, any_of: dict) -> bool:
        if any(row.get(c) != v for c, v in filters.items()):
            return False
        # SQL semantics: NULL <> x is not true
        if any(row.get(c) is None or row.get(c) == v for c, v in not_equal.items()):
            return False
        return all(row.get(c) in set(vs) for c, vs in any_of.items())

    # -- Store protocol ------------------------------------------------------

    def select(self, table, columns="*", filters=None, limit=None, offset=0):
        with self._lock:
            self._record_call("select", table)
            rows = [r for r in self.tables[table] if self._matches(r, filters or {}, {}, {})]
            if limit:
                rows = rows[offset : offset + limit]
            if columns == "*":
                return [dict(r) for r in rows]
            wanted = [c.strip() for c in columns.split(",")]
            return [{c: r.get(c) for c in wanted} for r in rows]

    def insert(self, table, records):
        with self._lock:
            self._record_call("insert", table)
            for record in records:
                self._add(table, record)

    def upsert(self, table, records, on_conflict):
        with self._lock:
            self._record_call("upsert", table)
            keys = [c.strip() for c in on_conflict.split(",")]
            batch_keys = [tuple(r.get(k) for k in keys) for r in records]
            if len(set(batch_keys)) != len(batch_keys):
                raise StoreError(
                    f"upsert on {table} failed: ON CONFLICT DO UPDATE command cannot "
                    "affect row a second time"
                )
            for record, key in zip(records, batch_keys):
                existing = next(
                    (r for r in self.tables[table] if tuple(r.get(k) for k in keys) == key),
                    None,
                )
                if existing is None:
                    self._add(table, record)
                else:
                    existing.update(record)

    def delete(self, table, filters, not_equal=None, any_of=None):
        if not (filters or not_equal or any_of):
            raise ValueError(f"refusing unfiltered delete on {table}")
        with self._lock:
            self._record_call("delete", table)
            self.tables[table] = [
                r
                for r in self.tables[table]
                if not self._matches(r, filters or {}, not_equal or {}, any_of or {})
            ]


class FakeSource:
    """
    SpreadsheetSource over a dict of tab name → grid (header row first).

    Args:
        tabs: Grids by tab name
        fail_combined: Make fetch_values raise
        failing_tabs: Tabs whose single-range fetch raises
        list_error: Exception raised by list_ranges
    """

    def __init__(
        self,
        tabs: dict[str, list[list]],
        fail_combined: bool = False,
        failing_tabs: tuple[str, ...] = (),
        list_error: Optional[Exception] = None,
    ):
        self.tabs = tabs
        self.fail_combined = fail_combined
        self.failing_tabs = set(failing_tabs)
        self.list_error = list_error
        self.combined_calls = 0
        self.single_calls: list[str] = []

    @staticmethod
    def _sheet(range_name: str) -> str:
        return range_name.rsplit("!", 1)[0].strip("'")

    def list_ranges(self):
        if self.list_error is not None:
            raise self.list_error
        return list(self.tabs)

    def fetch_values(self, ranges):
        self.combined_calls += 1
        if self.fail_combined:
            raise SheetsError("HTTP 400: Unable to parse range", status=400)
        return {r: self.tabs[self._sheet(r)] for r in ranges}

    def fetch_range(self, range_name):
        sheet = self._sheet(range_name)
        self.single_calls.append(sheet)
        if sheet in self.failing_tabs:
            raise SheetsError(f"HTTP 400: Unable to parse range: {range_name}", status=400)
        return self.tabs[sheet]
