"""
Sync Results
============
Per-table fetch and write outcomes, and the job-level summary.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class FetchStatus(str, Enum):
    ROWS = "rows"
    NO_DATA = "no_data"
    ERROR = "error"


@dataclass
class FetchOutcome:
    """What the fetch adapter found for one tab."""

    sheet: str
    status: FetchStatus
    rows: list[dict] = field(default_factory=list)
    error: Optional[str] = None
    tab_present: bool = True
    raw_rows: int = 0

    @classmethod
    def with_rows(cls, sheet: str, rows: list[dict], raw_rows: int) -> "FetchOutcome":
        return cls(sheet=sheet, status=FetchStatus.ROWS, rows=rows, raw_rows=raw_rows)

    @classmethod
    def no_data(cls, sheet: str, tab_present: bool = True, raw_rows: int = 0) -> "FetchOutcome":
        return cls(sheet=sheet, status=FetchStatus.NO_DATA, tab_present=tab_present, raw_rows=raw_rows)

    @classmethod
    def failed(cls, sheet: str, error: str) -> "FetchOutcome":
        return cls(sheet=sheet, status=FetchStatus.ERROR, error=error)


@dataclass
class SyncOutcome:
    """Result of syncing one table."""

    sheet: str
    success: bool
    rows_processed: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        result: dict = {
            "sheet": self.sheet,
            "success": self.success,
            "rowsProcessed": self.rows_processed,
        }
        if self.error:
            result["error"] = self.error
        return result


@dataclass
class JobResult:
    """Result of one sync invocation."""

    success: bool
    results: list[SyncOutcome] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def from_outcomes(cls, outcomes: list[SyncOutcome]) -> "JobResult":
        return cls(success=all(o.success for o in outcomes), results=outcomes)

    @classmethod
    def fatal(cls, error: str) -> "JobResult":
        return cls(success=False, results=[], error=error)

    @property
    def failed(self) -> list[SyncOutcome]:
        return [r for r in self.results if not r.success]

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "results": [r.to_dict() for r in self.results],
            "error": self.error,
        }
