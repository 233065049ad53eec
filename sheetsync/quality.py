"""
Row Quality Report
==================
Per-tab accounting of rows read versus rows kept by the transforms.

Skipped rows are not errors; this report only makes them visible in the
flow logs so a tab that silently lost most of its rows stands out.
"""

from dataclasses import dataclass, field


@dataclass
class SkipReport:
    """Row skip accumulator, one check per tab."""

    checks: list = field(default_factory=list)

    @property
    def total_read(self) -> int:
        return sum(c["read"] for c in self.checks)

    @property
    def total_kept(self) -> int:
        return sum(c["kept"] for c in self.checks)

    @property
    def flagged(self) -> list[dict]:
        return [c for c in self.checks if c["status"] != "CLEAN"]


def add_tab(
    report: SkipReport,
    sheet: str,
    kept: int,
    read: int,
    threshold: int = 85,
) -> None:
    """
    Record how many of a tab's data rows survived the transform.

    Args:
        report: SkipReport to add to
        sheet: Tab name
        kept: Rows that produced a record
        read: Data rows read (header excluded)
        threshold: Percentage below which the tab is MOSTLY_SKIPPED
    """
    pct = (kept / read * 100) if read > 0 else 100.0

    if kept == read:
        status = "CLEAN"
    elif pct >= threshold:
        status = "PARTIAL"
    else:
        status = "MOSTLY_SKIPPED"

    report.checks.append(
        {
            "sheet": sheet,
            "status": status,
            "kept": kept,
            "read": read,
            "skipped": read - kept,
            "percentage": f"{pct:.1f}%",
        }
    )
