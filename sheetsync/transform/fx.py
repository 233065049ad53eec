"""
FX Transforms
=============
Row transforms for the shared (tenant-less) exchange rate tabs.
"""

from typing import Optional

from sheetsync.transform.parsing import cell, parse_date, parse_number


def transform_fx_rate(row: list) -> Optional[dict]:
    """FX Rates (A:C): date, GBPUSD, EURUSD."""
    try:
        rate_date = parse_date(cell(row, 0))
        if not rate_date:
            return None
        return {
            "date": rate_date,
            "gbpusd_rate": parse_number(cell(row, 1)) or 0.0,
            "eurusd_rate": parse_number(cell(row, 2)) or 0.0,
        }
    except ValueError:
        return None


def transform_fx_rate_current(row: list) -> Optional[dict]:
    """
    FX Rate Current (A:B): date, GBPUSD.

    The column is NOT NULL in the store, so a missing or non-positive
    rate skips the row.
    """
    try:
        rate_date = parse_date(cell(row, 0))
        rate = parse_number(cell(row, 1))
    except ValueError:
        return None
    if not rate_date or rate is None or rate <= 0:
        return None
    return {"date": rate_date, "gbpusd_rate": rate}
