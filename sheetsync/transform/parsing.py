"""
Cell Parsing
============
Scalar parsers shared by the per-table row transforms.

Parsers return None for blank cells and raise ValueError for cells that
hold something unparseable, so a transform can fail closed by catching
ValueError and skipping the row.
"""

import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Optional

CURRENCY_CODES = ("USD", "GBP")

# Google Sheets serial dates count days from this epoch
SHEETS_EPOCH = date(1899, 12, 30)

DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y/%m/%d",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%d-%b-%Y",
    "%d-%b-%y",
    "%b %Y",
    "%B %Y",
)

_NUMBER_NOISE = re.compile(r"[£$€,\s]")
_SCALES = {"K": 1_000, "M": 1_000_000}


def clean_text(value: Any) -> Optional[str]:
    """Stripped string, or None when the cell is blank."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_date(value: Any) -> Optional[str]:
    """
    Parse a cell into an ISO date string (YYYY-MM-DD).

    Accepts ISO dates and datetimes, common US and month-name formats, and
    spreadsheet serial numbers.

    Raises:
        ValueError: if the cell is not blank and no format matches
    """
    if isinstance(value, bool):
        raise ValueError(f"not a date: {value!r}")
    if isinstance(value, (int, float)):
        if not math.isfinite(value) or value <= 0:
            raise ValueError(f"not a date serial: {value!r}")
        return (SHEETS_EPOCH + timedelta(days=int(value))).isoformat()

    text = clean_text(value)
    if text is None:
        return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue

    raise ValueError(f"unrecognised date: {text!r}")


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a numeric cell.

    Strips currency symbols, thousands separators and a trailing percent
    sign; accounting style "(123)" is read as -123.

    Raises:
        ValueError: if the cell is not blank and not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = clean_text(value)
        if text is None:
            return None
        text = _NUMBER_NOISE.sub("", text).rstrip("%")
        negative = text.startswith("(") and text.endswith(")")
        if negative:
            text = text[1:-1]
        number = float(text)
        if negative:
            number = -number

    if not math.isfinite(number):
        raise ValueError(f"not a finite number: {value!r}")
    return number


def parse_amount(value: Any) -> Optional[float]:
    """Parse a currency amount, honouring a trailing K or M scale suffix."""
    text = clean_text(value)
    if text is None or isinstance(value, (int, float)):
        return parse_number(value)

    scale = _SCALES.get(text[-1].upper())
    if scale is None:
        return parse_number(text)

    number = parse_number(text[:-1])
    if number is None:
        raise ValueError(f"scale suffix without a number: {text!r}")
    return number * scale


def infer_currency(value: Any) -> Optional[str]:
    """Currency code whose prefix starts the cell text, case-insensitive."""
    text = (clean_text(value) or "").upper()
    for code in CURRENCY_CODES:
        if text.startswith(code):
            return code
    return None


def cell(row: list, index: int) -> Any:
    """Positional cell access; sparse rows from the API are short."""
    return row[index] if index < len(row) else None


def is_blank_record(record: dict) -> bool:
    """True when every field of a transformed record is None or empty."""
    return all(v is None or v == "" for v in record.values())
