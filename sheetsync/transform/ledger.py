"""
Ledger Transforms
=================
Row transforms for the Transaction Log and Recurring Payments tabs.
"""

from typing import Optional

from sheetsync.transform.parsing import (
    cell,
    clean_text,
    infer_currency,
    parse_amount,
    parse_date,
)

RECURRING_HEADER_NAMES = {"name"}


def transform_transaction(row: list) -> Optional[dict]:
    """
    Transaction Log (A:F): date, category, counterparty, USD, GBP, currency.

    Column F is free text ("USD card", "gbp"...); the currency is whichever
    known code it starts with, or None.
    """
    try:
        txn_date = parse_date(cell(row, 0))
        if not txn_date:
            return None
        counterparty = clean_text(cell(row, 2))
        return {
            "date": txn_date,
            "category": clean_text(cell(row, 1)) or "",
            "counterparty": counterparty,
            "counterparty_dedup": counterparty or "",
            "amount_usd": parse_amount(cell(row, 3)),
            "amount_gbp": parse_amount(cell(row, 4)),
            "currency": infer_currency(cell(row, 5)),
        }
    except ValueError:
        return None


def transform_recurring_payment(row: list) -> Optional[dict]:
    """
    Recurring Payments (A:I).

    A % of total, B name, C category, D monthly, E annual, F periodicity,
    G date, H currency, I notes. Only name, annual amount and currency are
    kept; the amount lands in the USD column for USD rows, GBP otherwise.
    """
    name = clean_text(cell(row, 1))
    if not name or name.lower() in RECURRING_HEADER_NAMES or "annualized" in name.lower():
        return None

    try:
        amount = parse_amount(cell(row, 4))
    except ValueError:
        return None
    if not amount:
        return None

    currency = (clean_text(cell(row, 7)) or "").upper()
    if currency == "USD":
        return {"name": name, "annualized_amount_gbp": None, "annualized_amount_usd": amount}
    return {"name": name, "annualized_amount_gbp": amount, "annualized_amount_usd": None}
