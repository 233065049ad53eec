"""
Balance Transforms
==================
Row transforms for point-in-time balance tabs: Account Balances, Kids, Debt.
"""

from typing import Optional

from sheetsync.transform.parsing import cell, clean_text, parse_amount, parse_date


def transform_account_balance(row: list) -> Optional[dict]:
    """
    Account Balances (A:K).

    A date, B institution, C account, D category, E currency,
    F-H personal/family/total balance, I-K liquidity/risk/horizon profiles.
    """
    try:
        date_updated = parse_date(cell(row, 0))
        account_name = clean_text(cell(row, 2))
        if not date_updated or not account_name:
            return None
        return {
            "date_updated": date_updated,
            "institution": clean_text(cell(row, 1)) or "",
            "account_name": account_name,
            "category": clean_text(cell(row, 3)) or "",
            "currency": clean_text(cell(row, 4)) or "USD",
            "balance_personal_local": parse_amount(cell(row, 5)) or 0.0,
            "balance_family_local": parse_amount(cell(row, 6)) or 0.0,
            "balance_total_local": parse_amount(cell(row, 7)) or 0.0,
            "liquidity_profile": clean_text(cell(row, 8)),
            "risk_profile": clean_text(cell(row, 9)),
            "horizon_profile": clean_text(cell(row, 10)),
        }
    except ValueError:
        return None


def transform_kids_account(row: list) -> Optional[dict]:
    """Kids (A:F): child, account type, balance USD, date, notes, purpose."""
    try:
        date_updated = parse_date(cell(row, 3))
        if not date_updated:
            return None
        return {
            "child_name": clean_text(cell(row, 0)) or "",
            "account_type": clean_text(cell(row, 1)) or "",
            "balance_usd": parse_amount(cell(row, 2)) or 0.0,
            "date_updated": date_updated,
            "notes": clean_text(cell(row, 4)),
            "purpose": clean_text(cell(row, 5)),
        }
    except ValueError:
        return None


def transform_debt(row: list) -> Optional[dict]:
    """
    Debt (A:F): type, name, purpose, amount GBP, amount USD, date.

    A debt needs a name and at least one amount.
    """
    try:
        name = clean_text(cell(row, 1))
        amount_gbp = parse_amount(cell(row, 3))
        amount_usd = parse_amount(cell(row, 4))
        date_updated = parse_date(cell(row, 5))
        if not name or (amount_gbp is None and amount_usd is None) or not date_updated:
            return None
        return {
            "type": clean_text(cell(row, 0)) or "",
            "name": name,
            "purpose": clean_text(cell(row, 2)),
            "amount_gbp": amount_gbp,
            "amount_usd": amount_usd,
            "date_updated": date_updated,
        }
    except ValueError:
        return None
