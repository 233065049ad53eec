"""
Summary Transforms
==================
Row transforms for category-level summary tabs: budget targets, trends,
net worth history and investment income.
"""

from typing import Optional

from sheetsync.transform.parsing import cell, clean_text, parse_amount, parse_date, parse_number

INVESTMENT_HEADER = "income sources"


def _numbers(row: list, start: int, names: list[str]) -> dict:
    """Consecutive numeric columns starting at `start`, blanks as 0."""
    return {name: parse_number(cell(row, start + i)) or 0.0 for i, name in enumerate(names)}


def transform_budget_target(row: list) -> Optional[dict]:
    """
    Budget Targets (A:H).

    A category, B-D GBP annual/tracking/YTD, E annual USD (F when E is
    blank), G-H USD tracking/YTD.
    """
    try:
        category = clean_text(cell(row, 0))
        if not category:
            return None
        annual_usd = parse_amount(cell(row, 4))
        if annual_usd is None:
            annual_usd = parse_amount(cell(row, 5))
        return {
            "category": category,
            "annual_budget_gbp": parse_amount(cell(row, 1)) or 0.0,
            "tracking_est_gbp": parse_amount(cell(row, 2)) or 0.0,
            "ytd_gbp": parse_amount(cell(row, 3)) or 0.0,
            "annual_budget_usd": annual_usd or 0.0,
            "tracking_est_usd": parse_amount(cell(row, 6)) or 0.0,
            "ytd_usd": parse_amount(cell(row, 7)) or 0.0,
        }
    except ValueError:
        return None


def transform_historical_net_worth(row: list) -> Optional[dict]:
    """Historical Net Worth (A:D): date, category, USD, GBP."""
    try:
        nw_date = parse_date(cell(row, 0))
        category = clean_text(cell(row, 1))
        if not nw_date or not category:
            return None
        return {
            "date": nw_date,
            "category": category,
            "amount_usd": parse_amount(cell(row, 2)),
            "amount_gbp": parse_amount(cell(row, 3)),
        }
    except ValueError:
        return None


def transform_annual_trend(row: list) -> Optional[dict]:
    """Annual Trends (A:G): category then six yearly figures."""
    try:
        category = clean_text(cell(row, 0))
        if not category:
            return None
        return {
            "category": category,
            **_numbers(
                row,
                1,
                [
                    "cur_yr_minus_4",
                    "cur_yr_minus_3",
                    "cur_yr_minus_2",
                    "cur_yr_minus_1",
                    "cur_yr_est",
                    "cur_yr_est_vs_4yr_avg",
                ],
            ),
        }
    except ValueError:
        return None


def transform_monthly_trend(row: list) -> Optional[dict]:
    """Monthly Trends (A:H): category then seven monthly figures."""
    try:
        category = clean_text(cell(row, 0))
        if not category:
            return None
        return {
            "category": category,
            **_numbers(
                row,
                1,
                [
                    "cur_month_minus_3",
                    "cur_month_minus_2",
                    "cur_month_minus_1",
                    "cur_month_est",
                    "ttm_avg",
                    "z_score",
                    "delta_vs_l3m",
                ],
            ),
        }
    except ValueError:
        return None


def transform_yoy_net_worth(row: list) -> Optional[dict]:
    """YoY Net Worth (A:C): category, USD, GBP."""
    try:
        category = clean_text(cell(row, 0))
        if not category:
            return None
        return {
            "category": category,
            "amount_usd": parse_amount(cell(row, 1)),
            "amount_gbp": parse_amount(cell(row, 2)),
        }
    except ValueError:
        return None


def transform_investment_return(row: list) -> Optional[dict]:
    """Investment Return (A:B): income source and GBP amount such as "£12.5K"."""
    source = clean_text(cell(row, 0))
    if not source or source.lower() == INVESTMENT_HEADER:
        return None
    try:
        amount = parse_amount(cell(row, 1))
    except ValueError:
        return None
    return {"income_source": source, "amount_gbp": amount or 0.0}
