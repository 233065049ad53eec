"""
Transform Layer
===============
Per-tab row transforms: raw sheet row → store record, or None to skip.
"""

from sheetsync.transform.balances import (
    transform_account_balance,
    transform_debt,
    transform_kids_account,
)
from sheetsync.transform.fx import transform_fx_rate, transform_fx_rate_current
from sheetsync.transform.ledger import transform_recurring_payment, transform_transaction
from sheetsync.transform.summaries import (
    transform_annual_trend,
    transform_budget_target,
    transform_historical_net_worth,
    transform_investment_return,
    transform_monthly_trend,
    transform_yoy_net_worth,
)

__all__ = [
    "transform_account_balance",
    "transform_kids_account",
    "transform_debt",
    "transform_transaction",
    "transform_recurring_payment",
    "transform_budget_target",
    "transform_historical_net_worth",
    "transform_annual_trend",
    "transform_monthly_trend",
    "transform_yoy_net_worth",
    "transform_investment_return",
    "transform_fx_rate",
    "transform_fx_rate_current",
]
