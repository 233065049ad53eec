"""
Table Registry
==============
Static mapping of sheet tabs to destination tables.

Each SyncSpec names the tab, the destination table, the row transform and
the write strategy used to reconcile the table. SYNC_SPECS is built once at
import time and never mutated, so concurrent table tasks can share it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from sheetsync.transform import (
    transform_account_balance,
    transform_annual_trend,
    transform_budget_target,
    transform_debt,
    transform_fx_rate,
    transform_fx_rate_current,
    transform_historical_net_worth,
    transform_investment_return,
    transform_kids_account,
    transform_monthly_trend,
    transform_recurring_payment,
    transform_transaction,
    transform_yoy_net_worth,
)

TENANT_COLUMN = "user_id"


class WriteStrategy(str, Enum):
    UPSERT = "upsert"
    STALE_SIBLING_UPSERT = "stale_sibling_upsert"
    REPLACE = "replace"
    REPLACE_PRESERVING_FLAGS = "replace_preserving_flags"
    PAGINATED_REPLACE = "paginated_replace"


# Strategies that delete the tenant's rows before writing
REPLACE_SEMANTICS = frozenset(
    {
        WriteStrategy.REPLACE,
        WriteStrategy.REPLACE_PRESERVING_FLAGS,
        WriteStrategy.PAGINATED_REPLACE,
    }
)


@dataclass(frozen=True)
class SyncSpec:
    """How one sheet tab maps onto one store table."""

    sheet_name: str
    table: str
    columns: str
    transform: Callable[[list], Optional[dict]]
    strategy: WriteStrategy
    is_global: bool = False
    # Upsert strategies: comma separated natural key
    on_conflict: Optional[str] = None
    # Stale-sibling cleanup: rows sharing sibling_key but not sibling_attr are evicted
    sibling_key: tuple[str, ...] = ()
    sibling_attr: Optional[str] = None
    # Flag preserving replace
    name_column: Optional[str] = None
    flag_column: Optional[str] = None
    amount_columns: tuple[str, ...] = ()

    @property
    def range_name(self) -> str:
        """A1 range, quoting tab names that contain spaces."""
        name = f"'{self.sheet_name}'" if " " in self.sheet_name else self.sheet_name
        return f"{name}!{self.columns}"

    @property
    def conflict_columns(self) -> list[str]:
        return [c.strip() for c in (self.on_conflict or "").split(",") if c.strip()]

    @property
    def replaces(self) -> bool:
        return self.strategy in REPLACE_SEMANTICS


SYNC_SPECS: tuple[SyncSpec, ...] = (
    SyncSpec(
        sheet_name="Account Balances",
        table="account_balances",
        columns="A:K",
        transform=transform_account_balance,
        strategy=WriteStrategy.STALE_SIBLING_UPSERT,
        on_conflict="user_id,institution,account_name,date_updated",
        sibling_key=("account_name", "category"),
        sibling_attr="institution",
    ),
    SyncSpec(
        sheet_name="Kids",
        table="kids_accounts",
        columns="A:F",
        transform=transform_kids_account,
        strategy=WriteStrategy.UPSERT,
        on_conflict="user_id,child_name,account_type,date_updated,notes",
    ),
    SyncSpec(
        sheet_name="Debt",
        table="debt",
        columns="A:F",
        transform=transform_debt,
        strategy=WriteStrategy.REPLACE,
    ),
    SyncSpec(
        sheet_name="Transaction Log",
        table="transaction_log",
        columns="A:F",
        transform=transform_transaction,
        strategy=WriteStrategy.PAGINATED_REPLACE,
    ),
    SyncSpec(
        sheet_name="Budget Targets",
        table="budget_targets",
        columns="A:H",
        transform=transform_budget_target,
        strategy=WriteStrategy.REPLACE,
    ),
    SyncSpec(
        sheet_name="Historical Net Worth",
        table="historical_net_worth",
        columns="A:D",
        transform=transform_historical_net_worth,
        strategy=WriteStrategy.UPSERT,
        on_conflict="user_id,date,category",
    ),
    SyncSpec(
        sheet_name="FX Rates",
        table="fx_rates",
        columns="A:C",
        transform=transform_fx_rate,
        strategy=WriteStrategy.UPSERT,
        is_global=True,
        on_conflict="date",
    ),
    SyncSpec(
        sheet_name="FX Rate Current",
        table="fx_rate_current",
        columns="A:B",
        transform=transform_fx_rate_current,
        strategy=WriteStrategy.UPSERT,
        is_global=True,
        on_conflict="date",
    ),
    SyncSpec(
        sheet_name="Annual Trends",
        table="annual_trends",
        columns="A:G",
        transform=transform_annual_trend,
        strategy=WriteStrategy.REPLACE,
    ),
    SyncSpec(
        sheet_name="Monthly Trends",
        table="monthly_trends",
        columns="A:H",
        transform=transform_monthly_trend,
        strategy=WriteStrategy.REPLACE,
    ),
    SyncSpec(
        sheet_name="Investment Return",
        table="investment_return",
        columns="A:B",
        transform=transform_investment_return,
        strategy=WriteStrategy.REPLACE,
    ),
    SyncSpec(
        sheet_name="YoY Net Worth",
        table="yoy_net_worth",
        columns="A:C",
        transform=transform_yoy_net_worth,
        strategy=WriteStrategy.REPLACE,
    ),
    SyncSpec(
        sheet_name="Recurring Payments",
        table="recurring_payments",
        columns="A:I",
        transform=transform_recurring_payment,
        strategy=WriteStrategy.REPLACE_PRESERVING_FLAGS,
        name_column="name",
        flag_column="needs_review",
        amount_columns=("annualized_amount_gbp", "annualized_amount_usd"),
    ),
)

_BY_SHEET = {spec.sheet_name: spec for spec in SYNC_SPECS}


def get_spec(sheet_name: str) -> SyncSpec:
    """Look up a spec by tab name. Raises KeyError for unknown tabs."""
    return _BY_SHEET[sheet_name]
