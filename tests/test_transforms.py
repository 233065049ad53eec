"""
Tests for the per-tab row transforms.
"""

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

# =============================================================================
# Balances
# =============================================================================


class TestAccountBalance:
    def test_full_row(self):
        row = ["2024-01-15", "Chase", "Checking", "Cash", "USD", "1,000", "", "$1,000", "High", "Low", "Short"]
        assert transform_account_balance(row) == {
            "date_updated": "2024-01-15",
            "institution": "Chase",
            "account_name": "Checking",
            "category": "Cash",
            "currency": "USD",
            "balance_personal_local": 1000.0,
            "balance_family_local": 0.0,
            "balance_total_local": 1000.0,
            "liquidity_profile": "High",
            "risk_profile": "Low",
            "horizon_profile": "Short",
        }

    def test_sparse_row_defaults(self):
        record = transform_account_balance(["2024-01-15", "", "Savings"])
        assert record["institution"] == ""
        assert record["currency"] == "USD"
        assert record["balance_total_local"] == 0.0
        assert record["risk_profile"] is None

    def test_requires_account_and_date(self):
        assert transform_account_balance(["2024-01-15", "Chase", ""]) is None
        assert transform_account_balance(["", "Chase", "Checking"]) is None

    def test_unparseable_balance_skips_row(self):
        assert transform_account_balance(["2024-01-15", "Chase", "Checking", "Cash", "USD", "lots"]) is None


class TestKidsAndDebt:
    def test_kids_account(self):
        record = transform_kids_account(["Ava", "529", "5K", "1/1/2024", "gift", "college"])
        assert record == {
            "child_name": "Ava",
            "account_type": "529",
            "balance_usd": 5000.0,
            "date_updated": "2024-01-01",
            "notes": "gift",
            "purpose": "college",
        }

    def test_kids_account_requires_date(self):
        assert transform_kids_account(["Ava", "529", "5K"]) is None

    def test_debt(self):
        record = transform_debt(["Mortgage", "Home loan", "House", "250,000", "", "2024-01-01"])
        assert record["name"] == "Home loan"
        assert record["amount_gbp"] == 250000.0
        assert record["amount_usd"] is None

    def test_debt_requires_an_amount(self):
        assert transform_debt(["Card", "Visa", "", "", "", "2024-01-01"]) is None

    def test_debt_requires_name(self):
        assert transform_debt(["Card", "", "", "100", "", "2024-01-01"]) is None


# =============================================================================
# Ledger
# =============================================================================


class TestTransaction:
    def test_gbp_transaction(self):
        record = transform_transaction(["2024-01-15", "Food", "Tesco", "", "£12.50", "gbp card"])
        assert record == {
            "date": "2024-01-15",
            "category": "Food",
            "counterparty": "Tesco",
            "counterparty_dedup": "Tesco",
            "amount_usd": None,
            "amount_gbp": 12.5,
            "currency": "GBP",
        }

    def test_missing_counterparty(self):
        record = transform_transaction(["2024-01-15", "Food", "", "5", "", "EUR"])
        assert record["counterparty"] is None
        assert record["counterparty_dedup"] == ""
        assert record["currency"] is None

    def test_bad_rows_skipped(self):
        assert transform_transaction(["", "Food", "Tesco", "5"]) is None
        assert transform_transaction(["2024-01-15", "Food", "Tesco", "five"]) is None


class TestRecurringPayment:
    def test_gbp_payment(self):
        row = ["10%", "Netflix", "Subs", "£10", "£120", "Monthly", "2024-01-01", "GBP", ""]
        assert transform_recurring_payment(row) == {
            "name": "Netflix",
            "annualized_amount_gbp": 120.0,
            "annualized_amount_usd": None,
        }

    def test_usd_payment(self):
        row = ["", "Gym", "Health", "$50", "$600", "Monthly", "", "usd"]
        record = transform_recurring_payment(row)
        assert record["annualized_amount_usd"] == 600.0
        assert record["annualized_amount_gbp"] is None

    def test_header_and_total_rows_skipped(self):
        assert transform_recurring_payment(["", "Name", "", "", "Annual"]) is None
        assert transform_recurring_payment(["", "Total Annualized", "", "", "£1,000"]) is None

    def test_zero_or_bad_amount_skipped(self):
        assert transform_recurring_payment(["", "Spotify", "", "", "0"]) is None
        assert transform_recurring_payment(["", "Spotify", "", "", "n/a"]) is None
        assert transform_recurring_payment(["", "Spotify"]) is None


# =============================================================================
# Summaries
# =============================================================================


class TestSummaries:
    def test_budget_target_usd_fallback_column(self):
        row = ["Food", "1,000", "900", "500", "", "1,300", "1,200", "600"]
        record = transform_budget_target(row)
        assert record["annual_budget_gbp"] == 1000.0
        assert record["annual_budget_usd"] == 1300.0
        assert record["ytd_usd"] == 600.0

    def test_budget_target_requires_category(self):
        assert transform_budget_target(["", "1,000"]) is None

    def test_historical_net_worth(self):
        assert transform_historical_net_worth(["2024-01-01", "Cash", "1000", "800"]) == {
            "date": "2024-01-01",
            "category": "Cash",
            "amount_usd": 1000.0,
            "amount_gbp": 800.0,
        }

    def test_historical_net_worth_requires_category(self):
        assert transform_historical_net_worth(["2024-01-01", ""]) is None

    def test_annual_trend_blanks_are_zero(self):
        record = transform_annual_trend(["Food", "1", "2", "", "4", "5", "0.5"])
        assert record["cur_yr_minus_4"] == 1.0
        assert record["cur_yr_minus_2"] == 0.0
        assert record["cur_yr_est_vs_4yr_avg"] == 0.5

    def test_monthly_trend(self):
        record = transform_monthly_trend(["Food", "1", "2", "3", "4", "5", "-1.2", "(3)"])
        assert record["ttm_avg"] == 5.0
        assert record["z_score"] == -1.2
        assert record["delta_vs_l3m"] == -3.0

    def test_yoy_net_worth(self):
        assert transform_yoy_net_worth(["Cash", "100", ""]) == {
            "category": "Cash",
            "amount_usd": 100.0,
            "amount_gbp": None,
        }

    def test_investment_return(self):
        assert transform_investment_return(["Dividends", "£12.5K"]) == {
            "income_source": "Dividends",
            "amount_gbp": 12500.0,
        }
        assert transform_investment_return(["Interest", ""])["amount_gbp"] == 0.0

    def test_investment_return_skips_header_and_bad_amounts(self):
        assert transform_investment_return(["Income Sources", "Amount"]) is None
        assert transform_investment_return(["Bonds", "abc"]) is None


# =============================================================================
# FX
# =============================================================================


class TestFx:
    def test_fx_rate(self):
        assert transform_fx_rate(["2024-01-15", "1.27", "1.09"]) == {
            "date": "2024-01-15",
            "gbpusd_rate": 1.27,
            "eurusd_rate": 1.09,
        }

    def test_fx_rate_current(self):
        assert transform_fx_rate_current(["2024-01-15", "1.27"]) == {
            "date": "2024-01-15",
            "gbpusd_rate": 1.27,
        }

    def test_fx_rate_current_requires_positive_rate(self):
        assert transform_fx_rate_current(["2024-01-15", "0"]) is None
        assert transform_fx_rate_current(["2024-01-15", ""]) is None
