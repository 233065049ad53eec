"""
Budget History Snapshot
=======================
Copies a tenant's current budget targets into budget_history under today's
date, so budget drift can be charted over time.
"""

from prefect import get_run_logger, task
from prefect.cache_policies import NONE

from sheetsync.protocols import Store

TABLE_NAME = "budget_history"


@task(name="snapshot-budget-history", cache_policy=NONE)
def snapshot_budget_history(store: Store, tenant_id: str, snapshot_date: str) -> int:
    """
    Snapshot budget_targets into budget_history for one tenant and date.

    Re-running on the same date overwrites that day's snapshot.

    Returns:
        Number of categories written
    """
    logger = get_run_logger()

    targets = store.select(
        "budget_targets",
        columns="category,annual_budget_gbp,tracking_est_gbp,ytd_gbp",
        filters={"user_id": tenant_id},
    )
    if not targets:
        logger.info(f"📸 No budget targets for tenant {tenant_id}; skipping snapshot")
        return 0

    history = [
        {
            "user_id": tenant_id,
            "date": snapshot_date,
            "category": row["category"],
            "annual_budget": row.get("annual_budget_gbp"),
            "forecast_spend": row.get("tracking_est_gbp"),
            "actual_ytd": row.get("ytd_gbp"),
        }
        for row in targets
    ]
    store.upsert(TABLE_NAME, history, on_conflict="user_id,date,category")

    logger.info(f"📸 Snapshot {len(history):,} budget categories for {snapshot_date}")
    return len(history)
