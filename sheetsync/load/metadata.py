"""
Sync Metadata
=============
Records when the last successful sync finished, for callers that display
or poll it ("Last refresh: ...").
"""

from datetime import datetime, timezone
from typing import Optional

from prefect import get_run_logger, task
from prefect.cache_policies import NONE

from sheetsync.config import get_settings
from sheetsync.protocols import Store

TABLE_NAME = "sync_metadata"
GLOBAL_ROW_ID = 1


def _scope(scope: Optional[str]) -> str:
    return scope or get_settings().sync_metadata_scope


@task(name="record-last-sync", cache_policy=NONE)
def record_last_sync(
    store: Store,
    tenant_id: Optional[str],
    scope: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Upsert the last-sync timestamp.

    Args:
        store: Store to write to
        tenant_id: Owning tenant (required in 'tenant' scope)
        scope: 'tenant' for one row per tenant, 'global' for a single row
        now: Timestamp to record (defaults to the current UTC time)

    Returns:
        The ISO timestamp written
    """
    logger = get_run_logger()
    last_sync_at = (now or datetime.now(timezone.utc)).isoformat()

    if _scope(scope) == "global":
        store.upsert(TABLE_NAME, [{"id": GLOBAL_ROW_ID, "last_sync_at": last_sync_at}], on_conflict="id")
    else:
        if not tenant_id:
            raise ValueError("tenant_id is required to record a per-tenant sync")
        store.upsert(
            TABLE_NAME,
            [{"user_id": tenant_id, "last_sync_at": last_sync_at}],
            on_conflict="user_id",
        )

    logger.info(f"🕒 Recorded last sync at {last_sync_at}")
    return last_sync_at


def get_last_sync(store: Store, tenant_id: Optional[str], scope: Optional[str] = None) -> Optional[str]:
    """Last recorded sync timestamp, or None if no sync has completed."""
    if _scope(scope) == "global":
        rows = store.select(TABLE_NAME, columns="last_sync_at", filters={"id": GLOBAL_ROW_ID}, limit=1)
    else:
        rows = store.select(TABLE_NAME, columns="last_sync_at", filters={"user_id": tenant_id}, limit=1)
    return rows[0]["last_sync_at"] if rows else None
