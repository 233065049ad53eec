#!/usr/bin/env python3
"""
Refresh Flow
============
Manual or scheduled refresh for one tenant: sync their connected sheet,
snapshot budget history, and record the completion time.

Usage:
    python -m sheetsync.flows.refresh --tenant <user-id>
    python -m sheetsync.flows.refresh --tenant <user-id> --spreadsheet-id <id>
"""

import argparse
import json
from datetime import date
from typing import Optional

from prefect import flow, get_run_logger

from sheetsync.config import ConfigurationError, get_settings
from sheetsync.db import StoreError, get_store
from sheetsync.flows.sync_sheet import sync_sheet_flow
from sheetsync.load.budget_history import snapshot_budget_history
from sheetsync.load.metadata import record_last_sync
from sheetsync.protocols import Store
from sheetsync.results import JobResult

PROFILE_TABLE = "user_profiles"
NOT_CONNECTED_MESSAGE = "Connect your sheet first. Set your Google Spreadsheet ID in settings."


def resolve_spreadsheet_id(store: Store, tenant_id: str) -> Optional[str]:
    """Spreadsheet connected to a tenant's profile, if any."""
    rows = store.select(
        PROFILE_TABLE,
        columns="google_spreadsheet_id",
        filters={"id": tenant_id},
        limit=1,
    )
    if not rows:
        return None
    return rows[0].get("google_spreadsheet_id") or None


def list_connected_tenants(store: Store) -> list[dict]:
    """Tenants whose profile has a spreadsheet connected."""
    rows = store.select(PROFILE_TABLE, columns="id,google_spreadsheet_id")
    return [r for r in rows if r.get("google_spreadsheet_id")]


@flow(name="refresh-tenant", log_prints=True)
def refresh_flow(
    tenant_id: Optional[str] = None,
    spreadsheet_id: Optional[str] = None,
    snapshot_date: Optional[str] = None,
    store=None,
    source=None,
) -> dict:
    """
    Refresh one tenant's data from their sheet.

    Args:
        tenant_id: Tenant to refresh (defaults to settings)
        spreadsheet_id: Spreadsheet to read; looked up on the tenant's profile when omitted
        snapshot_date: Budget history date (YYYY-MM-DD), defaults to today
        store: Pre-authenticated Store; a service-role store is built when omitted
        source: SpreadsheetSource override, mainly for tests

    Returns:
        Dict with success, per-table results and the fatal error if any
    """
    logger = get_run_logger()
    tenant_id = tenant_id or get_settings().tenant_id
    snapshot_date = snapshot_date or date.today().isoformat()

    if not tenant_id:
        return JobResult.fatal("tenant_id is required").to_dict()

    try:
        if store is None:
            store = get_store()
        spreadsheet_id = spreadsheet_id or resolve_spreadsheet_id(store, tenant_id)
    except (ConfigurationError, StoreError) as e:
        logger.error(f"❌ Could not resolve tenant {tenant_id}: {e}")
        return JobResult.fatal(str(e)).to_dict()

    if not spreadsheet_id:
        logger.warning(f"⚠️  Tenant {tenant_id} has no spreadsheet connected")
        return JobResult.fatal(NOT_CONNECTED_MESSAGE).to_dict()

    result = sync_sheet_flow(
        spreadsheet_id=spreadsheet_id,
        tenant_id=tenant_id,
        store=store,
        source=source,
    )

    if result.error is None:
        try:
            snapshot_budget_history(store, tenant_id, snapshot_date)
        except StoreError as e:
            logger.warning(f"⚠️  Budget history snapshot failed: {e}")

    if result.success:
        try:
            record_last_sync(store, tenant_id)
        except StoreError as e:
            logger.warning(f"⚠️  Could not record last sync time: {e}")

    return result.to_dict()


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Refresh one tenant from their Google Sheet")
    parser.add_argument("--tenant", help="Tenant/user id (defaults to TENANT_ID)")
    parser.add_argument("--spreadsheet-id", help="Override the spreadsheet on the tenant profile")
    parser.add_argument("--date", help="Budget snapshot date (YYYY-MM-DD)")
    args = parser.parse_args()

    result = refresh_flow(
        tenant_id=args.tenant,
        spreadsheet_id=args.spreadsheet_id,
        snapshot_date=args.date,
    )
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
