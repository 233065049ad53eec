#!/usr/bin/env python3
"""
Sheet Sync Flow
===============
Pulls every configured tab from a Google spreadsheet and reconciles it into
Supabase for one tenant.

Phases:
1. Pre-flight: identifiers and credentials (fatal if missing)
2. Fetch: one combined read of all present tabs, per-tab fallback
3. Write: every tab with rows goes to its write strategy, concurrently
4. Summarize: one result per configured tab

Usage:
    python -m sheetsync.flows.sync_sheet --spreadsheet-id <id> --tenant <user-id>
"""

import argparse
import json
from dataclasses import dataclass, field
from typing import Optional

from prefect import flow, get_run_logger
from prefect.events import emit_event
from prefect.task_runners import ThreadPoolTaskRunner

from sheetsync.config import ConfigurationError, get_settings
from sheetsync.db import get_store
from sheetsync.extract.fetch import fetch_tables
from sheetsync.extract.sheets_client import GoogleSheetsSource, SheetsError
from sheetsync.load.strategies import clear_table, executor_for
from sheetsync.registry import SYNC_SPECS, SyncSpec
from sheetsync.results import FetchOutcome, FetchStatus, JobResult, SyncOutcome

MAX_TABLE_WORKERS = 8

CREDENTIALS_MESSAGE = "Google Sheets authentication failed. Check service account credentials."
ACCESS_MESSAGE = "Could not access Google Sheet. Check spreadsheet ID and permissions."
PERMISSION_MESSAGE = "Permission denied. Ensure service account has access to the spreadsheet."


@dataclass
class Partition:
    """Fetch outcomes grouped by what the orchestrator does with them."""

    with_rows: list[tuple[SyncSpec, FetchOutcome]] = field(default_factory=list)
    empty_present: list[SyncSpec] = field(default_factory=list)
    empty_missing: list[SyncSpec] = field(default_factory=list)
    errored: list[tuple[SyncSpec, FetchOutcome]] = field(default_factory=list)


def partition_outcomes(specs: list[SyncSpec], fetched: dict[str, FetchOutcome]) -> Partition:
    """Split fetch outcomes into rows / empty tab / missing tab / error."""
    partition = Partition()
    for spec in specs:
        outcome = fetched[spec.sheet_name]
        if outcome.status is FetchStatus.ERROR:
            partition.errored.append((spec, outcome))
        elif outcome.status is FetchStatus.ROWS:
            partition.with_rows.append((spec, outcome))
        elif outcome.tab_present:
            partition.empty_present.append(spec)
        else:
            partition.empty_missing.append(spec)
    return partition


def classify_fatal_error(exc: Exception) -> str:
    """Human readable cause for an error that stopped the whole job."""
    message = str(exc) or type(exc).__name__
    lowered = message.lower()

    if (isinstance(exc, SheetsError) and exc.status == 403) or "permission" in lowered:
        return PERMISSION_MESSAGE
    if "credential" in lowered or "google_service_account" in lowered:
        return CREDENTIALS_MESSAGE
    if isinstance(exc, ConfigurationError):
        return message
    if isinstance(exc, SheetsError) or "spreadsheet" in lowered:
        return ACCESS_MESSAGE
    return message


def emit_sync_event(result: JobResult, tenant_id: Optional[str]) -> None:
    """Emit a Prefect event so Automations can alert on failed tables."""
    emit_event(
        event="sheetsync.sync.complete" if result.success else "sheetsync.sync.failure",
        resource={"prefect.resource.id": "sheetsync.sync-google-sheet"},
        payload={
            "tenant_id": tenant_id,
            "error": result.error,
            "failed_tables": [r.sheet for r in result.failed],
            "results": [r.to_dict() for r in result.results],
        },
    )


@flow(
    name="sync-google-sheet",
    log_prints=True,
    task_runner=ThreadPoolTaskRunner(max_workers=MAX_TABLE_WORKERS),
)
def sync_sheet_flow(
    spreadsheet_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
    store=None,
    source=None,
) -> JobResult:
    """
    Sync every configured tab into the store for one tenant.

    Callers must not run two syncs for the same tenant at once; replace
    strategies on the same table would race.

    Args:
        spreadsheet_id: Spreadsheet to read (defaults to settings)
        tenant_id: Owning tenant (defaults to settings)
        store: Pre-authenticated Store; a service-role store is built when omitted
        source: SpreadsheetSource; built from the service account when omitted

    Returns:
        JobResult with one SyncOutcome per configured tab
    """
    logger = get_run_logger()
    settings = get_settings()
    specs = list(SYNC_SPECS)

    spreadsheet_id = spreadsheet_id or settings.google_spreadsheet_id
    tenant_id = tenant_id or settings.tenant_id

    logger.info("=" * 60)
    logger.info("GOOGLE SHEET SYNC")
    logger.info("=" * 60)
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Tenant: {tenant_id or '-'}")
    logger.info(f"Tabs configured: {len(specs)}")
    logger.info("=" * 60)

    # ==================== PHASE 1: PRE-FLIGHT + FETCH ====================
    logger.info("\n📥 PHASE 1: FETCH")
    logger.info("-" * 40)

    try:
        if not spreadsheet_id:
            raise ConfigurationError("spreadsheet_id is required")
        if not tenant_id:
            raise ConfigurationError("tenant_id is required")
        if source is None:
            source = GoogleSheetsSource.from_settings(spreadsheet_id)
        if store is None:
            store = get_store()
        fetched = fetch_tables(source, specs)
    except Exception as e:
        logger.error(f"❌ Sync aborted before writing anything: {e}")
        result = JobResult.fatal(classify_fatal_error(e))
        emit_sync_event(result, tenant_id)
        return result

    partition = partition_outcomes(specs, fetched)
    logger.info(
        f"📊 With rows: {len(partition.with_rows)} | Empty: {len(partition.empty_present)} | "
        f"Missing: {len(partition.empty_missing)} | Errors: {len(partition.errored)}"
    )

    # ==================== PHASE 2: WRITE ====================
    logger.info("\n📤 PHASE 2: WRITE")
    logger.info("-" * 40)

    futures = {}
    for spec, outcome in partition.with_rows:
        futures[spec.sheet_name] = executor_for(spec).submit(store, spec, outcome.rows, tenant_id)

    outcomes: dict[str, SyncOutcome] = {}
    for spec in partition.empty_present:
        if spec.replaces and not spec.is_global:
            futures[spec.sheet_name] = clear_table.submit(store, spec, tenant_id)
        else:
            outcomes[spec.sheet_name] = SyncOutcome(sheet=spec.sheet_name, success=True)

    for spec in partition.empty_missing:
        outcomes[spec.sheet_name] = SyncOutcome(sheet=spec.sheet_name, success=True)

    for spec, outcome in partition.errored:
        outcomes[spec.sheet_name] = SyncOutcome(
            sheet=spec.sheet_name, success=False, error=outcome.error or "Fetch failed"
        )

    for sheet, future in futures.items():
        try:
            outcomes[sheet] = future.result()
        except Exception as e:
            logger.error(f"❌ {sheet}: {e}")
            outcomes[sheet] = SyncOutcome(sheet=sheet, success=False, error=str(e) or type(e).__name__)

    result = JobResult.from_outcomes([outcomes[spec.sheet_name] for spec in specs])

    # ==================== SUMMARY ====================
    logger.info("\n" + "=" * 60)
    logger.info("SYNC COMPLETE" if result.success else "SYNC FINISHED WITH ERRORS")
    logger.info("=" * 60)

    for r in result.results:
        icon = "✅" if r.success else "❌"
        detail = f" - {r.error}" if r.error else ""
        logger.info(f"   {icon} {r.sheet}: {r.rows_processed:,} rows{detail}")

    total = sum(r.rows_processed for r in result.results)
    logger.info(f"📊 Total rows processed: {total:,}")
    logger.info(f"❌ Failed tables: {len(result.failed)}/{len(result.results)}")

    emit_sync_event(result, tenant_id)
    return result


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Sync a Google Sheet into Supabase")
    parser.add_argument("--spreadsheet-id", help="Spreadsheet ID (defaults to GOOGLE_SPREADSHEET_ID)")
    parser.add_argument("--tenant", help="Tenant/user id (defaults to TENANT_ID)")
    args = parser.parse_args()

    result = sync_sheet_flow(spreadsheet_id=args.spreadsheet_id, tenant_id=args.tenant)
    print(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    main()
