#!/usr/bin/env python3
"""
Sync All Tenants
================
Refreshes every tenant with a connected spreadsheet, one tenant at a time.

Tenants are never synced concurrently, so two replace syncs cannot race on
the same tables. Progress is checkpointed per day: rerunning after an
interruption only processes the tenants still pending.

Usage:
    python scripts/sync_all.py
    python scripts/sync_all.py --dry-run
    python scripts/sync_all.py --reset --stop-on-error
"""

import argparse
import json
import sys
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

CHECKPOINT_FILE = Path(__file__).parent / ".sync_all_checkpoint.json"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class Checkpoint:
    """Tracks which tenants were refreshed on a given day."""

    day: str = ""
    completed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    def is_done(self, tenant_id: str) -> bool:
        return tenant_id in self.completed

    def mark_complete(self, tenant_id: str) -> None:
        if tenant_id not in self.completed:
            self.completed.append(tenant_id)
        if tenant_id in self.failed:
            self.failed.remove(tenant_id)

    def mark_failed(self, tenant_id: str) -> None:
        if tenant_id not in self.failed:
            self.failed.append(tenant_id)

    def to_dict(self) -> dict:
        return {"day": self.day, "completed": self.completed, "failed": self.failed}

    @classmethod
    def from_dict(cls, data: dict) -> "Checkpoint":
        return cls(
            day=data.get("day", ""),
            completed=data.get("completed", []),
            failed=data.get("failed", []),
        )


@dataclass
class TenantResult:
    """Result of refreshing a single tenant."""

    tenant_id: str
    success: bool
    tables: int = 0
    failed_tables: list[str] = field(default_factory=list)
    error: Optional[str] = None


# =============================================================================
# Pure Functions (easy to test)
# =============================================================================


def get_pending_tenants(tenant_ids: list[str], checkpoint: Checkpoint) -> list[str]:
    """Filter to tenants not yet completed."""
    return [t for t in tenant_ids if not checkpoint.is_done(t)]


def summarize(tenant_id: str, result: dict) -> TenantResult:
    """Condense a refresh_flow result dict into a TenantResult."""
    tables = result.get("results") or []
    return TenantResult(
        tenant_id=tenant_id,
        success=bool(result.get("success")),
        tables=len(tables),
        failed_tables=[t["sheet"] for t in tables if not t.get("success")],
        error=result.get("error"),
    )


# =============================================================================
# IO Functions (checkpoint persistence)
# =============================================================================


def load_checkpoint(path: Path = CHECKPOINT_FILE, today: Optional[str] = None) -> Checkpoint:
    """Load today's checkpoint; a checkpoint from another day starts fresh."""
    today = today or date.today().isoformat()
    if path.exists():
        checkpoint = Checkpoint.from_dict(json.loads(path.read_text()))
        if checkpoint.day == today:
            return checkpoint
    return Checkpoint(day=today)


def save_checkpoint(checkpoint: Checkpoint, path: Path = CHECKPOINT_FILE) -> None:
    """Save checkpoint to disk."""
    path.write_text(json.dumps(checkpoint.to_dict(), indent=2))


def reset_checkpoint(path: Path = CHECKPOINT_FILE) -> None:
    """Delete checkpoint file."""
    if path.exists():
        path.unlink()


# =============================================================================
# Runner
# =============================================================================


def process_tenant(tenant_id: str, spreadsheet_id: str) -> TenantResult:
    """Run the refresh flow for one tenant."""
    from sheetsync.flows.refresh import refresh_flow

    try:
        result = refresh_flow(tenant_id=tenant_id, spreadsheet_id=spreadsheet_id)
    except Exception as e:
        return TenantResult(tenant_id=tenant_id, success=False, error=str(e))
    return summarize(tenant_id, result)


def run_all(
    dry_run: bool = False,
    stop_on_error: bool = False,
) -> list[TenantResult]:
    """
    Refresh every connected tenant sequentially.

    Args:
        dry_run: Print plan without executing
        stop_on_error: Stop on first failed tenant

    Returns:
        List of results for each tenant processed
    """
    from sheetsync.db import get_store
    from sheetsync.flows.refresh import list_connected_tenants

    tenants = {t["id"]: t["google_spreadsheet_id"] for t in list_connected_tenants(get_store())}
    checkpoint = load_checkpoint()
    pending = get_pending_tenants(list(tenants), checkpoint)

    print(f"\n{'=' * 60}")
    print(f"SYNC ALL TENANTS: {checkpoint.day}")
    print(f"{'=' * 60}")
    print(f"Connected tenants: {len(tenants)}")
    print(f"Already completed: {len(checkpoint.completed)}")
    print(f"Pending:           {len(pending)}")
    print()

    if not pending:
        print("✅ All tenants already refreshed today!")
        return []

    if dry_run:
        print("🔍 DRY RUN - would refresh:")
        for tenant_id in pending:
            print(f"   {tenant_id}: {tenants[tenant_id]}")
        return []

    results = []

    for i, tenant_id in enumerate(pending, 1):
        print(f"\n[{i}/{len(pending)}] {tenant_id}")

        result = process_tenant(tenant_id, tenants[tenant_id])
        results.append(result)

        if result.success:
            checkpoint.mark_complete(tenant_id)
            save_checkpoint(checkpoint)
            print(f"    ✅ {result.tables} tables synced")
        else:
            checkpoint.mark_failed(tenant_id)
            save_checkpoint(checkpoint)
            detail = result.error or ", ".join(result.failed_tables)
            print(f"    ❌ Failed: {detail}")

            if stop_on_error:
                print("\nStopping on error. Run again to resume.")
                break

    succeeded = sum(1 for r in results if r.success)
    failed = sum(1 for r in results if not r.success)

    print(f"\n{'=' * 60}")
    print(f"COMPLETE: {succeeded} succeeded, {failed} failed")
    print(f"{'=' * 60}")

    return results


# =============================================================================
# CLI
# =============================================================================


def main():
    parser = argparse.ArgumentParser(description="Refresh every tenant with a connected sheet")

    parser.add_argument("--dry-run", action="store_true", help="Show plan without running")
    parser.add_argument("--stop-on-error", action="store_true", help="Stop on first failure")
    parser.add_argument("--reset", action="store_true", help="Reset today's checkpoint")

    args = parser.parse_args()

    if args.reset:
        reset_checkpoint()
        print("✓ Checkpoint reset")

    results = run_all(dry_run=args.dry_run, stop_on_error=args.stop_on_error)
    sys.exit(1 if any(not r.success for r in results) else 0)


if __name__ == "__main__":
    main()
