"""
Write Strategies
================
One Prefect task per write strategy. Each receives the transformed records
of one tab and reconciles its table in the store, returning a SyncOutcome.

Within a table, writes are strictly sequential: deletes finish before any
insert starts, and chunk N is written before chunk N+1. Store rejections
are caught here and reported on the table's outcome; they never escape to
other tables.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from prefect import get_run_logger, task
from prefect.cache_policies import NONE

from sheetsync.chunking import chunked
from sheetsync.config import get_settings
from sheetsync.db import StoreError
from sheetsync.protocols import Store
from sheetsync.registry import TENANT_COLUMN, SyncSpec, WriteStrategy
from sheetsync.results import SyncOutcome

# =============================================================================
# Helpers
# =============================================================================


def tenant_filter(spec: SyncSpec, tenant_id: Optional[str]) -> dict:
    """Equality filter scoping a table to one tenant ({} for global tables)."""
    if spec.is_global:
        return {}
    if not tenant_id:
        raise ValueError(f"{spec.table} is tenant-scoped but no tenant id was given")
    return {TENANT_COLUMN: tenant_id}


def with_tenant(records: list[dict], spec: SyncSpec, tenant_id: Optional[str]) -> list[dict]:
    """Copy records, stamping the tenant id on every row of a non-global table."""
    return [{**record, **tenant_filter(spec, tenant_id)} for record in records]


def dedupe_on(records: list[dict], columns: list[str]) -> list[dict]:
    """Collapse records sharing the same key columns, keeping the last one."""
    by_key: dict[tuple, dict] = {}
    for record in records:
        by_key[tuple(record.get(c) for c in columns)] = record
    return list(by_key.values())


def normalize_name(name) -> str:
    return str(name or "").strip().lower()


def merge_by_name(records: list[dict], name_column: str, amount_columns: tuple[str, ...]) -> list[dict]:
    """
    Merge records that share a normalized name, summing their amounts.

    Missing amounts count as zero; a merged total of zero is stored as None.
    The first spelling of a name wins.
    """
    merged: dict[str, dict] = {}
    for record in records:
        name = str(record.get(name_column) or "").strip()
        if not name:
            continue
        key = normalize_name(name)
        existing = merged.get(key)
        if existing is None:
            merged[key] = {**record, name_column: name}
            continue
        for col in amount_columns:
            total = (existing.get(col) or 0) + (record.get(col) or 0)
            existing[col] = total or None
    return list(merged.values())


def write_chunks(
    write: Callable[[list[dict]], None],
    records: list[dict],
    batch_size: int,
    table: str,
    logger,
) -> Optional[str]:
    """
    Write records in chunks, carrying on past failed chunks.

    Returns:
        The last chunk error message, or None if every chunk succeeded
    """
    last_error = None
    chunks = chunked(records, batch_size)
    for i, chunk in enumerate(chunks, 1):
        try:
            write(chunk)
        except StoreError as e:
            last_error = str(e)
            logger.error(f"❌ {table}: chunk {i}/{len(chunks)} ({len(chunk):,} rows) failed: {e}")
    return last_error


def finish(spec: SyncSpec, rows: int, error: Optional[str], logger) -> SyncOutcome:
    if error:
        logger.error(f"❌ {spec.sheet_name} → {spec.table}: {error}")
        return SyncOutcome(sheet=spec.sheet_name, success=False, rows_processed=rows, error=error)
    logger.info(f"✅ {spec.sheet_name} → {spec.table}: {rows:,} rows")
    return SyncOutcome(sheet=spec.sheet_name, success=True, rows_processed=rows)


def delete_for_tenant(store: Store, spec: SyncSpec, tenant_id: str) -> None:
    store.delete(spec.table, filters=tenant_filter(spec, tenant_id))


# =============================================================================
# Upsert strategies
# =============================================================================


def _upsert(store: Store, spec: SyncSpec, records: list[dict], tenant_id: Optional[str], logger) -> Optional[str]:
    settings = get_settings()
    rows = dedupe_on(with_tenant(records, spec, tenant_id), spec.conflict_columns)
    if len(rows) < len(records):
        logger.warning(
            f"⚠️  {spec.sheet_name}: collapsed {len(records) - len(rows):,} rows "
            f"sharing a key ({spec.on_conflict})"
        )
    return write_chunks(
        lambda chunk: store.upsert(spec.table, chunk, on_conflict=spec.on_conflict or ""),
        rows,
        settings.batch_size,
        spec.table,
        logger,
    )


@task(name="upsert-by-key", task_run_name="upsert-{spec.table}", cache_policy=NONE)
def upsert_by_key(
    store: Store, spec: SyncSpec, records: list[dict], tenant_id: Optional[str]
) -> SyncOutcome:
    """
    Idempotent upsert on the table's natural key. No delete step.

    When the source lists the same key twice the later row wins.
    """
    logger = get_run_logger()
    error = _upsert(store, spec, records, tenant_id, logger)
    return finish(spec, len(records), error, logger)


@task(name="stale-sibling-upsert", task_run_name="upsert-{spec.table}", cache_policy=NONE)
def stale_sibling_upsert(
    store: Store, spec: SyncSpec, records: list[dict], tenant_id: Optional[str]
) -> SyncOutcome:
    """
    Upsert after evicting rows left behind by a changed attribute.

    For every (account, category) pair in the batch, stored rows for that
    pair whose institution differs from the incoming one are deleted, then
    the batch is upserted on the full key. Failed evictions are logged and
    the upsert still runs.
    """
    logger = get_run_logger()

    siblings: dict[tuple, object] = {}
    for record in records:
        key = tuple(record.get(c) for c in spec.sibling_key)
        siblings.setdefault(key, record.get(spec.sibling_attr))

    evicted = 0
    for key, attr in siblings.items():
        filters = {**tenant_filter(spec, tenant_id), **dict(zip(spec.sibling_key, key))}
        try:
            store.delete(spec.table, filters=filters, not_equal={spec.sibling_attr: attr})
            evicted += 1
        except StoreError as e:
            logger.warning(f"⚠️  Could not clear stale {spec.table} rows for {key}: {e}")
    logger.info(f"🧹 {spec.table}: cleanup ran for {evicted}/{len(siblings)} {spec.sibling_key} pairs")

    error = _upsert(store, spec, records, tenant_id, logger)
    return finish(spec, len(records), error, logger)


# =============================================================================
# Replace strategies
# =============================================================================


@task(name="replace", task_run_name="replace-{spec.table}", cache_policy=NONE)
def replace(
    store: Store, spec: SyncSpec, records: list[dict], tenant_id: Optional[str]
) -> SyncOutcome:
    """Delete the tenant's rows, then insert the new set."""
    logger = get_run_logger()
    settings = get_settings()
    rows = with_tenant(records, spec, tenant_id)

    try:
        delete_for_tenant(store, spec, tenant_id)
    except StoreError as e:
        return finish(spec, len(records), str(e), logger)

    error = write_chunks(
        lambda chunk: store.insert(spec.table, chunk),
        rows,
        settings.batch_size,
        spec.table,
        logger,
    )
    return finish(spec, len(records), error, logger)


@task(name="replace-preserving-flags", task_run_name="replace-{spec.table}", cache_policy=NONE)
def replace_preserving_flags(
    store: Store, spec: SyncSpec, records: list[dict], tenant_id: Optional[str]
) -> SyncOutcome:
    """
    Replace the tenant's rows while keeping a user-set flag per name.

    1. Read name → flag for the tenant's existing rows
    2. Delete the tenant's rows
    3. Merge incoming duplicates by normalized name, summing amounts
    4. Re-apply the flag (False for new names) and stamp updated_at
    5. Insert
    """
    logger = get_run_logger()
    settings = get_settings()
    name_col, flag_col = spec.name_column or "name", spec.flag_column or "needs_review"

    try:
        existing = store.select(
            spec.table,
            columns=f"{name_col},{flag_col}",
            filters=tenant_filter(spec, tenant_id),
        )
        flags = {normalize_name(r.get(name_col)): bool(r.get(flag_col)) for r in existing}
        delete_for_tenant(store, spec, tenant_id)
    except StoreError as e:
        return finish(spec, len(records), str(e), logger)

    merged = merge_by_name(records, name_col, spec.amount_columns)
    if len(merged) < len(records):
        logger.info(f"   {spec.sheet_name}: merged {len(records)} rows into {len(merged)} names")

    updated_at = datetime.now(timezone.utc).isoformat()
    rows = with_tenant(
        [
            {**r, flag_col: flags.get(normalize_name(r[name_col]), False), "updated_at": updated_at}
            for r in merged
        ],
        spec,
        tenant_id,
    )
    kept = sum(1 for r in rows if r[flag_col])
    if kept:
        logger.info(f"   {spec.sheet_name}: preserved {flag_col} on {kept} rows")

    error = write_chunks(
        lambda chunk: store.insert(spec.table, chunk),
        rows,
        settings.batch_size,
        spec.table,
        logger,
    )
    return finish(spec, len(records), error, logger)


@task(name="paginated-replace", task_run_name="replace-{spec.table}", cache_policy=NONE)
def paginated_replace(
    store: Store, spec: SyncSpec, records: list[dict], tenant_id: Optional[str]
) -> SyncOutcome:
    """
    Replace a high-volume table in bounded steps.

    Existing rows are deleted a page of ids at a time until a short page
    comes back; new rows are inserted in chunks, and a failed chunk does
    not stop the ones after it.
    """
    logger = get_run_logger()
    settings = get_settings()
    scope = tenant_filter(spec, tenant_id)
    rows = with_tenant(records, spec, tenant_id)

    deleted = 0
    previous_ids = None
    try:
        while True:
            page = store.select(spec.table, columns="id", filters=scope, limit=settings.page_size)
            if not page:
                break
            ids = [r["id"] for r in page]
            if ids == previous_ids:
                raise StoreError(f"delete on {spec.table} removed no rows; check delete permissions")
            previous_ids = ids
            for id_chunk in chunked(ids, settings.delete_batch_size):
                store.delete(spec.table, filters=scope, any_of={"id": id_chunk})
                deleted += len(id_chunk)
            if len(page) < settings.page_size:
                break
    except StoreError as e:
        logger.error(f"❌ {spec.table}: delete stopped after {deleted:,} rows")
        return finish(spec, len(records), str(e), logger)

    if deleted:
        logger.info(f"🗑️  {spec.table}: deleted {deleted:,} existing rows")

    error = write_chunks(
        lambda chunk: store.insert(spec.table, chunk),
        rows,
        settings.batch_size,
        spec.table,
        logger,
    )
    return finish(spec, len(records), error, logger)


@task(name="clear-table", task_run_name="clear-{spec.table}", cache_policy=NONE)
def clear_table(store: Store, spec: SyncSpec, tenant_id: Optional[str]) -> SyncOutcome:
    """
    Delete the tenant's rows for a tab that is present but has no data.

    An empty tab means "nothing now", so a replace table is emptied to match.
    """
    logger = get_run_logger()
    try:
        delete_for_tenant(store, spec, tenant_id)
    except StoreError as e:
        return finish(spec, 0, str(e), logger)
    logger.info(f"🗑️  Cleared {spec.table} (tab '{spec.sheet_name}' is empty)")
    return SyncOutcome(sheet=spec.sheet_name, success=True, rows_processed=0)


EXECUTORS = {
    WriteStrategy.UPSERT: upsert_by_key,
    WriteStrategy.STALE_SIBLING_UPSERT: stale_sibling_upsert,
    WriteStrategy.REPLACE: replace,
    WriteStrategy.REPLACE_PRESERVING_FLAGS: replace_preserving_flags,
    WriteStrategy.PAGINATED_REPLACE: paginated_replace,
}


def executor_for(spec: SyncSpec):
    """The write task registered for a spec's strategy."""
    return EXECUTORS[spec.strategy]
