"""
Batch Fetch
===========
Reads every configured tab from the spreadsheet source and turns each into
a FetchOutcome: transformed rows, no data, or a fetch error.

Tabs are fetched with one combined request. If that request fails, each
tab is fetched on its own in parallel so one bad range cannot block the
others.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional

from prefect import get_run_logger, task
from prefect.cache_policies import NONE

from sheetsync.config import get_settings
from sheetsync.protocols import SpreadsheetSource
from sheetsync.quality import SkipReport, add_tab
from sheetsync.registry import SyncSpec
from sheetsync.results import FetchOutcome, FetchStatus
from sheetsync.transform.parsing import is_blank_record

Grid = list[list[Any]]


def build_outcome(spec: SyncSpec, grid: Optional[Grid]) -> FetchOutcome:
    """
    Transform a fetched grid into a FetchOutcome.

    The first row is the header. A grid with no data rows, or whose rows
    all transform to None or blank records, is NO_DATA.
    """
    if not grid or len(grid) < 2:
        return FetchOutcome.no_data(spec.sheet_name)

    data_rows = grid[1:]
    records = []
    for row in data_rows:
        record = spec.transform(row)
        if record is None or is_blank_record(record):
            continue
        records.append(record)

    if not records:
        return FetchOutcome.no_data(spec.sheet_name, raw_rows=len(data_rows))
    return FetchOutcome.with_rows(spec.sheet_name, records, raw_rows=len(data_rows))


def fetch_individually(
    source: SpreadsheetSource,
    specs: list[SyncSpec],
    workers: int,
) -> tuple[dict[str, Grid], dict[str, str]]:
    """
    Fetch each range on its own, in parallel.

    Returns:
        Tuple of (grids by sheet name, error messages by sheet name)
    """
    grids: dict[str, Grid] = {}
    errors: dict[str, str] = {}

    def fetch_one(spec: SyncSpec) -> tuple[str, Optional[Grid], Optional[str]]:
        try:
            return spec.sheet_name, source.fetch_range(spec.range_name), None
        except Exception as e:
            return spec.sheet_name, None, str(e) or type(e).__name__

    with ThreadPoolExecutor(max_workers=max(1, min(workers, len(specs) or 1))) as pool:
        for sheet, grid, error in pool.map(fetch_one, specs):
            if error is not None:
                errors[sheet] = error
            else:
                grids[sheet] = grid or []

    return grids, errors


@task(name="fetch-sheet-tabs", cache_policy=NONE)
def fetch_tables(
    source: SpreadsheetSource,
    specs: list[SyncSpec],
    workers: Optional[int] = None,
) -> dict[str, FetchOutcome]:
    """
    Fetch and transform every tab named by `specs`.

    Args:
        source: Spreadsheet source
        specs: Tabs to read
        workers: Parallelism of the per-range fallback (defaults to settings)

    Returns:
        Dict of sheet name → FetchOutcome, in `specs` order

    Raises:
        Exception: whatever the source raises when listing tabs; without the
            list nothing can be synced
    """
    logger = get_run_logger()
    workers = workers or get_settings().fetch_workers

    available = set(source.list_ranges())
    logger.info(f"📋 Spreadsheet has {len(available)} tabs")

    present = [s for s in specs if s.sheet_name in available]
    outcomes: dict[str, FetchOutcome] = {}

    for spec in specs:
        if spec.sheet_name not in available:
            logger.warning(f"⚠️  Tab '{spec.sheet_name}' not found in spreadsheet - skipping")
            outcomes[spec.sheet_name] = FetchOutcome.no_data(spec.sheet_name, tab_present=False)

    grids: dict[str, Grid] = {}
    errors: dict[str, str] = {}

    if present:
        try:
            by_range = source.fetch_values([s.range_name for s in present])
            grids = {s.sheet_name: by_range.get(s.range_name) or [] for s in present}
            logger.info(f"📥 Fetched {len(present)} tabs in one combined request")
        except Exception as e:
            logger.warning(f"⚠️  Combined fetch failed ({e}); fetching {len(present)} tabs individually")
            grids, errors = fetch_individually(source, present, workers)
            logger.info(
                f"📥 Per-range fallback: {len(grids)} fetched, {len(errors)} failed"
            )

    report = SkipReport()
    for spec in present:
        if spec.sheet_name in errors:
            logger.error(f"❌ {spec.sheet_name}: {errors[spec.sheet_name]}")
            outcomes[spec.sheet_name] = FetchOutcome.failed(spec.sheet_name, errors[spec.sheet_name])
            continue
        try:
            outcome = build_outcome(spec, grids.get(spec.sheet_name))
        except Exception as e:
            logger.exception(f"❌ {spec.sheet_name}: transform failed")
            outcome = FetchOutcome.failed(spec.sheet_name, f"Transform failed: {e}")
        outcomes[spec.sheet_name] = outcome
        if outcome.status is not FetchStatus.ERROR:
            add_tab(report, spec.sheet_name, len(outcome.rows), outcome.raw_rows)

    for check in report.flagged:
        logger.warning(
            f"⚠️  {check['sheet']}: kept {check['kept']:,}/{check['read']:,} rows "
            f"({check['percentage']}, {check['status']})"
        )
    logger.info(f"🔄 Transformed {report.total_kept:,} of {report.total_read:,} data rows")

    return {spec.sheet_name: outcomes[spec.sheet_name] for spec in specs}
