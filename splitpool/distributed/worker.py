"""
Local execution of split groups.

Runs one task per split group on a thread pool. Each task owns its
composite reader; groups are disjoint so tasks share no mutable state.
"""

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

import polars as pl

from splitpool.distributed.input_format import CombinedInputFormat
from splitpool.distributed.splits import SplitGroup


def _record_rows(record: Any) -> int:
    if isinstance(record, pl.DataFrame):
        return len(record)
    return 1


def run_group_task(
    task_id: str,
    group: SplitGroup,
    input_format: CombinedInputFormat,
    on_record: Callable[[str, Any], None] | None = None,
) -> dict[str, Any]:
    """
    Read every record of one group.

    Read failures propagate to the caller; the reader is closed either way.

    Args:
        task_id: Identifier for this task (used in metrics and callbacks)
        group: Split group assigned to this task
        input_format: Format used to create the group's reader
        on_record: Optional callback invoked with (task_id, record)

    Returns:
        Dictionary with task metrics
    """
    records_read = 0
    rows_read = 0
    with input_format.create_reader(group) as reader:
        while reader.advance():
            record = reader.current()
            records_read += 1
            rows_read += _record_rows(record)
            if on_record is not None:
                on_record(task_id, record)
        progress = reader.progress()

    return {
        "task_id": task_id,
        "n_splits": len(group),
        "total_size": group.total_size,
        "records_read": records_read,
        "rows_read": rows_read,
        "progress": progress,
        "status": "completed",
    }


def run_local(
    input_format: CombinedInputFormat,
    max_workers: int | None = None,
    on_record: Callable[[str, Any], None] | None = None,
) -> list[dict[str, Any]]:
    """
    Rebalance the source's splits and read every group concurrently.

    Args:
        input_format: Format providing groups and readers
        max_workers: Thread pool size (defaults to the number of groups)
        on_record: Optional callback invoked with (task_id, record); must be
            thread-safe since tasks run concurrently

    Returns:
        Task metrics, in group order
    """
    groups = input_format.get_groups()
    if not groups:
        return []

    log = input_format.logger
    log.info(f"Launching {len(groups)} tasks")

    results: dict[int, dict[str, Any]] = {}
    with ThreadPoolExecutor(max_workers=max_workers or len(groups)) as executor:
        futures = {
            executor.submit(
                run_group_task, f"task_{i}", group, input_format, on_record
            ): i
            for i, group in enumerate(groups)
        }
        for future in as_completed(futures):
            index = futures[future]
            try:
                results[index] = future.result()
            except Exception as e:
                log.error(f"task_{index} failed: {e}")
                raise

    return [results[i] for i in range(len(groups))]
