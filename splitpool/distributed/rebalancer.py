"""
Split rebalancing for a fixed-size pool of workers.

Packs an arbitrary number of upstream splits into ``target_count`` groups.
Splits are sorted by size (largest first) and dealt out in rounds of
``target_count``; the sweep direction flips every round ("snake"
assignment), so a group that receives one of the largest splits in a round
receives one of the smallest in the next. This keeps per-group totals
closer together than plain round-robin when split sizes are skewed.
"""

from collections.abc import Sequence
from functools import cmp_to_key
from typing import Any

from loguru import logger as default_logger

from splitpool.distributed.splits import Split, SplitGroup


def sort_by_size(splits: Sequence[Split], logger: Any = None) -> list[Split]:
    """
    Stable sort of splits by size, largest first.

    A comparison that raises (e.g. a split whose size cannot be computed) is
    logged and treated as a tie rather than aborting the sort.
    """
    log = logger or default_logger

    def compare(first: Split, second: Split) -> int:
        try:
            difference = second.size - first.size
        except Exception as e:
            log.warning(f"Exception caught while sorting input splits: {e!r}")
            return 0
        return (difference > 0) - (difference < 0)

    return sorted(splits, key=cmp_to_key(compare))


def _resolve_target(n_splits: int, target_count: int) -> int:
    if target_count < 0:
        raise ValueError(f"target_count must be non-negative, got {target_count}")
    # 0 means "whatever the source produced"
    return target_count or n_splits


def rebalance(
    splits: Sequence[Split], target_count: int, logger: Any = None
) -> list[SplitGroup]:
    """
    Group splits into at most ``target_count`` size-balanced groups.

    Args:
        splits: Natural splits produced by the data source, in source order
        target_count: Number of parallel workers; 0 keeps one group per split
        logger: Optional loguru-compatible logger (defaults to loguru's)

    Returns:
        ``min(len(splits), target_count)`` groups, in group index order.
        When no rebalancing is needed every split becomes its own group in
        source order.
    """
    log = logger or default_logger
    n_splits = len(splits)
    expected = _resolve_target(n_splits, target_count)

    log.debug(f"Expected split count {expected}")
    log.debug(f"Source provided split count {n_splits}")

    if n_splits <= expected:
        if n_splits < expected:
            log.warning(
                f"Requested {expected} groups but only {n_splits} splits are "
                f"available; using {n_splits} groups"
            )
        return [SplitGroup([split]) for split in splits]

    ordered = sort_by_size(splits, logger=log)
    buckets: list[list[Split]] = [[] for _ in range(expected)]
    for position, split in enumerate(ordered):
        round_index, offset = divmod(position, expected)
        if round_index % 2 == 0:
            buckets[offset].append(split)
        else:
            buckets[expected - 1 - offset].append(split)

    groups = [SplitGroup(bucket) for bucket in buckets]
    log.debug(f"Rebalanced {n_splits} splits into {len(groups)} groups")
    return groups


def round_robin(
    splits: Sequence[Split], target_count: int, logger: Any = None
) -> list[SplitGroup]:
    """
    Naive round-robin over the size-sorted splits.

    Used as the baseline when analysing how well ``rebalance`` spreads sizes.
    """
    expected = _resolve_target(len(splits), target_count)
    if len(splits) <= expected:
        return [SplitGroup([split]) for split in splits]

    buckets: list[list[Split]] = [[] for _ in range(expected)]
    for position, split in enumerate(sort_by_size(splits, logger=logger)):
        buckets[position % expected].append(split)
    return [SplitGroup(bucket) for bucket in buckets]


def size_spread(groups: Sequence[SplitGroup]) -> int:
    """Difference between the largest and smallest group total size."""
    if not groups:
        return 0
    totals = [group.total_size for group in groups]
    return max(totals) - min(totals)
