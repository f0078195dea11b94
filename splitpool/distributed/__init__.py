"""
Split rebalancing and group reading.

Packs a dataset's natural splits into a fixed number of size-balanced
groups and reads each group as one sequential record stream.
"""

from splitpool.distributed.data_source import (
    LanceSplitSource,
    ParquetSplitSource,
    SplitSource,
    create_split_source,
)
from splitpool.distributed.input_format import CombinedInputFormat
from splitpool.distributed.readers import (
    CompositeReader,
    IteratorSplitReader,
    ReaderState,
    SplitReader,
)
from splitpool.distributed.rebalancer import rebalance, round_robin, size_spread
from splitpool.distributed.splits import FragmentSplit, RowGroupSplit, Split, SplitGroup
from splitpool.distributed.worker import run_group_task, run_local

__all__ = [
    "Split",
    "FragmentSplit",
    "RowGroupSplit",
    "SplitGroup",
    "rebalance",
    "round_robin",
    "size_spread",
    "SplitReader",
    "IteratorSplitReader",
    "CompositeReader",
    "ReaderState",
    "SplitSource",
    "LanceSplitSource",
    "ParquetSplitSource",
    "create_split_source",
    "CombinedInputFormat",
    "run_group_task",
    "run_local",
]
