"""
Combined input format.

Sits between a split source and the execution layer: lists the source's
natural splits, rebalances them to the configured number of workers, and
hands each worker task a composite reader over its group.
"""

from typing import Any

from loguru import logger as default_logger

from splitpool.distributed.data_source import SplitSource, create_split_source
from splitpool.distributed.readers import CompositeReader, SplitReader
from splitpool.distributed.rebalancer import rebalance
from splitpool.distributed.splits import Split, SplitGroup


class CombinedInputFormat:
    """
    Produces one split group per worker and reads groups as single streams.

    Args:
        source: Split source providing the natural splits and their readers
        num_workers: Number of parallel tasks; 0 keeps the source's split count
        batch_size: Rows per record batch for the underlying readers
        logger: Optional loguru-compatible logger
    """

    def __init__(
        self,
        source: SplitSource,
        num_workers: int = 0,
        batch_size: int = 65536,
        logger: Any = None,
    ):
        if num_workers < 0:
            raise ValueError(f"num_workers must be non-negative, got {num_workers}")
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.source = source
        self.num_workers = num_workers
        self.batch_size = batch_size
        self.logger = logger or default_logger

    @classmethod
    def from_config(
        cls, config: dict[str, Any], logger: Any = None
    ) -> "CombinedInputFormat":
        """
        Build from a config dict.

        Example:
            {"type": "parquet", "path": "/data/events", "num_workers": 8}
        """
        return cls(
            source=create_split_source(config),
            num_workers=int(config.get("num_workers", 0)),
            batch_size=int(config.get("batch_size", 65536)),
            logger=logger,
        )

    def get_groups(self) -> list[SplitGroup]:
        """List and rebalance the source's splits. Called once per job."""
        splits = self.source.list_splits()
        return rebalance(splits, self.num_workers, logger=self.logger)

    def create_reader(self, group: SplitGroup) -> CompositeReader:
        """Create the reader for one worker's group."""
        self.logger.debug(f"Creating a composite reader for {len(group)} splits")
        return CompositeReader(group, self.create_split_reader, logger=self.logger)

    def create_split_reader(self, split: Split) -> SplitReader:
        """Create a reader for a single split, straight from the source."""
        return self.source.open_reader(split, batch_size=self.batch_size)
