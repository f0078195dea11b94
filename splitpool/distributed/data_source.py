"""
Split sources for the rebalancer.

A split source lists the natural splits of a dataset and opens a reader
over any one of them. Each split is a unit that can be read independently:
- Lance: fragments
- Parquet: row groups (across one file or a directory of files)
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import lance
import polars as pl
import pyarrow.parquet as pq

from splitpool.distributed.readers import IteratorSplitReader, SplitReader
from splitpool.distributed.splits import FragmentSplit, RowGroupSplit, Split


class SplitSource(ABC):
    """
    Abstract interface for listing and reading dataset splits.

    Readers of distinct splits must not share mutable state; the composite
    reader opens them one after another and worker tasks run concurrently.
    """

    @abstractmethod
    def list_splits(self) -> list[Split]:
        """Return the natural splits of the dataset, in source order."""
        pass

    @abstractmethod
    def open_reader(self, split: Split, batch_size: int = 65536) -> SplitReader:
        """
        Create a reader over one split.

        Args:
            split: A split previously returned by ``list_splits()``
            batch_size: Maximum rows per record batch

        Returns:
            A ``SplitReader`` whose records are Polars DataFrames
        """
        pass


class LanceSplitSource(SplitSource):
    """
    Split source for Lance datasets.

    Uses fragments as splits, sized by their row count.
    """

    def __init__(self, lance_path: str):
        """
        Initialize Lance split source.

        Args:
            lance_path: Path to Lance dataset
        """
        self.lance_path = lance_path
        self._dataset: lance.LanceDataset | None = None
        self._fragments: list[Any] | None = None

    @property
    def dataset(self):
        """Lazy-load Lance dataset."""
        if self._dataset is None:
            self._dataset = lance.dataset(self.lance_path)
        return self._dataset

    @property
    def fragments(self) -> list[Any]:
        if self._fragments is None:
            self._fragments = list(self.dataset.get_fragments())
        return self._fragments

    def list_splits(self) -> list[Split]:
        return [
            FragmentSplit(index=i, size=fragment.count_rows(), path=self.lance_path)
            for i, fragment in enumerate(self.fragments)
        ]

    def open_reader(self, split: Split, batch_size: int = 65536) -> SplitReader:
        if not isinstance(split, FragmentSplit):
            raise TypeError(f"Expected FragmentSplit, got {type(split).__name__}")
        if split.index >= len(self.fragments):
            raise IndexError(
                f"Fragment index {split.index} out of range "
                f"(0 to {len(self.fragments) - 1})"
            )
        expected = -(-split.size // batch_size) if split.size else None
        return IteratorSplitReader(
            self._read_fragment(split.index, batch_size), expected_records=expected
        )

    def _read_fragment(self, index: int, batch_size: int) -> Iterator[pl.DataFrame]:
        fragment = self.fragments[index]
        for batch in fragment.to_batches(batch_size=batch_size):
            yield pl.from_arrow(batch)


class ParquetSplitSource(SplitSource):
    """
    Split source for Parquet files.

    Every row group of every file is a split, sized by its uncompressed
    byte size from the file footer. ``path`` may be a single file or a
    directory, in which case its ``*.parquet`` files are used in sorted order.
    """

    def __init__(self, path: str):
        self.path = path

    def files(self) -> list[Path]:
        root = Path(self.path)
        if root.is_dir():
            return sorted(root.glob("*.parquet"))
        if not root.exists():
            raise FileNotFoundError(f"Parquet path not found: {self.path}")
        return [root]

    def list_splits(self) -> list[Split]:
        splits: list[Split] = []
        for file_path in self.files():
            metadata = pq.read_metadata(file_path)
            for i in range(metadata.num_row_groups):
                row_group = metadata.row_group(i)
                splits.append(
                    RowGroupSplit(
                        path=str(file_path),
                        row_group=i,
                        size=row_group.total_byte_size,
                        num_rows=row_group.num_rows,
                    )
                )
        return splits

    def open_reader(self, split: Split, batch_size: int = 65536) -> SplitReader:
        if not isinstance(split, RowGroupSplit):
            raise TypeError(f"Expected RowGroupSplit, got {type(split).__name__}")
        expected = -(-split.num_rows // batch_size) if split.num_rows else None
        return IteratorSplitReader(
            self._read_row_group(split, batch_size), expected_records=expected
        )

    def _read_row_group(
        self, split: RowGroupSplit, batch_size: int
    ) -> Iterator[pl.DataFrame]:
        with pq.ParquetFile(split.path) as parquet_file:
            for batch in parquet_file.iter_batches(
                batch_size=batch_size, row_groups=[split.row_group]
            ):
                yield pl.from_arrow(batch)


def create_split_source(config: dict[str, Any]) -> SplitSource:
    """
    Build a split source from a config dict.

    Args:
        config: ``{"type": "lance" | "parquet", "path": ...}``
    """
    source_type = config.get("type")
    if source_type == "lance":
        return LanceSplitSource(config["path"])
    if source_type == "parquet":
        return ParquetSplitSource(config["path"])
    raise ValueError(f"Unknown data source type: {source_type}")
