"""
Split and group types shared by the rebalancer and the composite reader.

A split is whatever unit of work a data source naturally produces (a Lance
fragment, a Parquet row group, ...). The only attribute the core relies on
is ``size``, a non-negative estimate of the work a split represents.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from loguru import logger as default_logger


@runtime_checkable
class Split(Protocol):
    """Protocol for sized units of upstream work."""

    @property
    def size(self) -> int:
        """Non-negative work estimate (rows or bytes)."""
        ...


@dataclass(frozen=True)
class FragmentSplit:
    """A Lance fragment addressed by its position in the dataset."""

    index: int
    size: int
    locations: tuple[str, ...] = ()
    path: str | None = None


@dataclass(frozen=True)
class RowGroupSplit:
    """A single row group of a Parquet file."""

    path: str
    row_group: int
    size: int
    num_rows: int = 0
    locations: tuple[str, ...] = ()


def split_size(split: Split, logger: Any = None) -> int:
    """
    Size of a split, or 0 when it cannot be computed.

    Sizes only steer balancing and progress reporting, so a split whose size
    fails is still read; the failure is logged as a warning.
    """
    try:
        return split.size
    except Exception as e:
        log = logger or default_logger
        log.warning(f"Could not get size of split {split!r}: {e!r}")
        return 0


class SplitGroup:
    """
    Ordered, immutable bundle of splits handed to one worker task.

    ``total_size`` is informational only; nothing downstream makes decisions
    on it.
    """

    __slots__ = ("_splits",)

    def __init__(self, splits: Sequence[Split]):
        if not splits:
            raise ValueError("A split group needs at least one split")
        self._splits: tuple[Split, ...] = tuple(splits)

    @property
    def splits(self) -> tuple[Split, ...]:
        return self._splits

    @property
    def total_size(self) -> int:
        return sum(split_size(split) for split in self._splits)

    @property
    def locations(self) -> tuple[str, ...]:
        """Hosts of all member splits, first-seen order, without duplicates."""
        seen: dict[str, None] = {}
        for split in self._splits:
            for host in getattr(split, "locations", ()):
                seen.setdefault(host, None)
        return tuple(seen)

    def __len__(self) -> int:
        return len(self._splits)

    def __iter__(self) -> Iterator[Split]:
        return iter(self._splits)

    def __getitem__(self, index: int) -> Split:
        return self._splits[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SplitGroup):
            return NotImplemented
        return self._splits == other._splits

    def __hash__(self) -> int:
        return hash(self._splits)

    def __repr__(self) -> str:
        return f"SplitGroup(n_splits={len(self)}, total_size={self.total_size})"
