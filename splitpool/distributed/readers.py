"""
Record readers for single splits and for split groups.

A ``SplitReader`` follows an advance/current/close contract. The
``CompositeReader`` chains the readers of every split in a group so that a
worker task sees one continuous record stream.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from enum import Enum
from typing import Any

from loguru import logger as default_logger

from splitpool.distributed.splits import Split, SplitGroup, split_size

_UNSET = object()


class SplitReader(ABC):
    """Reader over the records of exactly one split."""

    @abstractmethod
    def advance(self) -> bool:
        """Move to the next record. Returns False once the split is exhausted."""
        pass

    @abstractmethod
    def current(self) -> Any:
        """Return the record the last successful ``advance()`` moved to."""
        pass

    def progress(self) -> float:
        """Fraction of the split consumed, between 0.0 and 1.0."""
        return 0.0

    @abstractmethod
    def close(self) -> None:
        """Release any resources held by the reader."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class IteratorSplitReader(SplitReader):
    """
    Adapts an iterator of records to the ``SplitReader`` contract.

    Data sources yield records from generators (e.g. polars DataFrame
    batches); this wrapper turns them into advance/current/close readers.
    When ``expected_records`` is known, ``progress()`` reports the fraction
    of it consumed.
    """

    def __init__(self, records: Iterator[Any], expected_records: int | None = None):
        self._records = records
        self._current: Any = _UNSET
        self._exhausted = False
        self._closed = False
        self.expected_records = expected_records
        self.records_read = 0

    def advance(self) -> bool:
        if self._closed:
            raise RuntimeError("Reader is closed")
        if self._exhausted:
            return False
        try:
            self._current = next(self._records)
        except StopIteration:
            self._exhausted = True
            self._current = _UNSET
            return False
        self.records_read += 1
        return True

    def current(self) -> Any:
        if self._current is _UNSET:
            raise RuntimeError("No current record; call advance() first")
        return self._current

    def progress(self) -> float:
        if self._exhausted:
            return 1.0
        if not self.expected_records:
            return 0.0
        return min(self.records_read / self.expected_records, 1.0)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._current = _UNSET
        # Generators release their file handles on close()
        close = getattr(self._records, "close", None)
        if close is not None:
            close()


class ReaderState(Enum):
    NOT_STARTED = "not_started"
    READING = "reading"
    EXHAUSTED = "exhausted"
    CLOSED = "closed"


class CompositeReader(SplitReader):
    """
    Presents the splits of one group as a single sequential record stream.

    Underlying readers are opened lazily, one at a time, in group order. A
    reader is closed as soon as it reports exhaustion, before the next one
    is opened. Errors raised by an underlying reader propagate unchanged
    after that reader has been closed.

    Args:
        group: The split group assigned to this task
        open_reader: Factory returning a ``SplitReader`` for one split
        logger: Optional loguru-compatible logger
    """

    def __init__(
        self,
        group: SplitGroup,
        open_reader: Callable[[Split], SplitReader],
        logger: Any = None,
    ):
        self.group = group
        self._open_reader = open_reader
        self._log = logger or default_logger
        self._reader: SplitReader | None = None
        self._split_index = -1
        self._state = ReaderState.NOT_STARTED
        self._current: Any = _UNSET

        # Size of all splits before index i, filled on first progress()
        self._size_before: list[int] | None = None

    @property
    def state(self) -> ReaderState:
        return self._state

    @property
    def split_index(self) -> int:
        """Index of the split currently being read (-1 before the first)."""
        return self._split_index

    def advance(self) -> bool:
        if self._state is ReaderState.CLOSED:
            raise RuntimeError("CompositeReader is closed")
        if self._state is ReaderState.EXHAUSTED:
            return False

        try:
            while True:
                if self._reader is None:
                    if self._split_index + 1 >= len(self.group):
                        self._state = ReaderState.EXHAUSTED
                        self._current = _UNSET
                        return False
                    self._split_index += 1
                    self._state = ReaderState.READING
                    split = self.group[self._split_index]
                    self._log.debug(
                        f"Opening reader for split {self._split_index + 1}/"
                        f"{len(self.group)}: {split!r}"
                    )
                    self._reader = self._open_reader(split)

                if self._reader.advance():
                    self._current = self._reader.current()
                    return True

                self._release_reader()
        except Exception:
            self._release_reader()
            raise

    def current(self) -> Any:
        if self._current is _UNSET:
            raise RuntimeError("No current record; call advance() first")
        return self._current

    def progress(self) -> float:
        if self._state is ReaderState.EXHAUSTED:
            return 1.0
        if self._split_index < 0:
            return 0.0

        if self._size_before is None:
            self._size_before = [0]
            for split in self.group:
                size = split_size(split, logger=self._log)
                self._size_before.append(self._size_before[-1] + size)

        # No open reader mid-group means the current split failed
        in_split = self._reader.progress() if self._reader is not None else 0.0
        total_size = self._size_before[-1]
        if total_size > 0:
            index = self._split_index
            size = self._size_before[index + 1] - self._size_before[index]
            done = self._size_before[index] + size * in_split
            return min(done / total_size, 1.0)
        return min((self._split_index + in_split) / len(self.group), 1.0)

    def close(self) -> None:
        if self._state is ReaderState.CLOSED:
            return
        self._release_reader()
        self._current = _UNSET
        self._state = ReaderState.CLOSED

    def __iter__(self) -> Iterator[Any]:
        try:
            while self.advance():
                yield self.current()
        finally:
            self.close()

    def _release_reader(self) -> None:
        reader, self._reader = self._reader, None
        if reader is not None:
            reader.close()
