"""
Unit tests for split rebalancing.

Tests focus on coverage, group counts, snake ordering and balance.
"""

from dataclasses import dataclass
from unittest.mock import MagicMock

import pytest

from splitpool.distributed.rebalancer import (
    rebalance,
    round_robin,
    size_spread,
    sort_by_size,
)
from splitpool.distributed.splits import SplitGroup


@dataclass(frozen=True)
class SizedSplit:
    """Minimal split for tests."""

    name: str
    size: int


def make_splits(sizes):
    return [SizedSplit(name=f"s{i}", size=size) for i, size in enumerate(sizes)]


class BrokenSplit:
    """Split whose size cannot be computed."""

    name = "broken"

    @property
    def size(self) -> int:
        raise OSError("size unavailable")


def flatten(groups):
    return [split for group in groups for split in group]


class TestRebalance:
    """Test cases for rebalance()."""

    def test_empty_input(self):
        """Test that no splits produce no groups."""
        assert rebalance([], target_count=5, logger=MagicMock()) == []

    def test_empty_input_zero_target(self):
        assert rebalance([], target_count=0) == []

    def test_pass_through_when_fewer_splits(self):
        """Test each split becomes a singleton group in source order."""
        splits = make_splits([5, 50, 1])
        groups = rebalance(splits, target_count=5, logger=MagicMock())

        assert len(groups) == 3
        assert [group.splits for group in groups] == [(s,) for s in splits]

    def test_pass_through_equal_count(self):
        splits = make_splits([5, 50, 1])
        groups = rebalance(splits, target_count=3)

        assert [group[0] for group in groups] == splits

    def test_zero_target_means_one_group_per_split(self, skewed_splits):
        """Test target_count=0 keeps the natural split count."""
        groups = rebalance(skewed_splits, target_count=0)

        assert len(groups) == len(skewed_splits)
        assert [group[0] for group in groups] == skewed_splits

    @pytest.mark.parametrize("target", [1, 2, 3, 4, 7, 9, 10, 15])
    def test_coverage_and_group_count(self, skewed_splits, target):
        """Test every split lands in exactly one group."""
        groups = rebalance(skewed_splits, target_count=target)

        assert len(groups) == min(len(skewed_splits), target)
        assigned = flatten(groups)
        assert len(assigned) == len(skewed_splits)
        assert set(assigned) == set(skewed_splits)
        assert all(len(group) >= 1 for group in groups)

    def test_snake_assignment_order(self, skewed_splits):
        """Test direction alternates each round."""
        groups = rebalance(skewed_splits, target_count=3)

        sizes = [[split.size for split in group] for group in groups]
        assert sizes == [
            [100, 50, 40],
            [90, 60, 30],
            [80, 70, 20, 10],
        ]

    def test_single_group(self, skewed_splits):
        """Test one worker gets every split, largest first."""
        groups = rebalance(skewed_splits, target_count=1)

        assert len(groups) == 1
        assert [s.size for s in groups[0]] == list(range(100, 0, -10))

    def test_balance_beats_round_robin(self, skewed_splits):
        """Test snake assignment spreads sizes at least as well as round-robin."""
        snake = rebalance(skewed_splits, target_count=3)
        naive = round_robin(skewed_splits, target_count=3)

        assert [g.total_size for g in snake] == [190, 180, 180]
        assert [g.total_size for g in naive] == [220, 180, 150]
        assert size_spread(snake) == 10
        assert size_spread(snake) <= size_spread(naive)

    def test_deterministic(self, skewed_splits):
        """Test repeated calls produce identical groups."""
        first = rebalance(skewed_splits, target_count=4)
        second = rebalance(skewed_splits, target_count=4)

        assert first == second

    def test_ties_keep_source_order(self):
        """Test the size sort is stable."""
        splits = [SizedSplit(name=name, size=10) for name in "abcd"]
        groups = rebalance(splits, target_count=2)

        assert [[s.name for s in g] for g in groups] == [["a", "d"], ["b", "c"]]

    def test_negative_target_rejected(self, skewed_splits):
        with pytest.raises(ValueError, match="non-negative"):
            rebalance(skewed_splits, target_count=-1)

    def test_warns_when_target_not_achievable(self):
        """Test a warning is logged when there are fewer splits than workers."""
        log = MagicMock()
        rebalance(make_splits([1, 2]), target_count=4, logger=log)

        log.warning.assert_called_once()
        assert "only 2 splits" in log.warning.call_args[0][0]

    def test_no_warning_when_rebalancing(self, skewed_splits):
        log = MagicMock()
        rebalance(skewed_splits, target_count=3, logger=log)

        log.warning.assert_not_called()
        assert log.debug.called

    def test_comparison_failure_is_tolerated(self):
        """Test a split with an unreadable size is kept and a warning logged."""
        log = MagicMock()
        broken = BrokenSplit()
        splits = make_splits([50, 10, 30]) + [broken]

        groups = rebalance(splits, target_count=2, logger=log)

        assert len(groups) == 2
        assigned = flatten(groups)
        assert len(assigned) == 4
        assert broken in assigned
        assert log.warning.called
        assert "sorting input splits" in log.warning.call_args[0][0]


class TestSortBySize:
    """Test cases for sort_by_size()."""

    def test_descending(self):
        splits = make_splits([3, 9, 1, 5])
        assert [s.size for s in sort_by_size(splits)] == [9, 5, 3, 1]

    def test_does_not_mutate_input(self):
        splits = make_splits([3, 9, 1])
        sort_by_size(splits)
        assert [s.size for s in splits] == [3, 9, 1]


class TestSizeSpread:
    """Test cases for size_spread()."""

    def test_empty(self):
        assert size_spread([]) == 0

    def test_spread(self):
        groups = [
            SplitGroup(make_splits([10, 5])),
            SplitGroup(make_splits([3])),
        ]
        assert size_spread(groups) == 12
