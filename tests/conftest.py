from dataclasses import dataclass

import pyarrow as pa
import pyarrow.parquet as pq
import pytest


@dataclass(frozen=True)
class _Split:
    name: str
    size: int


@pytest.fixture
def skewed_splits():
    """Ten splits with sizes 100, 90, ..., 10 in shuffled source order."""
    sizes = [30, 100, 10, 70, 50, 90, 20, 60, 80, 40]
    return [_Split(name=f"s{i}", size=size) for i, size in enumerate(sizes)]


@pytest.fixture
def parquet_dir(tmp_path):
    """Directory with two Parquet files: 10 rows in row groups of 4, and 3 rows."""
    first = pa.table({"id": list(range(10)), "value": [float(i) for i in range(10)]})
    second = pa.table({"id": [10, 11, 12], "value": [10.0, 11.0, 12.0]})
    pq.write_table(first, tmp_path / "part-0.parquet", row_group_size=4)
    pq.write_table(second, tmp_path / "part-1.parquet", row_group_size=4)
    return tmp_path
