try:
    from importlib.metadata import version

    __version__ = version("splitpool")
except ImportError:
    __version__ = "unknown"

from splitpool.distributed import (
    CombinedInputFormat,
    CompositeReader,
    SplitGroup,
    rebalance,
)

__all__ = [
    "CombinedInputFormat",
    "CompositeReader",
    "SplitGroup",
    "rebalance",
]
