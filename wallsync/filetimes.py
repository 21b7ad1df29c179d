"""
File creation time lookup.

macOS, the BSDs and recent Windows builds expose a true birth time as
st_birthtime. Linux does not, so there the modification time stands in.
The implementation is picked once, at import time.
"""

import os
from datetime import datetime, timezone


def _birth_time(stats: os.stat_result) -> float:
    return stats.st_birthtime


def _modification_time(stats: os.stat_result) -> float:
    return stats.st_mtime


HAS_BIRTH_TIME = hasattr(os.stat_result, "st_birthtime")

_creation_timestamp = _birth_time if HAS_BIRTH_TIME else _modification_time


def to_datetime(timestamp: float) -> datetime:
    """POSIX timestamp to naive UTC datetime."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).replace(tzinfo=None)


def get_creation_time(stats: os.stat_result) -> datetime:
    """
    Creation time of a file, falling back to its modification time.

    Args:
        stats: Result of os.stat() / Path.stat().
    """
    return to_datetime(_creation_timestamp(stats))


def get_modification_time(stats: os.stat_result) -> datetime:
    return to_datetime(stats.st_mtime)
