"""
Job identifier generation.

IDs combine a nanosecond timestamp with a per-process counter. The timestamp
alone can repeat under rapid concurrent uploads; the counter alone would
repeat across restarts. Together they are unique for the life of the process
and safe to use as a file or directory name.
"""

import itertools
import threading
import time


class IdGenerator:
    """Thread-safe source of unique job IDs."""

    def __init__(self, prefix: str = "video"):
        self.prefix = prefix
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def new_id(self) -> str:
        with self._lock:
            n = next(self._counter)
        return f"{self.prefix}_{time.time_ns()}_{n}"
