"""
Centralized enums for status values used throughout the application.
Using str-based enums so they serialize directly in JSON responses.
"""

from enum import Enum


class JobStatus(str, Enum):
    """Status of a conversion job, derived from its output directory.

    There is no failed status: a failed job has its directory removed and
    reads as ABSENT again.
    """

    ABSENT = "absent"
    PROCESSING = "processing"
    READY = "ready"
