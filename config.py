import logging
import os
from pathlib import Path
from typing import Optional

# Configure logger for config module warnings
logger = logging.getLogger(__name__)


def get_int_env(
    name: str,
    default: int,
    min_val: Optional[int] = None,
    max_val: Optional[int] = None,
) -> int:
    """Get an integer from environment variable with error handling and validation.

    Args:
        name: Environment variable name
        default: Default value if env var is missing or invalid
        min_val: Optional minimum value (inclusive)
        max_val: Optional maximum value (inclusive)

    Returns:
        Parsed integer value, or default if parsing fails or value is out of range
    """
    value = os.getenv(name)
    if value is None:
        return default

    try:
        result = int(value)
    except ValueError:
        logger.warning(f"Invalid {name}='{value}', using default {default}")
        return default

    # Range validation (only applied to user-provided values)
    if min_val is not None and result < min_val:
        logger.warning(f"{name}={result} is below minimum {min_val}, using default {default}")
        return default
    if max_val is not None and result > max_val:
        logger.warning(f"{name}={result} is above maximum {max_val}, using default {default}")
        return default

    return result


# Accepted upload extensions; uploads without an extension are stored as .mp4
SUPPORTED_VIDEO_EXTENSIONS = frozenset([".mp4", ".mkv", ".webm", ".mov", ".avi", ".m4v", ".ts"])
DEFAULT_VIDEO_EXTENSION = ".mp4"

# Paths - configurable via environment variables
STORAGE_PATH = Path(os.getenv("HLS_STORAGE_PATH", "."))
UPLOADS_DIR = STORAGE_PATH / os.getenv("HLS_UPLOADS_SUBDIR", "uploads")
HLS_DIR = STORAGE_PATH / os.getenv("HLS_OUTPUT_SUBDIR", "hls")

# Server
HOST = os.getenv("HLS_HOST", "0.0.0.0")
PORT = get_int_env("HLS_PORT", 8080, min_val=1, max_val=65535)
LOG_LEVEL = os.getenv("HLS_LOG_LEVEL", "INFO").upper()

# External encoder
FFMPEG_BINARY = os.getenv("HLS_FFMPEG_BINARY", "ffmpeg")

# Output renditions, encoded in this order and listed in this order in the
# master playlist. Widths assume a 16:9 source.
HLS_VARIANTS = [
    {"name": "360p", "height": 360, "width": 640, "video_bitrate": "800k"},
    {"name": "540p", "height": 540, "width": 960, "video_bitrate": "1800k"},
    {"name": "720p", "height": 720, "width": 1280, "video_bitrate": "3500k"},
    {"name": "1080p", "height": 1080, "width": 1920, "video_bitrate": "6000k"},
]

# HLS settings
HLS_SEGMENT_DURATION = 10
MASTER_PLAYLIST_NAME = "master.m3u8"

# Upload size limits (default 10GB)
MAX_UPLOAD_SIZE = get_int_env("HLS_MAX_UPLOAD_SIZE", 10 * 1024 * 1024 * 1024, min_val=1)
UPLOAD_CHUNK_SIZE = get_int_env("HLS_UPLOAD_CHUNK_SIZE", 1024 * 1024, min_val=1024)  # 1 MB chunks

# Storage health check timeout (seconds)
STORAGE_CHECK_TIMEOUT = get_int_env("HLS_STORAGE_CHECK_TIMEOUT", 2, min_val=1)
