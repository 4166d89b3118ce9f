"""
FFmpeg execution for HLS variant encoding.

Each variant is one blocking ffmpeg run. ffmpeg's own stdout/stderr are
inherited from this process so operators see encoder output in the server
log. The exit code is the only result consulted.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import config
from worker.variants import Variant

logger = logging.getLogger(__name__)

# Fixed encoder settings shared by every variant
VIDEO_CODEC = "libx264"
VIDEO_PRESET = "veryfast"
VIDEO_BUFSIZE = "2M"
GOP_SIZE = 30  # keyframe every 30 frames
AUDIO_CODEC = "aac"
AUDIO_BITRATE = "128k"
HLS_PLAYLIST_TYPE = "vod"


def build_transcode_command(input_path: Path, output_dir: Path, variant: Variant) -> List[str]:
    """
    Build the ffmpeg argument list for one variant.

    Output structure: {output_dir}/stream_{name}.m3u8 + {name}_segment_NNN.ts
    """
    return [
        config.FFMPEG_BINARY,
        "-i",
        str(input_path),
        "-vf",
        f"scale={variant.width}:{variant.height}",  # force exact resolution
        "-c:v",
        VIDEO_CODEC,
        "-preset",
        VIDEO_PRESET,
        "-b:v",
        variant.video_bitrate,
        "-maxrate",
        variant.video_bitrate,
        "-bufsize",
        VIDEO_BUFSIZE,
        "-g",
        str(GOP_SIZE),
        "-c:a",
        AUDIO_CODEC,
        "-b:a",
        AUDIO_BITRATE,
        "-hls_time",
        str(config.HLS_SEGMENT_DURATION),
        "-hls_playlist_type",
        HLS_PLAYLIST_TYPE,
        "-hls_segment_filename",
        str(output_dir / variant.segment_pattern),
        str(output_dir / variant.playlist_name),
    ]


async def cleanup_ffmpeg_process(process: asyncio.subprocess.Process, context: str = "FFmpeg") -> None:
    """
    Kill an FFmpeg subprocess that is still running, tolerating the race
    where it exits between the returncode check and kill().
    """
    if process.returncode is None:
        try:
            process.kill()
        except (ProcessLookupError, OSError):
            # Process already terminated
            pass
        try:
            await asyncio.wait_for(process.wait(), timeout=5)
        except asyncio.TimeoutError:
            logger.warning(f"{context} process did not terminate after kill")


async def transcode_variant(
    input_path: Path,
    output_dir: Path,
    variant: Variant,
) -> Tuple[bool, Optional[str]]:
    """
    Encode a single variant into output_dir and wait for ffmpeg to exit.

    No timeout is applied; a hung encoder blocks only the calling job.

    Returns:
        Tuple[bool, Optional[str]]: (success, error_message) where error_message
        is None on success or describes the launch failure / exit code.
    """
    cmd = build_transcode_command(input_path, output_dir, variant)
    context = f"FFmpeg transcode {variant.name}"

    try:
        process = await asyncio.create_subprocess_exec(*cmd, stdout=None, stderr=None)
    except OSError as e:
        error_msg = f"{context} could not be started: {e}"
        logger.error(error_msg)
        return False, error_msg

    try:
        await process.wait()
    finally:
        # Only does anything if wait() was interrupted (task cancelled)
        await cleanup_ffmpeg_process(process, context)

    if process.returncode != 0:
        error_msg = f"{context} exited with code {process.returncode}"
        logger.error(error_msg)
        return False, error_msg

    return True, None
