"""
Conversion orchestration: one source file -> one multi-variant HLS job.

The job's output directory is the only state. A run wipes it, rebuilds it
variant by variant, and finishes by writing master.m3u8. Any failure removes
the directory again so the job reads as absent and can simply be retried.
"""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from worker.job_store import JobStore
from worker.playlist import write_master_playlist
from worker.transcoder import transcode_variant
from worker.variants import DEFAULT_VARIANTS, Variant

logger = logging.getLogger(__name__)

# (input_path, output_dir, variant) -> (success, error_message)
Encoder = Callable[[Path, Path, Variant], Awaitable[Tuple[bool, Optional[str]]]]


async def convert_to_hls(
    input_path: Path,
    job_id: str,
    store: JobStore,
    variants: Sequence[Variant] = DEFAULT_VARIANTS,
    encoder: Optional[Encoder] = None,
) -> bool:
    """
    Encode every variant of input_path into the job's output directory and
    write the master playlist.

    Variants are encoded strictly in order, one at a time, and the first
    failure aborts the rest. The directory is deleted on every failure path,
    including unexpected exceptions and cancellation, so no manifest is ever
    left pointing at missing variants.

    Args:
        input_path: Source video in the upload area (never modified)
        job_id: Job ID; output goes to store.output_dir(job_id)
        store: Job store that owns the output root
        variants: Ordered renditions to produce
        encoder: Coroutine that encodes one variant (defaults to ffmpeg)

    Returns:
        True if the job is ready, False if it failed and was cleaned up.
    """
    if encoder is None:
        encoder = transcode_variant

    output_dir = store.output_dir(job_id)
    success = False

    try:
        # Reset: a stale directory from an earlier crashed run must not survive
        try:
            if output_dir.exists():
                shutil.rmtree(output_dir)
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to prepare output directory {output_dir}: {e}")
            return False

        for variant in variants:
            logger.info(f"Encoding {variant.name} variant for {job_id}...")
            ok, error = await encoder(input_path, output_dir, variant)
            if not ok:
                logger.error(f"FFmpeg failed for {job_id} ({variant.name}): {error}")
                return False

        try:
            master_path = write_master_playlist(output_dir, variants)
        except OSError as e:
            logger.error(f"Failed to write master playlist for {job_id}: {e}")
            return False

        success = True
        logger.info(f"Multi-quality HLS ready for {job_id}: {master_path}")
        return True
    finally:
        if not success:
            shutil.rmtree(output_dir, ignore_errors=True)


class ConversionRunner:
    """
    Launches conversions as detached asyncio tasks.

    The caller never awaits a conversion; its only visible effect is the
    job directory. The runner keeps a reference to each in-flight task (the
    event loop holds only weak ones) and logs anything a task raises.
    """

    def __init__(
        self,
        store: JobStore,
        variants: Sequence[Variant] = DEFAULT_VARIANTS,
        encoder: Optional[Encoder] = None,
    ):
        self.store = store
        self.variants = tuple(variants)
        self.encoder = encoder
        self._tasks: Dict[asyncio.Task, str] = {}

    def start(self, input_path: Path, job_id: str) -> asyncio.Task:
        """Schedule a conversion on the running loop and return immediately."""
        task = asyncio.create_task(
            convert_to_hls(input_path, job_id, self.store, self.variants, self.encoder),
            name=f"convert-{job_id}",
        )
        self._tasks[task] = job_id
        task.add_done_callback(self._on_task_done)
        logger.info(f"Started conversion for {job_id} from {input_path}")
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        job_id = self._tasks.pop(task, None)
        if task.cancelled():
            logger.warning(f"Conversion for {job_id} was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Unexpected error in conversion for {job_id}: {exc!r}", exc_info=exc)

    def active_job_ids(self) -> List[str]:
        """IDs with a conversion task still running in this process."""
        return sorted(self._tasks.values())

    async def wait_all(self) -> None:
        """Wait for every in-flight conversion to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
