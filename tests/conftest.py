"""
Pytest fixtures for HLS streamer tests.
Provides temporary storage roots, a job store, fake encoders and an API client.

Nothing here runs a real ffmpeg; encoder behaviour is simulated by writing
the files ffmpeg would write.
"""

from pathlib import Path
from typing import Callable, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest
from starlette.testclient import TestClient

from worker.job_store import JobStore
from worker.orchestrator import ConversionRunner
from worker.variants import Variant


@pytest.fixture
def test_storage(tmp_path: Path) -> dict:
    """Create test storage directories."""
    hls_dir = tmp_path / "hls"
    uploads_dir = tmp_path / "uploads"

    hls_dir.mkdir(parents=True, exist_ok=True)
    uploads_dir.mkdir(parents=True, exist_ok=True)

    return {
        "hls": hls_dir,
        "uploads": uploads_dir,
    }


@pytest.fixture
def store(test_storage: dict) -> JobStore:
    """Job store rooted in the temporary storage directories."""
    return JobStore(test_storage["hls"], test_storage["uploads"])


@pytest.fixture
def sample_upload(test_storage: dict) -> Path:
    """A fake source video in the upload area."""
    path = test_storage["uploads"] / "video_1700000000000000000_1.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 1000)
    return path


@pytest.fixture
def test_variants() -> Tuple[Variant, ...]:
    """A small variant ladder for fast orchestration tests."""
    return (
        Variant(name="360p", height=360, width=640, video_bitrate="800k"),
        Variant(name="720p", height=720, width=1280, video_bitrate="3500k"),
        Variant(name="1080p", height=1080, width=1920, video_bitrate="6000k"),
    )


class FakeEncoder:
    """
    Stands in for transcode_variant.

    Writes a variant playlist plus segments the way ffmpeg would, records
    every call, and fails on any variant named in fail_on.
    """

    def __init__(self, fail_on: Optional[List[str]] = None, segment_count: int = 2):
        self.fail_on = set(fail_on or [])
        self.segment_count = segment_count
        self.calls: List[str] = []
        self.before_encode: Optional[Callable[[Path, Variant], None]] = None

    async def __call__(self, input_path: Path, output_dir: Path, variant: Variant):
        self.calls.append(variant.name)
        if self.before_encode is not None:
            self.before_encode(output_dir, variant)

        if variant.name in self.fail_on:
            # Partial output, as a crashed encoder leaves behind
            (output_dir / f"{variant.name}_segment_000.ts").write_bytes(b"\x00" * 10)
            return False, f"FFmpeg transcode {variant.name} exited with code 1"

        lines = ["#EXTM3U", "#EXT-X-VERSION:3", "#EXT-X-TARGETDURATION:10"]
        for i in range(self.segment_count):
            segment = f"{variant.name}_segment_{i:03d}.ts"
            (output_dir / segment).write_bytes(b"\x47" * 188)
            lines.extend(["#EXTINF:10.000000,", segment])
        lines.append("#EXT-X-ENDLIST")
        (output_dir / variant.playlist_name).write_text("\n".join(lines) + "\n")
        return True, None


@pytest.fixture
def fake_encoder() -> FakeEncoder:
    return FakeEncoder()


@pytest.fixture
def make_encoder() -> Callable[..., FakeEncoder]:
    """Factory for encoders with custom failure behaviour."""
    return FakeEncoder


@pytest.fixture
def mock_runner() -> MagicMock:
    """A runner double that records start() calls without converting anything."""
    runner = MagicMock(spec=ConversionRunner)
    runner.active_job_ids.return_value = []

    async def _wait_all():
        return None

    runner.wait_all.side_effect = _wait_all
    return runner


@pytest.fixture
def client(store: JobStore, mock_runner: MagicMock):
    """Create a test client bound to temporary storage and a mock runner."""
    from api.app import create_app

    app = create_app(store=store, runner=mock_runner)
    with TestClient(app) as c:
        yield c
