"""
Master playlist generation.
"""

from pathlib import Path
from typing import Sequence

from config import MASTER_PLAYLIST_NAME
from worker.variants import Variant


def build_master_playlist(variants: Sequence[Variant]) -> str:
    """Build the master HLS playlist for a set of variant streams.

    Variants are listed in the order given (no bandwidth sorting), each as an
    EXT-X-STREAM-INF line followed by the variant's playlist file name.
    Pure function: output depends only on the variant list.
    """
    master_content = "#EXTM3U\n#EXT-X-VERSION:3\n"

    for variant in variants:
        master_content += (
            f"#EXT-X-STREAM-INF:BANDWIDTH={variant.bandwidth},"
            f"RESOLUTION={variant.resolution},"
            f'NAME="{variant.name}"\n'
        )
        master_content += f"{variant.playlist_name}\n"

    return master_content


def write_master_playlist(output_dir: Path, variants: Sequence[Variant]) -> Path:
    """Write master.m3u8 into output_dir. OSError propagates to the caller."""
    master_path = output_dir / MASTER_PLAYLIST_NAME
    master_path.write_text(build_master_playlist(variants))
    return master_path
