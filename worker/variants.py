"""
Output rendition descriptors for HLS transcoding.
"""

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from config import HLS_VARIANTS


@dataclass(frozen=True)
class Variant:
    """One fixed-quality rendition of the source video."""

    name: str
    height: int
    width: int
    video_bitrate: str  # ffmpeg kilobit notation, e.g. "800k"

    @property
    def bandwidth(self) -> int:
        """Video bitrate in bits per second ("800k" -> 800000)."""
        return int(self.video_bitrate.lower().replace("k", "")) * 1000

    @property
    def resolution(self) -> str:
        return f"{self.width}x{self.height}"

    @property
    def playlist_name(self) -> str:
        return f"stream_{self.name}.m3u8"

    @property
    def segment_pattern(self) -> str:
        return f"{self.name}_segment_%03d.ts"


def load_variants(presets: Iterable[dict]) -> Tuple[Variant, ...]:
    """Build Variant objects from preset dicts, preserving order."""
    variants: List[Variant] = []
    for preset in presets:
        variants.append(
            Variant(
                name=preset["name"],
                height=int(preset["height"]),
                width=int(preset["width"]),
                video_bitrate=preset["video_bitrate"],
            )
        )
    return tuple(variants)


DEFAULT_VARIANTS = load_variants(HLS_VARIANTS)
