"""
Frame Models
============

Internal frame representations for the production and playback pipelines.

    - RawFrame: one decoded video frame at target resolution, 4 bytes/pixel
    - RenderedFrame: the colored text produced from a RawFrame

Design Rules:
    - RawFrame does NOT interpret channel order (whatever ffmpeg emitted)
    - RenderedFrame lines never contain a newline
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np


BYTES_PER_PIXEL = 4


def frame_size(width: int, height: int) -> int:
    """Number of bytes in one raw frame."""
    return width * height * BYTES_PER_PIXEL


@dataclass(frozen=True, slots=True)
class RawFrame:
    """
    Raw pixel buffer for one frame.

    Attributes:
        index: Zero-based position of the frame in the source
        width: Frame width in pixels
        height: Frame height in pixels
        data: width * height * 4 bytes, row-major
    """

    index: int
    width: int
    height: int
    data: bytes

    def __post_init__(self) -> None:
        expected = frame_size(self.width, self.height)
        if len(self.data) != expected:
            raise ValueError(
                f"raw frame {self.index} has {len(self.data)} bytes, "
                f"expected {expected}"
            )

    def as_array(self) -> np.ndarray:
        """Read-only (height, width, 4) uint8 view of the pixel data."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(
            self.height, self.width, BYTES_PER_PIXEL
        )

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixel data."""
        return (
            f"RawFrame(index={self.index}, "
            f"size={self.width}x{self.height})"
        )


@dataclass(frozen=True, slots=True)
class RenderedFrame:
    """
    Text-art rendering of one frame.

    Attributes:
        index: Zero-based frame position in temporal order
        lines: One string per pixel row, with embedded color escapes
    """

    index: int
    lines: Tuple[str, ...]

    @property
    def height(self) -> int:
        return len(self.lines)

    @property
    def text(self) -> str:
        """Lines joined the way they are printed, newline-terminated."""
        return "".join(f"{line}\n" for line in self.lines)

    def __repr__(self) -> str:
        return f"RenderedFrame(index={self.index}, lines={len(self.lines)})"
