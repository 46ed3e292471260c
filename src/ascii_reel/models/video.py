"""
Video Models
============

Source video metadata and character-cell geometry.

These are computed once at pipeline start and never mutated.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class VideoDescriptor:
    """
    Metadata of the source video as reported by the media probe.

    Attributes:
        width: Source width in pixels
        height: Source height in pixels
        frame_rate: Frames per second (num/den from the probe)
    """

    width: int
    height: int
    frame_rate: float

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError("video dimensions must be positive")
        if self.frame_rate <= 0:
            raise ValueError("frame_rate must be positive")


@dataclass(frozen=True, slots=True)
class CharCell:
    """
    Aspect of one character cell on the display.

    A terminal glyph is usually about twice as tall as it is wide; the
    resolver uses this to keep the rendered art from looking stretched.
    """

    width: int = 1
    height: int = 1

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("char cell dimensions must be positive")
