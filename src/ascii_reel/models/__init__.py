"""
Data Models
===========

Typed data passed between the production and playback stages.

Models:
    Video:
        - VideoDescriptor: Source width, height and frame rate
        - CharCell: Character cell aspect used for resolution math

    Frames:
        - RawFrame: Fixed-size 4-byte-per-pixel buffer
        - RenderedFrame: Colored text lines for one frame

    Stream:
        - StreamHeader: Frame rate and dimensions heading a frame stream
"""

from ascii_reel.models.video import CharCell, VideoDescriptor
from ascii_reel.models.frame import BYTES_PER_PIXEL, RawFrame, RenderedFrame, frame_size
from ascii_reel.models.header import StreamHeader

__all__ = [
    # Video
    "VideoDescriptor",
    "CharCell",
    # Frames
    "BYTES_PER_PIXEL",
    "RawFrame",
    "RenderedFrame",
    "frame_size",
    # Stream
    "StreamHeader",
]
