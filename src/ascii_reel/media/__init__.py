"""
Media Module
============

Everything that talks to the external media tools.

    - MediaProbe: ffprobe front-end (dimensions, frame rate)
    - resolve_target_dimensions: output size from source size and char aspect
    - FrameSource: ffmpeg rawvideo pipe with frame-granular reads

Example:
    from ascii_reel.media import MediaProbe, FrameSource, resolve_target_dimensions

    descriptor = MediaProbe().describe("clip.mp4")
    width, height = resolve_target_dimensions(
        descriptor.width, descriptor.height, target_width=80
    )
    with FrameSource("clip.mp4", width, height) as source:
        for raw in source:
            ...
"""

from ascii_reel.media.probe import (
    CommandRunner,
    MediaProbe,
    ProbeResult,
    SubprocessRunner,
    parse_dimensions,
    parse_frame_rate,
)
from ascii_reel.media.resolution import (
    parse_char_dims,
    resolve_target_dimensions,
    validate_target_request,
)
from ascii_reel.media.source import FrameSource


__all__ = [
    "CommandRunner",
    "MediaProbe",
    "ProbeResult",
    "SubprocessRunner",
    "parse_dimensions",
    "parse_frame_rate",
    "parse_char_dims",
    "resolve_target_dimensions",
    "validate_target_request",
    "FrameSource",
]
