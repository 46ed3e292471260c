"""
Render Module
=============

Pixel-to-text rendering.

The renderer is a pluggable black box. The pipeline consumes ONLY its
output contract (exactly `height` lines per frame), never its internals.

Components:
    - FrameRenderer: Protocol for renderers
    - ColorAsciiRenderer: 24-bit colored ASCII, one character per pixel
"""

from ascii_reel.render.renderer import (
    DEEP_RAMP,
    SHALLOW_RAMP,
    ColorAsciiRenderer,
    FrameRenderer,
)

__all__ = [
    "DEEP_RAMP",
    "SHALLOW_RAMP",
    "ColorAsciiRenderer",
    "FrameRenderer",
]
