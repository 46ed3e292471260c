"""
Frame Renderer
==============

Pixel buffer to colored text.

The pipeline only depends on the FrameRenderer protocol: one RawFrame in,
one RenderedFrame with exactly frame.height lines out, deterministic and
free of side effects.

ColorAsciiRenderer is the stock implementation:
    1. Convert the 4-byte pixels to RGB and to luminance (OpenCV)
    2. Map luminance onto a character ramp, dark to bright
    3. Color each character with a 24-bit ANSI foreground escape,
       emitting a new escape only when the color changes
    4. Reset attributes at the end of every line
"""

import logging
from typing import Dict, List, Protocol

import cv2
import numpy as np

from ascii_reel.errors import InputValidationError
from ascii_reel.models.frame import RawFrame, RenderedFrame


logger = logging.getLogger(__name__)


# Dark to bright
DEEP_RAMP = " .'`^\",:;Il!i><~+_-?][}{1)(|\\/tfjrxnuvczXYUJCLQ0OZmwqpdbkhao*#MW&8%B@$"
SHALLOW_RAMP = " .:-=+*#%@"

RESET = "\x1b[0m"

_COLOR_CONVERSIONS: Dict[str, tuple] = {
    "bgra": (cv2.COLOR_BGRA2RGB, cv2.COLOR_BGRA2GRAY),
    "rgba": (cv2.COLOR_RGBA2RGB, cv2.COLOR_RGBA2GRAY),
}


class FrameRenderer(Protocol):
    """
    Protocol for pixel-to-text renderers.

    Implementations must return exactly frame.height lines, none of
    which may contain a newline.
    """

    def render(self, frame: RawFrame) -> RenderedFrame:
        ...


class ColorAsciiRenderer:
    """
    Colored ASCII renderer, one character per pixel.

    Attributes:
        ramp: Characters ordered from darkest to brightest
        pixel_format: Channel order of the raw frames ("bgra" or "rgba")

    Example:
        renderer = ColorAsciiRenderer(deep=True)
        rendered = renderer.render(raw_frame)
        print(rendered.text)
    """

    def __init__(self, deep: bool = True, pixel_format: str = "bgra") -> None:
        """
        Initialize renderer.

        Args:
            deep: Use the long ramp (70 levels) instead of the short one (10)
            pixel_format: Channel order emitted by the transcoder

        Raises:
            InputValidationError: If pixel_format is not bgra or rgba
        """
        if pixel_format not in _COLOR_CONVERSIONS:
            raise InputValidationError(
                f"Unsupported pixel format {pixel_format!r}; "
                f"expected one of {sorted(_COLOR_CONVERSIONS)}"
            )

        self.ramp = DEEP_RAMP if deep else SHALLOW_RAMP
        self.pixel_format = pixel_format
        self._to_rgb, self._to_gray = _COLOR_CONVERSIONS[pixel_format]
        self._levels = len(self.ramp) - 1

    def character_indices(self, gray: np.ndarray) -> np.ndarray:
        """Map uint8 luminance to ramp indices (rounded)."""
        return (gray.astype(np.uint32) * self._levels + 127) // 255

    def render(self, frame: RawFrame) -> RenderedFrame:
        pixels = frame.as_array().copy()
        rgb = cv2.cvtColor(pixels, self._to_rgb)
        gray = cv2.cvtColor(pixels, self._to_gray)
        indices = self.character_indices(gray).tolist()
        colors = rgb.tolist()

        ramp = self.ramp
        lines: List[str] = []
        for row_colors, row_indices in zip(colors, indices):
            parts: List[str] = []
            previous = None
            for color, index in zip(row_colors, row_indices):
                if color != previous:
                    parts.append(f"\x1b[38;2;{color[0]};{color[1]};{color[2]}m")
                    previous = color
                parts.append(ramp[index])
            parts.append(RESET)
            lines.append("".join(parts))

        return RenderedFrame(index=frame.index, lines=tuple(lines))
