"""
Target Resolution
=================

Computes the output pixel size handed to ffmpeg.

One output pixel becomes one character, so the resolver compensates for
non-square character cells: with a 1x2 cell, half as many rows are needed
to keep the picture's proportions.

Formulas (integer truncation):
    width only:   height = src_h * width  * cell_h / (src_w * cell_w)
    height only:  width  = src_w * height * cell_h / (src_h * cell_w)
    both:         used verbatim
"""

import logging
from typing import Optional, Tuple

from ascii_reel.errors import InputValidationError
from ascii_reel.models.video import CharCell


logger = logging.getLogger(__name__)


def validate_target_request(
    target_width: Optional[int],
    target_height: Optional[int],
) -> None:
    """
    Reject unusable target dimensions.

    Called before anything is probed or spawned.

    Raises:
        InputValidationError: If neither dimension is given, or a given
            dimension is zero or negative
    """
    if target_width is None and target_height is None:
        raise InputValidationError("must set either target width or target height")
    if target_width is not None and target_width <= 0:
        raise InputValidationError(f"target width must be positive, got {target_width}")
    if target_height is not None and target_height <= 0:
        raise InputValidationError(f"target height must be positive, got {target_height}")


def resolve_target_dimensions(
    src_width: int,
    src_height: int,
    cell: CharCell = CharCell(),
    target_width: Optional[int] = None,
    target_height: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Resolve the (width, height) frames are scaled to.

    Args:
        src_width: Source video width in pixels
        src_height: Source video height in pixels
        cell: Character cell aspect
        target_width: Requested output width, or None
        target_height: Requested output height, or None

    Returns:
        Tuple of (width, height), both positive

    Raises:
        InputValidationError: On an invalid request, or when the derived
            dimension truncates to zero

    Example:
        >>> resolve_target_dimensions(1920, 1080, target_width=80)
        (80, 45)
    """
    validate_target_request(target_width, target_height)

    if target_width is not None and target_height is not None:
        width, height = target_width, target_height
    elif target_width is not None:
        width = target_width
        height = src_height * target_width * cell.height // (src_width * cell.width)
    else:
        height = target_height
        width = src_width * target_height * cell.height // (src_height * cell.width)

    if width <= 0 or height <= 0:
        raise InputValidationError(
            f"resolved target size {width}x{height} is empty; "
            f"request a larger width or height"
        )

    logger.debug(
        f"Resolved {src_width}x{src_height} (cell {cell.width}x{cell.height}) "
        f"-> {width}x{height}"
    )
    return width, height


def parse_char_dims(text: Optional[str]) -> CharCell:
    """
    Parse a "<width>x<height>" character cell size, e.g. "8x16".

    None yields the square 1x1 cell.

    Raises:
        InputValidationError: If the text is not two positive integers
    """
    if text is None:
        return CharCell()

    parts = text.lower().split("x")
    if len(parts) != 2:
        raise InputValidationError(f"char dims must look like '8x16', got {text!r}")

    try:
        width = int(parts[0])
        height = int(parts[1])
    except ValueError as exc:
        raise InputValidationError(f"char dims must be integers, got {text!r}") from exc

    if width <= 0 or height <= 0:
        raise InputValidationError(f"char dims must be positive, got {text!r}")

    return CharCell(width=width, height=height)
