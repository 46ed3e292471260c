"""
Stream Header Schema
====================

Pydantic model for the two-line header at the start of a frame stream.

Wire Contract:
    line 1: <frame_rate>          e.g. "29.97002997002997"
    line 2: <width> <height>      e.g. "80 45"

The header is validated on both sides: the encoder refuses to write a
header that would not parse back, and the decoder maps any validation
failure to StreamFormatError.
"""

from pydantic import BaseModel, Field


class StreamHeader(BaseModel):
    """
    Header of a frame stream.

    Attributes:
        frame_rate: Playback rate in frames per second
        width: Frame width in characters
        height: Frame height in lines (the framing unit of the stream)
    """

    frame_rate: float = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Frames per second",
    )

    width: int = Field(
        ...,
        gt=0,
        description="Columns per frame",
    )

    height: int = Field(
        ...,
        gt=0,
        description="Lines per frame",
    )

    model_config = {"frozen": True}

    def to_lines(self) -> tuple:
        """Render the two header lines (without newlines)."""
        # repr() of a float is the shortest string that parses back exactly
        return (repr(float(self.frame_rate)), f"{self.width} {self.height}")
