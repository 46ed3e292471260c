"""
Display Surface
===============

The host capabilities the playback scheduler needs, and a terminal
implementation of them.

    clear()               wipe the previous frame
    print(text)           write one frame of text
    resize(width, height) size the viewport, in pixels

TerminalSurface drives an ANSI terminal: cursor-home + erase for clear,
and the xterm window-size request (CSI 8 ; rows ; cols t) for resize,
with pixel sizes converted back to character cells.
"""

import logging
import sys
from typing import Optional, Protocol, TextIO, Tuple


logger = logging.getLogger(__name__)

CSI = "\x1b["


class DisplaySurface(Protocol):
    """Protocol for anything the scheduler can display frames on."""

    def clear(self) -> None:
        ...

    def print(self, text: str) -> None:
        ...

    def resize(self, width: int, height: int) -> None:
        ...


class TerminalSurface:
    """
    DisplaySurface on an ANSI text stream.

    Use as a context manager to hide the cursor during playback and
    restore the terminal afterwards.

    Attributes:
        stream: Text stream written to (stdout by default)
        cell_width: Pixels per character column, for resize conversion
        cell_height: Pixels per character row, for resize conversion
        resize_window: Send window-size requests at all
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        cell_width: int = 10,
        cell_height: int = 30,
        resize_window: bool = True,
    ) -> None:
        if cell_width < 1 or cell_height < 1:
            raise ValueError("cell dimensions must be >= 1")

        self.stream = stream if stream is not None else sys.stdout
        self.cell_width = cell_width
        self.cell_height = cell_height
        self.resize_window = resize_window
        self._cells: Optional[Tuple[int, int]] = None

    def clear(self) -> None:
        self.stream.write(f"{CSI}H{CSI}J")

    def print(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()

    def resize(self, width: int, height: int) -> None:
        if not self.resize_window:
            return
        cells = (max(1, width // self.cell_width), max(1, height // self.cell_height))
        # Identical requests are dropped so a pixel-level nudge costs nothing
        if cells == self._cells:
            return
        self._cells = cells
        cols, rows = cells
        self.stream.write(f"{CSI}8;{rows};{cols}t")
        self.stream.flush()
        logger.debug(f"Requested terminal size {cols}x{rows}")

    def __enter__(self) -> "TerminalSurface":
        self.stream.write(f"{CSI}?25l{CSI}H{CSI}2J")
        self.stream.flush()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stream.write(f"{CSI}0m{CSI}?25h\n")
        self.stream.flush()
