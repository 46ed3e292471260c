"""
Playback Scheduler
==================

Paces frame display against a clock without cumulative drift.

State machine:
    IDLE --first frame--> ANCHORED --displayed--> PLAYING --finish()--> DONE

    - The first frame is shown immediately; the time it is shown becomes
      the anchor of a PlaybackClock.
    - Frame n (n >= 1) waits max(target(n) - now, 0) and is then shown.
      A late frame is shown immediately. Frames are never dropped to
      catch up.

The only suspension point per frame is the pacing wait, delegated to an
injectable `sleep` coroutine. Pulling the next frame from the iterable
(file reads and decompression) blocks the event loop, so playback expects
to be the only task on its loop. The `now` time function is injectable as
well so tests can run deterministically against a fake time base.

Display side effects per frame:
    clear, print the frame text, resize the viewport to
    (width * cell_width, height * cell_height) via a one-pixel-taller
    intermediate size (forces the host to re-layout), bump the counter.

The frame counter is kept in PlaybackMetrics.frames_displayed and logged
as "frame N" at DEBUG level only; the display surface never sees it. Run
with ASCII_REEL_LOG_LEVEL=DEBUG to get the per-frame trace.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Awaitable, Callable, Iterable, Optional

from ascii_reel.models.frame import RenderedFrame
from ascii_reel.models.header import StreamHeader
from ascii_reel.playback.clock import PlaybackClock
from ascii_reel.playback.surface import DisplaySurface


logger = logging.getLogger(__name__)


class PlaybackState(str, Enum):
    """Scheduler lifecycle states."""

    IDLE = "IDLE"
    ANCHORED = "ANCHORED"
    PLAYING = "PLAYING"
    DONE = "DONE"


class PlaybackMetrics:
    """Metrics for playback observability."""

    __slots__ = (
        "frames_displayed",
        "late_frames",
        "max_lateness",
        "total_wait",
    )

    def __init__(self) -> None:
        self.frames_displayed: int = 0
        self.late_frames: int = 0
        self.max_lateness: float = 0.0
        self.total_wait: float = 0.0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "frames_displayed": self.frames_displayed,
            "late_frames": self.late_frames,
            "max_lateness": round(self.max_lateness, 6),
            "total_wait": round(self.total_wait, 6),
        }


class PlaybackScheduler:
    """
    Drives a DisplaySurface at the stream's frame rate.

    Attributes:
        surface: Where frames are shown
        header: Stream header (frame rate and dimensions)
        state: Current PlaybackState
        clock: PlaybackClock, set once the first frame is shown
        metrics: Playback metrics

    Example:
        scheduler = PlaybackScheduler(surface, decoder.read_header())
        await scheduler.run(decoder.frames())
    """

    def __init__(
        self,
        surface: DisplaySurface,
        header: StreamHeader,
        now: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        cell_width: int = 10,
        cell_height: int = 30,
    ) -> None:
        """
        Initialize scheduler.

        Args:
            surface: DisplaySurface to draw on
            header: Header of the stream being played
            now: Returns the current time in seconds
            sleep: Coroutine that waits the given number of seconds
            cell_width: Viewport pixels per column
            cell_height: Viewport pixels per row
        """
        self.surface = surface
        self.header = header
        self._now = now
        self._sleep = sleep
        self.cell_width = cell_width
        self.cell_height = cell_height

        self._state = PlaybackState.IDLE
        self.clock: Optional[PlaybackClock] = None
        self.metrics = PlaybackMetrics()

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def viewport(self) -> tuple:
        """Viewport size in pixels for the stream dimensions."""
        return (
            self.header.width * self.cell_width,
            self.header.height * self.cell_height,
        )

    async def show(self, frame: RenderedFrame) -> None:
        """
        Wait for the frame's slot, then display it.

        Raises:
            RuntimeError: If called after finish()
        """
        if self._state is PlaybackState.DONE:
            raise RuntimeError("playback already finished")

        if self._state is PlaybackState.IDLE:
            self.clock = PlaybackClock(anchor=self._now(), frame_rate=self.header.frame_rate)
            self._state = PlaybackState.ANCHORED
            logger.info(f"Playback anchored at {self.clock.anchor:.3f}")
        else:
            index = self.metrics.frames_displayed
            lateness = self._now() - self.clock.target_time(index)
            if lateness > 0:
                self.metrics.late_frames += 1
                self.metrics.max_lateness = max(self.metrics.max_lateness, lateness)
            delay = max(-lateness, 0.0)
            self.metrics.total_wait += delay
            await self._sleep(delay)

        self._display(frame)

        if self._state is PlaybackState.ANCHORED:
            self._state = PlaybackState.PLAYING

    def _display(self, frame: RenderedFrame) -> None:
        width, height = self.viewport

        self.surface.clear()
        self.surface.print(frame.text)
        self.surface.resize(width, height + 1)
        self.surface.resize(width, height)

        logger.debug(f"frame {self.metrics.frames_displayed}")
        self.metrics.frames_displayed += 1

    def finish(self) -> PlaybackMetrics:
        """Mark the stream as exhausted."""
        if self._state is not PlaybackState.DONE:
            self._state = PlaybackState.DONE
            logger.info(f"Playback done: {self.metrics.to_dict()}")
        return self.metrics

    async def run(self, frames: Iterable[RenderedFrame]) -> PlaybackMetrics:
        """
        Show every frame in order, then finish.

        Errors raised by the frame iterable (e.g. DecodeError) propagate
        immediately; nothing is retried.
        """
        for frame in frames:
            await self.show(frame)
        return self.finish()
