"""
Playback Clock
==============

Anchor-based absolute frame timing.

Every frame's display time is computed from the anchor (the moment frame 0
was shown), never from the previous frame:

    target(n) = anchor + n / frame_rate        (seconds)

Sleeping for a fixed period after each frame would add the rendering
overhead of every frame to the schedule; computing from the anchor keeps
the error of frame n bounded by the error of frame n alone.
"""

from dataclasses import dataclass


def target_time(anchor: float, index: int, frame_rate: float) -> float:
    """
    Display time of frame `index`.

    Args:
        anchor: Display time of frame 0 (seconds)
        index: Zero-based frame index
        frame_rate: Frames per second

    Returns:
        Target display time in the same time base as `anchor`
    """
    return anchor + index / frame_rate


@dataclass(frozen=True, slots=True)
class PlaybackClock:
    """
    Timing state of one playback session.

    Attributes:
        anchor: Display time of the first frame (seconds)
        frame_rate: Frames per second from the stream header
    """

    anchor: float
    frame_rate: float

    def __post_init__(self) -> None:
        if self.frame_rate <= 0:
            raise ValueError("frame_rate must be positive")

    def target_time(self, index: int) -> float:
        return target_time(self.anchor, index, self.frame_rate)

    def delay(self, index: int, now: float) -> float:
        """Seconds to wait before showing frame `index`; 0 if already late."""
        return max(self.target_time(index) - now, 0.0)
