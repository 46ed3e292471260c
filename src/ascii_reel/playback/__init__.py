"""
Playback Module
===============

Frame-accurate replay of a decoded frame stream.

Components:
    - target_time / PlaybackClock: Anchor-based frame timing
    - DisplaySurface: clear / print / resize capability
    - TerminalSurface: ANSI terminal implementation
    - PlaybackScheduler: Paces frames onto a surface
"""

from ascii_reel.playback.clock import PlaybackClock, target_time
from ascii_reel.playback.surface import DisplaySurface, TerminalSurface
from ascii_reel.playback.scheduler import (
    PlaybackMetrics,
    PlaybackScheduler,
    PlaybackState,
)


__all__ = [
    "PlaybackClock",
    "target_time",
    "DisplaySurface",
    "TerminalSurface",
    "PlaybackMetrics",
    "PlaybackScheduler",
    "PlaybackState",
]
