"""
ascii-reel
==========

Colored text-art video: production and playback.

This package converts a source video into a sequence of colored text-art
frames, packages them into a compact compressed stream, and replays that
stream with frame-accurate, drift-free timing.

Components:
    - media: ffprobe metadata, target size resolution, ffmpeg frame source
    - render: pixel-to-colored-text rendering
    - stream: LZ4 frame stream encoder and decoder
    - playback: anchor-based scheduler and display surfaces
    - pipeline: encode_video / play_stream wiring

Example:
    from ascii_reel.pipeline import encode_video

    with open("clip.reel", "wb") as sink:
        encode_video("clip.mp4", sink, target_width=80)
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
