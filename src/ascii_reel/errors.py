"""
Error Taxonomy
==============

Every error below is fatal for the run that raised it. Nothing is retried;
the active pipeline (production or playback) aborts and the caller receives
the diagnostic.

    AsciiReelError
    ├── InputValidationError   bad or missing target dimensions / char dims
    ├── MediaProbeError        ffprobe failed or printed something unparseable
    ├── ProcessFailure         external tool exited non-zero (or never started)
    ├── TruncatedFrame         ffmpeg output ended in the middle of a frame
    ├── StreamFormatError      missing/malformed header, frame contract violation
    └── DecodeError            corrupt compressed data
"""

from typing import Optional, Sequence


class AsciiReelError(Exception):
    """Base class for all ascii-reel errors."""
    pass


class InputValidationError(AsciiReelError):
    """Raised when user-supplied dimensions are unusable."""
    pass


class MediaProbeError(AsciiReelError):
    """Raised when the media probe fails or its output cannot be parsed."""
    pass


class ProcessFailure(AsciiReelError):
    """Raised when an external tool exits with a non-zero status."""

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        command: Optional[Sequence[str]] = None,
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.command = list(command) if command is not None else None


class TruncatedFrame(AsciiReelError):
    """Raised when the frame byte stream ends mid-frame."""

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(
            f"Frame stream ended mid-frame: expected {expected} bytes, "
            f"got {received}"
        )
        self.expected = expected
        self.received = received


class StreamFormatError(AsciiReelError):
    """Raised when a frame stream header or frame block is malformed."""
    pass


class DecodeError(AsciiReelError):
    """Raised when the compressed stream cannot be decoded."""
    pass
