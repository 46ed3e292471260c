"""
Media Probe
===========

Queries a source video for its pixel dimensions and frame rate via ffprobe.

The probe never touches the video itself; it only runs the external tool
and parses what it prints. Command execution is delegated to a
CommandRunner so tests can substitute canned output.

Expected ffprobe output:
    dimensions:  "<width>,<height>"      (csv=p=0)
    frame rate:  "<numerator>/<denominator>"

Design Rules:
    - Any non-zero exit, non-UTF-8 output or unparseable text is a
      MediaProbeError, never an uncaught ValueError
    - Parsing is exposed as pure functions
"""

import logging
import math
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Sequence, Tuple, Union

from ascii_reel.errors import MediaProbeError
from ascii_reel.models.video import VideoDescriptor


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """Outcome of one external command run."""

    returncode: int
    stdout: bytes
    stderr: bytes = b""


class CommandRunner(Protocol):
    """Runs a command to completion and captures its output."""

    def run(self, args: Sequence[str]) -> ProbeResult:
        ...


class SubprocessRunner:
    """CommandRunner backed by subprocess.run."""

    def run(self, args: Sequence[str]) -> ProbeResult:
        try:
            completed = subprocess.run(
                list(args),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
            )
        except FileNotFoundError as exc:
            raise MediaProbeError(
                f"{args[0]} executable not found. Ensure FFmpeg (including "
                f"ffprobe) is installed and available on PATH."
            ) from exc
        return ProbeResult(
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )


# =============================================================================
# Output Parsing
# =============================================================================

def _decode(output: bytes) -> str:
    try:
        return output.decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        raise MediaProbeError(f"ffprobe output is not valid UTF-8: {exc}") from exc


def parse_dimensions(output: bytes) -> Tuple[int, int]:
    """
    Parse "<width>,<height>" as printed by ffprobe.

    Args:
        output: Raw stdout bytes

    Returns:
        Tuple of (width, height), both positive

    Raises:
        MediaProbeError: On anything other than two positive integers
    """
    text = _decode(output)
    parts = text.split(",")
    if len(parts) != 2:
        raise MediaProbeError(
            f"Invalid file or video channel: expected '<width>,<height>', got {text!r}"
        )

    try:
        width = int(parts[0])
        height = int(parts[1])
    except ValueError as exc:
        raise MediaProbeError(f"Error parsing dimensions from {text!r}") from exc

    if width <= 0 or height <= 0:
        raise MediaProbeError(f"Non-positive video dimensions: {width}x{height}")

    return width, height


def parse_frame_rate(output: bytes) -> float:
    """
    Parse "<numerator>/<denominator>" into frames per second.

    Raises:
        MediaProbeError: If either part is missing or non-numeric, the
            denominator is zero, or the result is not a positive finite number
    """
    text = _decode(output)
    parts = text.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise MediaProbeError(f"Failed to parse frame rate from {text!r}")

    try:
        numerator = float(parts[0])
        denominator = float(parts[1])
    except ValueError as exc:
        raise MediaProbeError(f"Failed to parse frame rate from {text!r}") from exc

    if denominator == 0:
        raise MediaProbeError(f"Frame rate {text!r} has a zero denominator")

    fps = numerator / denominator
    if not math.isfinite(fps) or fps <= 0:
        raise MediaProbeError(f"Frame rate {text!r} is not a positive number")

    return fps


# =============================================================================
# Probe
# =============================================================================

class MediaProbe:
    """
    ffprobe front-end.

    Attributes:
        binary: ffprobe executable name or path
        runner: CommandRunner used to execute it

    Example:
        probe = MediaProbe()
        descriptor = probe.describe("clip.mp4")
        print(descriptor.width, descriptor.height, descriptor.frame_rate)
    """

    def __init__(
        self,
        binary: str = "ffprobe",
        runner: Optional[CommandRunner] = None,
    ) -> None:
        self.binary = binary
        self.runner = runner if runner is not None else SubprocessRunner()

    def dimensions_command(self, path: PathLike) -> list:
        return [
            self.binary,
            "-v", "error",
            "-select_streams", "v",
            "-show_entries", "stream=width,height",
            "-of", "csv=p=0",
            str(path),
        ]

    def frame_rate_command(self, path: PathLike) -> list:
        return [
            self.binary,
            "-v", "error",
            "-select_streams", "v:0",
            "-show_entries", "stream=r_frame_rate",
            "-of", "default=noprint_wrappers=1:nokey=1",
            str(path),
        ]

    def _run(self, args: Sequence[str]) -> bytes:
        result = self.runner.run(args)
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise MediaProbeError(
                f"Error executing ffprobe (exit {result.returncode}): {stderr}"
            )
        return result.stdout

    def dimensions(self, path: PathLike) -> Tuple[int, int]:
        """Pixel dimensions of the first video stream."""
        return parse_dimensions(self._run(self.dimensions_command(path)))

    def frame_rate(self, path: PathLike) -> float:
        """Frame rate of the first video stream."""
        return parse_frame_rate(self._run(self.frame_rate_command(path)))

    def describe(self, path: PathLike) -> VideoDescriptor:
        """Probe both dimensions and frame rate."""
        width, height = self.dimensions(path)
        fps = self.frame_rate(path)
        logger.info(f"Probed {path}: {width}x{height} @ {fps:.3f} fps")
        return VideoDescriptor(width=width, height=height, frame_rate=fps)
