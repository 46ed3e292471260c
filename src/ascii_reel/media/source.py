"""
Frame Source
============

Drives an ffmpeg process that decodes a video into raw, fixed-size frames
on its standard output.

This module provides the FrameSource class which:
    - Spawns ffmpeg scaled to the target size, no audio, rawvideo output
    - Reads the pipe one whole frame at a time
    - Distinguishes clean end-of-stream from a truncated frame
    - Always waits on the process and surfaces a non-zero exit status

Design Rules:
    - The stdout pipe is owned by one FrameSource, read sequentially
    - Backpressure is implicit: ffmpeg blocks when the pipe is full
    - A mid-frame end-of-stream is a protocol violation, never retried
"""

import logging
import subprocess
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence, Union

from ascii_reel.errors import InputValidationError, ProcessFailure, TruncatedFrame
from ascii_reel.models.frame import RawFrame, frame_size


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Seconds to wait for ffmpeg to exit after terminate() before killing it
TERMINATE_TIMEOUT = 5.0


def _popen(args: Sequence[str]) -> subprocess.Popen:
    # stderr is inherited so ffmpeg diagnostics stay visible
    return subprocess.Popen(list(args), stdout=subprocess.PIPE, stderr=None)


class FrameSource:
    """
    Frame-granular reader over an ffmpeg rawvideo pipe.

    Attributes:
        path: Source video path
        width: Target frame width in pixels
        height: Target frame height in pixels
        frame_bytes: Bytes per frame (width * height * 4)
        command: ffmpeg argument vector
        frames_read: Number of complete frames returned so far

    Example:
        with FrameSource("clip.mp4", 80, 45) as source:
            for raw in source:
                handle(raw)
        # A non-zero ffmpeg exit raises ProcessFailure here
    """

    def __init__(
        self,
        path: PathLike,
        width: int,
        height: int,
        binary: str = "ffmpeg",
        loglevel: str = "error",
        pixel_format: str = "bgra",
        spawn: Optional[Callable[[Sequence[str]], subprocess.Popen]] = None,
    ) -> None:
        """
        Initialize frame source. The process is not started yet.

        Args:
            path: Video file to decode
            width: Target width (must be positive)
            height: Target height (must be positive)
            binary: ffmpeg executable name or path
            loglevel: ffmpeg -loglevel value
            pixel_format: 4-byte-per-pixel rawvideo format
            spawn: Popen-compatible factory (injectable for tests)
        """
        if width <= 0 or height <= 0:
            raise InputValidationError(f"frame size must be positive, got {width}x{height}")

        self.path = path
        self.width = width
        self.height = height
        self.frame_bytes = frame_size(width, height)
        self.command: List[str] = [
            binary,
            "-hide_banner",
            "-loglevel", loglevel,
            "-i", str(path),
            "-vf", f"scale={width}:{height}",
            "-an",
            "-f", "rawvideo",
            "-pix_fmt", pixel_format,
            "-",
        ]

        self._spawn = spawn if spawn is not None else _popen
        self._process: Optional[subprocess.Popen] = None
        self._exhausted: bool = False
        self._closed: bool = False
        self.frames_read: int = 0
        self.returncode: Optional[int] = None

    def start(self) -> None:
        """Spawn ffmpeg. Called implicitly by the first read."""
        if self._process is not None:
            return

        logger.info(f"Starting ffmpeg: {' '.join(self.command)}")
        try:
            process = self._spawn(self.command)
        except FileNotFoundError as exc:
            raise ProcessFailure(
                f"{self.command[0]} executable not found. Ensure FFmpeg is "
                f"installed and available on PATH.",
                command=self.command,
            ) from exc

        if process.stdout is None:
            raise ProcessFailure(
                "ffmpeg was started without a stdout pipe",
                command=self.command,
            )
        self._process = process

    def _read_exact(self, n: int) -> bytes:
        """
        Read n bytes, or b"" on end-of-stream before the first byte.

        Short pipe reads are accumulated; end-of-stream after a partial
        read raises TruncatedFrame.
        """
        stdout = self._process.stdout
        chunks: List[bytes] = []
        received = 0

        while received < n:
            chunk = stdout.read(n - received)
            if not chunk:
                if received == 0:
                    return b""
                raise TruncatedFrame(expected=n, received=received)
            chunks.append(chunk)
            received += len(chunk)

        return b"".join(chunks)

    def read_frame(self) -> Optional[RawFrame]:
        """
        Read the next frame.

        Returns:
            The next RawFrame, or None on clean end-of-stream

        Raises:
            TruncatedFrame: If the stream ends mid-frame
        """
        if self._closed or self._exhausted:
            return None
        self.start()

        try:
            data = self._read_exact(self.frame_bytes)
        except TruncatedFrame:
            self._exhausted = True
            raise

        if not data:
            self._exhausted = True
            logger.debug(f"ffmpeg output exhausted after {self.frames_read} frames")
            return None

        frame = RawFrame(
            index=self.frames_read,
            width=self.width,
            height=self.height,
            data=data,
        )
        self.frames_read += 1
        return frame

    def __iter__(self) -> Iterator[RawFrame]:
        """Yield frames until end-of-stream, then wait on ffmpeg."""
        while True:
            frame = self.read_frame()
            if frame is None:
                break
            yield frame
        self.close()

    def close(self) -> Optional[int]:
        """
        Release the pipe and wait on ffmpeg.

        If the output was consumed to the end, a non-zero exit status
        raises ProcessFailure. If the source is closed early, ffmpeg is
        terminated first and its status is only logged.

        Returns:
            The process exit status, or None if it was never started
        """
        return self._shutdown(raise_on_failure=True)

    def _shutdown(self, raise_on_failure: bool) -> Optional[int]:
        if self._closed:
            return self.returncode
        self._closed = True

        process = self._process
        if process is None:
            return None

        finished = self._exhausted
        if not finished:
            logger.warning(
                f"Stopping ffmpeg before end of output "
                f"({self.frames_read} frames read)"
            )
            process.terminate()

        process.stdout.close()
        try:
            returncode = process.wait(timeout=TERMINATE_TIMEOUT)
        except subprocess.TimeoutExpired:
            logger.warning("ffmpeg did not exit after terminate, killing it")
            process.kill()
            returncode = process.wait()
        self.returncode = returncode

        if returncode != 0:
            if finished and raise_on_failure:
                raise ProcessFailure(
                    f"ffmpeg command failed with exit status {returncode}",
                    returncode=returncode,
                    command=self.command,
                )
            logger.warning(f"ffmpeg exited with status {returncode}")
        else:
            logger.info(f"ffmpeg finished, {self.frames_read} frames read")

        return returncode

    def __enter__(self) -> "FrameSource":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # Never mask an exception already in flight
        self._shutdown(raise_on_failure=exc_type is None)
