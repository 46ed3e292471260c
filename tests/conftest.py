"""
Test Configuration
==================

Pytest fixtures and fakes for ascii-reel.

The fakes stand in for the external collaborators:
    - ffprobe (a CommandRunner with canned output)
    - ffmpeg (a Popen-like process whose stdout is an in-memory pipe)
    - the display surface and the clock used by playback
"""

import io
from typing import List, Optional, Sequence

import lz4.frame
import numpy as np
import pytest

from ascii_reel.media.probe import ProbeResult
from ascii_reel.models.frame import RenderedFrame


# =============================================================================
# ffprobe
# =============================================================================

class FakeRunner:
    """CommandRunner returning canned ffprobe output."""

    def __init__(
        self,
        dimensions: bytes = b"1920,1080\n",
        frame_rate: bytes = b"30/1\n",
        returncode: int = 0,
    ) -> None:
        self.dimensions = dimensions
        self.frame_rate = frame_rate
        self.returncode = returncode
        self.calls: List[List[str]] = []

    def run(self, args: Sequence[str]) -> ProbeResult:
        self.calls.append(list(args))
        if "stream=width,height" in args:
            stdout = self.dimensions
        else:
            stdout = self.frame_rate
        return ProbeResult(returncode=self.returncode, stdout=stdout, stderr=b"boom")


# =============================================================================
# ffmpeg
# =============================================================================

class ChunkedPipe:
    """Readable pipe that hands out at most `max_chunk` bytes per read."""

    def __init__(self, data: bytes, max_chunk: Optional[int] = None) -> None:
        self._buffer = io.BytesIO(data)
        self.max_chunk = max_chunk
        self.closed = False

    def read(self, n: int = -1) -> bytes:
        if self.max_chunk is not None and (n < 0 or n > self.max_chunk):
            n = self.max_chunk
        return self._buffer.read(n)

    def close(self) -> None:
        self.closed = True


class FakeProcess:
    """Popen stand-in for an ffmpeg run."""

    def __init__(self, data: bytes, returncode: int = 0, max_chunk: Optional[int] = None) -> None:
        self.stdout = ChunkedPipe(data, max_chunk)
        self._final_returncode = returncode
        self.returncode: Optional[int] = None
        self.terminated = False
        self.killed = False
        self.wait_calls = 0

    def terminate(self) -> None:
        self.terminated = True

    def kill(self) -> None:
        self.killed = True

    def wait(self, timeout: Optional[float] = None) -> int:
        self.wait_calls += 1
        self.returncode = -15 if self.terminated else self._final_returncode
        return self.returncode


class FakeSpawn:
    """Popen factory recording every command it is asked to run."""

    def __init__(self, data: bytes = b"", returncode: int = 0, max_chunk: Optional[int] = None) -> None:
        self.data = data
        self.returncode = returncode
        self.max_chunk = max_chunk
        self.commands: List[List[str]] = []
        self.processes: List[FakeProcess] = []

    def __call__(self, args: Sequence[str]) -> FakeProcess:
        self.commands.append(list(args))
        process = FakeProcess(self.data, self.returncode, self.max_chunk)
        self.processes.append(process)
        return process


def make_raw_frames(count: int, width: int, height: int) -> bytes:
    """Synthetic BGRA frames: a horizontal gradient that brightens per frame."""
    frames = []
    for index in range(count):
        pixels = np.zeros((height, width, 4), dtype=np.uint8)
        ramp = np.linspace(0, 255, width, dtype=np.uint16)
        pixels[:, :, 0] = ramp
        pixels[:, :, 1] = (ramp + index * 16) % 256
        pixels[:, :, 2] = 255 - ramp
        pixels[:, :, 3] = 255
        frames.append(pixels.tobytes())
    return b"".join(frames)


# =============================================================================
# Playback
# =============================================================================

class FakeClock:
    """Controllable time base; sleep() advances it instantly."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class RecordingSurface:
    """DisplaySurface recording every call, optionally costing clock time."""

    def __init__(self, clock: Optional[FakeClock] = None, print_cost: float = 0.0) -> None:
        self.clock = clock
        self.print_cost = print_cost
        self.calls: list = []
        self.printed: List[str] = []
        self.print_times: List[float] = []

    def clear(self) -> None:
        self.calls.append(("clear",))

    def print(self, text: str) -> None:
        self.calls.append(("print", text))
        self.printed.append(text)
        if self.clock is not None:
            self.print_times.append(self.clock())
            self.clock.advance(self.print_cost)

    def resize(self, width: int, height: int) -> None:
        self.calls.append(("resize", width, height))


def make_rendered_frames(count: int, height: int) -> List[RenderedFrame]:
    """Frames whose lines identify their frame and row."""
    return [
        RenderedFrame(
            index=i,
            lines=tuple(f"\x1b[38;2;{i % 256};0;0mframe{i}-row{r}\x1b[0m" for r in range(height)),
        )
        for i in range(count)
    ]


def raw_stream(text: str) -> bytes:
    """Compress hand-written stream text the way the encoder does."""
    return lz4.frame.compress(text.encode("utf-8"))


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_runner():
    """Factory for canned ffprobe runners."""
    return FakeRunner


@pytest.fixture
def fake_spawn():
    """Factory for fake ffmpeg process spawners."""
    return FakeSpawn


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def recording_surface(fake_clock):
    return RecordingSurface(fake_clock)


@pytest.fixture
def rendered_frames():
    """Factory: rendered_frames(count, height)."""
    return make_rendered_frames


@pytest.fixture
def raw_frames():
    """Factory: raw_frames(count, width, height) -> bytes."""
    return make_raw_frames


@pytest.fixture
def compress_text():
    return raw_stream


@pytest.fixture
def make_surface(fake_clock):
    """Factory: make_surface(print_cost) -> RecordingSurface on fake_clock."""
    def _make(print_cost: float = 0.0) -> RecordingSurface:
        return RecordingSurface(fake_clock, print_cost)
    return _make
