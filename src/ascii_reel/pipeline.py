"""
Pipelines
=========

The two halves of ascii-reel wired end to end.

Production (one process, strictly sequential):
    validate request -> probe -> resolve size -> spawn ffmpeg
    -> (read frame, render, encode) until end of stream

Consumption (one asyncio task):
    decode header -> (decode frame, wait for its slot, display) until end

Every collaborator is a parameter so tests can replace ffprobe, ffmpeg,
the renderer, the display and the clock.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, BinaryIO, Callable, Optional, Sequence, Union

from ascii_reel.media.probe import MediaProbe
from ascii_reel.media.resolution import resolve_target_dimensions, validate_target_request
from ascii_reel.media.source import FrameSource
from ascii_reel.models.header import StreamHeader
from ascii_reel.models.video import CharCell, VideoDescriptor
from ascii_reel.playback.scheduler import PlaybackMetrics, PlaybackScheduler
from ascii_reel.playback.surface import DisplaySurface
from ascii_reel.render.renderer import ColorAsciiRenderer, FrameRenderer
from ascii_reel.stream.decoder import StreamDecoder
from ascii_reel.stream.encoder import StreamEncoder


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True, slots=True)
class EncodeResult:
    """Summary of one production run."""

    source: VideoDescriptor
    header: StreamHeader
    frames: int


def encode_video(
    path: PathLike,
    sink: BinaryIO,
    target_width: Optional[int] = None,
    target_height: Optional[int] = None,
    cell: CharCell = CharCell(),
    renderer: Optional[FrameRenderer] = None,
    probe: Optional[MediaProbe] = None,
    ffmpeg: str = "ffmpeg",
    ffmpeg_loglevel: str = "error",
    pixel_format: str = "bgra",
    spawn: Optional[Callable[[Sequence[str]], object]] = None,
    compression_level: int = 9,
    armor: bool = False,
) -> EncodeResult:
    """
    Convert a video file into a frame stream written to `sink`.

    Args:
        path: Source video
        sink: Binary destination of the compressed stream
        target_width: Output width in characters, or None
        target_height: Output height in lines, or None
        cell: Character cell aspect for the resolution math
        renderer: FrameRenderer (default: ColorAsciiRenderer)
        probe: MediaProbe (default: ffprobe on PATH)
        ffmpeg: ffmpeg executable
        ffmpeg_loglevel: ffmpeg -loglevel value
        pixel_format: rawvideo pixel format, 4 bytes per pixel
        spawn: Popen-compatible factory for ffmpeg
        compression_level: LZ4 compression level
        armor: Base64-armor the output

    Returns:
        EncodeResult with the probed source, written header and frame count

    Raises:
        InputValidationError: Before anything runs, on a bad size request
        MediaProbeError: If ffprobe fails or prints garbage
        ProcessFailure: If ffmpeg exits non-zero
        TruncatedFrame: If ffmpeg's output ends mid-frame
        StreamFormatError: If the renderer breaks the line-count contract
    """
    validate_target_request(target_width, target_height)

    probe = probe if probe is not None else MediaProbe()
    renderer = renderer if renderer is not None else ColorAsciiRenderer(pixel_format=pixel_format)

    descriptor = probe.describe(path)
    width, height = resolve_target_dimensions(
        descriptor.width,
        descriptor.height,
        cell,
        target_width=target_width,
        target_height=target_height,
    )
    header = StreamHeader(frame_rate=descriptor.frame_rate, width=width, height=height)
    logger.info(f"Encoding {path} at {width}x{height}, {descriptor.frame_rate:.3f} fps")

    started = time.monotonic()
    with StreamEncoder(sink, compression_level=compression_level, armor=armor) as encoder:
        encoder.write_header(header)
        with FrameSource(
            path,
            width,
            height,
            binary=ffmpeg,
            loglevel=ffmpeg_loglevel,
            pixel_format=pixel_format,
            spawn=spawn,
        ) as source:
            for raw in source:
                encoder.write_frame(renderer.render(raw))
                if encoder.frames_written % 100 == 0:
                    logger.debug(f"Encoded {encoder.frames_written} frames")

    elapsed = time.monotonic() - started
    logger.info(f"Encoded {encoder.frames_written} frames in {elapsed:.1f}s")

    return EncodeResult(source=descriptor, header=header, frames=encoder.frames_written)


async def play_stream(
    source: BinaryIO,
    surface: DisplaySurface,
    armor: bool = False,
    now: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    cell_width: int = 10,
    cell_height: int = 30,
) -> PlaybackMetrics:
    """
    Decode a frame stream and play it on `surface`.

    Terminates cleanly at end of stream (a trailing partial frame is
    dropped). Decode errors are fatal and propagate.

    Decoding runs synchronously inside the coroutine; the pacing `sleep`
    is the only point where it yields, once per frame after the first.
    Run it as the sole task on its event loop.

    Raises:
        StreamFormatError: On a missing or malformed header
        DecodeError: On corrupt compressed data
    """
    decoder = StreamDecoder(source, armor=armor)
    header = decoder.read_header()

    scheduler = PlaybackScheduler(
        surface,
        header,
        now=now,
        sleep=sleep,
        cell_width=cell_width,
        cell_height=cell_height,
    )
    return await scheduler.run(decoder.frames())
