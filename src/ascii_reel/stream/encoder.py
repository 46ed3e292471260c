"""
Stream Encoder
==============

Serializes a header and successive rendered frames into a compressed
frame stream.

Wire Format (before compression):
    line 1:   <frame_rate>
    line 2:   <width> <height>
    line 3..: frame blocks, each exactly <height> lines, in temporal order

There is no per-frame delimiter. Frame boundaries are recovered from the
fixed line count alone, so `height` is enforced here as an immutable
per-stream contract: a frame with the wrong number of lines is rejected
before any of it is written.

Compression is the LZ4 frame format. With armor enabled the compressed
bytes are additionally base64-encoded (single line, no padding until the
end) for hosts that can only store text.

Design Rules:
    - The compressor is finalized on normal completion AND on abort, so
      whatever was written decodes on its own
    - The sink is flushed but never closed (the caller owns it)
"""

import base64
import logging
from typing import BinaryIO, Optional

import lz4.frame

from ascii_reel.errors import StreamFormatError
from ascii_reel.models.frame import RenderedFrame
from ascii_reel.models.header import StreamHeader


logger = logging.getLogger(__name__)


class _Base64Writer:
    """Streams base64 text onto a binary sink, 3 input bytes at a time."""

    def __init__(self, sink: BinaryIO) -> None:
        self._sink = sink
        self._pending = b""

    def write(self, data: bytes) -> None:
        data = self._pending + data
        cut = len(data) - len(data) % 3
        self._pending = data[cut:]
        if cut:
            self._sink.write(base64.b64encode(data[:cut]))

    def close(self) -> None:
        if self._pending:
            self._sink.write(base64.b64encode(self._pending))
            self._pending = b""


class StreamEncoder:
    """
    Writes a frame stream onto a binary sink.

    Attributes:
        header: Header written so far, or None
        frames_written: Number of frames written
        bytes_in: Uncompressed bytes written
        bytes_out: Compressed bytes handed to the sink (before armor)

    Example:
        with open("clip.reel", "wb") as f, StreamEncoder(f) as encoder:
            encoder.write_header(StreamHeader(frame_rate=30.0, width=80, height=45))
            for frame in frames:
                encoder.write_frame(frame)
    """

    def __init__(
        self,
        sink: BinaryIO,
        compression_level: int = 9,
        armor: bool = False,
    ) -> None:
        """
        Initialize encoder. The LZ4 frame header is written immediately.

        Args:
            sink: Binary file-like object to write to
            compression_level: LZ4 compression level (0-16)
            armor: Base64-encode the compressed bytes
        """
        self._sink = sink
        self._armor: Optional[_Base64Writer] = _Base64Writer(sink) if armor else None
        self._compressor = lz4.frame.LZ4FrameCompressor(
            compression_level=compression_level,
        )
        self._closed: bool = False

        self.header: Optional[StreamHeader] = None
        self.frames_written: int = 0
        self.bytes_in: int = 0
        self.bytes_out: int = 0

        self._emit(self._compressor.begin())

    @property
    def closed(self) -> bool:
        return self._closed

    def _emit(self, compressed: bytes) -> None:
        if not compressed:
            return
        self.bytes_out += len(compressed)
        if self._armor is not None:
            self._armor.write(compressed)
        else:
            self._sink.write(compressed)

    def _write_text(self, text: str) -> None:
        data = text.encode("utf-8")
        self.bytes_in += len(data)
        self._emit(self._compressor.compress(data))

    def write_header(self, header: StreamHeader) -> None:
        """
        Write the two header lines.

        Raises:
            StreamFormatError: If a header was already written or the
                encoder is closed
        """
        if self._closed:
            raise StreamFormatError("encoder is closed")
        if self.header is not None:
            raise StreamFormatError("stream header already written")

        self.header = header
        self._write_text("".join(f"{line}\n" for line in header.to_lines()))
        logger.debug(
            f"Wrote header: {header.frame_rate!r} fps, "
            f"{header.width}x{header.height}"
        )

    def write_frame(self, frame: RenderedFrame) -> None:
        """
        Append one frame's lines to the stream.

        Raises:
            StreamFormatError: If no header was written, the line count
                differs from the header height, or a line contains a newline
        """
        if self._closed:
            raise StreamFormatError("encoder is closed")
        if self.header is None:
            raise StreamFormatError("stream header must be written before frames")
        if len(frame.lines) != self.header.height:
            raise StreamFormatError(
                f"frame {frame.index} has {len(frame.lines)} lines, "
                f"stream height is {self.header.height}"
            )
        for line in frame.lines:
            if "\n" in line:
                raise StreamFormatError(
                    f"frame {frame.index} contains a line with an embedded newline"
                )

        self._write_text(frame.text)
        self.frames_written += 1

    def close(self) -> None:
        """Finalize the compressed stream and flush the sink. Idempotent."""
        if self._closed:
            return
        self._closed = True

        self._emit(self._compressor.flush())
        if self._armor is not None:
            self._armor.close()
        self._sink.flush()

        ratio = self.bytes_in / self.bytes_out if self.bytes_out else 0.0
        logger.info(
            f"Stream finalized: {self.frames_written} frames, "
            f"{self.bytes_in} bytes -> {self.bytes_out} bytes ({ratio:.1f}x)"
        )

    def __enter__(self) -> "StreamEncoder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            logger.warning(
                f"Encoding aborted after {self.frames_written} frames, "
                f"finalizing partial stream"
            )
        self.close()
