"""
Stream Decoder
==============

Decompresses a frame stream and re-segments it into a header and
discrete frames.

Framing:
    - line 1 -> frame rate, line 2 -> width/height
    - every following block of `height` lines is one frame
    - a trailing block shorter than `height` is not a frame; it is
      dropped with a warning and decoding ends cleanly

Errors:
    - missing or malformed header lines -> StreamFormatError
    - corrupt LZ4 data, bad base64, invalid UTF-8, or a compressed stream
      that ends before its end mark -> DecodeError

The stream is read strictly sequentially, once.
"""

import base64
import binascii
import logging
from typing import BinaryIO, Iterator, List, Optional

import lz4.frame
from pydantic import ValidationError

from ascii_reel.errors import DecodeError, StreamFormatError
from ascii_reel.models.frame import RenderedFrame
from ascii_reel.models.header import StreamHeader


logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


def parse_header(rate_line: Optional[str], size_line: Optional[str]) -> StreamHeader:
    """
    Parse the two header lines.

    Raises:
        StreamFormatError: If a line is missing or does not parse
    """
    if rate_line is None:
        raise StreamFormatError("stream is empty: missing frame rate line")
    if size_line is None:
        raise StreamFormatError("stream ended before the dimensions line")

    try:
        frame_rate = float(rate_line)
    except ValueError as exc:
        raise StreamFormatError(f"invalid frame rate line: {rate_line!r}") from exc

    parts = size_line.split(" ")
    if len(parts) != 2:
        raise StreamFormatError(
            f"dimensions line must be '<width> <height>', got {size_line!r}"
        )
    try:
        width = int(parts[0])
        height = int(parts[1])
    except ValueError as exc:
        raise StreamFormatError(f"invalid dimensions line: {size_line!r}") from exc

    try:
        return StreamHeader(frame_rate=frame_rate, width=width, height=height)
    except ValidationError as exc:
        raise StreamFormatError(f"invalid stream header: {exc}") from exc


class StreamDecoder:
    """
    Sequential reader for a frame stream.

    Attributes:
        frames_decoded: Complete frames yielded so far
        discarded_lines: Lines of a trailing partial frame that were dropped

    Example:
        with open("clip.reel", "rb") as f:
            decoder = StreamDecoder(f)
            header = decoder.read_header()
            for frame in decoder.frames():
                show(frame)
    """

    def __init__(
        self,
        source: BinaryIO,
        armor: bool = False,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """
        Initialize decoder. Nothing is read until the header is requested.

        Args:
            source: Binary file-like object holding the compressed stream
            armor: The stream is base64 text around the compressed bytes
            chunk_size: Bytes read from the source per call
        """
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")

        self._source = source
        self._armor = armor
        self._chunk_size = chunk_size
        self._line_iter: Optional[Iterator[str]] = None
        self._header: Optional[StreamHeader] = None

        self.frames_decoded: int = 0
        self.discarded_lines: int = 0

    # -------------------------------------------------------------------------
    # Byte and line layers
    # -------------------------------------------------------------------------

    def _raw_chunks(self) -> Iterator[bytes]:
        while True:
            chunk = self._source.read(self._chunk_size)
            if not chunk:
                return
            yield chunk

    def _unarmored_chunks(self) -> Iterator[bytes]:
        pending = b""
        for chunk in self._raw_chunks():
            pending += b"".join(chunk.split())
            cut = len(pending) - len(pending) % 4
            if cut:
                yield self._b64decode(pending[:cut])
                pending = pending[cut:]
        if pending:
            raise DecodeError("base64 stream length is not a multiple of 4")

    @staticmethod
    def _b64decode(data: bytes) -> bytes:
        try:
            return base64.b64decode(data, validate=True)
        except binascii.Error as exc:
            raise DecodeError(f"invalid base64 in stream: {exc}") from exc

    def _decompressed_chunks(self) -> Iterator[bytes]:
        chunks = self._unarmored_chunks() if self._armor else self._raw_chunks()
        decompressor = lz4.frame.LZ4FrameDecompressor()
        received = False

        for chunk in chunks:
            received = True
            if decompressor.eof:
                # Data after the end mark is not part of the stream
                logger.warning(f"Ignoring {len(chunk)} bytes after end of compressed stream")
                continue
            try:
                data = decompressor.decompress(chunk)
            except RuntimeError as exc:
                raise DecodeError(f"corrupt compressed stream: {exc}") from exc
            if data:
                yield data

        if received and not decompressor.eof:
            raise DecodeError("compressed stream ended before its end mark")

    def _lines(self) -> Iterator[str]:
        pending = b""
        for data in self._decompressed_chunks():
            pending += data
            *complete, pending = pending.split(b"\n")
            for raw in complete:
                yield self._decode_line(raw)
        if pending:
            yield self._decode_line(pending)

    @staticmethod
    def _decode_line(raw: bytes) -> str:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"stream line is not valid UTF-8: {exc}") from exc

    def _next_line(self) -> Optional[str]:
        if self._line_iter is None:
            self._line_iter = self._lines()
        return next(self._line_iter, None)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def header(self) -> Optional[StreamHeader]:
        """Header, once read."""
        return self._header

    def read_header(self) -> StreamHeader:
        """
        Read and validate the header. Safe to call more than once.

        Raises:
            StreamFormatError: On missing or malformed header lines
            DecodeError: On corrupt compressed data
        """
        if self._header is None:
            rate_line = self._next_line()
            size_line = self._next_line() if rate_line is not None else None
            self._header = parse_header(rate_line, size_line)
            logger.info(
                f"Stream header: {self._header.frame_rate:.3f} fps, "
                f"{self._header.width}x{self._header.height}"
            )
        return self._header

    def frames(self) -> Iterator[RenderedFrame]:
        """
        Yield complete frames in stream order.

        Reads the header first if needed. A trailing partial frame is
        discarded without error.

        Raises:
            StreamFormatError: On a bad header
            DecodeError: On corrupt compressed data (fatal, mid-iteration)
        """
        height = self.read_header().height
        buffer: List[str] = []

        while True:
            line = self._next_line()
            if line is None:
                break
            buffer.append(line)
            if len(buffer) == height:
                yield RenderedFrame(index=self.frames_decoded, lines=tuple(buffer))
                self.frames_decoded += 1
                buffer = []

        if buffer:
            self.discarded_lines = len(buffer)
            logger.warning(
                f"Discarding {len(buffer)} trailing lines "
                f"(incomplete frame, height is {height})"
            )
        logger.info(f"Stream ended after {self.frames_decoded} frames")

    def __iter__(self) -> Iterator[RenderedFrame]:
        return self.frames()
