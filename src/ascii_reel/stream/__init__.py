"""
Stream Module
=============

Frame stream serialization between the production and playback sides.

This module provides:
    - StreamEncoder: Header + frames onto an LZ4 frame compressor
    - StreamDecoder: Decompression and line-count based re-segmentation

Example:
    from ascii_reel.stream import StreamDecoder, StreamEncoder

    with open("clip.reel", "wb") as f, StreamEncoder(f) as encoder:
        encoder.write_header(header)
        for frame in rendered:
            encoder.write_frame(frame)

    with open("clip.reel", "rb") as f:
        for frame in StreamDecoder(f):
            print(frame.text)
"""

from ascii_reel.stream.encoder import StreamEncoder
from ascii_reel.stream.decoder import StreamDecoder, parse_header


__all__ = [
    "StreamEncoder",
    "StreamDecoder",
    "parse_header",
]
