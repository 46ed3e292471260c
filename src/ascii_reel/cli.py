"""
ascii-reel Command Line
=======================

Entry point for both halves of the system.

Usage:
    ascii-reel encode clip.mp4 --target-width 80 --char-dims 1x2 -o clip.reel
    ascii-reel encode clip.mp4 --target-height 40 --armor > clip.txt
    ascii-reel play clip.reel
    ascii-reel play clip.txt --armor

Exit codes:
    0   success
    1   any ascii-reel error (bad input, probe/ffmpeg failure, bad stream)
    130 interrupted
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

import yaml
from pydantic import ValidationError

from ascii_reel import __version__
from ascii_reel.config import Settings, load_config, settings as default_settings, setup_logging
from ascii_reel.errors import AsciiReelError
from ascii_reel.media.probe import MediaProbe
from ascii_reel.media.resolution import parse_char_dims, validate_target_request
from ascii_reel.pipeline import encode_video, play_stream
from ascii_reel.playback.surface import TerminalSurface
from ascii_reel.render.renderer import ColorAsciiRenderer


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ascii-reel",
        description="Encode videos into colored text-art streams and play them back",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML config file",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    encode = subparsers.add_parser("encode", help="Convert a video into a frame stream")
    encode.add_argument("video", help="Path to the source video")
    encode.add_argument("--target-width", type=int, default=None, help="Output width in characters")
    encode.add_argument("--target-height", type=int, default=None, help="Output height in lines")
    encode.add_argument(
        "--char-dims",
        type=str,
        default=None,
        help="Character cell aspect as WxH, e.g. 1x2 (default: 1x1)",
    )
    encode.add_argument("-o", "--output", type=str, default=None, help="Output file (default: stdout)")
    encode.add_argument("--armor", action="store_true", help="Base64-armor the compressed stream")
    encode.add_argument("--shallow", action="store_true", help="Use the short character ramp")

    play = subparsers.add_parser("play", help="Play a frame stream in the terminal")
    play.add_argument("stream", help="Path to a frame stream, or - for stdin")
    play.add_argument("--armor", action="store_true", help="The stream is base64-armored")

    return parser


def run_encode(args: argparse.Namespace, config: Settings) -> int:
    # Reject bad size requests before ffprobe or ffmpeg run
    validate_target_request(args.target_width, args.target_height)
    cell = parse_char_dims(args.char_dims)

    renderer = ColorAsciiRenderer(
        deep=config.render.deep and not args.shallow,
        pixel_format=config.tools.pixel_format,
    )
    armor = args.armor or config.encoder.armor

    def encode(sink) -> None:
        encode_video(
            args.video,
            sink,
            target_width=args.target_width,
            target_height=args.target_height,
            cell=cell,
            renderer=renderer,
            probe=MediaProbe(binary=config.tools.ffprobe),
            ffmpeg=config.tools.ffmpeg,
            ffmpeg_loglevel=config.tools.ffmpeg_loglevel,
            pixel_format=config.tools.pixel_format,
            compression_level=config.encoder.compression_level,
            armor=armor,
        )

    if args.output is None:
        encode(sys.stdout.buffer)
    else:
        with open(args.output, "wb") as sink:
            encode(sink)
    return 0


def run_play(args: argparse.Namespace, config: Settings) -> int:
    armor = args.armor or config.encoder.armor
    cell_width = config.playback.cell_width
    cell_height = config.playback.cell_height

    def play(source) -> None:
        with TerminalSurface(cell_width=cell_width, cell_height=cell_height) as surface:
            metrics = asyncio.run(play_stream(
                source,
                surface,
                armor=armor,
                cell_width=cell_width,
                cell_height=cell_height,
            ))
        logger.info(f"Played {metrics.frames_displayed} frames ({metrics.late_frames} late)")

    if args.stream == "-":
        play(sys.stdin.buffer)
    else:
        with open(args.stream, "rb") as source:
            play(source)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config) if args.config else default_settings
    except (ValidationError, yaml.YAMLError) as e:
        setup_logging(Settings())
        logger.error(f"Invalid configuration: {e}")
        return 1
    setup_logging(config)

    try:
        if args.command == "encode":
            return run_encode(args, config)
        return run_play(args, config)
    except AsciiReelError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except OSError as e:
        logger.error(f"I/O error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
