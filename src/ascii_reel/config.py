"""
ascii-reel Configuration
========================

This module handles configuration loading for the encoder and the player.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    ASCII_REEL_FFPROBE           -> tools.ffprobe
    ASCII_REEL_FFMPEG            -> tools.ffmpeg
    ASCII_REEL_COMPRESSION_LEVEL -> encoder.compression_level
    ASCII_REEL_ARMOR             -> encoder.armor
    ASCII_REEL_LOG_LEVEL         -> logging.level
    ASCII_REEL_LOG_FORMAT        -> logging.format

Example:
    from ascii_reel.config import settings

    print(settings.tools.ffmpeg)
    print(settings.encoder.compression_level)
"""

import os
import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ToolsConfig(BaseModel):
    """External media tool configuration."""

    ffprobe: str = Field(default="ffprobe", description="ffprobe binary name or path")
    ffmpeg: str = Field(default="ffmpeg", description="ffmpeg binary name or path")
    ffmpeg_loglevel: str = Field(
        default="error",
        description="Value passed to ffmpeg -loglevel",
    )
    pixel_format: Literal["bgra", "rgba"] = Field(
        default="bgra",
        description="Raw pixel format requested from ffmpeg (4 bytes per pixel)",
    )


class EncoderConfig(BaseModel):
    """Stream encoder configuration."""

    compression_level: int = Field(
        default=9,
        ge=0,
        le=16,
        description="LZ4 frame compression level",
    )
    armor: bool = Field(
        default=False,
        description="Base64-armor the compressed stream for text-only hosts",
    )


class RenderConfig(BaseModel):
    """Default renderer configuration."""

    deep: bool = Field(
        default=True,
        description="Use the long character ramp (more luminance levels)",
    )


class PlaybackConfig(BaseModel):
    """Playback display configuration."""

    cell_width: int = Field(
        default=10,
        ge=1,
        description="Viewport pixels per character column",
    )
    cell_height: int = Field(
        default=30,
        ge=1,
        description="Viewport pixels per character row",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for ascii-reel.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    encoder: EncoderConfig = Field(default_factory=EncoderConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("ascii_reel.yaml"),
            Path("config.yaml"),
            Path.home() / ".config" / "ascii_reel" / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Tool settings
    if env_probe := os.environ.get("ASCII_REEL_FFPROBE"):
        config_data.setdefault("tools", {})["ffprobe"] = env_probe
    if env_ffmpeg := os.environ.get("ASCII_REEL_FFMPEG"):
        config_data.setdefault("tools", {})["ffmpeg"] = env_ffmpeg

    # Encoder settings
    if env_level := os.environ.get("ASCII_REEL_COMPRESSION_LEVEL"):
        config_data.setdefault("encoder", {})["compression_level"] = int(env_level)
    if env_armor := os.environ.get("ASCII_REEL_ARMOR"):
        config_data.setdefault("encoder", {})["armor"] = env_armor.lower() in ("1", "true", "yes")

    # Logging settings
    if env_log := os.environ.get("ASCII_REEL_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log
    if env_fmt := os.environ.get("ASCII_REEL_LOG_FORMAT"):
        config_data.setdefault("logging", {})["format"] = env_fmt


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings. Records go to stderr."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
