"""
Application Settings
====================

Environment-driven settings for model storage, device placement, image size
and logging. Values are read once per call to :func:`get_settings`.

Environment Variables
---------------------
FACEPAINT_MODEL_DIR
    Directory holding the generator weights (default ``~/.facepaint/models``)
FACEPAINT_DEVICE
    Torch device string (default ``cpu``)
FACEPAINT_IMAGE_SIZE
    Side length of normalized images (default ``1024``)
FACEPAINT_ALLOW_DOWNLOAD
    ``1`` to fetch missing weights, ``0`` to fail instead (default ``1``)
FACEPAINT_LOG_LEVEL
    Root logger level name (default ``INFO``)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MODEL_DIR = "~/.facepaint/models"
DEFAULT_IMAGE_SIZE = 1024


@dataclass(frozen=True)
class Settings:
    """Resolved application settings."""

    model_dir: Path
    device: str = "cpu"
    image_size: int = DEFAULT_IMAGE_SIZE
    allow_download: bool = True
    log_level: str = "INFO"


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def get_settings() -> Settings:
    """Return settings built from the current environment."""
    model_dir = Path(os.path.expanduser(os.environ.get("FACEPAINT_MODEL_DIR", DEFAULT_MODEL_DIR)))
    image_size = int(os.environ.get("FACEPAINT_IMAGE_SIZE", DEFAULT_IMAGE_SIZE))
    if image_size <= 0:
        raise ValueError(f"FACEPAINT_IMAGE_SIZE must be positive, got {image_size}")
    return Settings(
        model_dir=model_dir,
        device=os.environ.get("FACEPAINT_DEVICE", "cpu"),
        image_size=image_size,
        allow_download=_env_flag("FACEPAINT_ALLOW_DOWNLOAD", True),
        log_level=os.environ.get("FACEPAINT_LOG_LEVEL", "INFO"),
    )
