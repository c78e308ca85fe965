"""
Model Utilities for Face Filters
================================

This module provides utilities for locating, downloading, and loading the
pretrained style-transfer generators. It handles:

- **Model registry**: The closed set of filter identifiers and their metadata
- **Download management**: Fetching missing weights with progress bars
- **Checkpoint loading**: Safe ``weights_only`` deserialization into a Generator
- **Device placement**: Moving the loaded generator to the configured device

Available Models
----------------
- ``face_paint_512_v1`` : FacePaint v1, strong anime stylization
- ``face_paint_512_v2`` : FacePaint v2, softer and more faithful to the face
- ``paprika`` : Paprika style, vivid colors for scenes
- ``celeba_distill`` : Distilled CelebA model, light stylization

Examples
--------
>>> from facepaint.models.model_util import ModelIdentifier, load_pretrained_model
>>> model = load_pretrained_model(ModelIdentifier.FACE_PAINT_V2)
>>> type(model).__name__
'Generator'
"""

from __future__ import annotations

import enum
import logging
import os
import pickle
from pathlib import Path
from typing import Any, Dict, Optional

import requests
import torch
from tqdm import tqdm

from facepaint.config import DEFAULT_MODEL_DIR
from facepaint.errors import LoadError

logger = logging.getLogger(__name__)

WEIGHTS_BASE_URL = "https://github.com/bryandlee/animegan2-pytorch/raw/main/weights"


class ModelIdentifier(str, enum.Enum):
    """Closed set of bundled face filters."""

    FACE_PAINT_V1 = "face_paint_512_v1"
    FACE_PAINT_V2 = "face_paint_512_v2"
    PAPRIKA = "paprika"
    CELEBA_DISTILL = "celeba_distill"


MODEL_CONFIGS = {
    ModelIdentifier.FACE_PAINT_V1: {
        "display_name": "FacePaint V1",
        "filename": "face_paint_512_v1.pt",
        "description": "Face portrait model with strong anime stylization",
    },
    ModelIdentifier.FACE_PAINT_V2: {
        "display_name": "FacePaint V2",
        "filename": "face_paint_512_v2.pt",
        "description": "Face portrait model, softer and closer to the source face",
    },
    ModelIdentifier.PAPRIKA: {
        "display_name": "Paprika",
        "filename": "paprika.pt",
        "description": "Paprika film style with saturated colors",
    },
    ModelIdentifier.CELEBA_DISTILL: {
        "display_name": "CelebA Distill",
        "filename": "celeba_distill.pt",
        "description": "Lightweight model distilled on CelebA faces",
    },
}


def parse_identifier(value) -> ModelIdentifier:
    """
    Convert a ``ModelIdentifier`` or its string value into a ``ModelIdentifier``.

    Raises
    ------
    LoadError
        If ``value`` names no known model
    """
    if isinstance(value, ModelIdentifier):
        return value
    try:
        return ModelIdentifier(value)
    except ValueError:
        available = ", ".join(m.value for m in ModelIdentifier)
        raise LoadError(value, f"unknown model, available models: {available}") from None


class ModelDownloader:
    """
    Locates generator weights on disk and downloads them when missing.

    Parameters
    ----------
    identifier : ModelIdentifier or str
        Filter to fetch
    save_dir : str or Path, default="~/.facepaint/models"
        Directory where weights are stored (supports ~ expansion)

    Attributes
    ----------
    identifier : ModelIdentifier
        Parsed filter identifier
    config : dict
        Entry from MODEL_CONFIGS
    save_dir : Path
        Expanded absolute path to the weights directory
    model_path : Path
        Full path to the weights file
    model_url : str
        Download URL for the weights

    Raises
    ------
    LoadError
        If ``identifier`` is not a known model

    Notes
    -----
    The downloader:
    - Creates the save directory if it doesn't exist
    - Skips download if the weights already exist
    - Shows a progress bar during download
    - Removes partial downloads on failure
    """

    def __init__(self, identifier, save_dir: str | Path = DEFAULT_MODEL_DIR):
        self.identifier = parse_identifier(identifier)
        self.config = MODEL_CONFIGS[self.identifier]
        self.save_dir = Path(os.path.expanduser(str(save_dir)))
        self.model_path = self.save_dir / self.config["filename"]
        self.model_url = f"{WEIGHTS_BASE_URL}/{self.config['filename']}"

    def download_model(self, allow_download: bool = True) -> Path:
        """
        Return the local weights path, downloading the file if needed.

        Parameters
        ----------
        allow_download : bool, default=True
            If False, a missing file is an error instead of a download

        Returns
        -------
        Path
            Path to the weights file

        Raises
        ------
        LoadError
            If the file is missing and cannot (or may not) be downloaded
        """
        if self.model_path.exists():
            logger.debug("Model '%s' found at %s", self.identifier.value, self.model_path)
            return self.model_path

        if not allow_download:
            raise LoadError(self.identifier.value, f"weights not found at {self.model_path}")

        self.save_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Downloading %s from %s", self.identifier.value, self.model_url)

        try:
            response = requests.get(self.model_url, stream=True, timeout=30)
            response.raise_for_status()

            total_size = int(response.headers.get("content-length", 0))

            with open(self.model_path, "wb") as f:
                with tqdm(
                    desc=f"Downloading {self.identifier.value}",
                    total=total_size,
                    unit="B",
                    unit_scale=True,
                    unit_divisor=1024,
                ) as pbar:
                    for chunk in response.iter_content(chunk_size=8192):
                        if chunk:
                            f.write(chunk)
                            pbar.update(len(chunk))

            logger.info("Model downloaded to %s", self.model_path)
            return self.model_path

        except requests.exceptions.RequestException as e:
            if self.model_path.exists():
                self.model_path.unlink()  # partial download
            raise LoadError(self.identifier.value, f"download failed: {e}") from e


def download_model_weights(
    identifier, save_dir: str | Path = DEFAULT_MODEL_DIR, allow_download: bool = True
) -> Path:
    """
    Download generator weights if needed (convenience wrapper).

    See Also
    --------
    ModelDownloader : Full downloader class
    """
    return ModelDownloader(identifier, save_dir).download_model(allow_download)


def _load_state_dict(model_path: Path, device: torch.device) -> Dict[str, Any]:
    """Read a weights file as a tensor-only state dict."""
    checkpoint = torch.load(model_path, map_location=device, weights_only=True)
    if isinstance(checkpoint, dict):
        state = checkpoint.get("model_state_dict") or checkpoint.get("state_dict") or checkpoint
    else:
        state = checkpoint
    if not isinstance(state, dict):
        raise TypeError(f"expected a state dict, got {type(state).__name__}")
    return state


def load_pretrained_model(
    identifier,
    device: Optional[torch.device | str] = None,
    save_dir: str | Path = DEFAULT_MODEL_DIR,
    allow_download: bool = True,
) -> torch.nn.Module:
    """
    Load a pretrained generator ready for inference.

    Parameters
    ----------
    identifier : ModelIdentifier or str
        Filter to load
    device : torch.device or str, optional
        Device to load the model on. Defaults to CPU.
    save_dir : str or Path, default="~/.facepaint/models"
        Directory where weights are stored
    allow_download : bool, default=True
        Whether missing weights may be downloaded

    Returns
    -------
    torch.nn.Module
        Generator in eval mode on ``device``

    Raises
    ------
    LoadError
        If the identifier is unknown, the weights are missing or corrupt, or
        the model cannot be placed on ``device``

    Notes
    -----
    Steps:
    1. Locate (or download) the weights file
    2. Build the Generator architecture
    3. Load the state dict with ``weights_only=True`` and ``strict=True``
    4. Move to device and switch to eval mode
    """
    from facepaint.models.model import Generator

    ident = parse_identifier(identifier)
    device = torch.device(device or "cpu")
    model_path = download_model_weights(ident, save_dir, allow_download)

    try:
        state = _load_state_dict(model_path, device)
        model = Generator()
        model.load_state_dict(state, strict=True)
        model = model.to(device)
    except (
        RuntimeError,
        TypeError,
        ValueError,
        KeyError,
        EOFError,
        OSError,
        pickle.UnpicklingError,
    ) as e:
        raise LoadError(ident.value, f"corrupt or incompatible weights ({e})") from e

    model.eval()
    logger.info("Loaded model '%s' on %s", ident.value, device)
    return model


def list_available_models() -> Dict[ModelIdentifier, Dict[str, str]]:
    """
    List all bundled filters with display metadata.

    Returns
    -------
    dict
        ``ModelIdentifier`` -> ``{"display_name", "description"}`` in
        declaration order
    """
    return {
        ident: {
            "display_name": config["display_name"],
            "description": config["description"],
        }
        for ident, config in MODEL_CONFIGS.items()
    }
