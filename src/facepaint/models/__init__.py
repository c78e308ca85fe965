"""
Model Backend for Face Filters
==============================

This package provides the generator architecture and weight management for
the four bundled anime-style filters:

- **Generator**: AnimeGANv2 network shared by all filters
- **Model registry table**: ``ModelIdentifier`` and ``MODEL_CONFIGS``
- **Weight management**: local lookup with optional download
- **Loading**: ``load_pretrained_model`` returns an eval-mode generator

Examples
--------
>>> from facepaint.models import ModelIdentifier, load_pretrained_model
>>> model = load_pretrained_model(ModelIdentifier.PAPRIKA, device="cpu")

See Also
--------
facepaint.core.model_manager : Cached, thread-safe model resolution
"""

from .model import Generator
from .model_util import (
    MODEL_CONFIGS,
    ModelDownloader,
    ModelIdentifier,
    download_model_weights,
    list_available_models,
    load_pretrained_model,
    parse_identifier,
)

__all__ = [
    "Generator",
    "MODEL_CONFIGS",
    "ModelDownloader",
    "ModelIdentifier",
    "download_model_weights",
    "list_available_models",
    "load_pretrained_model",
    "parse_identifier",
]
