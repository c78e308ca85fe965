"""
Model Manager
=============

This module provides the model registry: a thread-safe cache that maps each
filter identifier to one loaded generator. Models are loaded lazily on first
use and kept for the lifetime of the manager.

Classes
-------
ModelManager
    Resolves identifiers to cached, loaded models

Notes
-----
The cache is keyed by ``ModelIdentifier``. Population is single-flight: when
several threads ask for the same unloaded model at once, exactly one of them
runs the loader and the others wait on a shared ``Future`` for its result.

A failed load is remembered. Later requests for the same identifier raise the
same ``LoadError`` without retrying, so a broken asset is reported once per
session instead of being re-read on every tap. A load interrupted by
anything other than ``LoadError`` is not remembered; waiters receive the same
exception and the next call retries.

The manager is an ordinary object owned by the composition root
(``apps/gui_app.py``); tests create their own instances with stub loaders.

See Also
--------
facepaint.models.model_util.load_pretrained_model : Default loader
facepaint.core.inference.apply_model : Resolves then runs a model
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Dict, Optional

import torch

from facepaint.config import DEFAULT_MODEL_DIR
from facepaint.errors import LoadError
from facepaint.models.model_util import ModelIdentifier, load_pretrained_model, parse_identifier

logger = logging.getLogger(__name__)

Loader = Callable[[ModelIdentifier], torch.nn.Module]


class ModelManager:
    """
    Thread-safe model cache with single-flight loading.

    Parameters
    ----------
    device : str, default="cpu"
        Device to load models on ("cpu", "cuda", "mps")
    model_dir : str or Path, default="~/.facepaint/models"
        Directory holding the generator weights
    allow_download : bool, default=True
        Whether the default loader may download missing weights
    loader : callable, optional
        ``loader(identifier) -> torch.nn.Module``. Replaces the default
        ``load_pretrained_model`` call, e.g. in tests.

    Attributes
    ----------
    device : torch.device
        PyTorch device object

    Examples
    --------
    >>> from facepaint.core.model_manager import ModelManager
    >>> from facepaint.models import ModelIdentifier
    >>>
    >>> mm = ModelManager("cpu")
    >>> model = mm.resolve(ModelIdentifier.FACE_PAINT_V2)
    >>> model is mm.resolve("face_paint_512_v2")
    True
    """

    def __init__(
        self,
        device: str = "cpu",
        model_dir=DEFAULT_MODEL_DIR,
        allow_download: bool = True,
        loader: Optional[Loader] = None,
    ):
        self.device = torch.device(device)
        self.model_dir = model_dir
        self.allow_download = allow_download
        self._loader = loader or self._default_loader
        self._lock = threading.Lock()
        self._models: Dict[ModelIdentifier, torch.nn.Module] = {}
        self._failures: Dict[ModelIdentifier, LoadError] = {}
        self._pending: Dict[ModelIdentifier, Future] = {}
        self._load_counts: Dict[ModelIdentifier, int] = {}

    def _default_loader(self, identifier: ModelIdentifier) -> torch.nn.Module:
        return load_pretrained_model(
            identifier,
            device=self.device,
            save_dir=self.model_dir,
            allow_download=self.allow_download,
        )

    def resolve(self, identifier) -> torch.nn.Module:
        """
        Return the loaded model for ``identifier``, loading it on first use.

        Parameters
        ----------
        identifier : ModelIdentifier or str
            Filter to resolve

        Returns
        -------
        torch.nn.Module
            The cached model; the same object on every call

        Raises
        ------
        LoadError
            If the identifier is unknown, or loading failed now or earlier
            in this manager's lifetime

        Notes
        -----
        Resolution:
        1. Parse the identifier (``LoadError`` if unknown)
        2. Return the cached model or re-raise a remembered failure
        3. If another thread is loading it, wait for that load
        4. Otherwise load it here, publish the result, wake the waiters
        """
        ident = parse_identifier(identifier)

        with self._lock:
            if ident in self._models:
                return self._models[ident]
            if ident in self._failures:
                raise self._failures[ident]
            future = self._pending.get(ident)
            owner = future is None
            if owner:
                future = Future()
                self._pending[ident] = future

        if not owner:
            logger.debug("Waiting for in-flight load of '%s'", ident.value)
            return future.result()

        try:
            model = self._load(ident)
        except BaseException as e:
            # waiters must never be left blocked on the future
            with self._lock:
                del self._pending[ident]
                if isinstance(e, LoadError):
                    self._failures[ident] = e
            if isinstance(e, LoadError):
                logger.error("%s", e)
            else:
                logger.warning("Loading '%s' interrupted by %s", ident.value, type(e).__name__)
            future.set_exception(e)
            raise

        with self._lock:
            self._models[ident] = model
            del self._pending[ident]
        future.set_result(model)
        return model

    def _load(self, ident: ModelIdentifier) -> torch.nn.Module:
        with self._lock:
            self._load_counts[ident] = self._load_counts.get(ident, 0) + 1
        logger.info("Loading model '%s' on %s", ident.value, self.device)
        try:
            return self._loader(ident)
        except LoadError:
            raise
        except Exception as e:
            raise LoadError(ident.value, str(e)) from e

    def is_loaded(self, identifier) -> bool:
        """Return True if ``identifier`` has a cached model."""
        ident = parse_identifier(identifier)
        with self._lock:
            return ident in self._models

    def load_count(self, identifier) -> int:
        """Return how many times the loader ran for ``identifier``."""
        ident = parse_identifier(identifier)
        with self._lock:
            return self._load_counts.get(ident, 0)
