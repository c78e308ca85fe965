"""
Inference Runner
================

This module runs a loaded generator on a normalized image. It is written to
be called from a worker thread (see ``facepaint.core.tasks``); nothing here
touches UI state.

Classes
-------
CancellationToken
    Thread-safe flag used to abandon a superseded request
InferenceResult
    Outcome of one apply call: an image, an error, or a cancellation

Functions
---------
image_to_tensor
    PIL RGB image -> ``(1, 3, H, W)`` tensor in ``[-1, 1]``
tensor_to_image
    Validated generator output -> PIL RGB image
run_inference
    Conversion, forward pass and output conversion for one image
apply_model
    Resolve a model through the registry and run it, returning a result

Notes
-----
Within one call the order is fixed: input conversion, forward pass, output
conversion, orientation normalization. The cancellation token is checked
before the input conversion, before the forward pass and after it, so a
superseded request stops at the next checkpoint and never produces an image.

See Also
--------
facepaint.core.model_manager.ModelManager : Source of loaded models
facepaint.core.session.EditSession : Consumes InferenceResult on the GUI thread
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

import torch
import torchvision.transforms.functional as TF
from PIL import Image

from facepaint.core.image_io import upright
from facepaint.errors import FacePaintError, InferenceCancelled, InferenceError, LoadError

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    Flag shared between the GUI thread and a worker.

    The GUI thread calls :meth:`cancel` when a newer request supersedes the
    one this token belongs to; the worker polls :attr:`cancelled`.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise InferenceCancelled("Request was superseded")


@dataclass
class InferenceResult:
    """
    Outcome of a single apply call.

    Exactly one of ``image``/``error`` is set unless ``cancelled`` is True,
    in which case both are None.

    Attributes
    ----------
    identifier : object
        Requested model identifier
    image : PIL.Image or None
        Stylized image on success
    error : FacePaintError or None
        ``LoadError`` or ``InferenceError`` on failure
    cancelled : bool
        True if the request was superseded before it finished
    """

    identifier: object
    image: Optional[Image.Image] = None
    error: Optional[FacePaintError] = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.image is not None and self.error is None and not self.cancelled


def _model_device(model: torch.nn.Module) -> torch.device:
    for p in model.parameters():
        return p.device
    return torch.device("cpu")


def image_to_tensor(image: Image.Image, device: torch.device | str = "cpu") -> torch.Tensor:
    """
    Convert an image into the generator's input layout.

    Returns
    -------
    torch.Tensor
        Float tensor of shape ``(1, 3, H, W)`` with values in ``[-1, 1]``
    """
    x = TF.to_tensor(image.convert("RGB"))
    return (x * 2.0 - 1.0).unsqueeze(0).to(device)


def tensor_to_image(output) -> Image.Image:
    """
    Convert generator output back into an RGB image.

    Parameters
    ----------
    output : torch.Tensor
        Tensor of shape ``(1, 3, H, W)`` with values in ``[-1, 1]``

    Returns
    -------
    PIL.Image
        RGB image of size ``(W, H)``

    Raises
    ------
    InferenceError
        If ``output`` is not a tensor, is empty, has the wrong shape, or
        contains non-finite values
    """
    if not isinstance(output, torch.Tensor):
        raise InferenceError(f"Model returned {type(output).__name__}, expected a tensor")
    if output.numel() == 0:
        raise InferenceError("Model returned an empty result")
    if output.dim() != 4 or output.shape[0] != 1 or output.shape[1] != 3:
        raise InferenceError(f"Malformed model output with shape {tuple(output.shape)}")

    arr = output[0].detach().float().cpu()
    if not torch.isfinite(arr).all():
        raise InferenceError("Model output contains non-finite values")
    arr = arr.clamp(-1.0, 1.0) * 0.5 + 0.5
    return TF.to_pil_image(arr, mode="RGB")


@torch.inference_mode()
def run_inference(
    model: torch.nn.Module,
    image: Image.Image,
    device: Optional[torch.device | str] = None,
    token: Optional[CancellationToken] = None,
) -> Image.Image:
    """
    Run one forward pass of ``model`` on ``image``.

    Parameters
    ----------
    model : torch.nn.Module
        Loaded generator in eval mode
    image : PIL.Image
        Normalized RGB input; not modified
    device : torch.device or str, optional
        Device for the input tensor. Defaults to the model's device.
    token : CancellationToken, optional
        Checked between stages; when set the call raises InferenceCancelled

    Returns
    -------
    PIL.Image
        Stylized RGB image, upright, same size as the model output

    Raises
    ------
    InferenceCancelled
        If ``token`` is cancelled at a checkpoint
    InferenceError
        If the forward pass or output conversion fails
    """
    token = token or CancellationToken()
    device = torch.device(device) if device is not None else _model_device(model)

    token.raise_if_cancelled()
    try:
        x = image_to_tensor(image, device)
    except (OSError, ValueError, TypeError) as e:
        raise InferenceError(f"Could not convert input image: {e}") from e

    token.raise_if_cancelled()
    try:
        out = model(x)
    except Exception as e:
        raise InferenceError(f"Forward pass failed: {e}") from e

    token.raise_if_cancelled()
    return upright(tensor_to_image(out))


def apply_model(manager, identifier, image: Image.Image, token: Optional[CancellationToken] = None):
    """
    Resolve ``identifier`` through ``manager`` and stylize ``image``.

    This is the function submitted to the worker pool. It never raises for
    expected failures; they come back as an ``InferenceResult``.

    Parameters
    ----------
    manager : ModelManager
        Model registry
    identifier : ModelIdentifier or str
        Filter to apply
    image : PIL.Image
        Normalized input image
    token : CancellationToken, optional
        Cancellation token of the request

    Returns
    -------
    InferenceResult
        Success, failure or cancellation

    Examples
    --------
    >>> result = apply_model(mm, ModelIdentifier.PAPRIKA, session.original)
    >>> if result.ok:
    ...     result.image.save("paprika.png")
    """
    token = token or CancellationToken()
    try:
        token.raise_if_cancelled()
        model = manager.resolve(identifier)
        out = run_inference(model, image, device=manager.device, token=token)
    except InferenceCancelled:
        logger.info("Dropped superseded request for '%s'", identifier)
        return InferenceResult(identifier, cancelled=True)
    except (LoadError, InferenceError) as e:
        logger.warning("Applying '%s' failed: %s", identifier, e)
        return InferenceResult(identifier, error=e)
    return InferenceResult(identifier, image=out)
