"""
Error Types
===========

Exception hierarchy shared by the image normalizer, the model registry and
the inference runner.

Classes
-------
FacePaintError
    Base class for all application errors
NormalizationError
    Input image could not be turned into a model-ready square
DecodeError
    Input bytes are not a readable image
GeometryError
    Image has zero width or height
LoadError
    A model asset is missing, corrupt, or cannot run on the device
InferenceError
    Tensor conversion or the forward pass failed
InferenceCancelled
    A newer request superseded the running one

Notes
-----
None of these errors is fatal to the process. ``LoadError`` is fatal only for
its model identifier within one ``ModelManager``; the UI reports it and keeps
running.
"""


class FacePaintError(Exception):
    """Base class for all FacePaint errors."""


class NormalizationError(FacePaintError):
    """Raised when a user image cannot be normalized."""


class DecodeError(NormalizationError):
    """Raised when input bytes are not a recognizable image format."""


class GeometryError(NormalizationError):
    """Raised when an image has degenerate (zero) dimensions."""


class LoadError(FacePaintError):
    """
    Raised when a model cannot be resolved.

    Parameters
    ----------
    identifier : str
        Model identifier (or the raw value that failed to parse)
    reason : str
        Human readable reason
    """

    def __init__(self, identifier, reason: str):
        self.identifier = identifier
        self.reason = reason
        super().__init__(f"Could not load model '{identifier}': {reason}")


class InferenceError(FacePaintError):
    """Raised when inference or output conversion fails."""


class InferenceCancelled(InferenceError):
    """Raised when a cancellation token is set during inference."""
