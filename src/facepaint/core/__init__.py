"""
Core Application Logic for FacePaint
====================================

This package contains the non-visual logic behind the FacePaint desktop
application:

- **Image I/O**: Decode, orientation fix, center crop and resize to 1024x1024
- **Model management**: Thread-safe, single-flight cache of loaded generators
- **Inference**: Tensor conversion, forward pass, cancellation, result values
- **Session state**: Original/current image, processing flag, apply/revert
- **Background tasks**: QThreadPool execution with signals to the GUI thread

Control Flow
------------
1. ``EditSession.load_image`` normalizes the picked photo
2. ``EditSession.begin_apply`` creates a request (cancelling any running one)
3. ``tasks.submit(apply_model, ...)`` resolves the model and runs it on a worker
4. ``EditSession.deliver`` applies the result on the GUI thread if still current

Examples
--------
>>> from facepaint.core import EditSession, ModelManager, apply_model
>>> from facepaint.models import ModelIdentifier
>>>
>>> mm = ModelManager("cpu")
>>> session = EditSession()
>>> session.load_image(open("portrait.jpg", "rb").read())
>>> req = session.begin_apply(ModelIdentifier.FACE_PAINT_V2)
>>> session.deliver(req, apply_model(mm, req.identifier, req.image, req.token))
True

Modules
-------
image_io
    Photo decoding and normalization
model_manager
    Model registry with lazy, single-flight loading
inference
    Runs a generator on an image, returns InferenceResult
session
    GUI-thread editing state
tasks
    QThreadPool wrapper for background task execution

See Also
--------
facepaint.models : Generator architecture and weight loading
facepaint.ui : PySide6 GUI components
"""

from .image_io import load_image_bytes, normalize
from .inference import CancellationToken, InferenceResult, apply_model, run_inference
from .model_manager import ModelManager
from .session import ApplyRequest, EditSession, RequestStatus

__all__ = [
    "ApplyRequest",
    "CancellationToken",
    "EditSession",
    "InferenceResult",
    "ModelManager",
    "RequestStatus",
    "apply_model",
    "load_image_bytes",
    "normalize",
    "run_inference",
]
