"""
Edit Session State
==================

This module holds the per-window editing state: the normalized original
photo, the image currently shown, and the bookkeeping for apply requests.
All methods must be called from the GUI thread; workers only ever see the
immutable input image and a cancellation token.

Classes
-------
RequestStatus
    Lifecycle states of an apply request
ApplyRequest
    One user-triggered filter application
EditSession
    Original/current images, processing flag, apply and revert

Notes
-----
**Overlapping requests use cancel-previous.** Starting a new apply cancels
the token of the running one. The superseded worker stops at its next
checkpoint, and if its result still arrives it is discarded by
:meth:`EditSession.deliver`. Only the most recent request can change the
displayed image, so a slow model can never overwrite a newer choice.

Every request leaves ``RUNNING`` exactly once. A second delivery for the
same request is ignored.

See Also
--------
facepaint.core.inference.apply_model : Produces the results delivered here
facepaint.ui.editor_tab : Drives the session from the GUI
"""

from __future__ import annotations

import enum
import itertools
import logging
from typing import Optional

from PIL import Image

from facepaint.config import DEFAULT_IMAGE_SIZE
from facepaint.core.image_io import normalize
from facepaint.core.inference import CancellationToken, InferenceResult
from facepaint.errors import FacePaintError

logger = logging.getLogger(__name__)


class RequestStatus(enum.Enum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ApplyRequest:
    """
    A single apply call from the user.

    Attributes
    ----------
    request_id : int
        Monotonic id within the session
    identifier : ModelIdentifier or str
        Requested filter
    image : PIL.Image
        Input image handed to the worker
    token : CancellationToken
        Cancelled when a newer request supersedes this one
    status : RequestStatus
        Current lifecycle state
    """

    def __init__(self, request_id: int, identifier, image: Image.Image):
        self.request_id = request_id
        self.identifier = identifier
        self.image = image
        self.token = CancellationToken()
        self.status = RequestStatus.RUNNING

    @property
    def processing(self) -> bool:
        return self.status is RequestStatus.RUNNING

    def finish(self, status: RequestStatus) -> bool:
        """Leave RUNNING; returns False if the request had already finished."""
        if self.status is not RequestStatus.RUNNING:
            return False
        self.status = status
        return True

    def __repr__(self):
        return f"ApplyRequest(id={self.request_id}, identifier={self.identifier!r}, status={self.status.value})"


class EditSession:
    """
    Editing state for one window.

    Parameters
    ----------
    image_size : int, default=1024
        Side length images are normalized to

    Attributes
    ----------
    original : PIL.Image or None
        Normalized photo as loaded
    current : PIL.Image or None
        Image currently displayed (original or last filter output)
    last_error : FacePaintError or None
        Error of the most recent failed request, cleared on success

    Examples
    --------
    >>> session = EditSession()
    >>> session.load_image(raw_bytes)
    >>> req = session.begin_apply(ModelIdentifier.PAPRIKA)
    >>> result = apply_model(mm, req.identifier, req.image, req.token)  # worker
    >>> session.deliver(req, result)  # GUI thread
    True
    >>> session.revert()
    """

    def __init__(self, image_size: int = DEFAULT_IMAGE_SIZE):
        self.image_size = image_size
        self.original: Optional[Image.Image] = None
        self.current: Optional[Image.Image] = None
        self.last_error: Optional[FacePaintError] = None
        self._latest: Optional[ApplyRequest] = None
        self._ids = itertools.count(1)

    @property
    def has_image(self) -> bool:
        return self.original is not None

    @property
    def processing(self) -> bool:
        """True while the most recent apply request is still running."""
        return self._latest is not None and self._latest.processing

    @property
    def latest_request(self) -> Optional[ApplyRequest]:
        return self._latest

    def load_image(self, raw: bytes) -> Image.Image:
        """
        Normalize a newly selected photo and make it the original.

        Raises
        ------
        DecodeError, GeometryError
            Propagated from the normalizer; the previous images are kept
        """
        img = normalize(raw, self.image_size)
        self._cancel_latest()
        self.original = img
        self.current = img
        self.last_error = None
        logger.info("Loaded new image (%dx%d)", img.width, img.height)
        return img

    def begin_apply(self, identifier) -> Optional[ApplyRequest]:
        """
        Start an apply request for ``identifier``.

        Filters are always applied to the normalized original, not stacked on
        the previous output. Any running request is cancelled.

        Returns
        -------
        ApplyRequest or None
            The new request, or None when no image is loaded
        """
        if self.original is None:
            return None
        self._cancel_latest()
        req = ApplyRequest(next(self._ids), identifier, self.original)
        self._latest = req
        logger.debug("Started %r", req)
        return req

    def deliver(self, request: ApplyRequest, result: InferenceResult) -> bool:
        """
        Hand a worker result back to the session.

        Parameters
        ----------
        request : ApplyRequest
            Request the result belongs to
        result : InferenceResult
            Outcome from ``apply_model``

        Returns
        -------
        bool
            True if ``current`` was replaced by the result image
        """
        stale = request is not self._latest or request.token.cancelled
        if result.cancelled or stale:
            status = RequestStatus.CANCELLED
        elif result.ok:
            status = RequestStatus.SUCCEEDED
        else:
            status = RequestStatus.FAILED

        if not request.finish(status):
            logger.debug("Ignoring repeated delivery for %r", request)
            return False

        if status is RequestStatus.CANCELLED:
            logger.debug("Discarded result of superseded %r", request)
            return False
        if status is RequestStatus.FAILED:
            self.last_error = result.error
            return False

        self.current = result.image
        self.last_error = None
        return True

    def fail(self, request: ApplyRequest, error: FacePaintError) -> bool:
        """Deliver a failure for ``request`` (e.g. the worker raised)."""
        return self.deliver(request, InferenceResult(request.identifier, error=error))

    def revert(self) -> Optional[Image.Image]:
        """Show the normalized original again and drop any running request."""
        self._cancel_latest()
        self.current = self.original
        return self.current

    def _cancel_latest(self) -> None:
        req = self._latest
        if req is not None and req.processing:
            req.token.cancel()
            req.finish(RequestStatus.CANCELLED)
            logger.info("Cancelled %r", req)
