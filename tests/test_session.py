"""Edit session: processing flag, failures, revert, superseded requests."""

from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from facepaint.core.image_io import normalize
from facepaint.core.inference import InferenceResult, apply_model
from facepaint.core.session import EditSession, RequestStatus
from facepaint.errors import DecodeError, InferenceError, LoadError
from facepaint.models import ModelIdentifier


@pytest.fixture
def session(photo_bytes):
    s = EditSession(image_size=64)
    s.load_image(photo_bytes(120, 80))
    return s


def _ok(identifier, color=(1, 2, 3)):
    return InferenceResult(identifier, image=Image.new("RGB", (64, 64), color))


def test_new_session_is_empty():
    s = EditSession()
    assert not s.has_image
    assert not s.processing
    assert s.begin_apply(ModelIdentifier.PAPRIKA) is None
    assert s.revert() is None


def test_load_image_sets_original_and_current(session):
    assert session.original.size == (64, 64)
    assert session.current is session.original
    assert not session.processing


def test_processing_flag_toggles_once_on_success(session):
    req = session.begin_apply(ModelIdentifier.PAPRIKA)
    assert req.processing and session.processing

    assert session.deliver(req, _ok(req.identifier)) is True
    assert not req.processing and not session.processing
    assert req.status is RequestStatus.SUCCEEDED

    # a second delivery is ignored and cannot flip anything
    assert session.deliver(req, _ok(req.identifier, (9, 9, 9))) is False
    assert req.status is RequestStatus.SUCCEEDED
    assert session.current.getpixel((0, 0)) == (1, 2, 3)


def test_failure_keeps_current_and_clears_flag(session):
    first = session.begin_apply(ModelIdentifier.FACE_PAINT_V1)
    session.deliver(first, _ok(first.identifier))
    shown = session.current

    req = session.begin_apply(ModelIdentifier.FACE_PAINT_V2)
    err = InferenceError("malformed output")
    assert session.deliver(req, InferenceResult(req.identifier, error=err)) is False
    assert req.status is RequestStatus.FAILED
    assert not session.processing
    assert session.current is shown
    assert session.last_error is err


def test_fail_helper(session):
    req = session.begin_apply(ModelIdentifier.PAPRIKA)
    assert session.fail(req, LoadError("paprika", "missing")) is False
    assert req.status is RequestStatus.FAILED
    assert isinstance(session.last_error, LoadError)
    assert session.current is session.original


def test_revert_restores_normalized_original(photo_bytes):
    raw = photo_bytes(300, 200)
    s = EditSession(image_size=64)
    s.load_image(raw)

    req = s.begin_apply(ModelIdentifier.CELEBA_DISTILL)
    s.deliver(req, _ok(req.identifier))
    assert s.current is not s.original

    s.revert()
    assert s.current is s.original
    np.testing.assert_array_equal(np.array(s.current), np.array(normalize(raw, 64)))


def test_filters_apply_to_original_not_previous_output(session):
    req1 = session.begin_apply(ModelIdentifier.FACE_PAINT_V1)
    session.deliver(req1, _ok(req1.identifier))
    req2 = session.begin_apply(ModelIdentifier.FACE_PAINT_V2)
    assert req2.image is session.original


def test_newer_request_cancels_older(session):
    old = session.begin_apply(ModelIdentifier.FACE_PAINT_V1)
    new = session.begin_apply(ModelIdentifier.FACE_PAINT_V2)

    assert old.token.cancelled
    assert old.status is RequestStatus.CANCELLED
    assert not old.processing
    assert session.processing
    assert session.latest_request is new


def test_late_stale_result_is_dropped(session):
    old = session.begin_apply(ModelIdentifier.FACE_PAINT_V1)
    new = session.begin_apply(ModelIdentifier.FACE_PAINT_V2)

    assert session.deliver(new, _ok(new.identifier, (0, 255, 0))) is True
    # the slower, older model finishes afterwards
    assert session.deliver(old, _ok(old.identifier, (255, 0, 0))) is False
    assert session.current.getpixel((0, 0)) == (0, 255, 0)


def test_early_stale_result_is_dropped(session):
    old = session.begin_apply(ModelIdentifier.FACE_PAINT_V1)
    new = session.begin_apply(ModelIdentifier.FACE_PAINT_V2)

    assert session.deliver(old, _ok(old.identifier, (255, 0, 0))) is False
    assert session.current is session.original
    assert session.processing

    assert session.deliver(new, _ok(new.identifier, (0, 255, 0))) is True
    assert session.current.getpixel((0, 0)) == (0, 255, 0)
    assert not session.processing


def test_revert_cancels_running_request(session):
    req = session.begin_apply(ModelIdentifier.PAPRIKA)
    session.revert()
    assert req.token.cancelled
    assert not session.processing
    assert session.deliver(req, _ok(req.identifier)) is False
    assert session.current is session.original


def test_bad_image_keeps_previous(session):
    before = session.original
    with pytest.raises(DecodeError):
        session.load_image(b"definitely not a jpeg")
    assert session.original is before


def test_loading_new_image_cancels_running_request(session, photo_bytes):
    req = session.begin_apply(ModelIdentifier.PAPRIKA)
    session.load_image(photo_bytes(50, 90))
    assert req.token.cancelled
    assert session.deliver(req, _ok(req.identifier)) is False
    assert session.current is session.original


def test_end_to_end_all_filters(photo_bytes, manager):
    s = EditSession()
    s.load_image(photo_bytes(4000, 3000))
    assert s.original.size == (1024, 1024)

    for ident in ModelIdentifier:
        req = s.begin_apply(ident)
        assert s.processing
        result = apply_model(manager, req.identifier, req.image, req.token)
        assert s.deliver(req, result) is True
        assert s.current.size == (1024, 1024)
        assert not s.processing

    with pytest.raises(LoadError):
        manager.resolve("not_a_model")

    req = s.begin_apply("not_a_model")
    result = apply_model(manager, req.identifier, req.image, req.token)
    assert s.deliver(req, result) is False
    assert isinstance(s.last_error, LoadError)
    assert not s.processing
