"""Editor tab: worker failures reach the user through the session."""

from __future__ import annotations

import pytest

pytest.importorskip("PySide6.QtWidgets")

from facepaint.core.session import EditSession, RequestStatus  # noqa: E402
from facepaint.errors import InferenceError  # noqa: E402
from facepaint.models import ModelIdentifier  # noqa: E402
from facepaint.ui.editor_tab import EditorTab, _PendingApply  # noqa: E402


@pytest.fixture
def tab(qapp, manager, photo_bytes):
    session = EditSession(image_size=64)
    session.load_image(photo_bytes(120, 80))
    return EditorTab(manager, session)


def _pending_for(tab, request):
    pending = _PendingApply(request, tab)
    pending.failed.connect(tab._on_apply_failed)
    return pending


def test_worker_error_marks_request_failed(tab):
    request = tab.session.begin_apply(ModelIdentifier.PAPRIKA)
    assert tab.session.processing

    _pending_for(tab, request).on_error("worker crashed")

    assert request.status is RequestStatus.FAILED
    assert not tab.session.processing
    assert isinstance(tab.session.last_error, InferenceError)
    assert str(tab.session.last_error) == "worker crashed"
    assert tab.session.current is tab.session.original
    assert "worker crashed" in tab.status_label.text()


def test_worker_error_of_superseded_request_is_silent(tab):
    old = tab.session.begin_apply(ModelIdentifier.PAPRIKA)
    new = tab.session.begin_apply(ModelIdentifier.FACE_PAINT_V1)

    _pending_for(tab, old).on_error("too late")

    assert old.status is RequestStatus.CANCELLED
    assert new.processing
    assert tab.session.last_error is None
    assert "too late" not in tab.status_label.text()


def test_filter_buttons_follow_image_state(qapp, manager):
    empty = EditorTab(manager, EditSession(image_size=64))
    assert len(empty.filter_buttons) == len(ModelIdentifier)
    assert not any(btn.isEnabled() for btn in empty.filter_buttons.values())
    assert not empty.revert_btn.isEnabled()
