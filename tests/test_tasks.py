"""QThreadPool task wrapper: results and errors arrive on the GUI thread."""

from __future__ import annotations

import threading

import pytest

QtCore = pytest.importorskip("PySide6.QtCore")

from facepaint.core.tasks import submit  # noqa: E402


class _Collector(QtCore.QObject):
    def __init__(self):
        super().__init__()
        self.loop = QtCore.QEventLoop()
        self.results = []
        self.errors = []
        self.slot_threads = []

    @QtCore.Slot(object)
    def on_finished(self, result):
        self.results.append(result)
        self.slot_threads.append(threading.get_ident())
        self.loop.quit()

    @QtCore.Slot(str)
    def on_error(self, message):
        self.errors.append(message)
        self.slot_threads.append(threading.get_ident())
        self.loop.quit()

    def wait(self, signals, timeout_ms=5000):
        signals.finished.connect(self.on_finished)
        signals.error.connect(self.on_error)
        QtCore.QTimer.singleShot(timeout_ms, self.loop.quit)
        self.loop.exec()


def test_submit_delivers_result_on_main_thread(qapp):
    worker_threads = []

    def work(a, b=0):
        worker_threads.append(threading.get_ident())
        return a + b

    c = _Collector()
    c.wait(submit(work, 2, b=3))

    assert c.results == [5]
    assert c.errors == []
    assert worker_threads and worker_threads[0] != threading.get_ident()
    assert c.slot_threads == [threading.get_ident()]


def test_submit_reports_errors(qapp):
    def work():
        raise ValueError("bad input")

    c = _Collector()
    c.wait(submit(work))

    assert c.results == []
    assert c.errors == ["bad input"]
