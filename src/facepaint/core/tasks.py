"""
Background Task Execution
==========================

This module provides Qt-based background task execution using QThreadPool.
Model loading and inference run off the GUI thread so the window stays
responsive; results come back through Qt signals, which are delivered on the
GUI thread where session state may be mutated.

Classes
-------
TaskSignals
    Qt signals for communicating task results/errors from worker threads
Task
    QRunnable wrapper for executing arbitrary functions in background

Functions
---------
submit
    Submit a function for background execution

Notes
-----
Connect the signals to methods of QObjects that live on the GUI thread (for
example the editor widget). Qt then queues the emit from the worker thread
and runs the slot on the GUI thread.
Exactly one of ``finished`` or ``error`` is emitted per task.

Examples
--------
>>> from facepaint.core.tasks import submit
>>> from facepaint.core.inference import apply_model
>>>
>>> signals = submit(apply_model, manager, identifier, image, token)
>>> signals.finished.connect(pending.on_finished)
>>> signals.error.connect(pending.on_error)

See Also
--------
facepaint.ui.editor_tab : Uses tasks for filter application
"""

import logging

from PySide6.QtCore import QObject, Signal, QRunnable, QThreadPool, QTimer

logger = logging.getLogger(__name__)


class TaskSignals(QObject):
    """
    Qt signals for communicating task status from worker threads.

    Signals
    -------
    finished : Signal(object)
        Emitted when task completes successfully, carries return value
    error : Signal(str)
        Emitted when task raises exception, carries error message
    """

    finished = Signal(object)
    error = Signal(str)


class Task(QRunnable):
    """
    Background task wrapper for executing functions in Qt thread pool.

    Parameters
    ----------
    fn : callable
        Function to execute in background
    *args : tuple
        Positional arguments to pass to fn
    **kwargs : dict
        Keyword arguments to pass to fn

    Attributes
    ----------
    signals : TaskSignals
        Signal object for result communication

    Notes
    -----
    Exceptions raised by fn are caught, logged with their traceback and
    converted to an error signal carrying the exception message.
    """

    def __init__(self, fn, *args, **kwargs):
        super().__init__()
        self.fn = fn
        self.args = args
        self.kwargs = kwargs
        self.signals = TaskSignals()

    def run(self):
        """Execute the wrapped function and emit result or error signal."""
        try:
            res = self.fn(*self.args, **self.kwargs)
        except Exception as e:
            logger.exception("Background task %s failed", getattr(self.fn, "__name__", self.fn))
            self.signals.error.emit(str(e))
            return
        self.signals.finished.emit(res)


_pool = QThreadPool.globalInstance()


def submit(fn, *args, **kwargs):
    """
    Submit a function for background execution in the global thread pool.

    Parameters
    ----------
    fn : callable
        Function to execute in background
    *args : tuple
        Positional arguments for fn
    **kwargs : dict
        Keyword arguments for fn

    Returns
    -------
    TaskSignals
        Signal object with finished/error signals

    Notes
    -----
    The task is handed to the pool on the next event loop iteration, so
    slots connected right after ``submit`` returns never miss a fast result.
    Requires a running Qt event loop.
    """
    t = Task(fn, *args, **kwargs)
    QTimer.singleShot(0, lambda: _pool.start(t))
    return t.signals
