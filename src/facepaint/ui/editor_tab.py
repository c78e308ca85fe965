"""Photo editor tab for the FacePaint application."""

import logging
from pathlib import Path

import numpy as np
from PIL import Image

from PySide6.QtWidgets import (
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QPushButton,
    QLabel,
    QFileDialog,
    QGroupBox,
    QMessageBox,
)
from PySide6.QtCore import QObject, Qt, Signal, Slot
from PySide6.QtGui import QPixmap, QImage

from facepaint.core.image_io import load_image_bytes
from facepaint.core.inference import apply_model
from facepaint.core.session import EditSession, RequestStatus
from facepaint.core.tasks import submit
from facepaint.errors import InferenceError, LoadError, NormalizationError
from facepaint.models.model_util import list_available_models

logger = logging.getLogger(__name__)

PREVIEW_SIZE = 420


def pil_to_pixmap(image: Image.Image, size: int = PREVIEW_SIZE) -> QPixmap:
    """
    Convert a PIL image to a QPixmap scaled to fit ``size`` x ``size``.

    Parameters
    ----------
    image : PIL.Image
        Image to display
    size : int
        Bounding box side in pixels

    Returns
    -------
    QPixmap
        Smoothly scaled pixmap, aspect ratio preserved
    """
    img_array = np.ascontiguousarray(np.array(image.convert("RGB")))
    height, width, _ = img_array.shape
    q_image = QImage(
        img_array.data,
        width,
        height,
        3 * width,
        QImage.Format.Format_RGB888,
    ).copy()  # detach from the numpy buffer
    pixmap = QPixmap.fromImage(q_image)
    return pixmap.scaled(
        size,
        size,
        Qt.AspectRatioMode.KeepAspectRatio,
        Qt.TransformationMode.SmoothTransformation,
    )


class _PendingApply(QObject):
    """
    Binds one ApplyRequest to the signals of its background task.

    Lives on the GUI thread, so the task's signals reach it through queued
    connections and ``done``/``failed`` fire on the GUI thread.
    """

    done = Signal(object, object)
    failed = Signal(object, object)

    def __init__(self, request, parent=None):
        super().__init__(parent)
        self.request = request
        self.signals = None

    @Slot(object)
    def on_finished(self, result):
        self.done.emit(self.request, result)
        self.deleteLater()

    @Slot(str)
    def on_error(self, message):
        self.failed.emit(self.request, InferenceError(message))
        self.deleteLater()


class EditorTab(QWidget):
    """
    Tab for picking a photo and applying face filters.

    Provides interface for:
    - Loading a photo (normalized to an upright square)
    - Applying one of the bundled filters in the background
    - Comparing original and filtered image side by side
    - Reverting to the original

    Parameters
    ----------
    manager : ModelManager
        Model registry shared by all requests
    session : EditSession, optional
        Editing state; a new one is created if omitted
    parent : QWidget, optional
        Parent widget, by default None

    Attributes
    ----------
    image_path : Path or None
        Currently loaded photo path
    filter_buttons : dict
        ModelIdentifier -> QPushButton
    """

    def __init__(self, manager, session=None, parent=None):
        super().__init__(parent)
        self.manager = manager
        self.session = session or EditSession()
        self.image_path = None
        self.filter_buttons = {}

        self._setup_ui()
        self._refresh()

    def _setup_ui(self):
        """Initialize the user interface components."""
        layout = QVBoxLayout(self)

        title = QLabel("FacePaint")
        title.setStyleSheet("font-size: 20px; font-weight: bold; margin: 10px;")
        layout.addWidget(title)

        layout.addWidget(self._create_image_selection_group())

        images = QHBoxLayout()
        self.original_label = self._create_image_label("Select an image")
        self.current_label = self._create_image_label("")
        images.addWidget(self.original_label)
        images.addWidget(self.current_label)
        layout.addLayout(images, stretch=1)

        layout.addWidget(self._create_filters_group())

        self.status_label = QLabel("")
        self.status_label.setStyleSheet("color: #666;")
        layout.addWidget(self.status_label)

    def _create_image_label(self, text):
        label = QLabel(text)
        label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        label.setMinimumSize(PREVIEW_SIZE, PREVIEW_SIZE)
        label.setStyleSheet("border: 2px solid #ccc; background: #f5f5f5; color: gray;")
        return label

    def _create_image_selection_group(self):
        """
        Create the image selection group box.

        Returns
        -------
        QGroupBox
            Group box containing image selection controls
        """
        group = QGroupBox("Image")
        layout = QHBoxLayout()

        self.file_path_label = QLabel("No file selected")
        self.file_path_label.setStyleSheet("color: #666;")
        layout.addWidget(self.file_path_label, stretch=1)

        select_btn = QPushButton("Choose Image...")
        select_btn.clicked.connect(self._select_image)
        layout.addWidget(select_btn)

        group.setLayout(layout)
        return group

    def _create_filters_group(self):
        """
        Create one button per bundled filter plus a revert button.

        Returns
        -------
        QGroupBox
            Group box containing the filter buttons
        """
        group = QGroupBox("Filters")
        layout = QHBoxLayout()

        for identifier, info in list_available_models().items():
            btn = QPushButton(info["display_name"])
            btn.setToolTip(info["description"])
            btn.clicked.connect(lambda _checked=False, ident=identifier: self.apply_filter(ident))
            layout.addWidget(btn)
            self.filter_buttons[identifier] = btn

        layout.addStretch(1)

        self.revert_btn = QPushButton("Revert")
        self.revert_btn.clicked.connect(self.revert)
        layout.addWidget(self.revert_btn)

        group.setLayout(layout)
        return group

    def _select_image(self):
        """Open a file dialog and load the chosen photo."""
        file_path, _ = QFileDialog.getOpenFileName(
            self,
            "Choose Image",
            "",
            "Image Files (*.png *.jpg *.jpeg *.bmp *.webp *.tif *.tiff);;All Files (*)",
        )
        if file_path:
            self.load_path(Path(file_path))

    def load_path(self, path):
        """
        Read, normalize and display the photo at ``path``.

        Errors are shown to the user; the previously loaded photo stays.
        """
        try:
            self.session.load_image(load_image_bytes(path))
        except (OSError, NormalizationError) as e:
            logger.warning("Could not load %s: %s", path, e)
            self._show_error("Could not load image", str(e))
            return
        self.image_path = Path(path)
        self.file_path_label.setText(str(self.image_path))
        self.status_label.setText("")
        self._refresh()

    def apply_filter(self, identifier):
        """Start applying ``identifier`` to the loaded photo in the background."""
        request = self.session.begin_apply(identifier)
        if request is None:
            return

        pending = _PendingApply(request, self)
        pending.done.connect(self._on_apply_finished)
        pending.failed.connect(self._on_apply_failed)
        signals = submit(apply_model, self.manager, request.identifier, request.image, request.token)
        signals.finished.connect(pending.on_finished)
        signals.error.connect(pending.on_error)
        pending.signals = signals

        self._refresh()

    def revert(self):
        """Show the original photo again."""
        self.session.revert()
        self.status_label.setText("")
        self._refresh()

    def _on_apply_finished(self, request, result):
        """
        Handle a worker result on the GUI thread.

        Parameters
        ----------
        request : ApplyRequest
            Request the result belongs to
        result : InferenceResult
            Result from ``apply_model``
        """
        is_latest = request is self.session.latest_request
        changed = self.session.deliver(request, result)
        if is_latest and not changed and result.error is not None:
            self._show_error("Filter failed", str(result.error), modal=isinstance(result.error, LoadError))
        self._refresh()

    def _on_apply_failed(self, request, error):
        """Handle a worker that raised instead of returning a result."""
        is_latest = request is self.session.latest_request
        self.session.fail(request, error)
        if is_latest and request.status is RequestStatus.FAILED:
            self._show_error("Filter failed", str(error), modal=False)
        self._refresh()

    def _show_error(self, title, message, modal=True):
        self.status_label.setText(f"{title}: {message}")
        if modal:
            QMessageBox.warning(self, title, message)

    def _refresh(self):
        """Sync images, buttons and status with the session."""
        has_image = self.session.has_image
        for btn in self.filter_buttons.values():
            btn.setEnabled(has_image)
        self.revert_btn.setEnabled(has_image and self.session.current is not self.session.original)

        if has_image:
            self.original_label.setPixmap(pil_to_pixmap(self.session.original))
            self.current_label.setPixmap(pil_to_pixmap(self.session.current))

        if self.session.processing:
            name = self.session.latest_request.identifier
            self.status_label.setText(f"Processing {getattr(name, 'value', name)}...")
        elif self.status_label.text().startswith("Processing"):
            self.status_label.setText("")
