"""Main window for the FacePaint application."""

from PySide6.QtWidgets import QMainWindow, QWidget, QVBoxLayout, QLabel
from PySide6.QtCore import Qt


class MainWindow(QMainWindow):
    """
    Main application window hosting the editor.

    Parameters
    ----------
    parent : QWidget, optional
        Parent widget, by default None
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("FacePaint: Anime Face Filters")
        self.setMinimumSize(960, 720)
        self.editor_tab = None

        self.setCentralWidget(self._create_placeholder("Loading..."))

    def _create_placeholder(self, title):
        """
        Create a placeholder widget shown until the editor is attached.

        Parameters
        ----------
        title : str
            Title text to display in the placeholder

        Returns
        -------
        QWidget
            Placeholder widget with centered title
        """
        widget = QWidget()
        layout = QVBoxLayout(widget)
        label = QLabel(title)
        label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        label.setStyleSheet("font-size: 18px; color: #666;")
        layout.addWidget(label)
        return widget

    def set_editor_tab(self, tab_widget):
        """
        Replace the placeholder with the editor.

        Parameters
        ----------
        tab_widget : QWidget
            The editor widget
        """
        self.editor_tab = tab_widget
        self.setCentralWidget(tab_widget)
