#!/usr/bin/env python
"""
FacePaint GUI Application Entry Point.

This script launches the graphical user interface for applying anime-style
face filters to photos.
"""

import logging
import sys
from pathlib import Path

# Add src to path for development
src_path = Path(__file__).parent.parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from PySide6.QtWidgets import QApplication  # noqa: E402
from facepaint.config import get_settings  # noqa: E402
from facepaint.core.model_manager import ModelManager  # noqa: E402
from facepaint.core.session import EditSession  # noqa: E402
from facepaint.log import configure_logging  # noqa: E402
from facepaint.ui.editor_tab import EditorTab  # noqa: E402
from facepaint.ui.main_window import MainWindow  # noqa: E402

logger = logging.getLogger("facepaint")


def main():
    """
    Launch the FacePaint GUI application.

    Returns
    -------
    int
        Exit code (0 for success)
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Starting FacePaint (device=%s, models=%s)", settings.device, settings.model_dir)

    # Create application
    app = QApplication(sys.argv)
    app.setApplicationName("FacePaint")
    app.setOrganizationName("FacePaint")
    app.setStyle("Fusion")

    # Composition root: one model cache and one session per window
    manager = ModelManager(
        settings.device,
        model_dir=settings.model_dir,
        allow_download=settings.allow_download,
    )
    session = EditSession(image_size=settings.image_size)

    window = MainWindow()
    window.set_editor_tab(EditorTab(manager, session))
    window.show()

    # Optional photo path on the command line
    if len(sys.argv) > 1:
        window.editor_tab.load_path(Path(sys.argv[1]))

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
