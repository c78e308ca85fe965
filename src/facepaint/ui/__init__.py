"""
UI Components for FacePaint
===========================

This package provides the PySide6 graphical user interface:

- **MainWindow**: top-level window that hosts the editor
- **EditorTab**: photo picker, original/filtered previews, one button per
  filter, and a revert button

Architecture Notes
------------------
- Filters run through ``core.tasks.submit()`` on the global QThreadPool
- Models are resolved through a shared ``core.ModelManager``
- Session state (original, current, processing) lives in ``core.EditSession``
  and is only touched on the GUI thread
- Starting a filter while another runs cancels the older one

Examples
--------
>>> from PySide6.QtWidgets import QApplication
>>> from facepaint.ui import MainWindow
>>> import sys
>>>
>>> app = QApplication(sys.argv)
>>> window = MainWindow()
>>> window.show()
>>> sys.exit(app.exec())

See Also
--------
facepaint.core : Application logic and state management
apps.gui_app : Entry point for launching the GUI
"""

__all__ = []
