"""
Application entry point and dark-theme stylesheet.

Usage:
    python -m image_crop_tool
    image-crop-tool          (after pip install)
"""

import logging
import sys
from pathlib import Path

from PyQt6.QtWidgets import QApplication

from image_crop_tool.config import APP_NAME, LOG_FORMAT, log_level
from image_crop_tool.main_window import MainWindow

DARK_STYLESHEET = """
    QMainWindow { background: #2b2b2b; }
    QWidget { background: #2b2b2b; color: #ddd; font-size: 10pt; }
    QGroupBox { border: 1px solid #555; border-radius: 4px; margin-top: 8px; padding-top: 12px; font-weight: bold; }
    QGroupBox::title { subcontrol-origin: margin; left: 8px; padding: 0 4px; }
    QPushButton { background: #3a3a3a; border: 1px solid #555; border-radius: 4px; padding: 6px 12px; }
    QPushButton:hover { background: #4a4a4a; }
    QPushButton:pressed { background: #2a2a2a; }
    QPushButton:disabled { color: #666; }
    QLineEdit, QComboBox { background: #1e1e1e; border: 1px solid #444; padding: 3px; }
    QLineEdit:disabled { color: #666; }
    QToolBar { background: #333; border-bottom: 1px solid #444; spacing: 4px; padding: 4px; }
    QStatusBar { background: #333; border-top: 1px solid #444; }
"""


def main():
    logging.basicConfig(level=log_level(), format=LOG_FORMAT)

    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setStyleSheet(DARK_STYLESHEET)

    window = MainWindow()
    window.show()
    if len(sys.argv) > 1:
        window.open_image(Path(sys.argv[1]))

    try:
        sys.exit(app.exec())
    except (SystemExit, KeyboardInterrupt):
        pass


if __name__ == "__main__":
    main()
