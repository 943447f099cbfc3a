"""Overlay Editor Application - Entry Point"""

import logging
import os
import sys

from overlay_editor.main_window import OverlayEditorWindow

__all__ = ["OverlayEditorWindow", "main"]


def main():
    from PyQt5.QtWidgets import QApplication

    logging.basicConfig(
        level=os.environ.get("OVERLAY_EDITOR_LOG", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication(sys.argv)
    app.setApplicationName("Overlay Editor")
    app.setStyle("Fusion")

    window = OverlayEditorWindow()
    window.show()

    # Files passed as arguments form the first batch
    paths = [p for p in sys.argv[1:] if os.path.isfile(p)]
    if paths:
        window._start_batch(paths)

    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
