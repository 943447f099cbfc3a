"""
Overlay Editor main window
- Open one or more images / PDFs and step through them
- Apply a text or image watermark and a drawn or uploaded signature
- Drag, resize and rotate overlays on the canvas; nudge them with the arrow pads
- Page through PDFs; overlays follow the page change
- Process & Continue: export the current file with overlays burned in
"""

import logging
import os

from PyQt5.QtWidgets import (
    QMainWindow, QAction, QFileDialog, QLabel, QMessageBox, QScrollArea,
    QDockWidget, QWidget, QVBoxLayout, QToolBar,
)
from PyQt5.QtCore import Qt, QByteArray

from overlay_editor.canvas_view import EditorCanvas
from overlay_editor.dialogs import NudgePad, SignaturePanel, WatermarkPanel
from overlay_editor.errors import LoadError, OverlayEditorError
from overlay_editor.loader import guess_mime_type, load_overlay_image
from overlay_editor.models.annotation import AnnotationObject
from overlay_editor.models.watermark import WatermarkSettings
from overlay_editor.session import EditorSession
from overlay_editor.settings import EditorSettings

logger = logging.getLogger(__name__)

FILE_FILTER = "Images & PDFs (*.png *.jpg *.jpeg *.gif *.webp *.bmp *.pdf);;All Files (*)"
MAX_BATCH = 10
MAX_FILE_BYTES = 10 * 1024 * 1024


# ---------------------------------------------------------------------------
# Main Window
# ---------------------------------------------------------------------------
class OverlayEditorWindow(QMainWindow):

    def __init__(self, settings=None):
        super().__init__()
        self.setWindowTitle("Overlay Editor")
        self.resize(1200, 800)

        self._settings = settings or EditorSettings().load()
        self._watermark = WatermarkSettings.from_settings(self._settings)
        self._session = None
        self._queue = []       # file paths of the current batch
        self._index = -1
        self._processed = []   # saved output paths

        self._setup_ui()
        self._create_actions()
        self._create_toolbar()
        self._create_docks()
        self._update_ui_state()
        self._restore_window()

    # -- layout ----------------------------------------------------------------
    def _setup_ui(self):
        container = QWidget()
        vbox = QVBoxLayout(container)
        vbox.setContentsMargins(0, 0, 0, 0)

        self._header = QLabel("Open images or PDFs to start")
        self._header.setAlignment(Qt.AlignCenter)
        vbox.addWidget(self._header)

        self._canvas = EditorCanvas(self)
        self._canvas.status_msg.connect(self.statusBar().showMessage)
        self._scroll = QScrollArea()
        self._scroll.setAlignment(Qt.AlignCenter)
        self._scroll.setWidget(self._canvas)
        self._scroll.setWidgetResizable(False)
        vbox.addWidget(self._scroll, 1)

        self.setCentralWidget(container)

    def _create_actions(self):
        self._act_open = QAction("📂 Open…", self)
        self._act_open.setShortcut("Ctrl+O")
        self._act_open.triggered.connect(self._open_files)

        self._act_prev = QAction("◀ Previous", self)
        self._act_prev.setShortcut("PgUp")
        self._act_prev.triggered.connect(self._prev_page)

        self._act_next = QAction("Next ▶", self)
        self._act_next.setShortcut("PgDown")
        self._act_next.triggered.connect(self._next_page)

        self._act_skip = QAction("⏭ Skip File", self)
        self._act_skip.triggered.connect(self._skip_file)

        self._act_process = QAction("💾 Process && Continue", self)
        self._act_process.setShortcut("Ctrl+S")
        self._act_process.triggered.connect(self._process)

        self._act_quit = QAction("Quit", self)
        self._act_quit.setShortcut("Ctrl+Q")
        self._act_quit.triggered.connect(self.close)

        file_menu = self.menuBar().addMenu("&File")
        file_menu.addAction(self._act_open)
        self._recent_menu = file_menu.addMenu("Recent Files")
        self._rebuild_recent_menu()
        file_menu.addSeparator()
        file_menu.addAction(self._act_process)
        file_menu.addAction(self._act_skip)
        file_menu.addSeparator()
        file_menu.addAction(self._act_quit)

    def _create_toolbar(self):
        tb = QToolBar("Main")
        tb.setObjectName("mainToolbar")
        tb.setMovable(False)
        tb.addAction(self._act_open)
        tb.addSeparator()
        tb.addAction(self._act_prev)
        self._page_label = QLabel("  –  ")
        tb.addWidget(self._page_label)
        tb.addAction(self._act_next)
        tb.addSeparator()
        tb.addAction(self._act_skip)
        tb.addAction(self._act_process)
        self.addToolBar(tb)

    def _create_docks(self):
        panel = QWidget()
        lay = QVBoxLayout(panel)

        self._wm_panel = WatermarkPanel(self._watermark)
        self._wm_panel.setting_changed.connect(self._on_watermark_setting)
        self._wm_panel.image_chosen.connect(self._on_watermark_image)
        self._wm_panel.apply_requested.connect(self._apply_watermark)
        self._wm_panel.remove_requested.connect(self._remove_watermark)
        lay.addWidget(self._wm_panel)

        self._wm_nudge = NudgePad("Move Watermark", AnnotationObject.WATERMARK_TAG)
        self._wm_nudge.nudge_started.connect(self._start_nudge)
        self._wm_nudge.nudge_stopped.connect(self._stop_nudge)
        lay.addWidget(self._wm_nudge)

        self._sig_panel = SignaturePanel(self._settings["pen_color"])
        self._sig_panel.apply_requested.connect(self._apply_signature)
        self._sig_panel.remove_requested.connect(self._remove_signature)
        lay.addWidget(self._sig_panel)

        self._sig_nudge = NudgePad("Move Signature", AnnotationObject.SIGNATURE_TAG)
        self._sig_nudge.nudge_started.connect(self._start_nudge)
        self._sig_nudge.nudge_stopped.connect(self._stop_nudge)
        lay.addWidget(self._sig_nudge)
        lay.addStretch(1)

        scroll = QScrollArea()
        scroll.setWidget(panel)
        scroll.setWidgetResizable(True)
        dock = QDockWidget("Overlays", self)
        dock.setObjectName("overlayDock")
        dock.setWidget(scroll)
        dock.setFeatures(QDockWidget.DockWidgetMovable)
        self.addDockWidget(Qt.RightDockWidgetArea, dock)

    # -- state helpers ------------------------------------------------------------
    def _update_ui_state(self):
        s = self._session
        has = s is not None
        busy = has and s.busy
        self._act_process.setEnabled(has and not busy)
        self._act_skip.setEnabled(0 <= self._index < len(self._queue))
        self._act_prev.setEnabled(has and s.document.is_pdf and s.current_page > 1)
        self._act_next.setEnabled(has and s.document.is_pdf and s.current_page < s.page_count)
        if has and s.document.is_pdf:
            self._page_label.setText(f"  Page {s.current_page} of {s.page_count}  ")
        else:
            self._page_label.setText("  –  ")
        for w in (self._wm_panel, self._wm_nudge, self._sig_panel, self._sig_nudge):
            w.setEnabled(has)
        self._wm_panel.set_applied(has and s.watermark_applied)
        self._sig_panel.set_applied(has and s.signature_applied)

    # -- batch ----------------------------------------------------------------------
    def _open_files(self):
        paths, _ = QFileDialog.getOpenFileNames(self, "Open Files", "", FILE_FILTER)
        if not paths:
            return
        if len(paths) > MAX_BATCH:
            QMessageBox.warning(self, "Open Files",
                                f"Only the first {MAX_BATCH} files will be opened.")
            paths = paths[:MAX_BATCH]
        self._start_batch(paths)

    def _start_batch(self, paths):
        self._queue = list(paths)
        self._processed = []
        self._index = -1
        self._advance()

    def _advance(self):
        """Move to the next file of the batch (or finish)."""
        self._close_session()
        self._index += 1
        if self._index >= len(self._queue):
            done = len(self._processed)
            self._header.setText(f"Done – {done} file(s) processed")
            self.statusBar().showMessage(f"Batch finished: {done} file(s) saved.")
            self._queue, self._index = [], -1
            self._update_ui_state()
            return
        self._load_current()

    def _load_current(self):
        path = self._queue[self._index]
        name = os.path.basename(path)
        self._header.setText(f"Edit File {self._index + 1} of {len(self._queue)} – {name}")
        try:
            if os.path.getsize(path) > MAX_FILE_BYTES:
                raise LoadError("File is larger than 10 MB")
            with open(path, "rb") as f:
                data = f.read()
            self._session = EditorSession.open(data, guess_mime_type(path), name=name,
                                               settings=self._settings, parent=self)
        except (OSError, LoadError) as e:
            logger.warning("Cannot load %s: %s", path, e)
            self._session = None
            self._canvas.set_session(None)
            self._header.setText(f"Failed to load {name}")
            self._update_ui_state()
            QMessageBox.critical(self, "Error", f"Cannot open {name}:\n{e}\n\n"
                                 "Use Skip File to continue with the next file.")
            return

        # a fresh session starts from the panel's current settings
        self._session.watermark = self._watermark
        self._session.scene_changed.connect(self._update_ui_state)
        self._session.page_changed.connect(lambda *_: self._update_ui_state())
        self._session.busy_changed.connect(lambda *_: self._update_ui_state())
        self._session.render_failed.connect(
            lambda msg: QMessageBox.critical(self, "Render Error", msg))
        self._canvas.set_session(self._session)
        self._settings.add_recent(path)
        self._rebuild_recent_menu()
        self._update_ui_state()
        self.statusBar().showMessage(f"Opened: {path}  ({self._session.page_count} page(s))")

    def _close_session(self):
        if self._session is not None:
            self._canvas.set_session(None)
            self._session.close()
            self._session.deleteLater()
            self._session = None

    def _skip_file(self):
        self._advance()

    # -- pages -----------------------------------------------------------------------
    def _prev_page(self):
        if self._session is not None:
            self._session.previous_page()

    def _next_page(self):
        if self._session is not None:
            self._session.next_page()

    # -- watermark -------------------------------------------------------------------
    def _on_watermark_setting(self, name, value):
        if self._session is not None:
            self._session.update_watermark_setting(name, value)
        else:
            setattr(self._watermark, name, value)

    def _on_watermark_image(self, path):
        try:
            with open(path, "rb") as f:
                data = f.read()
            self._watermark.image, self._watermark.image_png = load_overlay_image(
                data, guess_mime_type(path))
        except (OSError, LoadError) as e:
            self._wm_panel.set_image_name(None)
            QMessageBox.warning(self, "Watermark", f"Failed to load watermark image:\n{e}")

    def _apply_watermark(self):
        if self._session is None:
            return
        if self._session.apply_watermark() is None:
            QMessageBox.warning(self, "Watermark",
                                "Enter watermark text or choose an image first.")
            return
        self._canvas.setFocus()
        self.statusBar().showMessage("Watermark applied – drag it to position.")

    def _remove_watermark(self):
        if self._session is not None:
            self._session.remove_watermark()

    # -- signature -------------------------------------------------------------------
    def _apply_signature(self, data):
        if self._session is None:
            return
        try:
            self._session.apply_signature(data)
        except LoadError as e:
            QMessageBox.critical(self, "Signature Error", f"Failed to add signature:\n{e}")
            return
        self._canvas.setFocus()
        self.statusBar().showMessage("Signature applied – drag it to position.")

    def _remove_signature(self):
        if self._session is not None:
            self._session.remove_signature()
            self._sig_panel.clear()

    # -- nudge -----------------------------------------------------------------------
    def _start_nudge(self, tag, direction):
        if self._session is not None:
            self._session.controller.start_nudge(tag, direction)

    def _stop_nudge(self):
        if self._session is not None:
            self._session.controller.stop_nudge()

    # -- export ----------------------------------------------------------------------
    def _process(self):
        if self._session is None:
            return
        session = self._session
        if not session.export_async(
                lambda artifact, error: self._on_exported(session, artifact, error)):
            return
        self.statusBar().showMessage("Processing…")

    def _on_exported(self, session, artifact, error):
        if session is not self._session:
            # the file was skipped or closed while its export was queued
            logger.info("Dropping export result of a file no longer open")
            return
        if error is not None:
            QMessageBox.critical(self, "Process Error",
                                 f"Failed to process file. Please try again.\n\n{error}")
            return
        start = os.path.join(os.path.dirname(self._queue[self._index])
                             if 0 <= self._index < len(self._queue) else "",
                             artifact.filename)
        path, _ = QFileDialog.getSaveFileName(self, "Save Processed File", start)
        if not path:
            self.statusBar().showMessage("Save cancelled.")
            return
        try:
            artifact.save(path=path)
        except OverlayEditorError as e:
            QMessageBox.critical(self, "Save Error", f"Failed to save file:\n{e}")
            return
        self._processed.append(path)
        self.statusBar().showMessage(f"Saved: {path}")
        self._advance()

    # -- settings --------------------------------------------------------------------
    def _restore_window(self):
        geom = self._settings.get("window_geometry")
        if geom:
            self.restoreGeometry(QByteArray.fromBase64(geom.encode("ascii")))
        state = self._settings.get("window_state")
        if state:
            self.restoreState(QByteArray.fromBase64(state.encode("ascii")))

    def _save_settings(self):
        self._settings["window_geometry"] = self.saveGeometry().toBase64().data().decode("ascii")
        self._settings["window_state"] = self.saveState().toBase64().data().decode("ascii")
        self._settings["pen_color"] = self._sig_panel.pen_color
        self._watermark.store(self._settings)
        self._settings.save()

    def _rebuild_recent_menu(self):
        self._recent_menu.clear()
        recent = self._settings.recent_files
        if not recent:
            act = self._recent_menu.addAction("(No recent files)")
            act.setEnabled(False)
            return
        for path in recent:
            act = self._recent_menu.addAction(os.path.basename(path))
            act.setToolTip(path)
            act.triggered.connect(lambda checked, p=path: self._start_batch([p]))
        self._recent_menu.addSeparator()
        clear_act = self._recent_menu.addAction("Clear Recent Files")
        clear_act.triggered.connect(self._clear_recent_files)

    def _clear_recent_files(self):
        self._settings.clear_recent()
        self._rebuild_recent_menu()

    # -- close event --------------------------------------------------------------------
    def closeEvent(self, event):
        if self._session is not None:
            reply = QMessageBox.question(
                self, "Quit",
                "Unprocessed overlays will be lost.\nDo you want to quit?",
                QMessageBox.Yes | QMessageBox.No, QMessageBox.No
            )
            if reply == QMessageBox.No:
                event.ignore()
                return
            self._close_session()
        self._save_settings()
        event.accept()
