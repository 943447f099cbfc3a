"""Signature panel (draw or upload a signature image)."""

import os

from PyQt5.QtWidgets import (
    QDialog, QGroupBox, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QFileDialog, QGraphicsScene, QGraphicsView, QMessageBox,
)
from PyQt5.QtGui import QPen, QBrush, QColor, QPainter, QPainterPath, QImage, QPixmap
from PyQt5.QtCore import Qt, QEvent, pyqtSignal

from overlay_editor.loader import image_to_png

PEN_COLORS = ["#000000", "#1e40af", "#dc2626", "#16a34a", "#9333ea", "#ea580c"]


class SignaturePanel(QGroupBox):
    """E-signature controls; ``apply_requested`` carries the image bytes."""

    apply_requested = pyqtSignal(bytes)
    remove_requested = pyqtSignal()

    def __init__(self, pen_color="#000000", parent=None):
        super().__init__("E-Signature", parent)
        self._pen_color = QColor(pen_color)
        self._data = None
        layout = QVBoxLayout(self)

        btn_row = QHBoxLayout()
        self._btn_draw = QPushButton("Draw…")
        self._btn_draw.clicked.connect(self._draw_signature)
        btn_row.addWidget(self._btn_draw)
        self._btn_import = QPushButton("Upload…")
        self._btn_import.clicked.connect(self._import_signature)
        btn_row.addWidget(self._btn_import)
        layout.addLayout(btn_row)

        self._preview = QLabel("(no signature)")
        self._preview.setAlignment(Qt.AlignCenter)
        self._preview.setMinimumHeight(60)
        layout.addWidget(self._preview)

        act_row = QHBoxLayout()
        self._apply_btn = QPushButton("Apply Signature")
        self._apply_btn.setEnabled(False)
        self._apply_btn.clicked.connect(self._apply)
        act_row.addWidget(self._apply_btn)
        self._remove_btn = QPushButton("Remove")
        self._remove_btn.setVisible(False)
        self._remove_btn.clicked.connect(self.remove_requested)
        act_row.addWidget(self._remove_btn)
        layout.addLayout(act_row)

        tip = QLabel("Tip: after applying, drag the signature on the canvas to "
                     "reposition it. Use the corner handles to resize.")
        tip.setWordWrap(True)
        layout.addWidget(tip)

    @property
    def pen_color(self):
        return self._pen_color.name()

    def set_applied(self, applied):
        self._apply_btn.setText("Update Signature" if applied else "Apply Signature")
        self._remove_btn.setVisible(applied)
        if not applied and self._data is None:
            self._preview.setText("(no signature)")

    def clear(self):
        self._data = None
        self._preview.clear()
        self._preview.setText("(no signature)")
        self._apply_btn.setEnabled(False)

    def _set_data(self, data):
        pix = QPixmap()
        if not pix.loadFromData(data):
            QMessageBox.warning(self, "Signature", "This file is not a readable image.")
            return
        self._data = data
        self._preview.setPixmap(pix.scaledToHeight(56, Qt.SmoothTransformation))
        self._apply_btn.setEnabled(True)

    def _apply(self):
        if self._data:
            self.apply_requested.emit(self._data)

    def _import_signature(self):
        path, _ = QFileDialog.getOpenFileName(
            self, "Upload Signature Image", "",
            "Images (*.png *.jpg *.jpeg *.gif *.webp *.bmp);;All (*)"
        )
        if not path:
            return
        try:
            with open(path, "rb") as f:
                self._set_data(f.read())
        except OSError as e:
            QMessageBox.critical(self, "Signature", f"Cannot read {os.path.basename(path)}:\n{e}")

    def _draw_signature(self):
        """Open a small white canvas dialog where the user draws a signature."""
        dlg = SignatureDrawDialog(self._pen_color, self)
        if dlg.exec_() == QDialog.Accepted and dlg.png_bytes():
            self._pen_color = dlg.pen_color()
            self._set_data(dlg.png_bytes())


class SignatureDrawDialog(QDialog):
    """A small canvas for freehand signature drawing."""

    def __init__(self, pen_color=None, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Draw Signature")
        self.setFixedSize(500, 290)
        layout = QVBoxLayout(self)

        color_row = QHBoxLayout()
        color_row.addWidget(QLabel("Pen Color:"))
        for name in PEN_COLORS:
            btn = QPushButton()
            btn.setFixedSize(22, 22)
            btn.setToolTip(name)
            btn.setStyleSheet(f"background:{name}; border:1px solid #888;")
            btn.clicked.connect(lambda checked, c=name: self._set_pen_color(c))
            color_row.addWidget(btn)
        color_row.addStretch(1)
        layout.addLayout(color_row)

        self._scene = QGraphicsScene(0, 0, 480, 180, self)
        self._scene.setBackgroundBrush(QBrush(Qt.white))
        self._gview = QGraphicsView(self._scene)
        self._gview.setRenderHint(QPainter.Antialiasing)
        layout.addWidget(self._gview)

        self._drawing = False
        self._path = None
        self._path_item = None
        self._stroke_count = 0
        self._png = None
        self._pen = QPen(QColor(pen_color or Qt.black), 2.5, Qt.SolidLine, Qt.RoundCap, Qt.RoundJoin)

        self._gview.viewport().installEventFilter(self)

        btn_row = QHBoxLayout()
        btn_clear = QPushButton("Clear")
        btn_clear.clicked.connect(self._clear)
        btn_row.addWidget(btn_clear)
        btn_save = QPushButton("Use Signature")
        btn_save.clicked.connect(self._save)
        btn_row.addWidget(btn_save)
        btn_cancel = QPushButton("Cancel")
        btn_cancel.clicked.connect(self.reject)
        btn_row.addWidget(btn_cancel)
        layout.addLayout(btn_row)

    def pen_color(self):
        return self._pen.color()

    def png_bytes(self):
        return self._png

    def _set_pen_color(self, name):
        # changing color starts over, like swapping pens on paper
        self._pen.setColor(QColor(name))
        self._clear()

    def eventFilter(self, obj, event):
        if obj == self._gview.viewport():
            if event.type() == QEvent.MouseButtonPress and event.button() == Qt.LeftButton:
                pos = self._gview.mapToScene(event.pos())
                self._drawing = True
                self._path = QPainterPath(pos)
                self._path_item = self._scene.addPath(self._path, self._pen)
                self._stroke_count += 1
                return True
            elif event.type() == QEvent.MouseMove and self._drawing:
                pos = self._gview.mapToScene(event.pos())
                self._path.lineTo(pos)
                self._path_item.setPath(self._path)
                return True
            elif event.type() == QEvent.MouseButtonRelease and self._drawing:
                self._drawing = False
                return True
        return super().eventFilter(obj, event)

    def _clear(self):
        self._scene.clear()
        self._scene.setBackgroundBrush(QBrush(Qt.white))
        self._stroke_count = 0

    def _save(self):
        """Render the strokes to a transparent PNG."""
        if self._stroke_count == 0:
            QMessageBox.information(self, "Signature", "Draw a signature first.")
            return
        self._scene.setBackgroundBrush(QBrush(Qt.transparent))
        img = QImage(480, 180, QImage.Format_ARGB32)
        img.fill(Qt.transparent)
        painter = QPainter(img)
        painter.setRenderHint(QPainter.Antialiasing)
        self._scene.render(painter)
        painter.end()
        self._png = image_to_png(img)
        self.accept()
