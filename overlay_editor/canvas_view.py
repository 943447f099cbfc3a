"""Editor canvas: paints the scene and feeds pointer input to the controller."""

from PyQt5.QtCore import QPointF, QRectF, QSize, Qt, pyqtSignal
from PyQt5.QtGui import QBrush, QColor, QPainter, QPen, QPolygonF
from PyQt5.QtWidgets import QSizePolicy, QWidget

from overlay_editor.compositor import paint_scene
from overlay_editor.models.scene import HANDLE_RADIUS, HANDLE_ROTATE


class EditorCanvas(QWidget):
    """Fixed-size view of one scene at 1:1 canvas pixels."""

    status_msg = pyqtSignal(str)

    ARROW_KEYS = {
        Qt.Key_Up: "up",
        Qt.Key_Down: "down",
        Qt.Key_Left: "left",
        Qt.Key_Right: "right",
    }

    def __init__(self, parent=None):
        super().__init__(parent)
        self._session = None
        self.setFocusPolicy(Qt.StrongFocus)
        self.setMouseTracking(True)
        self.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)

        self._selection_pen = QPen(QColor(70, 130, 230), 1.2, Qt.DashLine)
        self._handle_pen = QPen(QColor(70, 130, 230), 1.2)
        self._handle_brush = QBrush(QColor(255, 255, 255))

    # -- session binding ------------------------------------------------------------
    def set_session(self, session):
        if self._session is not None:
            self._session.scene_changed.disconnect(self._on_scene_changed)
        self._session = session
        if session is not None:
            session.scene_changed.connect(self._on_scene_changed)
        self._on_scene_changed()

    def _on_scene_changed(self):
        self.updateGeometry()
        self.setFixedSize(self.sizeHint())
        self.update()

    def sizeHint(self):
        if self._session is None:
            return QSize(400, 300)
        scene = self._session.scene
        return QSize(max(1, scene.width), max(1, scene.height))

    # -- painting ------------------------------------------------------------------
    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHints(QPainter.Antialiasing | QPainter.SmoothPixmapTransform
                               | QPainter.TextAntialiasing)
        if self._session is None:
            painter.fillRect(self.rect(), QColor(150, 150, 150))
            painter.end()
            return
        scene = self._session.scene
        painter.fillRect(self.rect(), Qt.white)
        paint_scene(painter, scene)
        selected = scene.selected
        if selected is not None:
            self._paint_selection(painter, scene, selected)
        painter.end()

    def _paint_selection(self, painter, scene, obj):
        corners = obj.corners()
        poly = QPolygonF([QPointF(*corners[name]) for name in
                          ("top-left", "top-right", "bottom-right", "bottom-left")])
        painter.setPen(self._selection_pen)
        painter.setBrush(Qt.NoBrush)
        painter.drawPolygon(poly)

        handles = scene.handle_positions(obj)
        top_mid = QPointF((corners["top-left"][0] + corners["top-right"][0]) / 2,
                          (corners["top-left"][1] + corners["top-right"][1]) / 2)
        painter.setPen(self._handle_pen)
        painter.drawLine(top_mid, QPointF(*handles[HANDLE_ROTATE]))
        painter.setBrush(self._handle_brush)
        r = HANDLE_RADIUS * 0.6
        for name, (hx, hy) in handles.items():
            rect = QRectF(hx - r, hy - r, 2 * r, 2 * r)
            if name == HANDLE_ROTATE:
                painter.drawEllipse(rect)
            else:
                painter.drawRect(rect)

    # -- pointer ---------------------------------------------------------------------
    def mousePressEvent(self, event):
        if self._session is None or event.button() != Qt.LeftButton:
            super().mousePressEvent(event)
            return
        self.setFocus()
        controller = self._session.controller
        if controller.pointer_down(event.x(), event.y()):
            moving = controller.mode == controller.MODE_MOVE
            self.setCursor(Qt.ClosedHandCursor if moving else Qt.CrossCursor)
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self._session is None:
            return
        controller = self._session.controller
        if controller.pointer_move(event.x(), event.y()):
            return
        scene = self._session.scene
        if scene.handle_at(event.x(), event.y()) is not None:
            self.setCursor(Qt.CrossCursor)
        elif scene.hit_test(event.x(), event.y()) is not None:
            self.setCursor(Qt.SizeAllCursor)
        else:
            self.unsetCursor()

    def mouseReleaseEvent(self, event):
        if self._session is not None and event.button() == Qt.LeftButton:
            if self._session.controller.pointer_up(event.x(), event.y()):
                self.unsetCursor()
                obj = self._session.scene.selected
                if obj is not None:
                    self.status_msg.emit(
                        f"{obj.tag.capitalize()} at ({obj.x:.0f}, {obj.y:.0f}), "
                        f"{obj.rotation:.0f}°, {obj.scale * 100:.0f}%")
                return
        super().mouseReleaseEvent(event)

    # -- keyboard ---------------------------------------------------------------------
    def keyPressEvent(self, event):
        if self._session is None:
            super().keyPressEvent(event)
            return
        controller = self._session.controller
        selected = self._session.scene.selected
        key = event.key()
        if key in (Qt.Key_Delete, Qt.Key_Backspace) and selected is not None:
            controller.delete_selected()
            event.accept()
            return
        if key in self.ARROW_KEYS and selected is not None:
            controller.nudge(selected.tag, self.ARROW_KEYS[key])
            event.accept()
            return
        super().keyPressEvent(event)
