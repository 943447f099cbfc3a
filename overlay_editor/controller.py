"""Pointer / button input -> scene mutations."""

import logging
import math

from PyQt5.QtCore import QObject, QTimer, pyqtSignal

from overlay_editor import geometry
from overlay_editor.models.annotation import AnnotationObject, TextWatermark
from overlay_editor.models.scene import HANDLE_ROTATE

logger = logging.getLogger(__name__)


class _Session:
    """State captured at pointer-down for one exclusive manipulation."""

    def __init__(self, obj, mode, x, y, handle=None):
        self.obj = obj
        self.mode = mode
        self.handle = handle
        self.start_x = x
        self.start_y = y
        self.obj_x = obj.x
        self.obj_y = obj.y
        self.obj_scale = obj.scale
        self.obj_rotation = obj.rotation
        self.anchor = None
        self.anchor_local = None
        self.start_dist = 0.0
        self.start_angle = 0.0


class InteractionController(QObject):
    """Translates input into moves, scales, rotations and nudges.

    Only one object is manipulated at a time; a pointer-down on a handle or
    an object opens a session that lasts until pointer-up.  The continuous
    nudge owns a single repeat timer.
    """

    changed = pyqtSignal()

    MODE_MOVE = "move"
    MODE_SCALE = "scale"
    MODE_ROTATE = "rotate"

    DIRECTIONS = {
        "up": (0, -1),
        "down": (0, 1),
        "left": (-1, 0),
        "right": (1, 0),
    }

    MIN_SCALE = 0.05
    REALTIME_PROPERTIES = ("opacity", "rotation", "color", "font_size")

    def __init__(self, scene=None, nudge_step=5, nudge_interval_ms=50, parent=None):
        super().__init__(parent)
        self._scene = scene
        self._session = None
        self.nudge_step = nudge_step

        self._nudge_timer = QTimer(self)
        self._nudge_timer.setInterval(nudge_interval_ms)
        self._nudge_timer.timeout.connect(self._nudge_tick)
        self._nudge_target = None  # (tag, direction) while a repeat runs

    # -- scene binding ------------------------------------------------------------
    @property
    def scene(self):
        return self._scene

    def set_scene(self, scene):
        """Point the controller at a new scene (page change / new file)."""
        self.cancel_session()
        self.stop_nudge()
        self._scene = scene

    @property
    def active_object(self):
        return self._session.obj if self._session else None

    @property
    def mode(self):
        return self._session.mode if self._session else None

    # -- pointer ------------------------------------------------------------------
    def pointer_down(self, x, y):
        """Begin a drag / scale / rotate session; False if nothing was hit."""
        if self._scene is None or self._session is not None:
            return False

        handle = self._scene.handle_at(x, y)
        if handle is not None:
            obj = self._scene.selected
            if handle == HANDLE_ROTATE:
                s = _Session(obj, self.MODE_ROTATE, x, y, handle)
                s.start_angle = geometry.angle_to(obj.x, obj.y, x, y)
            else:
                s = _Session(obj, self.MODE_SCALE, x, y, handle)
                anchor_name = geometry.OPPOSITE_CORNER[handle]
                s.anchor = obj.corners()[anchor_name]
                nw, nh = obj.natural_size()
                sx = 1 if "right" in anchor_name else -1
                sy = 1 if "bottom" in anchor_name else -1
                s.anchor_local = (sx * nw / 2, sy * nh / 2)
                s.start_dist = math.hypot(x - s.anchor[0], y - s.anchor[1])
            self._session = s
            return True

        obj = self._scene.hit_test(x, y)
        if obj is None:
            self._scene.select(None)
            self.changed.emit()
            return False
        self._scene.select(obj)
        self._session = _Session(obj, self.MODE_MOVE, x, y)
        self.changed.emit()
        return True

    def pointer_move(self, x, y):
        s = self._session
        if s is None:
            return False
        obj = s.obj
        if s.mode == self.MODE_MOVE:
            # no clamping: objects may leave the canvas
            obj.move_to(s.obj_x + x - s.start_x, s.obj_y + y - s.start_y)
        elif s.mode == self.MODE_SCALE:
            if s.start_dist <= 0:
                return False
            dist = math.hypot(x - s.anchor[0], y - s.anchor[1])
            scale = max(self.MIN_SCALE, s.obj_scale * dist / s.start_dist)
            dx, dy = geometry.rotate_vector(s.anchor_local[0] * scale,
                                            s.anchor_local[1] * scale,
                                            obj.rotation)
            obj.scale = scale
            obj.move_to(s.anchor[0] - dx, s.anchor[1] - dy)
        elif s.mode == self.MODE_ROTATE:
            angle = geometry.angle_to(obj.x, obj.y, x, y)
            obj.rotation = geometry.normalize_angle(s.obj_rotation + angle - s.start_angle)
        self.changed.emit()
        return True

    def pointer_up(self, x=None, y=None):
        if self._session is None:
            return False
        if x is not None and y is not None:
            self.pointer_move(x, y)
        logger.debug("Finished %s of %r", self._session.mode, self._session.obj)
        self._session = None
        return True

    def cancel_session(self):
        self._session = None

    # -- nudge ----------------------------------------------------------------------
    def nudge(self, kind, direction):
        """Move the live object with tag *kind* one step; False if absent."""
        if self._scene is None:
            return False
        obj = self._scene.find(kind)
        if obj is None:
            return False
        dx, dy = self.DIRECTIONS[direction]
        obj.move_by(dx * self.nudge_step, dy * self.nudge_step)
        self.changed.emit()
        return True

    def start_nudge(self, kind, direction):
        """Step immediately, then repeat until :meth:`stop_nudge`.

        Any repeat already running is replaced.
        """
        self.stop_nudge()
        if not self.nudge(kind, direction):
            return False
        self._nudge_target = (kind, direction)
        self._nudge_timer.start()
        return True

    def stop_nudge(self):
        """Cancel the repeat; safe to call any number of times."""
        self._nudge_timer.stop()
        self._nudge_target = None

    @property
    def is_nudging(self):
        return self._nudge_target is not None

    def _nudge_tick(self):
        if self._nudge_target is None:
            return
        if not self.nudge(*self._nudge_target):
            self.stop_nudge()

    # -- live property edits ------------------------------------------------------------
    def update_watermark_property(self, name, value):
        """Push a settings edit onto the live watermark, if one is applied."""
        if name not in self.REALTIME_PROPERTIES:
            raise ValueError(f"Not a live watermark property: {name}")
        if self._scene is None:
            return False
        wm = self._scene.find(AnnotationObject.WATERMARK_TAG)
        if wm is None:
            return False
        if name in ("color", "font_size") and not isinstance(wm, TextWatermark):
            return False
        if name == "opacity":
            wm.opacity = float(value)
        elif name == "rotation":
            wm.rotation = float(value)
        elif name == "color":
            wm.color = value
        elif name == "font_size":
            wm.font_size = value
        self.changed.emit()
        return True

    def delete_selected(self):
        if self._scene is None:
            return False
        obj = self._scene.selected
        if obj is None:
            return False
        self.cancel_session()
        self._scene.remove(obj.tag)
        self.changed.emit()
        return True
