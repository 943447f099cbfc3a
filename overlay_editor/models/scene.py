"""The editable composition of one page: a background plus overlay objects."""

import logging
import math
from collections import namedtuple

from overlay_editor import geometry
from overlay_editor.models.annotation import annotation_from_state

logger = logging.getLogger(__name__)

Background = namedtuple("Background", "raster width height")

HANDLE_RADIUS = 8        # px, hit radius around a transform handle
ROTATE_HANDLE_OFFSET = 30  # px above the top edge of the selected box
HANDLE_ROTATE = "rotate"


class Scene:
    """Ordered overlay list over a background raster.

    Z-order is insertion order: the last object draws on top and is the
    selected one after an add.
    """

    def __init__(self, raster=None, width=0, height=0):
        self._background = Background(raster, int(width), int(height))
        self._objects = []
        self._selected_id = None

    # -- background -------------------------------------------------------------
    def set_background(self, raster, width, height):
        """Replace the background and the canvas size; objects are untouched."""
        self._background = Background(raster, int(width), int(height))

    @property
    def background(self):
        return self._background

    @property
    def width(self):
        return self._background.width

    @property
    def height(self):
        return self._background.height

    @property
    def size(self):
        return self._background.width, self._background.height

    # -- objects ------------------------------------------------------------------
    def add_or_replace(self, kind, obj):
        """Drop any object carrying the *kind* tag, then put *obj* on top."""
        self.remove(kind)
        self._objects.append(obj)
        self._selected_id = obj.object_id
        logger.debug("Scene: added %r as %s", obj, kind)
        return obj

    def remove(self, kind):
        before = len(self._objects)
        removed = [o for o in self._objects if o.tag == kind]
        self._objects = [o for o in self._objects if o.tag != kind]
        if any(o.object_id == self._selected_id for o in removed):
            self._selected_id = None
        return len(self._objects) != before

    def find(self, kind):
        for obj in self._objects:
            if obj.tag == kind:
                return obj
        return None

    def objects(self):
        return list(self._objects)

    def list_all(self):
        """Snapshot for rendering: background first, then objects in z-order."""
        return [self._background] + list(self._objects)

    def __len__(self):
        return len(self._objects)

    # -- selection ----------------------------------------------------------------
    @property
    def selected(self):
        for obj in self._objects:
            if obj.object_id == self._selected_id:
                return obj
        return None

    def select(self, obj):
        self._selected_id = obj.object_id if obj is not None else None

    def hit_test(self, x, y):
        """Topmost object under the point, or None (the background never hits)."""
        for obj in reversed(self._objects):
            if obj.contains(x, y):
                return obj
        return None

    def handle_positions(self, obj):
        """Canvas positions of the corner handles and the rotate handle."""
        handles = obj.corners()
        _, h = obj.size()
        handles[HANDLE_ROTATE] = geometry.to_canvas(
            0, -h / 2 - ROTATE_HANDLE_OFFSET, obj.x, obj.y, obj.rotation)
        return handles

    def handle_at(self, x, y):
        """Name of the selected object's handle under the point, or None."""
        obj = self.selected
        if obj is None:
            return None
        for name, (hx, hy) in self.handle_positions(obj).items():
            if math.hypot(x - hx, y - hy) <= HANDLE_RADIUS:
                return name
        return None

    # -- page transitions ------------------------------------------------------------
    def snapshot(self):
        """Serialize the overlays so they can be carried to another scene."""
        selected = self.selected
        return {
            "objects": [o.to_state() for o in self._objects],
            "selected": selected.object_id if selected is not None else None,
        }

    def restore(self, snapshot):
        """Re-instantiate overlays from :meth:`snapshot`, keeping their order."""
        self._objects = [annotation_from_state(s) for s in snapshot["objects"]]
        self._selected_id = snapshot.get("selected")
