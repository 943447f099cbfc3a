"""One file being edited: document, current scene, overlays, export trigger."""

import logging

from PyQt5.QtCore import QObject, QTimer, pyqtSignal

from overlay_editor.controller import InteractionController
from overlay_editor.errors import ExportError, LoadError
from overlay_editor.export import export_document
from overlay_editor.loader import load_document, load_overlay_image
from overlay_editor.models.annotation import (
    AnnotationObject, ImageWatermark, Signature, TextWatermark,
)
from overlay_editor.models.scene import Scene
from overlay_editor.models.watermark import TYPE_IMAGE, TYPE_TEXT, WatermarkSettings
from overlay_editor.settings import EditorSettings

logger = logging.getLogger(__name__)


class EditorSession(QObject):
    """Binds a loaded document to its scene and overlay sources.

    Page changes render asynchronously; a render that was superseded by a
    newer request is dropped.  The background swap and the re-creation of
    the overlays happen together before ``scene_changed`` fires, so a view
    never sees one without the other.
    """

    scene_changed = pyqtSignal()
    page_changed = pyqtSignal(int, int)  # current page, page count
    busy_changed = pyqtSignal(bool)
    render_failed = pyqtSignal(str)

    def __init__(self, document, settings=None, watermark=None, parent=None):
        super().__init__(parent)
        self._settings = settings or EditorSettings()
        self._document = document
        self.watermark = watermark or WatermarkSettings.from_settings(self._settings)
        self.signature_image = None
        self.signature_png = None

        self._busy = False
        self._closed = False
        self._current_page = 1
        self._requested_page = 1
        self._render_generation = 0

        self.controller = InteractionController(
            nudge_step=self._settings["nudge_step"],
            nudge_interval_ms=self._settings["nudge_interval_ms"],
            parent=self,
        )
        self.controller.changed.connect(self.scene_changed)

        raster, w, h = document.render_page(1)
        self._scene = Scene(raster, w, h)
        self.controller.set_scene(self._scene)

    @classmethod
    def open(cls, data, mime_type, name="", settings=None, parent=None):
        """Load bytes and start a session; raises LoadError on bad input."""
        settings = settings or EditorSettings()
        document = load_document(
            data, mime_type, name=name,
            max_width=settings["max_canvas_width"],
            max_height=settings["max_canvas_height"],
            base_scale=settings["pdf_preview_scale"],
        )
        return cls(document, settings=settings, parent=parent)

    def close(self):
        self.controller.stop_nudge()
        self._closed = True  # drops a queued export
        self._render_generation += 1  # orphan any pending render
        self._document.close()

    # -- state --------------------------------------------------------------------
    @property
    def document(self):
        return self._document

    @property
    def scene(self):
        return self._scene

    @property
    def current_page(self):
        return self._current_page

    @property
    def page_count(self):
        return self._document.page_count

    @property
    def busy(self):
        return self._busy

    @property
    def watermark_applied(self):
        return self._scene.find(AnnotationObject.WATERMARK_TAG) is not None

    @property
    def signature_applied(self):
        return self._scene.find(AnnotationObject.SIGNATURE_TAG) is not None

    # -- watermark -----------------------------------------------------------------
    def set_watermark_image(self, data, mime_type=None):
        image, png = load_overlay_image(data, mime_type)
        self.watermark.image = image
        self.watermark.image_png = png

    def update_watermark_setting(self, name, value):
        """Change a setting; opacity/rotation/color/font size also reach the live object."""
        setattr(self.watermark, name, value)
        if name in InteractionController.REALTIME_PROPERTIES:
            self.controller.update_watermark_property(name, value)

    def apply_watermark(self):
        """Create the watermark from the settings, replacing any previous one."""
        wm = self.watermark
        if wm.type == TYPE_TEXT and wm.text:
            obj = TextWatermark(wm.text, font_size=wm.font_size, color=wm.color,
                                opacity=wm.opacity, rotation=wm.rotation)
        elif wm.type == TYPE_IMAGE and wm.image is not None:
            obj = ImageWatermark(wm.image, png_bytes=wm.image_png,
                                 opacity=wm.opacity, rotation=wm.rotation)
            obj.scale_to_width(self._settings["overlay_default_width"])
        else:
            return None
        obj.move_to(self._scene.width / 2, self._scene.height / 2)
        self._scene.add_or_replace(AnnotationObject.WATERMARK_TAG, obj)
        self.scene_changed.emit()
        return obj

    def remove_watermark(self):
        self._scene.remove(AnnotationObject.WATERMARK_TAG)
        self.scene_changed.emit()

    # -- signature -------------------------------------------------------------------
    def set_signature(self, data, mime_type=None):
        """Decode a drawn or uploaded signature; stored as PNG."""
        self.signature_image, self.signature_png = load_overlay_image(data, mime_type)

    def apply_signature(self, data=None, mime_type=None):
        if data is not None:
            self.set_signature(data, mime_type)
        if self.signature_image is None:
            return None
        obj = Signature(self.signature_image, png_bytes=self.signature_png)
        obj.scale_to_width(self._settings["overlay_default_width"])
        w, h = obj.size()
        inset = self._settings["signature_inset"]
        obj.set_top_left(self._scene.width - w - inset, self._scene.height - h - inset)
        self._scene.add_or_replace(AnnotationObject.SIGNATURE_TAG, obj)
        self.scene_changed.emit()
        return obj

    def remove_signature(self):
        self._scene.remove(AnnotationObject.SIGNATURE_TAG)
        self.signature_image = None
        self.signature_png = None
        self.scene_changed.emit()

    # -- page navigation --------------------------------------------------------------
    def go_to_page(self, number):
        """Request a page; returns False if out of range.

        The render runs on the next event-loop turn.  Only the latest
        request is allowed to swap the scene.
        """
        if not 1 <= number <= self.page_count:
            return False
        self._render_generation += 1
        self._requested_page = number
        generation = self._render_generation
        QTimer.singleShot(0, lambda: self._render_page(generation, number))
        return True

    def next_page(self):
        return self.go_to_page(self._requested_page + 1)

    def previous_page(self):
        return self.go_to_page(self._requested_page - 1)

    def _render_page(self, generation, number):
        if generation != self._render_generation:
            logger.debug("Dropping stale render of page %d", number)
            return False
        try:
            raster, w, h = self._document.render_page(number)
        except LoadError as e:
            logger.error("Page %d failed to render: %s", number, e)
            self._requested_page = self._current_page
            self.render_failed.emit(str(e))
            return False
        if generation != self._render_generation:
            return False
        self._swap_page(number, raster, w, h)
        return True

    def _swap_page(self, number, raster, width, height):
        snapshot = self._scene.snapshot()
        scene = Scene(raster, width, height)
        scene.restore(snapshot)
        self._scene = scene
        self.controller.set_scene(scene)
        self._current_page = number
        self.page_changed.emit(number, self.page_count)
        self.scene_changed.emit()

    # -- export -----------------------------------------------------------------------
    def _set_busy(self, busy):
        self._busy = busy
        self.busy_changed.emit(busy)

    def export(self):
        """Compose the output synchronously.

        Returns None without exporting while another export is running;
        ``ExportError`` is reserved for output that could not be produced.
        """
        if self._busy:
            logger.info("Export rejected: another export is in progress")
            return None
        self._set_busy(True)
        try:
            return export_document(self._document, self._scene,
                                   self.watermark, self.signature_png)
        finally:
            self._set_busy(False)

    def export_async(self, callback):
        """Export on the next event-loop turn; ``callback(artifact, error)``.

        Returns False without scheduling anything if an export is running.
        """
        if self._busy:
            return False
        self._set_busy(True)

        def run():
            if self._closed:
                logger.info("Dropping queued export of a closed session")
                return
            artifact, error = None, None
            try:
                artifact = export_document(self._document, self._scene,
                                           self.watermark, self.signature_png)
            except ExportError as e:
                logger.error("Export failed: %s", e)
                error = e
            finally:
                self._set_busy(False)
            callback(artifact, error)

        QTimer.singleShot(0, run)
        return True
