"""Flatten a scene into output bytes.

Two paths:

* images: paint background + overlays with QPainter at canvas size and
  encode the result as PNG;
* PDFs: re-open the original bytes with PyMuPDF and draw the watermark text
  and signature image onto every page as PDF primitives.
"""

import logging

import fitz  # PyMuPDF
from PyQt5.QtCore import QRectF, Qt
from PyQt5.QtGui import QImage, QPainter

from overlay_editor import geometry
from overlay_editor.errors import AnnotationError, ExportError
from overlay_editor.loader import image_to_png
from overlay_editor.models.annotation import AnnotationObject
from overlay_editor.models.watermark import TYPE_IMAGE, TYPE_TEXT, hex_to_rgb

logger = logging.getLogger(__name__)

PX_TO_PT = 0.75
IMAGE_WATERMARK_WIDTH_PX = 200


# ---------------------------------------------------------------------------
# Raster path
# ---------------------------------------------------------------------------
def _paint_text(painter, obj):
    w, h = obj.natural_size()
    painter.setFont(obj.font())
    painter.setPen(obj.qcolor())
    painter.drawText(QRectF(-w / 2, -h / 2, w, h), Qt.AlignCenter, obj.text)


def _paint_image(painter, obj):
    w, h = obj.natural_size()
    painter.drawImage(QRectF(-w / 2, -h / 2, w, h), obj.image)


_PAINTERS = {
    AnnotationObject.TEXT_WATERMARK: _paint_text,
    AnnotationObject.IMAGE_WATERMARK: _paint_image,
    AnnotationObject.SIGNATURE: _paint_image,
}


def paint_object(painter, obj):
    painter.save()
    painter.translate(obj.x, obj.y)
    painter.rotate(obj.rotation)
    painter.scale(obj.scale, obj.scale)
    painter.setOpacity(obj.opacity)
    _PAINTERS[obj.kind](painter, obj)
    painter.restore()


def paint_scene(painter, scene):
    """Draw background then overlays in z-order; shared by view and export."""
    background, *objects = scene.list_all()
    if background.raster is not None:
        painter.drawImage(QRectF(0, 0, background.width, background.height),
                          background.raster)
    for obj in objects:
        paint_object(painter, obj)


def flatten_scene(scene):
    """PNG bytes of exactly what the canvas shows, at canvas resolution."""
    if scene.width <= 0 or scene.height <= 0:
        raise ExportError("Nothing to export: the canvas is empty")
    img = QImage(scene.width, scene.height, QImage.Format_ARGB32)
    img.fill(Qt.white)
    painter = QPainter(img)
    painter.setRenderHints(QPainter.Antialiasing | QPainter.SmoothPixmapTransform
                           | QPainter.TextAntialiasing)
    try:
        paint_scene(painter, scene)
    finally:
        painter.end()
    try:
        return image_to_png(img)
    except ValueError as e:
        raise ExportError(str(e)) from e


# ---------------------------------------------------------------------------
# PDF path
# ---------------------------------------------------------------------------
def _with_opacity(image, opacity):
    """PNG bytes of *image* with *opacity* baked into its alpha channel."""
    out = QImage(image.size(), QImage.Format_ARGB32)
    out.fill(Qt.transparent)
    painter = QPainter(out)
    painter.setOpacity(opacity)
    painter.drawImage(0, 0, image)
    painter.end()
    return image_to_png(out)


def _text_space(page):
    """Unrotated page rect: TextWriter draws in it whatever ``/Rotate`` says."""
    box = page.cropbox
    return fitz.Rect(0, 0, box.width, box.height)


def _draw_text(page, text, placement, color, opacity):
    space = _text_space(page)
    h = space.height
    origin = fitz.Point(placement.x, h - placement.y)
    pivot = fitz.Point(placement.pivot_x, h - placement.pivot_y)
    tw = fitz.TextWriter(space)
    tw.append(origin, text, font=fitz.Font("helv"), fontsize=placement.font_size)
    # the morph matrix is applied in PDF space, so positive angles turn
    # the text counter-clockwise
    tw.write_text(page, color=color, opacity=opacity,
                  morph=(pivot, fitz.Matrix(1, 0, 0, 1, 0, 0).prerotate(placement.rotation)))


def _insert_png(page, placement, png, xref=0):
    rect = fitz.Rect(geometry.fitz_rect_tuple(placement, page.rect.height))
    if xref:
        return page.insert_image(rect, xref=xref, overlay=True, keep_proportion=True)
    return page.insert_image(rect, stream=png, overlay=True, keep_proportion=True)


def _image_size(png):
    img = QImage.fromData(png)
    if img.isNull():
        raise AnnotationError("Signature image data could not be decoded")
    return img.width(), img.height()


class _PdfComposer:
    """Per-document drawing state (reused image xrefs, canvas mapping)."""

    def __init__(self, watermark, signature_png, scene):
        self.watermark = watermark
        self.signature_png = signature_png
        self.follow = bool(scene is not None and watermark is not None
                           and watermark.follow_canvas)
        self.canvas_size = scene.size if scene is not None else None
        self.wm_obj = scene.find(AnnotationObject.WATERMARK_TAG) if scene is not None else None
        self.sig_obj = scene.find(AnnotationObject.SIGNATURE_TAG) if scene is not None else None
        self._wm_png = None
        self._wm_xref = 0
        self._sig_xref = 0
        self._sig_size = None

    # -- watermark ------------------------------------------------------------
    def text_placement(self, page_size):
        wm = self.watermark
        if self.follow and self.wm_obj is not None and self.wm_obj.kind == AnnotationObject.TEXT_WATERMARK:
            o = self.wm_obj
            return geometry.canvas_text_placement(
                o.text, o.font_size * o.scale, o.x, o.y, o.rotation,
                self.canvas_size, page_size)
        return geometry.preset_text_placement(
            wm.text, wm.font_size, page_size[0], page_size[1],
            wm.position, wm.rotation)

    def image_placement(self, page_size):
        wm = self.watermark
        if self.follow and self.wm_obj is not None and self.wm_obj.kind == AnnotationObject.IMAGE_WATERMARK:
            o = self.wm_obj
            w, h = o.size()
            return geometry.canvas_image_placement(w, h, o.x, o.y, self.canvas_size, page_size)
        iw, ih = wm.image.width(), wm.image.height()
        width = IMAGE_WATERMARK_WIDTH_PX * PX_TO_PT
        height = width * ih / iw if iw > 0 else width
        return geometry.preset_image_placement(width, height, page_size[0], page_size[1],
                                               wm.position)

    def draw_watermark(self, page):
        wm = self.watermark
        if wm.type == TYPE_TEXT:
            space = _text_space(page)
            _draw_text(page, wm.text, self.text_placement((space.width, space.height)),
                       hex_to_rgb(wm.color), wm.opacity)
        elif wm.type == TYPE_IMAGE:
            size = (page.rect.width, page.rect.height)
            if self._wm_png is None:
                self._wm_png = _with_opacity(wm.image, wm.opacity)
            self._wm_xref = _insert_png(page, self.image_placement(size),
                                        self._wm_png, self._wm_xref)

    # -- signature --------------------------------------------------------------
    def draw_signature(self, page):
        size = (page.rect.width, page.rect.height)
        if self.follow and self.sig_obj is not None:
            w, h = self.sig_obj.size()
            placement = geometry.canvas_image_placement(
                w, h, self.sig_obj.x, self.sig_obj.y, self.canvas_size, size)
        else:
            if self._sig_size is None:
                self._sig_size = _image_size(self.signature_png)
            placement = geometry.signature_placement(*self._sig_size, *size)
        self._sig_xref = _insert_png(page, placement, self.signature_png, self._sig_xref)


def _embed(page, what, draw):
    """Run one per-page drawing step; failures are logged, never raised."""
    try:
        draw(page)
    except Exception as e:
        err = AnnotationError(f"page {page.number + 1}: {what} not embedded: {e}")
        logger.warning("%s", err)
        return False
    return True


def compose_pdf(pdf_bytes, watermark=None, signature_png=None, scene=None):
    """Draw watermark / signature onto every page of a fresh copy of the PDF.

    *scene* is only consulted when ``watermark.follow_canvas`` is set; by
    default placement comes from the watermark settings alone.
    """
    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        raise ExportError(f"Cannot reopen PDF for export: {e}") from e

    try:
        composer = _PdfComposer(watermark, signature_png, scene)
        draw_wm = watermark is not None and watermark.has_content()
        for page in doc:
            if draw_wm:
                _embed(page, "watermark", composer.draw_watermark)
            if signature_png:
                _embed(page, "signature", composer.draw_signature)
        try:
            data = doc.tobytes(garbage=3, deflate=True)
        except Exception as e:
            raise ExportError(f"Cannot serialize PDF: {e}") from e
        logger.info("Composed %d page(s), %d bytes", doc.page_count, len(data))
        return data
    finally:
        doc.close()
