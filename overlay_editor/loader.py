"""Decode input files into documents the editor can display."""

import logging
import mimetypes
import os

import fitz  # PyMuPDF
from PyQt5.QtCore import QBuffer, QByteArray, QIODevice, Qt
from PyQt5.QtGui import QImage

from overlay_editor import geometry
from overlay_editor.errors import LoadError
from overlay_editor.models.document import PdfDocument, RasterDocument

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
IMAGE_MIME_TYPES = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/gif": "GIF",
    "image/webp": "WEBP",
    "image/bmp": "BMP",
}


def guess_mime_type(path):
    mime, _ = mimetypes.guess_type(path)
    return mime or "application/octet-stream"


def decode_image(data, mime_type=None):
    """Decode raw image bytes into a QImage or raise LoadError."""
    fmt = IMAGE_MIME_TYPES.get(mime_type)
    img = QImage()
    ok = img.loadFromData(data, fmt) if fmt else img.loadFromData(data)
    if not ok and fmt:
        # declared type may be wrong; let Qt sniff the header
        ok = img.loadFromData(data)
    if not ok or img.isNull():
        raise LoadError("Image data is corrupt or in an unsupported format")
    return img


def image_to_png(image):
    """Encode a QImage as PNG bytes."""
    ba = QByteArray()
    buf = QBuffer(ba)
    buf.open(QIODevice.WriteOnly)
    ok = image.save(buf, "PNG")
    buf.close()
    if not ok:
        raise ValueError("Could not encode image as PNG")
    return bytes(ba)


def load_overlay_image(data, mime_type=None):
    """Decode a signature / watermark image and normalize it to PNG.

    Returns ``(QImage, png_bytes)``.  Every overlay source is PNG from here
    on, whatever format it was uploaded in.
    """
    img = decode_image(data, mime_type).convertToFormat(QImage.Format_ARGB32)
    return img, image_to_png(img)


def _load_raster(data, mime_type, name, max_width, max_height):
    img = decode_image(data, mime_type)
    ow, oh = img.width(), img.height()
    w, h = geometry.display_size(ow, oh, max_width, max_height)
    if (w, h) != (ow, oh):
        img = img.scaled(w, h, Qt.IgnoreAspectRatio, Qt.SmoothTransformation)
    logger.info("Loaded image %s: %dx%d displayed at %dx%d", name or "<bytes>", ow, oh, w, h)
    return RasterDocument(img, ow, oh, data=data, mime_type=mime_type, name=name)


def _load_pdf(data, name, max_width, max_height, base_scale):
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise LoadError(f"Cannot open PDF: {e}") from e
    if doc.needs_pass:
        doc.close()
        raise LoadError("PDF is password protected")
    if doc.page_count == 0:
        doc.close()
        raise LoadError("PDF has no pages")
    logger.info("Loaded PDF %s (%d pages)", name or "<bytes>", doc.page_count)
    return PdfDocument(doc, data, name=name, max_width=max_width,
                       max_height=max_height, base_scale=base_scale)


def load_document(data, mime_type, name="", max_width=geometry.MAX_CANVAS_WIDTH,
                  max_height=geometry.MAX_CANVAS_HEIGHT,
                  base_scale=geometry.PDF_PREVIEW_SCALE):
    """Turn raw bytes of a declared MIME type into a document.

    PDFs have their first page rendered eagerly so a broken file fails
    here rather than later in the editor.
    """
    if not data:
        raise LoadError("File is empty")
    if mime_type == PDF_MIME_TYPE:
        document = _load_pdf(data, name, max_width, max_height, base_scale)
        try:
            document.render_page(1)
        except LoadError:
            document.close()
            raise
        return document
    if mime_type in IMAGE_MIME_TYPES:
        return _load_raster(data, mime_type, name, max_width, max_height)
    raise LoadError(f"Unsupported file type: {mime_type}")


def load_file(path, mime_type=None, **kwargs):
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise LoadError(f"Cannot read {path}: {e}") from e
    return load_document(data, mime_type or guess_mime_type(path),
                         name=os.path.basename(path), **kwargs)
