"""Loaded input documents: a single raster image or a multi-page PDF."""

import logging

import fitz  # PyMuPDF
from PyQt5.QtGui import QImage

from overlay_editor import geometry
from overlay_editor.errors import LoadError

logger = logging.getLogger(__name__)


class RasterDocument:
    """A decoded image, already downscaled to its display size."""

    is_pdf = False
    page_count = 1

    def __init__(self, image, original_width, original_height,
                 data=b"", mime_type="image/png", name=""):
        self.image = image
        self.width = image.width()
        self.height = image.height()
        self.original_width = original_width
        self.original_height = original_height
        self.data = data
        self.mime_type = mime_type
        self.name = name

    def render_page(self, number=1):
        """Return ``(raster, width, height)`` for the only page."""
        if number != 1:
            raise IndexError(f"Image documents have a single page, not {number}")
        return self.image, self.width, self.height

    def close(self):
        pass


class PdfPage:
    """One PDF page: point-space size plus a cached preview raster."""

    def __init__(self, number, width, height):
        self.number = number  # 1-based
        self.width = width
        self.height = height
        self.preview = None
        self.preview_scale = None

    @property
    def size(self):
        return self.width, self.height


class PdfDocument:
    """Live parsed PDF used for page previews; export re-opens ``data``."""

    is_pdf = True
    mime_type = "application/pdf"

    def __init__(self, doc, data, name="", max_width=geometry.MAX_CANVAS_WIDTH,
                 max_height=geometry.MAX_CANVAS_HEIGHT,
                 base_scale=geometry.PDF_PREVIEW_SCALE):
        self._doc = doc
        self.data = data
        self.name = name
        self._max_width = max_width
        self._max_height = max_height
        self._base_scale = base_scale
        self._pages = []
        for i, page in enumerate(doc):
            rect = page.rect
            self._pages.append(PdfPage(i + 1, rect.width, rect.height))

    @property
    def page_count(self):
        return len(self._pages)

    def page(self, number):
        """1-indexed page accessor."""
        if not 1 <= number <= len(self._pages):
            raise IndexError(f"Page {number} out of range 1..{len(self._pages)}")
        return self._pages[number - 1]

    def render_scale(self, number):
        page = self.page(number)
        return geometry.pdf_render_scale(page.width, page.height, self._base_scale,
                                         self._max_width, self._max_height)

    def render_page(self, number):
        """Rasterize a page at its clamped preview scale (cached).

        Returns ``(raster, width, height)``.
        """
        page = self.page(number)
        if page.preview is None:
            scale = self.render_scale(number)
            try:
                pix = self._doc[number - 1].get_pixmap(
                    matrix=fitz.Matrix(scale, scale), alpha=False)
            except Exception as e:
                raise LoadError(f"Cannot render page {number}: {e}") from e
            img = QImage(pix.samples, pix.width, pix.height,
                         pix.stride, QImage.Format_RGB888)
            # detach from the pixmap's sample buffer
            page.preview = img.copy()
            page.preview_scale = scale
            logger.debug("Rendered page %d at %.3fx -> %dx%d",
                         number, scale, pix.width, pix.height)
        return page.preview, page.preview.width(), page.preview.height()

    def close(self):
        if self._doc is not None:
            self._doc.close()
            self._doc = None
