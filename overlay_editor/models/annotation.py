"""Overlay objects living on top of a page background."""

import uuid

from PyQt5.QtGui import QColor, QFont, QFontMetricsF

from overlay_editor import geometry


class AnnotationObject:
    """Common state of every overlay.

    ``x``/``y`` is the object's center in canvas pixels, ``rotation`` is in
    degrees (clockwise on screen) and ``scale`` is uniform.
    """

    TEXT_WATERMARK = "text_watermark"
    IMAGE_WATERMARK = "image_watermark"
    SIGNATURE = "signature"

    # identity slots: at most one live object per tag in a scene
    WATERMARK_TAG = "watermark"
    SIGNATURE_TAG = "signature"

    kind = None
    tag = None

    def __init__(self, x=0.0, y=0.0, rotation=0.0, opacity=1.0, scale=1.0,
                 object_id=None):
        self.x = float(x)
        self.y = float(y)
        self.rotation = float(rotation)
        self.opacity = float(opacity)
        self.scale = float(scale)
        self.object_id = object_id or uuid.uuid4().hex

    def __repr__(self):
        return (f"<{type(self).__name__} {self.object_id[:8]} "
                f"at ({self.x:.1f}, {self.y:.1f}) rot={self.rotation:.1f} "
                f"scale={self.scale:.2f}>")

    # -- geometry -------------------------------------------------------------
    def natural_size(self):
        raise NotImplementedError

    def size(self):
        w, h = self.natural_size()
        return w * self.scale, h * self.scale

    def contains(self, px, py):
        w, h = self.size()
        return geometry.box_contains(px, py, self.x, self.y, w, h, self.rotation)

    def corners(self):
        w, h = self.size()
        return geometry.box_corners(self.x, self.y, w, h, self.rotation)

    def move_by(self, dx, dy):
        self.x += dx
        self.y += dy

    def move_to(self, x, y):
        self.x = float(x)
        self.y = float(y)

    def set_top_left(self, left, top):
        """Position the unrotated box by its top-left corner."""
        w, h = self.size()
        self.move_to(left + w / 2, top + h / 2)

    def scale_to_width(self, width):
        w, _ = self.natural_size()
        if w > 0:
            self.scale = width / w

    # -- serialization ----------------------------------------------------------
    def to_state(self):
        """Plain dict holding everything needed to rebuild the object."""
        return {
            "kind": self.kind,
            "object_id": self.object_id,
            "x": self.x,
            "y": self.y,
            "rotation": self.rotation,
            "opacity": self.opacity,
            "scale": self.scale,
        }

    @classmethod
    def from_state(cls, state):
        raise NotImplementedError


class TextWatermark(AnnotationObject):
    kind = AnnotationObject.TEXT_WATERMARK
    tag = AnnotationObject.WATERMARK_TAG

    FONT_FAMILY = "Helvetica"

    def __init__(self, text, font_size=48, color="#000000", **kwargs):
        super().__init__(**kwargs)
        self.text = text
        self.font_size = font_size
        self.color = color

    def font(self):
        f = QFont(self.FONT_FAMILY)
        f.setPixelSize(max(1, int(round(self.font_size))))
        return f

    def qcolor(self):
        c = QColor(self.color)
        return c if c.isValid() else QColor(0, 0, 0)

    def natural_size(self):
        fm = QFontMetricsF(self.font())
        return fm.horizontalAdvance(self.text), fm.height()

    def to_state(self):
        state = super().to_state()
        state.update(text=self.text, font_size=self.font_size, color=self.color)
        return state

    @classmethod
    def from_state(cls, state):
        return cls(state["text"], font_size=state["font_size"], color=state["color"],
                   **_common_kwargs(state))


class _ImageOverlay(AnnotationObject):
    """Overlay drawn from a raster decoded once and shared afterwards."""

    def __init__(self, image, png_bytes=None, **kwargs):
        super().__init__(**kwargs)
        self.image = image          # QImage
        self.png_bytes = png_bytes  # same pixels, PNG-encoded for PDF export

    def natural_size(self):
        return float(self.image.width()), float(self.image.height())

    def to_state(self):
        state = super().to_state()
        state.update(image=self.image, png_bytes=self.png_bytes)
        return state

    @classmethod
    def from_state(cls, state):
        return cls(state["image"], png_bytes=state.get("png_bytes"),
                   **_common_kwargs(state))


class ImageWatermark(_ImageOverlay):
    kind = AnnotationObject.IMAGE_WATERMARK
    tag = AnnotationObject.WATERMARK_TAG


class Signature(_ImageOverlay):
    kind = AnnotationObject.SIGNATURE
    tag = AnnotationObject.SIGNATURE_TAG


_KINDS = {
    AnnotationObject.TEXT_WATERMARK: TextWatermark,
    AnnotationObject.IMAGE_WATERMARK: ImageWatermark,
    AnnotationObject.SIGNATURE: Signature,
}


def _common_kwargs(state):
    return {
        "x": state["x"],
        "y": state["y"],
        "rotation": state["rotation"],
        "opacity": state["opacity"],
        "scale": state["scale"],
        "object_id": state["object_id"],
    }


def annotation_from_state(state):
    """Rebuild an overlay from :meth:`AnnotationObject.to_state` output."""
    try:
        cls = _KINDS[state["kind"]]
    except KeyError:
        raise ValueError(f"Unknown annotation kind: {state.get('kind')!r}")
    return cls.from_state(state)
