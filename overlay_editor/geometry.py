"""Coordinate transforms between canvas pixels and document space.

Canvas space: pixels of the editor view, origin top-left, y grows downward.
Rotation on the canvas is clockwise in degrees (screen convention).

PDF space: points, origin bottom-left, y grows upward, rotation
counter-clockwise.  PyMuPDF itself addresses pages top-left, so every
placement computed here in PDF space is flipped with ``page_height - y``
right before it is handed to fitz.
"""

import math
from collections import namedtuple

MAX_CANVAS_WIDTH = 800
MAX_CANVAS_HEIGHT = 600
PDF_PREVIEW_SCALE = 1.5

PDF_FONT_FACTOR = 0.75    # editor px -> PDF pt for font sizes
GLYPH_WIDTH_FACTOR = 0.6  # average Helvetica glyph width per pt of size
PDF_TEXT_MARGIN = 50
SIGNATURE_PDF_SCALE = 0.3
SIGNATURE_PDF_MARGIN = 20

POSITION_CENTER = "center"
POSITION_TOP_LEFT = "top-left"
POSITION_TOP_RIGHT = "top-right"
POSITION_BOTTOM_LEFT = "bottom-left"
POSITION_BOTTOM_RIGHT = "bottom-right"
POSITIONS = (POSITION_CENTER, POSITION_TOP_LEFT, POSITION_TOP_RIGHT,
             POSITION_BOTTOM_LEFT, POSITION_BOTTOM_RIGHT)

# x, y: where drawing starts (text baseline start / image lower-left corner).
# pivot_x, pivot_y: point the rotation is applied around.  All PDF space.
Placement = namedtuple("Placement", "x y width height font_size rotation pivot_x pivot_y")


# ---------------------------------------------------------------------------
# Display envelopes
# ---------------------------------------------------------------------------
def fit_to_envelope(width, height, max_width=MAX_CANVAS_WIDTH,
                    max_height=MAX_CANVAS_HEIGHT):
    """Downscale (never upscale) *width* x *height* into the envelope.

    Width is clamped first; the height clamp then runs on the result and
    may shrink the width further but never enlarges it again.
    """
    width, height = float(width), float(height)
    if width > max_width:
        height = height * max_width / width
        width = float(max_width)
    if height > max_height:
        width = width * max_height / height
        height = float(max_height)
    return width, height


def display_size(width, height, max_width=MAX_CANVAS_WIDTH,
                 max_height=MAX_CANVAS_HEIGHT):
    """Integer canvas size for an image of *width* x *height* pixels."""
    w, h = fit_to_envelope(width, height, max_width, max_height)
    return max(1, int(round(w))), max(1, int(round(h)))


def pdf_render_scale(page_width, page_height, base_scale=PDF_PREVIEW_SCALE,
                     max_width=MAX_CANVAS_WIDTH, max_height=MAX_CANVAS_HEIGHT):
    """Render scale for a PDF page preview.

    The clamp is computed against the viewport at *base_scale*, not the
    raw page size.
    """
    vw = page_width * base_scale
    vh = page_height * base_scale
    scale = base_scale
    if vw > max_width:
        scale = (max_width / vw) * base_scale
    if vh > max_height:
        scale = min(scale, (max_height / vh) * base_scale)
    return scale


# ---------------------------------------------------------------------------
# PDF placement
# ---------------------------------------------------------------------------
def pdf_font_size(font_size):
    return font_size * PDF_FONT_FACTOR


def approx_text_width(text, pdf_size):
    return len(text) * pdf_size * GLYPH_WIDTH_FACTOR


def preset_text_placement(text, font_size, page_width, page_height,
                          position=None, rotation=0):
    """Place watermark text on a page from a named position preset.

    *font_size* is the editor size in px; the returned font size is in pt.
    Unknown or missing presets fall back to center.
    """
    size = pdf_font_size(font_size)
    tw = approx_text_width(text, size)
    m = PDF_TEXT_MARGIN
    if position == POSITION_TOP_LEFT:
        x, y = m, page_height - m
    elif position == POSITION_TOP_RIGHT:
        x, y = page_width - tw - m, page_height - m
    elif position == POSITION_BOTTOM_LEFT:
        x, y = m, m
    elif position == POSITION_BOTTOM_RIGHT:
        x, y = page_width - tw - m, m
    else:
        x, y = page_width / 2 - tw / 2, page_height / 2
    return Placement(x, y, tw, size, size, rotation, x, y)


def preset_image_placement(width, height, page_width, page_height, position=None):
    """Lower-left corner of a *width* x *height* pt image for a preset."""
    m = PDF_TEXT_MARGIN
    if position == POSITION_TOP_LEFT:
        x, y = m, page_height - m - height
    elif position == POSITION_TOP_RIGHT:
        x, y = page_width - width - m, page_height - m - height
    elif position == POSITION_BOTTOM_LEFT:
        x, y = m, m
    elif position == POSITION_BOTTOM_RIGHT:
        x, y = page_width - width - m, m
    else:
        x, y = (page_width - width) / 2, (page_height - height) / 2
    return Placement(x, y, width, height, None, 0, x + width / 2, y + height / 2)


def signature_placement(image_width, image_height, page_width, page_height):
    """Signature at 0.3x its pixel size, 20 pt from the bottom-right corner."""
    w = image_width * SIGNATURE_PDF_SCALE
    h = image_height * SIGNATURE_PDF_SCALE
    x = page_width - w - SIGNATURE_PDF_MARGIN
    y = SIGNATURE_PDF_MARGIN
    return Placement(x, y, w, h, None, 0, x + w / 2, y + h / 2)


def canvas_to_document(x, y, canvas_size, page_size):
    """Map a canvas pixel to PDF space proportionally.

    Proportional mapping lets pages of a different size than the previewed
    one receive the overlay at the same relative spot.
    """
    cw, ch = canvas_size
    pw, ph = page_size
    return x * pw / cw, ph - y * ph / ch


def canvas_length_to_document(length, canvas_size, page_size):
    return length * page_size[0] / canvas_size[0]


def canvas_text_placement(text, font_size, center_x, center_y, rotation,
                          canvas_size, page_size):
    """Place text so it lands where the editor shows it.

    *font_size* is the effective canvas size in px (font size times scale).
    Canvas rotation is clockwise, so it is negated for PDF space.
    """
    cx, cy = canvas_to_document(center_x, center_y, canvas_size, page_size)
    size = canvas_length_to_document(font_size, canvas_size, page_size)
    tw = approx_text_width(text, size)
    # baseline sits roughly a third of the size below the visual center
    return Placement(cx - tw / 2, cy - size / 3, tw, size, size,
                     -rotation, cx, cy)


def canvas_image_placement(width, height, center_x, center_y, canvas_size, page_size):
    """Lower-left corner and size (pt) of an image shown at the given canvas box."""
    cx, cy = canvas_to_document(center_x, center_y, canvas_size, page_size)
    w = canvas_length_to_document(width, canvas_size, page_size)
    h = height * page_size[1] / canvas_size[1]
    return Placement(cx - w / 2, cy - h / 2, w, h, None, 0, cx, cy)


def fitz_rect_tuple(placement, page_height):
    """(x0, y0, x1, y1) in PyMuPDF top-left coordinates."""
    x0 = placement.x
    y1 = page_height - placement.y
    return x0, y1 - placement.height, x0 + placement.width, y1


# ---------------------------------------------------------------------------
# Rotated boxes on the canvas
# ---------------------------------------------------------------------------
def rotate_vector(x, y, degrees):
    """Rotate (x, y) clockwise on screen (y down) by *degrees*."""
    rad = math.radians(degrees)
    c, s = math.cos(rad), math.sin(rad)
    return x * c - y * s, x * s + y * c


def to_local(px, py, cx, cy, rotation):
    """Canvas point -> coordinates relative to an unrotated box centered at 0."""
    return rotate_vector(px - cx, py - cy, -rotation)


def to_canvas(lx, ly, cx, cy, rotation):
    dx, dy = rotate_vector(lx, ly, rotation)
    return cx + dx, cy + dy


def box_contains(px, py, cx, cy, width, height, rotation):
    lx, ly = to_local(px, py, cx, cy, rotation)
    return abs(lx) <= width / 2 and abs(ly) <= height / 2


def box_corners(cx, cy, width, height, rotation):
    """Corner positions keyed by name, in canvas space."""
    hw, hh = width / 2, height / 2
    local = {
        "top-left": (-hw, -hh),
        "top-right": (hw, -hh),
        "bottom-right": (hw, hh),
        "bottom-left": (-hw, hh),
    }
    return {name: to_canvas(lx, ly, cx, cy, rotation) for name, (lx, ly) in local.items()}


OPPOSITE_CORNER = {
    "top-left": "bottom-right",
    "top-right": "bottom-left",
    "bottom-right": "top-left",
    "bottom-left": "top-right",
}


def angle_to(cx, cy, x, y):
    """Screen angle in degrees from (cx, cy) to (x, y)."""
    return math.degrees(math.atan2(y - cy, x - cx))


def normalize_angle(degrees):
    """Wrap to the (-180, 180] range."""
    a = math.fmod(degrees, 360.0)
    if a <= -180:
        a += 360
    elif a > 180:
        a -= 360
    return a
