"""Watermark configuration as edited in the side panel."""

from dataclasses import dataclass, replace
from typing import Optional

from overlay_editor import geometry

TYPE_TEXT = "text"
TYPE_IMAGE = "image"


def hex_to_rgb(hex_color):
    """'#rrggbb' -> (r, g, b) floats in 0..1."""
    hex_color = hex_color.lstrip('#')
    if len(hex_color) != 6:
        raise ValueError(f"Not a #rrggbb color: {hex_color!r}")
    return tuple(int(hex_color[i:i + 2], 16) / 255.0 for i in (0, 2, 4))


@dataclass
class WatermarkSettings:
    """Editor-side watermark settings.

    Not part of a scene until applied.  ``position`` only matters for PDF
    export; ``follow_canvas`` makes PDF export use the on-canvas placement
    instead of the preset.
    """

    type: str = TYPE_TEXT
    text: str = "CONFIDENTIAL"
    font_size: int = 48
    color: str = "#000000"
    opacity: float = 0.5
    rotation: float = -45
    image: Optional[object] = None        # QImage
    image_png: Optional[bytes] = None
    position: Optional[str] = geometry.POSITION_CENTER
    follow_canvas: bool = False

    @classmethod
    def from_settings(cls, settings):
        """Defaults taken from the persisted :class:`EditorSettings`."""
        return cls(
            text=settings["watermark_text"],
            font_size=settings["watermark_font_size"],
            color=settings["watermark_color"],
            opacity=settings["watermark_opacity"],
            rotation=settings["watermark_rotation"],
            position=settings["watermark_position"],
            follow_canvas=settings["follow_canvas"],
        )

    def store(self, settings):
        settings["watermark_text"] = self.text
        settings["watermark_font_size"] = self.font_size
        settings["watermark_color"] = self.color
        settings["watermark_opacity"] = self.opacity
        settings["watermark_rotation"] = self.rotation
        settings["watermark_position"] = self.position
        settings["follow_canvas"] = self.follow_canvas

    def copy(self, **changes):
        return replace(self, **changes)

    @property
    def is_text(self):
        return self.type == TYPE_TEXT

    def has_content(self):
        if self.type == TYPE_TEXT:
            return bool(self.text)
        return self.image is not None
