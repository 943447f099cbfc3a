"""Persisted editor preferences (settings.json beside the application)."""

import json
import logging
import os
import sys

logger = logging.getLogger(__name__)


def default_settings_path():
    # When running as a PyInstaller exe, __file__ points to a temp dir.
    # Use the exe's real location so settings survive between launches.
    if getattr(sys, "frozen", False):
        app_dir = os.path.dirname(sys.executable)
    else:
        app_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.path.join(app_dir, "settings.json")


class EditorSettings:
    """Defaults merged with whatever was saved on the last run."""

    MAX_RECENT = 10

    def __init__(self, path=None):
        self._path = path or default_settings_path()
        self._data = self.defaults()

    @staticmethod
    def defaults():
        """Return default settings dict."""
        return {
            "window_geometry": None,
            "window_state": None,
            "watermark_text": "CONFIDENTIAL",
            "watermark_font_size": 48,
            "watermark_color": "#000000",
            "watermark_opacity": 0.5,
            "watermark_rotation": -45,
            "watermark_position": "center",
            "follow_canvas": False,
            "max_canvas_width": 800,
            "max_canvas_height": 600,
            "pdf_preview_scale": 1.5,
            "nudge_step": 5,
            "nudge_interval_ms": 50,
            "signature_inset": 20,
            "overlay_default_width": 200,
            "pen_color": "#000000",
            "recent_files": [],
        }

    @property
    def path(self):
        return self._path

    def __getitem__(self, key):
        return self._data[key]

    def __setitem__(self, key, value):
        self._data[key] = value

    def get(self, key, default=None):
        return self._data.get(key, default)

    def load(self):
        """Restore preferences; a missing or corrupted file leaves the defaults."""
        data = self.defaults()
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                saved = json.load(f)
            if isinstance(saved, dict):
                data.update({k: v for k, v in saved.items() if k in data})
        except FileNotFoundError:
            pass  # first run
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self._path, e)
        self._data = data
        return self

    def save(self):
        try:
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)
        except OSError as e:
            logger.warning("Could not write settings to %s: %s", self._path, e)

    # -- recent files ---------------------------------------------------------
    @property
    def recent_files(self):
        return [f for f in self._data.get("recent_files", []) if os.path.isfile(f)]

    def add_recent(self, path):
        """Add a file path to the recent files list (most-recent first)."""
        path = os.path.normpath(path)
        recent = [f for f in self._data.get("recent_files", [])
                  if os.path.normpath(f) != path]
        recent.insert(0, path)
        self._data["recent_files"] = recent[:self.MAX_RECENT]

    def clear_recent(self):
        self._data["recent_files"] = []
