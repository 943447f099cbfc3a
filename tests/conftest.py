import os

# must be set before the first Qt import
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import fitz  # PyMuPDF
import pytest
from PyQt5.QtCore import Qt
from PyQt5.QtGui import QColor, QImage
from PyQt5.QtWidgets import QApplication

from overlay_editor.loader import image_to_png
from overlay_editor.settings import EditorSettings


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


def make_pdf(pages=1, width=600, height=800):
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page(width=width, height=height)
        page.insert_text((72, 72), f"Page {i + 1}", fontsize=12)
    data = doc.tobytes()
    doc.close()
    return data


def make_image(width, height, color=Qt.red, alpha=False):
    fmt = QImage.Format_ARGB32 if alpha else QImage.Format_RGB32
    img = QImage(width, height, fmt)
    img.fill(QColor(color))
    return img


def make_png(width, height, color=Qt.red):
    return image_to_png(make_image(width, height, color))


@pytest.fixture
def settings(tmp_path):
    return EditorSettings(path=str(tmp_path / "settings.json"))


@pytest.fixture
def pdf_bytes():
    return make_pdf(pages=2)


@pytest.fixture
def png_bytes(qapp):
    return make_png(400, 300)
