import fitz  # PyMuPDF
import pytest
from PyQt5.QtCore import Qt
from PyQt5.QtGui import QColor, QImage

from overlay_editor import geometry
from overlay_editor.compositor import compose_pdf, flatten_scene
from overlay_editor.errors import ExportError
from overlay_editor.export import (
    PDF_MIME_TYPE, PNG_MIME_TYPE, ExportArtifact, export_document, processed_filename,
)
from overlay_editor.loader import load_document
from overlay_editor.models.annotation import AnnotationObject, ImageWatermark, TextWatermark
from overlay_editor.models.scene import Scene
from overlay_editor.models.watermark import TYPE_IMAGE, WatermarkSettings

from conftest import make_image, make_pdf, make_png

pytestmark = pytest.mark.usefixtures("qapp")


def _open(data):
    return fitz.open(stream=data, filetype="pdf")


# -- raster ------------------------------------------------------------------
def test_flatten_matches_canvas_size():
    scene = Scene(make_image(400, 300, Qt.white), 400, 300)
    scene.add_or_replace(AnnotationObject.WATERMARK_TAG, TextWatermark("HELLO", x=200, y=150))
    png = flatten_scene(scene)
    img = QImage.fromData(png)
    assert (img.width(), img.height()) == (400, 300)


def test_flatten_draws_overlays_over_background():
    scene = Scene(make_image(100, 100, Qt.white), 100, 100)
    blue = ImageWatermark(make_image(40, 40, Qt.blue, alpha=True), x=50, y=50)
    scene.add_or_replace(AnnotationObject.WATERMARK_TAG, blue)
    img = QImage.fromData(flatten_scene(scene))
    assert QColor(img.pixel(50, 50)) == QColor(Qt.blue)
    assert QColor(img.pixel(5, 5)) == QColor(Qt.white)


def test_flatten_empty_canvas_raises():
    with pytest.raises(ExportError):
        flatten_scene(Scene())


# -- pdf -------------------------------------------------------------------------
def test_text_watermark_on_every_page():
    out = compose_pdf(make_pdf(pages=2), WatermarkSettings(text="TEST", rotation=0))
    doc = _open(out)
    assert doc.page_count == 2
    for page in doc:
        assert "TEST" in page.get_text()
    doc.close()


def test_original_content_is_kept():
    out = compose_pdf(make_pdf(pages=2), WatermarkSettings(text="TEST"))
    doc = _open(out)
    assert "Page 2" in doc[1].get_text()
    doc.close()


def test_signature_on_every_page_bottom_right():
    out = compose_pdf(make_pdf(pages=2), signature_png=make_png(200, 100))
    doc = _open(out)
    for page in doc:
        images = page.get_images()
        assert len(images) == 1
        rect = page.get_image_rects(images[0][0])[0]
        assert rect.x1 == pytest.approx(580, abs=1)
        assert rect.y1 == pytest.approx(780, abs=1)
        assert rect.width == pytest.approx(60, abs=1)
    doc.close()


def test_bad_signature_does_not_abort_export():
    out = compose_pdf(make_pdf(pages=2), WatermarkSettings(text="TEST", rotation=0),
                      signature_png=b"not an image")
    doc = _open(out)
    assert doc.page_count == 2
    for page in doc:
        assert "TEST" in page.get_text()
        assert page.get_images() == []
    doc.close()


def test_image_watermark_embedded():
    wm = WatermarkSettings(type=TYPE_IMAGE, image=make_image(100, 50, Qt.green, alpha=True))
    out = compose_pdf(make_pdf(pages=1), wm)
    doc = _open(out)
    rect = doc[0].get_image_rects(doc[0].get_images()[0][0])[0]
    assert rect.width == pytest.approx(150, abs=1)
    assert (rect.x0 + rect.x1) / 2 == pytest.approx(300, abs=1)
    doc.close()


def test_no_overlays_leaves_pages_alone():
    out = compose_pdf(make_pdf(pages=1), WatermarkSettings(text=""))
    doc = _open(out)
    assert doc.page_count == 1
    assert doc[0].get_images() == []
    doc.close()


def test_unreadable_pdf_raises_export_error():
    with pytest.raises(ExportError):
        compose_pdf(b"definitely not a pdf", WatermarkSettings())


def test_preset_position_ignores_canvas_by_default():
    scene = Scene(make_image(400, 300), 400, 300)
    scene.add_or_replace(AnnotationObject.WATERMARK_TAG, TextWatermark("TEST", x=100, y=75))
    out = compose_pdf(make_pdf(pages=1), WatermarkSettings(text="TEST", rotation=0), scene=scene)
    doc = _open(out)
    hit = doc[0].search_for("TEST")[0]
    assert (hit.y0 + hit.y1) / 2 == pytest.approx(400, abs=40)
    doc.close()


def test_follow_canvas_maps_position_proportionally():
    scene = Scene(make_image(400, 300), 400, 300)
    scene.add_or_replace(AnnotationObject.WATERMARK_TAG, TextWatermark("TEST", x=100, y=75))
    wm = WatermarkSettings(text="TEST", rotation=0, follow_canvas=True)
    out = compose_pdf(make_pdf(pages=1), wm, scene=scene)
    doc = _open(out)
    hit = doc[0].search_for("TEST")[0]
    # canvas (100, 75) of 400x300 is (150, 200) on a 600x800 page
    assert (hit.x0 + hit.x1) / 2 == pytest.approx(150, abs=40)
    assert (hit.y0 + hit.y1) / 2 == pytest.approx(200, abs=40)
    doc.close()


# -- artifacts ---------------------------------------------------------------------
def test_processed_filename():
    assert processed_filename("report.pdf") == "processed-report.pdf"
    assert processed_filename("") == "processed-untitled"


def test_export_image_document_as_png(tmp_path):
    document = load_document(make_png(300, 200), "image/png", name="photo.png")
    scene = Scene(document.image, document.width, document.height)
    artifact = export_document(document, scene)
    assert artifact.filename == "processed-photo.png"
    assert artifact.mime_type == PNG_MIME_TYPE
    assert artifact.data.startswith(b"\x89PNG")

    path = artifact.save(directory=str(tmp_path))
    assert open(path, "rb").read() == artifact.data


def test_export_pdf_document(pdf_bytes):
    document = load_document(pdf_bytes, "application/pdf", name="doc.pdf")
    try:
        raster, w, h = document.render_page(1)
        artifact = export_document(document, Scene(raster, w, h),
                                   WatermarkSettings(text="TEST", rotation=0))
    finally:
        document.close()
    assert artifact.mime_type == PDF_MIME_TYPE
    assert artifact.filename == "processed-doc.pdf"
    assert _open(artifact.data).page_count == 2


def test_artifact_save_failure_raises_export_error(tmp_path):
    artifact = ExportArtifact("x.png", PNG_MIME_TYPE, b"data")
    with pytest.raises(ExportError):
        artifact.save(path=str(tmp_path / "missing" / "x.png"))


def _rotated_second_page_pdf():
    doc = _open(make_pdf(pages=2))
    doc[1].set_rotation(90)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.mark.parametrize("position", geometry.POSITIONS)
def test_text_preset_visible_on_rotated_page(position):
    wm = WatermarkSettings(text="TEST", rotation=0, position=position)
    doc = _open(compose_pdf(_rotated_second_page_pdf(), wm))
    assert doc[1].rotation == 90
    for page in doc:
        assert "TEST" in page.get_text()
    doc.close()


def _line_direction(page, text):
    for block in page.get_text("dict")["blocks"]:
        for line in block.get("lines", []):
            if any(text in span["text"] for span in line["spans"]):
                return line["dir"]
    return None


def test_text_rotation_is_counter_clockwise():
    doc = _open(compose_pdf(make_pdf(pages=1), WatermarkSettings(text="TEST", rotation=90)))
    assert _line_direction(doc[0], "TEST") == pytest.approx((0.0, -1.0), abs=1e-3)
    doc.close()


def test_text_rotation_zero_reads_left_to_right():
    doc = _open(compose_pdf(make_pdf(pages=1), WatermarkSettings(text="TEST", rotation=0)))
    assert _line_direction(doc[0], "TEST") == pytest.approx((1.0, 0.0), abs=1e-3)
    doc.close()
