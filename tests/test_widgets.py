import pytest
from PyQt5.QtCore import QEvent, QPoint, Qt
from PyQt5.QtTest import QTest
from PyQt5.QtWidgets import QApplication

from overlay_editor.canvas_view import EditorCanvas
from overlay_editor.dialogs import NudgePad, WatermarkPanel
from overlay_editor.main_window import OverlayEditorWindow
from overlay_editor.models.annotation import AnnotationObject
from overlay_editor.models.watermark import WatermarkSettings
from overlay_editor.session import EditorSession

from conftest import make_pdf, make_png

pytestmark = pytest.mark.usefixtures("qapp")


@pytest.fixture
def session(settings):
    s = EditorSession.open(make_png(400, 300), "image/png", name="p.png", settings=settings)
    yield s
    s.close()


def test_nudge_pad_reports_press_and_release():
    pad = NudgePad("Move", AnnotationObject.SIGNATURE_TAG)
    started, stopped = [], []
    pad.nudge_started.connect(lambda tag, d: started.append((tag, d)))
    pad.nudge_stopped.connect(lambda: stopped.append(1))
    up = pad.buttons()[0]
    QTest.mousePress(up, Qt.LeftButton)
    QTest.mouseRelease(up, Qt.LeftButton)
    assert started == [(AnnotationObject.SIGNATURE_TAG, "up")]
    assert stopped


def test_watermark_panel_emits_settings():
    panel = WatermarkPanel(WatermarkSettings())
    seen = {}
    panel.setting_changed.connect(lambda name, value: seen.__setitem__(name, value))
    panel._opacity_slider.setValue(8)
    panel._rotation_spin.setValue(30)
    panel._txt_input.setText("DRAFT")
    assert seen["opacity"] == pytest.approx(0.8)
    assert seen["rotation"] == 30
    assert seen["text"] == "DRAFT"


def test_canvas_sizes_to_scene_and_handles_keys(session):
    canvas = EditorCanvas()
    canvas.set_session(session)
    assert (canvas.width(), canvas.height()) == (400, 300)

    wm = session.apply_watermark()
    x = wm.x
    QTest.keyClick(canvas, Qt.Key_Right)
    assert wm.x == x + 5
    QTest.keyClick(canvas, Qt.Key_Delete)
    assert not session.watermark_applied


def test_canvas_drag_moves_selected(session):
    canvas = EditorCanvas()
    canvas.set_session(session)
    sig = session.apply_signature(make_png(200, 100))
    x, y = int(sig.x), int(sig.y)
    QTest.mousePress(canvas, Qt.LeftButton, pos=QPoint(x, y))
    QTest.mouseRelease(canvas, Qt.LeftButton, pos=QPoint(x - 30, y - 20))
    assert (sig.x, sig.y) == pytest.approx((x - 30, y - 20))


def test_window_batch_flow(settings, tmp_path):
    first = tmp_path / "one.png"
    first.write_bytes(make_png(300, 200))
    second = tmp_path / "two.pdf"
    second.write_bytes(make_pdf(pages=2))

    window = OverlayEditorWindow(settings=settings)
    window._start_batch([str(first), str(second)])
    assert window._session.document.name == "one.png"
    assert window._act_process.isEnabled()
    assert not window._act_next.isEnabled()

    window._skip_file()
    assert window._session.document.is_pdf
    assert window._act_next.isEnabled()
    window._next_page()
    QTest.qWait(50)
    assert window._session.current_page == 2

    window._skip_file()
    assert window._session is None
    assert settings.recent_files[0] == str(second)


def test_leaving_nudge_button_stops_repeat():
    pad = NudgePad("Move", AnnotationObject.WATERMARK_TAG)
    stopped = []
    pad.nudge_stopped.connect(lambda: stopped.append(1))
    down = pad.buttons()[-1]
    QTest.mousePress(down, Qt.LeftButton)
    QApplication.sendEvent(down, QEvent(QEvent.Leave))
    assert stopped == [1]
    QTest.mouseRelease(down, Qt.LeftButton)


def test_window_nudge_stops_when_pointer_leaves(settings, tmp_path):
    path = tmp_path / "one.png"
    path.write_bytes(make_png(300, 200))
    window = OverlayEditorWindow(settings=settings)
    window._start_batch([str(path)])
    session = window._session
    sig = session.apply_signature(make_png(80, 40))

    left = window._sig_nudge.buttons()[1]
    QTest.mousePress(left, Qt.LeftButton)
    assert session.controller.is_nudging
    QApplication.sendEvent(left, QEvent(QEvent.Leave))
    assert not session.controller.is_nudging

    x = sig.x
    QTest.qWait(120)
    assert sig.x == x
    QTest.mouseRelease(left, Qt.LeftButton)


def test_skipped_file_drops_queued_export(settings, tmp_path):
    paths = []
    for name in ("one.png", "two.png", "three.png"):
        p = tmp_path / name
        p.write_bytes(make_png(60, 40))
        paths.append(str(p))
    window = OverlayEditorWindow(settings=settings)
    window._start_batch(paths)

    window._process()
    window._skip_file()
    QTest.qWait(50)

    assert window._index == 1
    assert window._session.document.name == "two.png"
    assert window._processed == []
    # a late result for another session never advances the batch
    window._on_exported(object(), None, None)
    assert window._index == 1
