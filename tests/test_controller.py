import pytest
from PyQt5.QtTest import QTest

from overlay_editor.controller import InteractionController
from overlay_editor.models.annotation import (
    AnnotationObject, ImageWatermark, Signature, TextWatermark,
)
from overlay_editor.models.scene import Scene

from conftest import make_image

pytestmark = pytest.mark.usefixtures("qapp")

SIG = AnnotationObject.SIGNATURE_TAG
WM = AnnotationObject.WATERMARK_TAG


@pytest.fixture
def scene():
    return Scene(make_image(400, 300), 400, 300)


@pytest.fixture
def controller(scene):
    c = InteractionController(scene, nudge_step=5, nudge_interval_ms=10)
    yield c
    c.stop_nudge()


def _add_signature(scene, x=200, y=150, w=80, h=40):
    return scene.add_or_replace(SIG, Signature(make_image(w, h, alpha=True), x=x, y=y))


def test_drag_moves_object_by_pointer_delta(scene, controller):
    sig = _add_signature(scene)
    assert controller.pointer_down(210, 150)
    assert controller.mode == controller.MODE_MOVE
    controller.pointer_move(240, 170)
    controller.pointer_up()
    assert (sig.x, sig.y) == (230, 170)
    assert controller.active_object is None


def test_drag_is_not_clamped_to_canvas(scene, controller):
    sig = _add_signature(scene)
    controller.pointer_down(200, 150)
    controller.pointer_up(900, -300)
    assert (sig.x, sig.y) == (900, -300)


def test_pointer_down_on_empty_canvas_deselects(scene, controller):
    _add_signature(scene)
    assert not controller.pointer_down(10, 10)
    assert scene.selected is None


def test_scale_keeps_opposite_corner_fixed(scene, controller):
    sig = _add_signature(scene, 200, 150, 80, 40)
    anchor = sig.corners()["top-left"]
    # bottom-right handle of the selected signature
    assert controller.pointer_down(240, 170)
    assert controller.mode == controller.MODE_SCALE
    controller.pointer_up(320, 210)
    assert sig.scale == pytest.approx(2.0)
    assert sig.corners()["top-left"] == pytest.approx(anchor)
    assert sig.size() == pytest.approx((160, 80))


def test_rotate_handle_changes_rotation(scene, controller):
    sig = _add_signature(scene, 200, 150, 80, 40)
    # rotate handle sits 30px above the top edge
    assert controller.pointer_down(200, 100)
    assert controller.mode == controller.MODE_ROTATE
    controller.pointer_up(250, 150)
    assert sig.rotation == pytest.approx(90)
    assert (sig.x, sig.y) == (200, 150)


def test_nudge_moves_by_step(scene, controller):
    sig = _add_signature(scene)
    for _ in range(3):
        assert controller.nudge(SIG, "right")
    controller.nudge(SIG, "up")
    assert (sig.x, sig.y) == (215, 145)


def test_nudge_without_object_is_noop(controller):
    assert not controller.nudge(WM, "left")
    assert not controller.start_nudge(WM, "left")
    assert not controller.is_nudging


def test_continuous_nudge_ticks_until_stopped(scene, controller):
    sig = _add_signature(scene)
    assert controller.start_nudge(SIG, "down")
    assert sig.y == 155  # immediate first step
    controller._nudge_tick()
    controller._nudge_tick()
    assert sig.y == 165
    controller.stop_nudge()
    controller._nudge_tick()
    assert sig.y == 165
    assert not controller.is_nudging


def test_continuous_nudge_runs_on_timer(scene, controller):
    sig = _add_signature(scene)
    controller.start_nudge(SIG, "left")
    QTest.qWait(80)
    controller.stop_nudge()
    moved = 200 - sig.x
    assert moved > 5
    QTest.qWait(50)
    assert 200 - sig.x == moved


def test_starting_new_nudge_replaces_running_one(scene, controller):
    sig = _add_signature(scene)
    controller.start_nudge(SIG, "left")
    controller.start_nudge(SIG, "up")
    controller._nudge_tick()
    assert sig.x == 195
    assert sig.y == 140


def test_stop_nudge_is_idempotent(controller):
    controller.stop_nudge()
    controller.stop_nudge()
    assert not controller.is_nudging


def test_set_scene_stops_repeat(scene, controller):
    _add_signature(scene)
    controller.start_nudge(SIG, "left")
    controller.set_scene(Scene(make_image(10, 10), 10, 10))
    assert not controller.is_nudging


def test_live_property_without_watermark_is_ignored(scene, controller):
    assert not controller.update_watermark_property("opacity", 0.2)


def test_live_property_updates_text_watermark(scene, controller):
    wm = scene.add_or_replace(WM, TextWatermark("A", opacity=0.5))
    assert controller.update_watermark_property("opacity", 0.2)
    assert controller.update_watermark_property("color", "#00ff00")
    assert controller.update_watermark_property("font_size", 20)
    assert (wm.opacity, wm.color, wm.font_size) == (0.2, "#00ff00", 20)


def test_live_color_ignored_for_image_watermark(scene, controller):
    wm = scene.add_or_replace(WM, ImageWatermark(make_image(20, 20, alpha=True)))
    assert not controller.update_watermark_property("color", "#00ff00")
    assert controller.update_watermark_property("rotation", 10)
    assert wm.rotation == 10


def test_unknown_live_property_raises(controller):
    with pytest.raises(ValueError):
        controller.update_watermark_property("text", "nope")


def test_delete_selected(scene, controller):
    _add_signature(scene)
    assert controller.delete_selected()
    assert scene.find(SIG) is None
    assert not controller.delete_selected()


def test_changed_signal_fires_on_nudge(scene, controller):
    _add_signature(scene)
    hits = []
    controller.changed.connect(lambda: hits.append(1))
    controller.nudge(SIG, "down")
    assert hits == [1]
