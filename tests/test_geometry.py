import pytest

from overlay_editor import geometry


@pytest.mark.parametrize("w,h", [
    (4000, 3000), (800, 600), (200, 100), (1000, 200), (300, 2000), (801, 601),
])
def test_envelope_never_exceeds_limits(w, h):
    dw, dh = geometry.fit_to_envelope(w, h)
    assert dw <= 800 and dh <= 600
    assert dw <= w and dh <= h


def test_envelope_keeps_aspect_ratio():
    dw, dh = geometry.fit_to_envelope(4000, 3000)
    assert (dw, dh) == (800, 600)
    dw, dh = geometry.fit_to_envelope(1600, 400)
    assert dw == 800
    assert dh == pytest.approx(200)


def test_small_images_are_not_upscaled():
    assert geometry.display_size(120, 80) == (120, 80)


def test_height_clamp_applies_after_width_clamp():
    # 1000x1000 -> 800x800 -> 600x600
    assert geometry.display_size(1000, 1000) == (600, 600)


def test_pdf_render_scale_letter_page():
    # 612x792 at 1.5 is 918x1188, both too large; height wins
    scale = geometry.pdf_render_scale(612, 792)
    assert 792 * scale == pytest.approx(600)
    assert 612 * scale <= 800


def test_pdf_render_scale_small_page_keeps_base():
    assert geometry.pdf_render_scale(200, 200) == pytest.approx(1.5)


def test_preset_text_placement_corners():
    p = geometry.preset_text_placement("TEST", 48, 600, 800, geometry.POSITION_TOP_LEFT)
    assert (p.x, p.y) == (50, 750)
    assert p.font_size == pytest.approx(36)

    p = geometry.preset_text_placement("TEST", 48, 600, 800, geometry.POSITION_BOTTOM_RIGHT)
    assert p.x == pytest.approx(600 - 4 * 36 * 0.6 - 50)
    assert p.y == 50


def test_preset_text_placement_defaults_to_center():
    p = geometry.preset_text_placement("AB", 40, 600, 800, None, rotation=-45)
    tw = 2 * 30 * 0.6
    assert p.x == pytest.approx(300 - tw / 2)
    assert p.y == 400
    assert p.rotation == -45
    assert (p.pivot_x, p.pivot_y) == (p.x, p.y)


def test_signature_placement_bottom_right():
    p = geometry.signature_placement(200, 100, 600, 800)
    assert (p.width, p.height) == pytest.approx((60, 30))
    assert p.x == pytest.approx(600 - 60 - 20)
    assert p.y == 20


def test_canvas_to_document_flips_y():
    assert geometry.canvas_to_document(0, 0, (400, 300), (600, 800)) == (0, 800)
    x, y = geometry.canvas_to_document(200, 150, (400, 300), (600, 800))
    assert (x, y) == pytest.approx((300, 400))


def test_canvas_text_placement_negates_rotation():
    p = geometry.canvas_text_placement("X", 20, 200, 150, 30, (400, 300), (600, 800))
    assert p.rotation == -30
    assert (p.pivot_x, p.pivot_y) == pytest.approx((300, 400))


def test_fitz_rect_tuple_is_top_left_based():
    p = geometry.signature_placement(200, 100, 600, 800)
    x0, y0, x1, y1 = geometry.fitz_rect_tuple(p, 800)
    assert (x0, x1) == pytest.approx((520, 580))
    assert (y0, y1) == pytest.approx((750, 780))


def test_box_contains_respects_rotation():
    # 100x10 bar rotated 90 degrees becomes vertical
    assert geometry.box_contains(50, 0, 0, 0, 100, 10, 0)
    assert not geometry.box_contains(50, 0, 0, 0, 100, 10, 90)
    assert geometry.box_contains(0, 45, 0, 0, 100, 10, 90)


def test_box_corners_opposites():
    corners = geometry.box_corners(0, 0, 20, 10, 0)
    assert corners["top-left"] == pytest.approx((-10, -5))
    assert corners["bottom-right"] == pytest.approx((10, 5))
    assert geometry.OPPOSITE_CORNER["top-right"] == "bottom-left"


@pytest.mark.parametrize("angle,expected", [
    (0, 0), (180, 180), (-180, 180), (190, -170), (-190, 170), (720, 0),
])
def test_normalize_angle(angle, expected):
    assert geometry.normalize_angle(angle) == pytest.approx(expected)
