"""Tests for the coordinate transform layer.

Covers: rounding, mm/px conversion, Y flips, rectangles and grid clamping.
"""

from __future__ import annotations

import pytest

from modplan.geometry.transform import (
    CoordinateTransform,
    MmRect,
    PixelRect,
    bottom_to_top_y,
    bounding_box,
    mm_to_px,
    px_to_mm,
    rect_bottom_to_top_mm,
    rect_top_to_bottom_mm,
    round_half_up,
    top_to_bottom_y,
)


# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------

class TestRounding:

    def test_ties_round_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(-2.5) == -2

    def test_non_ties(self):
        assert round_half_up(0.49) == 0
        assert round_half_up(1.51) == 2
        assert round_half_up(-1.6) == -2

    def test_returns_int(self):
        assert isinstance(round_half_up(7.0), int)


# ---------------------------------------------------------------------------
# Unit conversion
# ---------------------------------------------------------------------------

class TestConversion:

    def test_mm_to_px(self):
        assert mm_to_px(1000, 0.1) == 100
        assert mm_to_px(1234, 1) == 1234
        assert mm_to_px(5, 0.5) == 3

    def test_px_to_mm(self):
        assert px_to_mm(100, 0.1) == 1000
        assert px_to_mm(37, 2) == 19

    @pytest.mark.parametrize("scale", [1, 2, 3, 5])
    def test_round_trip_exact_for_integer_scale(self, scale):
        for value in range(-200, 200):
            assert px_to_mm(mm_to_px(value, scale), scale) == value

    def test_round_trip_within_one_for_half_scale(self):
        for value in range(0, 500):
            assert abs(px_to_mm(mm_to_px(value, 0.5), 0.5) - value) <= 1

    def test_rounded_values_are_idempotent(self):
        px = mm_to_px(1333, 0.3)
        mm = px_to_mm(px, 0.3)
        assert mm_to_px(mm, 0.3) == px


# ---------------------------------------------------------------------------
# Y flips
# ---------------------------------------------------------------------------

class TestYFlip:

    def test_rect_flip_is_involution(self):
        for y in (0, 150, 2999, 42000):
            for h in (1, 300, 2800):
                top = rect_bottom_to_top_mm(y, h, 100)
                assert rect_top_to_bottom_mm(top, h, 100) == y

    def test_rect_flip_values(self):
        # 10 m grid: a 1000 mm tall rect sitting on the origin has its top at 9000
        assert rect_bottom_to_top_mm(0, 1000, 10) == 9000
        assert rect_top_to_bottom_mm(0, 1000, 10) == 9000

    def test_point_flip_is_involution(self):
        for y in (0, 17, 480, 1000):
            assert bottom_to_top_y(top_to_bottom_y(y, 1000), 1000) == y


# ---------------------------------------------------------------------------
# Rectangles
# ---------------------------------------------------------------------------

class TestRects:

    def test_pixel_rect_edges(self):
        rect = PixelRect(10, 20, 30, 40)
        assert rect.right == 40
        assert rect.bottom == 60

    def test_pixel_rect_moved(self):
        rect = PixelRect(10, 20, 30, 40).moved(left=15)
        assert rect == PixelRect(15, 20, 30, 40)

    def test_pixel_rect_rounded(self):
        assert PixelRect(1.5, 2.4, 3.5, 4.6).rounded() == PixelRect(2, 2, 4, 5)

    def test_touching_rects_do_not_overlap(self):
        a = MmRect(0, 0, 4000, 3000)
        b = MmRect(4000, 0, 4000, 3000)
        assert not a.overlaps(b)

    def test_intersecting_rects_overlap(self):
        a = MmRect(0, 0, 4000, 3000)
        b = MmRect(3999, 2999, 10, 10)
        assert a.overlaps(b)

    def test_union(self):
        box = MmRect(0, 0, 10, 10).union(MmRect(20, -5, 10, 10))
        assert box == MmRect(0, -5, 30, 15)

    def test_bounding_box(self):
        assert bounding_box([]) is None
        assert bounding_box([MmRect(5, 5, 1, 1), MmRect(0, 0, 2, 2)]) == MmRect(0, 0, 6, 6)


# ---------------------------------------------------------------------------
# CoordinateTransform
# ---------------------------------------------------------------------------

class TestCoordinateTransform:

    def test_rejects_non_positive_scale(self):
        with pytest.raises(ValueError):
            CoordinateTransform(0, 100, 100)
        with pytest.raises(ValueError):
            CoordinateTransform(-1, 100, 100)

    def test_rect_to_px(self):
        t = CoordinateTransform(1.0, 100, 100)
        assert t.rect_to_px(1000, 2000, 4000, 3000) == PixelRect(1000, 95000, 4000, 3000)

    def test_rect_to_px_scaled(self):
        t = CoordinateTransform(0.1, 100, 100)
        assert t.rect_to_px(1000, 2000, 4000, 3000) == PixelRect(100, 9500, 400, 300)

    def test_rect_round_trip(self):
        t = CoordinateTransform(2, 50, 50)
        rect = MmRect(1234, 567, 4000, 3000)
        assert t.rect_from_px(t.mm_rect_to_px(rect)) == rect

    def test_constrain_to_grid(self):
        t = CoordinateTransform(1.0, 10, 10)
        clamped = t.constrain_to_grid(MmRect(-500, 9500, 1000, 1000))
        assert clamped == MmRect(0, 9000, 1000, 1000)

    def test_constrain_inside_grid_is_noop(self):
        t = CoordinateTransform(1.0, 10, 10)
        rect = MmRect(100, 200, 1000, 1000)
        assert t.constrain_to_grid(rect) == rect

    def test_constrain_oversize_pins_to_origin(self):
        t = CoordinateTransform(1.0, 1, 1)
        assert t.constrain_to_grid(MmRect(300, 300, 2000, 2000)) == MmRect(0, 0, 2000, 2000)
