"""Tests for viewport fitting, zooming and transitions."""

import pytest

from mindweaver.config.settings import ViewportConfig
from mindweaver.mindmap.layout.styling import LayoutNode
from mindweaver.mindmap.optimize.centering import (
    IDENTITY,
    ViewTransform,
    content_bounds,
    ease_cubic_in_out,
    fit_transform,
    fit_view,
    transition,
    zoom_by,
)


def node(nid, x, y, r=35.0):
    return LayoutNode(id=nid, title=nid, depth=0, relative_depth=0,
                      x=x, y=y, r=r, color='#fff', font_size=11)


class TestFit:
    """Tests for fit-to-content transforms."""

    def test_bounds_include_radius_and_padding(self):
        bounds = content_bounds([node("a", 0, 0, r=10), node("b", 100, 50, r=10)], node_padding=5)
        assert bounds == (-15, -15, 115, 65)
        assert bounds.center == (50, 25)

    def test_empty_has_no_bounds(self):
        assert content_bounds([]) is None
        assert fit_transform(None) is None
        target, frames = fit_view([])
        assert target is None
        assert list(frames) == []

    def test_small_graph_capped_at_max_scale(self):
        options = ViewportConfig()
        t = fit_transform(content_bounds([node("a", 0, 0)]), options)
        assert t.k == pytest.approx(options.max_scale)
        # the content center maps to the viewport center
        assert t.apply(0, 0) == pytest.approx((400, 300))

    def test_large_graph_scaled_down(self):
        nodes = [node("a", -2000, 0), node("b", 2000, 0)]
        t = fit_transform(content_bounds(nodes), ViewportConfig())
        assert t.k < 1.0
        left = t.apply(-2000 - 55, 0)[0]
        right = t.apply(2000 + 55, 0)[0]
        assert left >= 0 and right <= 800


class TestZoom:
    """Tests for clamped zooming about the viewport center."""

    def test_zoom_keeps_center_fixed(self):
        options = ViewportConfig()
        start = ViewTransform(x=30, y=-20, k=1.0)
        zoomed = zoom_by(start, 1.2, options)
        assert zoomed.k == pytest.approx(1.2)
        assert zoomed.invert(400, 300) == pytest.approx(start.invert(400, 300))

    def test_zoom_clamped_to_extent(self):
        options = ViewportConfig()
        assert zoom_by(ViewTransform(k=3.9), 10, options).k == pytest.approx(4.0)
        assert zoom_by(ViewTransform(k=0.11), 0.01, options).k == pytest.approx(0.1)


class TestTransition:
    """Tests for eased animation frames."""

    def test_last_frame_is_target(self):
        end = ViewTransform(100, 50, 2.0)
        frames = list(transition(IDENTITY, end, duration_ms=160, frame_ms=16))
        assert len(frames) == 10
        assert frames[-1] is end

    def test_frames_move_monotonically(self):
        end = ViewTransform(100, 0, 1.0)
        xs = [f.x for f in transition(IDENTITY, end, duration_ms=300, frame_ms=16)]
        assert xs == sorted(xs)

    def test_zero_duration_jumps(self):
        end = ViewTransform(1, 2, 3)
        assert list(transition(IDENTITY, end, duration_ms=0)) == [end]

    def test_easing_endpoints(self):
        assert ease_cubic_in_out(0.0) == 0.0
        assert ease_cubic_in_out(0.5) == pytest.approx(0.5)
        assert ease_cubic_in_out(1.0) == pytest.approx(1.0)
