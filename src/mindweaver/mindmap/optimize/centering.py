# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Viewport fitting, zooming and animated transitions.

"""
Viewport transforms for rendered mindmaps.

A ViewTransform maps layout coordinates to screen coordinates as
screen = layout * k + (x, y). Rather than moving node positions, fit-view
and zoom compute a new transform and an eased sequence of frames to
animate towards it.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, NamedTuple, Optional, Tuple

from ...config.settings import ViewportConfig
from ..layout.styling import LayoutNode


@dataclass(frozen=True)
class ViewTransform:
    x: float = 0.0
    y: float = 0.0
    k: float = 1.0

    def apply(self, px: float, py: float) -> Tuple[float, float]:
        return (px * self.k + self.x, py * self.k + self.y)

    def invert(self, sx: float, sy: float) -> Tuple[float, float]:
        return ((sx - self.x) / self.k, (sy - self.y) / self.k)


IDENTITY = ViewTransform()


class Bounds(NamedTuple):
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)


def content_bounds(nodes: Iterable[LayoutNode], node_padding: float = 20.0) -> Optional[Bounds]:
    """Bounding box of all nodes, each grown by its radius plus padding."""
    min_x = min_y = float('inf')
    max_x = max_y = float('-inf')
    for node in nodes:
        extent = node.r + node_padding
        min_x = min(min_x, node.x - extent)
        max_x = max(max_x, node.x + extent)
        min_y = min(min_y, node.y - extent)
        max_y = max(max_y, node.y + extent)
    if min_x == float('inf'):
        return None
    return Bounds(min_x, min_y, max_x, max_y)


def fit_transform(
    bounds: Optional[Bounds],
    options: Optional[ViewportConfig] = None,
) -> Optional[ViewTransform]:
    """
    Transform that centers bounds in the viewport and scales it to fit.

    The scale never exceeds options.max_scale, so small graphs are not
    blown up. Returns None when there is nothing to fit.
    """
    options = options or ViewportConfig()
    if bounds is None:
        return None

    content_width = max(bounds.width + 2 * options.padding, 1e-9)
    content_height = max(bounds.height + 2 * options.padding, 1e-9)
    scale = min(options.width / content_width, options.height / content_height, options.max_scale)

    center_x, center_y = bounds.center
    return ViewTransform(
        x=options.width / 2 - center_x * scale,
        y=options.height / 2 - center_y * scale,
        k=scale,
    )


def zoom_by(
    transform: ViewTransform,
    factor: float,
    options: Optional[ViewportConfig] = None,
) -> ViewTransform:
    """Scale about the viewport center, clamped to options.scale_extent."""
    options = options or ViewportConfig()
    low, high = options.scale_extent
    k = min(max(transform.k * factor, low), high)

    # keep the layout point under the viewport center fixed
    cx, cy = options.width / 2, options.height / 2
    px, py = transform.invert(cx, cy)
    return ViewTransform(x=cx - px * k, y=cy - py * k, k=k)


def ease_cubic_in_out(t: float) -> float:
    t *= 2
    if t <= 1:
        return t * t * t / 2
    t -= 2
    return (t * t * t + 2) / 2


def transition(
    start: ViewTransform,
    end: ViewTransform,
    duration_ms: float = 750.0,
    frame_ms: float = 16.0,
) -> Iterator[ViewTransform]:
    """
    Yield eased intermediate transforms from start to end.

    The last frame is exactly `end`. A non-positive duration yields only
    the end transform.
    """
    frames = max(1, int(round(duration_ms / frame_ms))) if duration_ms > 0 else 1
    for i in range(1, frames + 1):
        if i == frames:
            yield end
            return
        t = ease_cubic_in_out(i / frames)
        yield ViewTransform(
            x=start.x + (end.x - start.x) * t,
            y=start.y + (end.y - start.y) * t,
            k=start.k + (end.k - start.k) * t,
        )


def fit_view(
    nodes: Iterable[LayoutNode],
    current: ViewTransform = IDENTITY,
    options: Optional[ViewportConfig] = None,
) -> Tuple[Optional[ViewTransform], Iterator[ViewTransform]]:
    """Target transform for fitting the nodes, with frames to animate there."""
    options = options or ViewportConfig()
    target = fit_transform(content_bounds(nodes, options.node_padding), options)
    if target is None:
        return None, iter(())
    return target, transition(current, target, options.fit_duration_ms, options.frame_ms)
