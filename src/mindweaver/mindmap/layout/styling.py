# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Node sizing and coloring by relative depth.

"""
Styling for laid-out mindmap nodes.

Radius, color and label font size depend only on a node's depth relative
to the virtual root, so drilling into a subtree restyles it as if it were
a topic of its own.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from ...config.settings import LayoutConfig
from ..tree import FlatNode


@dataclass
class LayoutNode:
    """A visible node with its simulated position and style."""
    id: str
    title: str
    depth: int
    relative_depth: int
    x: float
    y: float
    r: float
    color: str
    font_size: float
    parent_id: Optional[str] = None
    has_children: bool = False
    summary: Optional[str] = None

    def to_dict(self):
        return {
            "type": "position",
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "r": self.r,
            "color": self.color,
            "depth": self.relative_depth,
        }


def relative_depth(depth: int, base_depth: int) -> int:
    return max(0, depth - base_depth)


def node_radius(rel_depth: int, radii: Sequence[float]) -> float:
    """Largest radius for the virtual root, smallest from depth 2 down."""
    return radii[min(max(rel_depth, 0), len(radii) - 1)]


def node_color(rel_depth: int, palette: Sequence[str]) -> str:
    return palette[min(max(rel_depth, 0), len(palette) - 1)]


def label_font_size(rel_depth: int, config: LayoutConfig) -> float:
    return config.root_font_size if rel_depth == 0 else config.font_size


def style_node(node: FlatNode, base_depth: int, x: float, y: float,
               config: LayoutConfig) -> LayoutNode:
    rel = relative_depth(node.depth, base_depth)
    return LayoutNode(
        id=node.id,
        title=node.title,
        depth=node.depth,
        relative_depth=rel,
        x=x,
        y=y,
        r=node_radius(rel, config.radii),
        color=node_color(rel, config.palette),
        font_size=label_font_size(rel, config),
        parent_id=node.parent_id,
        has_children=node.has_children,
        summary=node.summary,
    )
