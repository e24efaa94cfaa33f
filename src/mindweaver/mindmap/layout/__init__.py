# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Mind map layout algorithms.

"""
Layout for mindmap visualization.

Provides:
- Force-directed simulation (link, charge, collide, center, radial forces)
- Position caching and warm starts across re-renders
- Node styling by depth relative to the virtual root
- Label wrapping inside node circles
"""

from .force_directed import ForceSimulation, PositionCache, spiral_position
from .engine import LayoutEngine, base_depth_for
from .styling import LayoutNode, node_color, node_radius
from .labels import WrappedLabel, approximate_text_width, wrap_label

__all__ = [
    'ForceSimulation',
    'PositionCache',
    'spiral_position',
    'LayoutEngine',
    'base_depth_for',
    'LayoutNode',
    'node_color',
    'node_radius',
    'WrappedLabel',
    'approximate_text_width',
    'wrap_label',
]
