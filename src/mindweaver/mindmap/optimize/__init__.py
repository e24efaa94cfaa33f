# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Mind map layout optimization algorithms.

"""
Optimization passes for mindmap layouts.

Provides algorithms applied after the force simulation:
- Overlap removal (push apart overlapping node circles)
- Viewport fitting, zooming and animated transitions
"""

from .overlap_removal import overlap_removal
from .centering import (
    ViewTransform,
    content_bounds,
    fit_transform,
    fit_view,
    transition,
    zoom_by,
)

__all__ = [
    'overlap_removal',
    'ViewTransform',
    'content_bounds',
    'fit_transform',
    'fit_view',
    'transition',
    'zoom_by',
]
