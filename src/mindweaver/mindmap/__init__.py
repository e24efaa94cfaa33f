# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Mind map tree state and layout engine.

"""
Mind map tree model, view state, layout and controller.

The tree and view modules are pure functions over immutable data; the
layout package positions the visible nodes with a NumPy force simulation;
the controller ties them together behind the action surface used by
presentation code.

The io module provides topic document loading/export and JSON Lines
layout streams.
"""

from . import tree
from . import view
from . import layout
from . import optimize
from . import io
from .controller import MindmapController

__all__ = ['tree', 'view', 'layout', 'optimize', 'io', 'MindmapController']
