# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Layout engine: seeding, warm starts and position caching.

"""
Layout engine for the visible part of a mindmap.

build() turns visible FlatNodes and edges into a ForceSimulation whose
nodes start at their cached positions (or on a spiral when new), with a
starting alpha proportional to how much the visible set changed. After
the simulation converges, finalize() runs an overlap-removal pass and
stores the result in the position cache for the next build.

Usage:
    engine = LayoutEngine(settings.layout)
    nodes = engine.layout(visible, edges, base_depth=0, width=800, height=600)
"""

import logging
from typing import List, Optional, Sequence

from ...config.settings import LayoutConfig
from ..optimize.overlap_removal import overlap_removal
from ..tree import FlatNode
from ..view import Edge
from .force_directed import ForceSimulation, PositionCache, spiral_position
from .styling import LayoutNode, style_node

logger = logging.getLogger(__name__)


class LayoutEngine:

    def __init__(self, config: Optional[LayoutConfig] = None,
                 cache: Optional[PositionCache] = None):
        self.config = config or LayoutConfig()
        self.cache = cache if cache is not None else PositionCache()

    def start_alpha(self, nodes: Sequence[LayoutNode], reheat: Optional[float] = None) -> float:
        """
        Starting temperature for a run over nodes.

        0 when nothing changed since the cached run, so every node stays
        put; otherwise the changed fraction, at least reheat_floor.
        """
        ratio = self.cache.change_ratio({n.id: n.r for n in nodes})
        alpha = 0.0 if ratio == 0 else min(1.0, max(ratio, self.config.reheat_floor))
        alpha = max(alpha, self.cache.residual_alpha)
        if reheat is not None:
            alpha = max(alpha, reheat)
        return alpha

    def build(
        self,
        nodes: Sequence[FlatNode],
        edges: Sequence[Edge],
        base_depth: int,
        width: float,
        height: float,
        reheat: Optional[float] = None,
    ) -> ForceSimulation:
        """Create a simulation for the visible nodes, seeded from the cache."""
        cx, cy = width / 2, height / 2
        layout_nodes = []
        for i, node in enumerate(nodes):
            cached = self.cache.get(node.id)
            x, y = cached if cached is not None else spiral_position(i, cx, cy, self.config)
            layout_nodes.append(style_node(node, base_depth, x, y, self.config))

        alpha = self.start_alpha(layout_nodes, reheat)
        logger.debug(f"Layout of {len(layout_nodes)} nodes starting at alpha={alpha:.3f}")
        return ForceSimulation(layout_nodes, edges, self.config, center=(cx, cy), alpha=alpha)

    def finalize(self, sim: ForceSimulation) -> List[LayoutNode]:
        """Separate leftover overlaps and store positions in the cache."""
        positions = sim.positions_dict()
        if sim.iterations > 0:
            positions = overlap_removal(
                positions,
                {nid: {'r': r} for nid, r in sim.radii_dict().items()},
                {'padding': self.config.collide_padding, 'fixed': sim.pinned_ids},
            )
            for i, nid in enumerate(sim.ids):
                sim.positions[i] = positions[nid]
        self.commit(sim)
        return sim.layout_nodes()

    def commit(self, sim: ForceSimulation) -> None:
        """Store current positions; an unfinished run keeps its alpha."""
        residual = 0.0 if sim.converged else sim.alpha
        self.cache.store(sim.positions_dict(), sim.radii_dict(), residual_alpha=residual)

    def layout(
        self,
        nodes: Sequence[FlatNode],
        edges: Sequence[Edge],
        base_depth: int,
        width: float,
        height: float,
        reheat: Optional[float] = None,
    ) -> List[LayoutNode]:
        """Build, run to convergence and finalize in one call."""
        sim = self.build(nodes, edges, base_depth, width, height, reheat)
        sim.run()
        return self.finalize(sim)


def base_depth_for(nodes: Sequence[FlatNode], view_root_id: str) -> int:
    """Depth of the virtual root among nodes, 0 if it is not present."""
    for node in nodes:
        if node.id == view_root_id:
            return node.depth
    return 0
