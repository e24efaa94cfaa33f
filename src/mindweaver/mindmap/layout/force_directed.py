# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Force-directed layout simulation with NumPy acceleration.

"""
Force-directed layout using a stepped velocity-Verlet simulation.

Each step combines five forces in a fixed order:
- link: springs between parent and child toward r_s + r_t + gap
- charge: pairwise many-body repulsion
- collide: minimum separation using each node's radius plus padding
- center: translates the mean position onto the viewport center
- radial: pulls nodes onto rings by depth relative to the virtual root

The simulation "temperature" alpha scales the forces and decays every
step; stepping stops once alpha or kinetic energy is small enough, or
after max_iterations. Steps are exposed one at a time so a scheduler can
interleave them with other work.
"""

import logging
import math
from dataclasses import replace
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial.distance import pdist, squareform

from ...config.settings import LayoutConfig
from ..view import Edge
from .styling import LayoutNode

logger = logging.getLogger(__name__)


def spiral_position(
    index: int,
    center_x: float,
    center_y: float,
    config: Optional[LayoutConfig] = None,
) -> Tuple[float, float]:
    """Deterministic spiral seed for a node at a given traversal index."""
    config = config or LayoutConfig()
    angle = index * config.spiral_angle_step
    dist = config.spiral_base_distance + index * config.spiral_distance_step
    return (center_x + math.cos(angle) * dist, center_y + math.sin(angle) * dist)


# ============================================================================
# POSITION CACHE
# ============================================================================

class PositionCache:
    """
    Last known (x, y) and radius per node id.

    Also remembers which ids the last stored run covered, and the alpha it
    was stopped at, so the next run can decide how much to reheat.
    """

    def __init__(self):
        self._positions: Dict[str, Tuple[float, float]] = {}
        self._radii: Dict[str, float] = {}
        self._last_ids: FrozenSet[str] = frozenset()
        self.residual_alpha: float = 0.0

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._positions

    def __len__(self) -> int:
        return len(self._positions)

    def get(self, node_id: str) -> Optional[Tuple[float, float]]:
        return self._positions.get(node_id)

    @property
    def last_ids(self) -> FrozenSet[str]:
        return self._last_ids

    def store(
        self,
        positions: Dict[str, Tuple[float, float]],
        radii: Optional[Dict[str, float]] = None,
        residual_alpha: float = 0.0,
    ) -> None:
        """Record the outcome of a run; entries for other ids are kept."""
        self._positions.update(positions)
        if radii:
            self._radii.update(radii)
        self._last_ids = frozenset(positions)
        self.residual_alpha = residual_alpha

    def seed(self, positions: Dict[str, Tuple[float, float]]) -> None:
        """Pre-populate from an earlier session, e.g. a positions stream."""
        self.store(positions)

    def change_ratio(self, radii: Dict[str, float]) -> float:
        """
        Fraction of nodes added, removed or resized since the last run.

        radii maps the ids of the upcoming run to their radius. An empty
        cache counts as a complete change.
        """
        ids = set(radii)
        union = ids | self._last_ids
        if not union:
            return 0.0
        changed = ids ^ self._last_ids
        for nid in ids & self._last_ids:
            if nid not in self._positions:
                changed.add(nid)
            elif nid in self._radii and self._radii[nid] != radii[nid]:
                changed.add(nid)
        return len(changed) / len(union)


# ============================================================================
# SIMULATION
# ============================================================================

class ForceSimulation:
    """
    Stepped force simulation over a fixed set of nodes and edges.

    Positions and velocities live in (n, 2) arrays indexed like `ids`.
    """

    def __init__(
        self,
        nodes: Sequence[LayoutNode],
        edges: Iterable[Edge],
        config: Optional[LayoutConfig] = None,
        center: Tuple[float, float] = (400.0, 300.0),
        alpha: float = 1.0,
    ):
        self.config = config or LayoutConfig()
        self.nodes = list(nodes)
        self.ids = [n.id for n in self.nodes]
        self._index = {nid: i for i, nid in enumerate(self.ids)}
        n = len(self.nodes)

        self.center = center
        self.positions = np.array([[node.x, node.y] for node in self.nodes], dtype=float).reshape(n, 2)
        self.velocities = np.zeros((n, 2))
        self.radii = np.array([node.r for node in self.nodes], dtype=float)
        self.rel_depths = np.array([node.relative_depth for node in self.nodes], dtype=float)

        self.alpha = alpha
        self.alpha_target = 0.0
        self.iterations = 0
        self.energy: Optional[float] = None
        self._fixed: Dict[int, Tuple[float, float]] = {}
        self._rng = np.random.default_rng(self.config.seed)

        crowded = n > self.config.crowd_threshold
        self.charge_strength = (
            self.config.charge_strength_crowded if crowded else self.config.charge_strength
        )
        self.ring_step = self.config.ring_step_crowded if crowded else self.config.ring_step

        self._init_links(edges)

    def _init_links(self, edges: Iterable[Edge]) -> None:
        pairs = [
            (self._index[e.source_id], self._index[e.target_id])
            for e in edges
            if e.source_id in self._index and e.target_id in self._index
        ]
        n = len(self.ids)
        self.links = np.array(pairs, dtype=int).reshape(-1, 2)
        degree = np.bincount(self.links.ravel(), minlength=n).astype(float)
        src, tgt = self.links[:, 0], self.links[:, 1]
        # Each end moves in proportion to the other end's degree
        self.link_bias = degree[src] / np.maximum(degree[src] + degree[tgt], 1.0)
        self.link_distance = self.radii[src] + self.radii[tgt] + self.config.link_gap

    def __len__(self) -> int:
        return len(self.ids)

    # ------------------------------------------------------------------
    # control
    # ------------------------------------------------------------------

    @property
    def converged(self) -> bool:
        if len(self.ids) == 0:
            return True
        if self.alpha < self.config.alpha_min:
            return True
        if self.iterations >= self.config.max_iterations:
            return True
        return self.energy is not None and self.energy < self.config.energy_threshold

    def pin(self, node_id: str, x: float, y: float) -> None:
        """Hold a node at a fixed position (e.g. while it is dragged)."""
        i = self._index.get(node_id)
        if i is None:
            return
        self._fixed[i] = (x, y)
        self.positions[i] = (x, y)
        self.velocities[i] = 0.0

    @property
    def pinned_ids(self) -> FrozenSet[str]:
        return frozenset(self.ids[i] for i in self._fixed)

    def step(self) -> bool:
        """Advance one tick. Returns False once the simulation has converged."""
        if self.converged:
            return False

        self.alpha += (self.alpha_target - self.alpha) * self.config.alpha_decay

        self._force_link()
        self._force_charge()
        self._force_collide()
        self._force_center()
        self._force_radial()

        self.velocities *= 1.0 - self.config.velocity_decay
        self.positions += self.velocities
        for i, (fx, fy) in self._fixed.items():
            self.positions[i] = (fx, fy)
            self.velocities[i] = 0.0

        self.iterations += 1
        self.energy = float(np.mean(np.sum(self.velocities ** 2, axis=1)))
        return True

    def run(self) -> Dict[str, Tuple[float, float]]:
        """Step until converged and return final positions."""
        while self.step():
            pass
        logger.debug(
            f"Simulation of {len(self.ids)} nodes stopped after {self.iterations} "
            f"steps (alpha={self.alpha:.4f}, energy={self.energy})"
        )
        return self.positions_dict()

    def positions_dict(self) -> Dict[str, Tuple[float, float]]:
        return {
            nid: (float(self.positions[i, 0]), float(self.positions[i, 1]))
            for i, nid in enumerate(self.ids)
        }

    def radii_dict(self) -> Dict[str, float]:
        return {nid: float(self.radii[i]) for i, nid in enumerate(self.ids)}

    def layout_nodes(self) -> List[LayoutNode]:
        """Nodes with their current simulated positions."""
        return [
            replace(node, x=float(self.positions[i, 0]), y=float(self.positions[i, 1]))
            for i, node in enumerate(self.nodes)
        ]

    # ------------------------------------------------------------------
    # forces
    # ------------------------------------------------------------------

    def _jiggle(self, shape) -> np.ndarray:
        return (self._rng.random(shape) - 0.5) * 1e-6

    def _force_link(self) -> None:
        if len(self.links) == 0:
            return
        src, tgt = self.links[:, 0], self.links[:, 1]
        delta = (self.positions[tgt] + self.velocities[tgt]) - (
            self.positions[src] + self.velocities[src]
        )
        zero = np.all(delta == 0, axis=1)
        if np.any(zero):
            delta[zero] = self._jiggle((int(zero.sum()), 2))
        length = np.sqrt(np.sum(delta ** 2, axis=1))
        scale = (length - self.link_distance) / length * self.alpha * self.config.link_strength
        delta *= scale[:, np.newaxis]

        np.add.at(self.velocities, tgt, -delta * self.link_bias[:, np.newaxis])
        np.add.at(self.velocities, src, delta * (1.0 - self.link_bias)[:, np.newaxis])

    def _force_charge(self) -> None:
        n = len(self.ids)
        if n < 2:
            return
        # diff[i, j] points from node i to node j
        diff = self.positions[np.newaxis, :, :] - self.positions[:, np.newaxis, :]
        coincident = np.all(diff == 0, axis=2)
        np.fill_diagonal(coincident, False)
        if np.any(coincident):
            diff[coincident] = self._jiggle((int(coincident.sum()), 2))

        dist2 = np.sum(diff ** 2, axis=2)
        dist2 = np.where(dist2 < 1.0, np.sqrt(dist2), dist2)
        np.fill_diagonal(dist2, np.inf)
        weight = self.charge_strength * self.alpha / np.maximum(dist2, 1e-12)
        np.fill_diagonal(weight, 0.0)

        self.velocities += np.sum(diff * weight[:, :, np.newaxis], axis=1)

    def _force_collide(self) -> None:
        n = len(self.ids)
        if n < 2:
            return
        reach = self.radii + self.config.collide_padding
        predicted = self.positions + self.velocities
        dist = squareform(pdist(predicted))
        min_dist = reach[:, np.newaxis] + reach[np.newaxis, :]

        overlap = np.triu(dist < min_dist, k=1)
        if not np.any(overlap):
            return
        i_idx, j_idx = np.nonzero(overlap)

        delta = predicted[i_idx] - predicted[j_idx]
        zero = np.all(delta == 0, axis=1)
        if np.any(zero):
            delta[zero] = self._jiggle((int(zero.sum()), 2))
        length = np.sqrt(np.sum(delta ** 2, axis=1))
        scale = (min_dist[i_idx, j_idx] - length) / length * self.config.collide_strength
        delta *= scale[:, np.newaxis]

        ri2 = reach[i_idx] ** 2
        rj2 = reach[j_idx] ** 2
        share = rj2 / (ri2 + rj2)
        np.add.at(self.velocities, i_idx, delta * share[:, np.newaxis])
        np.add.at(self.velocities, j_idx, -delta * (1.0 - share)[:, np.newaxis])

    def _force_center(self) -> None:
        shift = self.positions.mean(axis=0) - np.asarray(self.center, dtype=float)
        self.positions -= shift

    def _force_radial(self) -> None:
        delta = self.positions - np.asarray(self.center, dtype=float)
        delta[delta == 0] = 1e-6
        dist = np.sqrt(np.sum(delta ** 2, axis=1))
        target = self.rel_depths * self.ring_step
        k = (target - dist) * self.config.radial_strength * self.alpha / dist
        self.velocities += delta * k[:, np.newaxis]
