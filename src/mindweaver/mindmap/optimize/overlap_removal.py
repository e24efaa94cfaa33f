# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Overlap removal optimizer with NumPy acceleration.

"""
Overlap removal for circular mindmap nodes.

Iteratively pushes apart overlapping circles along the line between their
centers while preserving the general structure of the layout. Used as a
final pass after the force simulation, whose collision force is soft.
"""

from typing import Any, Collection, Dict, Optional, Tuple

import numpy as np
from scipy.spatial.distance import pdist, squareform


def overlap_removal(
    positions: Dict[str, Tuple[float, float]],
    node_data: Optional[Dict[str, Dict[str, Any]]] = None,
    options: Optional[Dict[str, Any]] = None
) -> Dict[str, Tuple[float, float]]:
    """
    Remove overlaps between nodes by pushing them apart.

    Args:
        positions: Dictionary mapping node IDs to (x, y) positions.
        node_data: Optional dictionary mapping node IDs to properties
                   including 'r' (radius).
        options: Optional parameters:
            - padding: Extra clearance added to every radius (default: 25)
            - iterations: Maximum iterations (default: 50)
            - damping: Movement damping factor (default: 0.5)
            - default_radius: Radius for nodes without data (default: 35)
            - fixed: Collection of node IDs that must not move

    Returns:
        Dictionary mapping node IDs to adjusted (x, y) positions.
    """
    options = options or {}
    padding = options.get('padding', 25)
    iterations = options.get('iterations', 50)
    damping = options.get('damping', 0.5)
    default_radius = options.get('default_radius', 35)
    fixed: Collection[str] = options.get('fixed', ())

    node_data = node_data or {}

    if len(positions) < 2:
        return dict(positions)

    node_ids = list(positions.keys())
    n = len(node_ids)

    pos = np.array([[positions[nid][0], positions[nid][1]] for nid in node_ids], dtype=float)
    reach = np.array([node_data.get(nid, {}).get('r', default_radius) + padding
                      for nid in node_ids], dtype=float)
    movable = np.array([nid not in fixed for nid in node_ids], dtype=float)
    min_dist = reach[:, np.newaxis] + reach[np.newaxis, :]

    for _ in range(iterations):
        dist = squareform(pdist(pos))
        overlap = np.triu(min_dist - dist, k=1)
        i_idx, j_idx = np.nonzero(overlap > 1e-9)
        if len(i_idx) == 0:
            break

        delta = pos[i_idx] - pos[j_idx]
        length = dist[i_idx, j_idx]
        # Coincident centers are split along a fixed axis
        delta[length == 0] = (1.0, 0.0)
        length = np.where(length == 0, 1.0, length)
        direction = delta / length[:, np.newaxis]

        # Movable nodes take the whole push when their partner is fixed
        wi = movable[i_idx]
        wj = movable[j_idx]
        total = np.maximum(wi + wj, 1e-12)
        push = overlap[i_idx, j_idx] * damping

        shift = np.zeros_like(pos)
        np.add.at(shift, i_idx, direction * (push * wi / total)[:, np.newaxis])
        np.add.at(shift, j_idx, -direction * (push * wj / total)[:, np.newaxis])
        pos += shift

    return {node_ids[i]: (float(pos[i, 0]), float(pos[i, 1])) for i in range(n)}

