# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Per-topic view state and visibility derivation.

"""
View state for a mindmap topic.

ViewState is immutable; every transition returns a new state. Visibility
is derived from the drill path (which node acts as the virtual root) and
the set of expanded node ids.
"""

from dataclasses import dataclass, replace
from typing import FrozenSet, List, NamedTuple, Optional, Sequence, Set, Tuple

from .tree import FlatNode, ancestor_ids, descendant_ids, index_by_id


class Edge(NamedTuple):
    """A parent to child edge between two visible nodes."""
    source_id: str
    target_id: str


@dataclass(frozen=True)
class ViewState:
    selected_node_id: Optional[str] = None
    expanded_node_ids: FrozenSet[str] = frozenset()
    drill_path: Tuple[str, ...] = ()
    hovered_node_id: Optional[str] = None

    @classmethod
    def for_topic(cls, root_id: str) -> 'ViewState':
        """Fresh state after switching to a topic rooted at root_id."""
        return cls(
            selected_node_id=root_id,
            expanded_node_ids=frozenset([root_id]),
        )


def virtual_root_id(state: ViewState, root_id: str) -> str:
    return state.drill_path[-1] if state.drill_path else root_id


# ============================================================================
# VISIBILITY
# ============================================================================

def visible_ids(
    flat_nodes: Sequence[FlatNode],
    view_root_id: str,
    expanded_node_ids: FrozenSet[str],
) -> Set[str]:
    """Ids reachable from view_root_id through a chain of expanded nodes."""
    by_parent = {}
    for node in flat_nodes:
        if node.parent_id is not None:
            by_parent.setdefault(node.parent_id, []).append(node.id)

    visible = {view_root_id}
    pending = [view_root_id]
    while pending:
        nid = pending.pop()
        if nid not in expanded_node_ids:
            continue
        for child_id in by_parent.get(nid, []):
            if child_id not in visible:
                visible.add(child_id)
                pending.append(child_id)
    return visible


def visible_nodes(
    flat_nodes: Sequence[FlatNode],
    state: ViewState,
    root_id: str,
) -> List[FlatNode]:
    """Visible FlatNodes in flatten order; empty if the virtual root is gone."""
    view_root = virtual_root_id(state, root_id)
    if view_root not in index_by_id(flat_nodes):
        return []
    ids = visible_ids(flat_nodes, view_root, state.expanded_node_ids)
    return [n for n in flat_nodes if n.id in ids]


def visible_edges(nodes: Sequence[FlatNode]) -> List[Edge]:
    """Edges whose parent is visible too; edges above the virtual root drop."""
    ids = {n.id for n in nodes}
    return [
        Edge(n.parent_id, n.id)
        for n in nodes
        if n.parent_id is not None and n.parent_id in ids
    ]


# ============================================================================
# TRANSITIONS
# ============================================================================

def toggle_expand(state: ViewState, node_id: str, flat_nodes: Sequence[FlatNode]) -> ViewState:
    """
    Expand a collapsed node, or collapse an expanded one.

    Collapsing also forgets every expanded descendant, so expanding again
    shows only the direct children.
    """
    expanded = set(state.expanded_node_ids)
    if node_id in expanded:
        expanded.discard(node_id)
        expanded -= descendant_ids(node_id, flat_nodes)
    else:
        expanded.add(node_id)
    return replace(state, expanded_node_ids=frozenset(expanded))


def expand_all(state: ViewState, flat_nodes: Sequence[FlatNode]) -> ViewState:
    return replace(state, expanded_node_ids=frozenset(n.id for n in flat_nodes))


def collapse_all(state: ViewState, root_id: str) -> ViewState:
    # Collapses to the topic root even while drilled into a subtree
    return replace(state, expanded_node_ids=frozenset([root_id]))


def drill_down(state: ViewState, flat_nodes: Sequence[FlatNode]) -> ViewState:
    """Make the selected node the virtual root if it has children."""
    if state.selected_node_id is None:
        return state
    node = index_by_id(flat_nodes).get(state.selected_node_id)
    if node is None or not node.has_children:
        return state
    return replace(state, drill_path=state.drill_path + (node.id,))


def drill_up(state: ViewState) -> ViewState:
    if not state.drill_path:
        return state
    return replace(state, drill_path=state.drill_path[:-1])


def select(state: ViewState, node_id: Optional[str]) -> ViewState:
    return replace(state, selected_node_id=node_id)


def hover(state: ViewState, node_id: Optional[str]) -> ViewState:
    return replace(state, hovered_node_id=node_id)


def prune(state: ViewState, flat_nodes: Sequence[FlatNode]) -> ViewState:
    """Drop ids that no longer exist; the drill path is cut at the first gap."""
    known = index_by_id(flat_nodes)
    drill_path: Tuple[str, ...] = ()
    for nid in state.drill_path:
        if nid not in known:
            break
        drill_path += (nid,)
    return replace(
        state,
        expanded_node_ids=frozenset(i for i in state.expanded_node_ids if i in known),
        drill_path=drill_path,
        selected_node_id=state.selected_node_id if state.selected_node_id in known else None,
        hovered_node_id=state.hovered_node_id if state.hovered_node_id in known else None,
    )


# ============================================================================
# DERIVED READS
# ============================================================================

def breadcrumbs(state: ViewState, flat_nodes: Sequence[FlatNode]) -> List[FlatNode]:
    """Root-first chain from the topic root to the selected node, inclusive."""
    if state.selected_node_id is None:
        return []
    index = index_by_id(flat_nodes)
    selected = index.get(state.selected_node_id)
    if selected is None:
        return []
    chain = [index[i] for i in reversed(ancestor_ids(selected.id, flat_nodes)) if i in index]
    return chain + [selected]


def highlighted_path(state: ViewState, flat_nodes: Sequence[FlatNode]) -> Set[str]:
    if state.selected_node_id is None:
        return set()
    return {state.selected_node_id, *ancestor_ids(state.selected_node_id, flat_nodes)}


def highlighted_edges(edges: Sequence[Edge], path: Set[str]) -> List[Edge]:
    return [e for e in edges if e.source_id in path and e.target_id in path]
