# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Immutable mindmap tree and pure structural operations.

"""
Tree model for mindmap topics.

A topic is a rooted tree of frozen TreeNode objects. Edits never mutate a
node; update/insert/remove rebuild only the path from the root to the edited
node and share every untouched subtree with the previous tree.

Usage:
    from mindweaver.mindmap.tree import TreeNode, flatten, update

    root = TreeNode.from_dict(document['vitamins'])
    flat = flatten(root)
    root = update(root, 'vit-c', {'title': 'Vitamin C'})
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

logger = logging.getLogger(__name__)

# Fields a partial patch may overwrite
PATCHABLE_FIELDS = ('title', 'summary', 'metadata')


class TopicDocumentError(ValueError):
    """Raised when a topic document does not have the expected node shape."""


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass(frozen=True)
class TreeNode:
    """A node of a topic tree. Children are kept in display order."""
    id: str
    title: str
    summary: Optional[str] = None
    metadata: Optional[Mapping[str, str]] = None
    children: Tuple['TreeNode', ...] = ()

    @property
    def has_children(self) -> bool:
        return len(self.children) > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the document shape. Absent optional keys stay absent."""
        d: Dict[str, Any] = {"id": self.id, "title": self.title}
        if self.summary is not None:
            d["summary"] = self.summary
        if self.metadata is not None:
            d["metadata"] = dict(self.metadata)
        if self.children:
            d["children"] = [child.to_dict() for child in self.children]
        return d

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> 'TreeNode':
        """Create from a document node, recursively."""
        if not isinstance(d, Mapping):
            raise TopicDocumentError(f"node must be an object, got {type(d).__name__}")

        node_id = d.get("id")
        title = d.get("title")
        if not isinstance(node_id, str) or not node_id:
            raise TopicDocumentError(f"node is missing a string 'id': {d!r:.80}")
        if not isinstance(title, str):
            raise TopicDocumentError(f"node '{node_id}' is missing a string 'title'")

        summary = d.get("summary")
        if summary is not None and not isinstance(summary, str):
            raise TopicDocumentError(f"node '{node_id}' has a non-string 'summary'")

        metadata = d.get("metadata")
        if metadata is not None:
            if not isinstance(metadata, Mapping):
                raise TopicDocumentError(f"node '{node_id}' has a non-object 'metadata'")
            metadata = {str(k): str(v) for k, v in metadata.items()}

        children = d.get("children") or []
        if not isinstance(children, list):
            raise TopicDocumentError(f"node '{node_id}' has a non-list 'children'")

        return cls(
            id=node_id,
            title=title,
            summary=summary,
            metadata=metadata,
            children=tuple(cls.from_dict(child) for child in children),
        )


@dataclass(frozen=True)
class FlatNode:
    """A TreeNode annotated with its position in the tree."""
    id: str
    title: str
    summary: Optional[str] = None
    metadata: Optional[Mapping[str, str]] = None
    children: Tuple[TreeNode, ...] = field(default=(), repr=False)
    depth: int = 0
    parent_id: Optional[str] = None
    has_children: bool = False


# ============================================================================
# TRAVERSAL
# ============================================================================

def iter_preorder(root: TreeNode) -> Iterator[Tuple[TreeNode, int, Optional[str]]]:
    """Yield (node, depth, parent_id) in depth-first pre-order."""
    stack: List[Tuple[TreeNode, int, Optional[str]]] = [(root, 0, None)]
    while stack:
        node, depth, parent_id = stack.pop()
        yield node, depth, parent_id
        for child in reversed(node.children):
            stack.append((child, depth + 1, node.id))


def flatten(root: Optional[TreeNode]) -> List[FlatNode]:
    """
    Flatten a tree into pre-order FlatNodes.

    A parent always precedes its children and siblings keep their order,
    so the result doubles as a deterministic lookup table.
    """
    if root is None:
        return []
    return [
        FlatNode(
            id=node.id,
            title=node.title,
            summary=node.summary,
            metadata=node.metadata,
            children=node.children,
            depth=depth,
            parent_id=parent_id,
            has_children=node.has_children,
        )
        for node, depth, parent_id in iter_preorder(root)
    ]


def index_by_id(flat_nodes: Sequence[FlatNode]) -> Dict[str, FlatNode]:
    """Map ids to FlatNodes; the first pre-order occurrence wins."""
    index: Dict[str, FlatNode] = {}
    for node in flat_nodes:
        index.setdefault(node.id, node)
    return index


def children_of(node_id: str, flat_nodes: Sequence[FlatNode]) -> List[FlatNode]:
    """Direct children of node_id, in display order."""
    return [n for n in flat_nodes if n.parent_id == node_id]


def ancestor_ids(node_id: Optional[str], flat_nodes: Sequence[FlatNode]) -> List[str]:
    """
    Ancestor ids of node_id, nearest first, ending with the root.

    Returns an empty list for the root itself or an unknown id.
    """
    index = index_by_id(flat_nodes)
    ancestors: List[str] = []
    current = index.get(node_id) if node_id is not None else None
    while current is not None and current.parent_id is not None:
        if current.parent_id in ancestors:
            break
        ancestors.append(current.parent_id)
        current = index.get(current.parent_id)
    return ancestors


def descendant_ids(node_id: str, flat_nodes: Sequence[FlatNode]) -> Set[str]:
    """All ids below node_id at any depth, excluding node_id itself."""
    by_parent: Dict[str, List[str]] = {}
    for node in flat_nodes:
        if node.parent_id is not None:
            by_parent.setdefault(node.parent_id, []).append(node.id)

    descendants: Set[str] = set()
    pending = list(by_parent.get(node_id, []))
    while pending:
        nid = pending.pop()
        if nid in descendants or nid == node_id:
            continue
        descendants.add(nid)
        pending.extend(by_parent.get(nid, []))
    return descendants


def find_node(tree: Optional[TreeNode], node_id: str) -> Optional[TreeNode]:
    """First node with node_id in pre-order, or None."""
    if tree is None:
        return None
    for node, _, _ in iter_preorder(tree):
        if node.id == node_id:
            return node
    return None


def node_count(tree: Optional[TreeNode]) -> int:
    if tree is None:
        return 0
    return sum(1 for _ in iter_preorder(tree))


# ============================================================================
# COPY-ON-WRITE EDITS
# ============================================================================

def _rebuild(node: TreeNode, visit) -> Tuple[TreeNode, bool]:
    """
    Walk children in pre-order until visit() reports a match.

    visit(node) returns the replacement for node, or None when node does
    not match. Siblings after the match and every untouched subtree are
    reused as-is.
    """
    for i, child in enumerate(node.children):
        replaced = visit(child)
        if replaced is None:
            replaced, found = _rebuild(child, visit)
            if not found:
                continue
        children = node.children[:i] + (replaced,) + node.children[i + 1:]
        return replace(node, children=children), True
    return node, False


def update(tree: TreeNode, node_id: str, changes: Mapping[str, Any]) -> TreeNode:
    """
    Return a tree where the first node matching node_id has changes applied.

    Only title, summary and metadata can be patched. An unknown id leaves
    the tree untouched and the same object is returned.
    """
    patch = {k: v for k, v in changes.items() if k in PATCHABLE_FIELDS}
    ignored = set(changes) - set(patch)
    if ignored:
        logger.debug(f"Ignoring non-patchable fields {sorted(ignored)} for '{node_id}'")
    if patch.get("metadata") is not None:
        patch["metadata"] = dict(patch["metadata"])

    if tree.id == node_id:
        return replace(tree, **patch)

    new_tree, found = _rebuild(
        tree, lambda n: replace(n, **patch) if n.id == node_id else None
    )
    if not found:
        logger.debug(f"update: node '{node_id}' not found")
    return new_tree


def insert(tree: TreeNode, parent_id: str, new_node: TreeNode) -> TreeNode:
    """
    Append new_node as the last child of the first node matching parent_id.

    Id uniqueness is not checked here. An unknown parent returns the tree
    unchanged.
    """
    def attach(n: TreeNode) -> Optional[TreeNode]:
        if n.id != parent_id:
            return None
        return replace(n, children=n.children + (new_node,))

    attached = attach(tree)
    if attached is not None:
        return attached

    new_tree, found = _rebuild(tree, attach)
    if not found:
        logger.debug(f"insert: parent '{parent_id}' not found")
    return new_tree


def remove(tree: TreeNode, node_id: str) -> TreeNode:
    """
    Remove the first node below the root matching node_id, with its subtree.

    The root itself is never matched; refusing root deletion is up to the
    caller.
    """
    def detach(n: TreeNode) -> Optional[TreeNode]:
        for i, child in enumerate(n.children):
            if child.id == node_id:
                return replace(n, children=n.children[:i] + n.children[i + 1:])
            pruned = detach(child)
            if pruned is not None:
                return replace(n, children=n.children[:i] + (pruned,) + n.children[i + 1:])
        return None

    new_tree = detach(tree)
    if new_tree is None:
        logger.debug(f"remove: node '{node_id}' not found")
        return tree
    return new_tree
