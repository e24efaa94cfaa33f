# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Application state and the collaborator-facing action surface.

"""
Mindmap controller.

MindmapController owns the topic registry, the current topic's view
state, the position cache and the layout scheduler. Presentation code
calls its actions and reads its accessors; nothing else mutates the
state.

Every action is synchronous. Derived data is recomputed through one of
three triggers, each with its own scope:
- structural change (tree edit, topic switch): re-flatten, re-derive
  visibility, restart layout
- visibility change (expand/collapse, drill): re-derive visibility,
  restart layout
- selection change: recompute the highlighted path only
Viewport resizes restart the layout with a forced reheat.

Usage:
    controller = MindmapController.from_document(Path('mindmap-data.json'))
    controller.toggle_expand('vit-b')
    controller.run_layout()
    for node in controller.get_layout_nodes():
        draw(node)
"""

import functools
import logging
import time
from dataclasses import replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

from ..config.settings import MindweaverSettings, ViewportConfig
from . import view as views
from .io import LoadResult, export_topics, load_topics
from .layout.engine import LayoutEngine, base_depth_for
from .layout.force_directed import PositionCache
from .layout.labels import WrappedLabel, wrap_label
from .layout.styling import LayoutNode
from .optimize.centering import IDENTITY, ViewTransform, fit_view, transition, zoom_by
from .scheduler import LayoutRun, LayoutScheduler
from .tree import FlatNode, TreeNode, find_node, flatten, index_by_id, insert, remove, update
from .view import Edge, ViewState

logger = logging.getLogger(__name__)

ChangeListener = Callable[[str], None]

# Change kinds passed to subscribers
STRUCTURE = 'structure'
VISIBILITY = 'visibility'
SELECTION = 'selection'
HOVER = 'hover'
VIEWPORT = 'viewport'


def deferrable(method):
    """Queue the action until the current layout tick has been dispatched."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if self.scheduler.in_tick:
            logger.debug(f"Deferring {method.__name__} until the tick completes")
            self.scheduler.defer(lambda: method(self, *args, **kwargs))
            return None
        return method(self, *args, **kwargs)
    return wrapper


class MindmapController:

    def __init__(
        self,
        topics: Optional[Mapping[str, TreeNode]] = None,
        settings: Optional[MindweaverSettings] = None,
        default_topic: Optional[str] = None,
        load_error: Optional[str] = None,
        auto_layout: bool = True,
    ):
        self.settings = settings or MindweaverSettings()
        self.topics: Dict[str, TreeNode] = dict(topics or {})
        self.load_error = load_error
        self.auto_layout = auto_layout

        self.cache = PositionCache()
        self.engine = LayoutEngine(self.settings.layout, self.cache)
        self.scheduler = LayoutScheduler(self.engine)
        self.width = self.settings.viewport.width
        self.height = self.settings.viewport.height
        self.transform: ViewTransform = IDENTITY

        self._listeners: List[ChangeListener] = []
        self._flat_nodes: List[FlatNode] = []
        self._visible: List[FlatNode] = []
        self._edges: List[Edge] = []
        self._highlight: Set[str] = set()
        self.current_topic_key: Optional[str] = None
        self.view = ViewState()

        key = default_topic or self.settings.default_topic
        if key not in self.topics:
            key = next(iter(self.topics), None)
        if key is not None:
            self._enter_topic(key)

    @classmethod
    def from_document(cls, source, settings: Optional[MindweaverSettings] = None,
                      **kwargs) -> 'MindmapController':
        """Load a topic document; a failed load gives an empty controller."""
        result: LoadResult = load_topics(source)
        return cls(result.topics, settings, load_error=result.error, **kwargs)

    # ------------------------------------------------------------------
    # state accessors
    # ------------------------------------------------------------------

    @property
    def load_failed(self) -> bool:
        return self.load_error is not None

    @property
    def tree(self) -> Optional[TreeNode]:
        if self.current_topic_key is None:
            return None
        return self.topics.get(self.current_topic_key)

    @property
    def flat_nodes(self) -> List[FlatNode]:
        return list(self._flat_nodes)

    @property
    def root_id(self) -> Optional[str]:
        tree = self.tree
        return tree.id if tree is not None else None

    @property
    def virtual_root_id(self) -> Optional[str]:
        if self.root_id is None:
            return None
        return views.virtual_root_id(self.view, self.root_id)

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def _notify(self, kind: str) -> None:
        for listener in list(self._listeners):
            listener(kind)

    def topic_label(self, key: str) -> str:
        return self.settings.topic_labels.get(key, key)

    def topic_keys(self) -> List[str]:
        return list(self.topics)

    # ------------------------------------------------------------------
    # recompute pipeline
    # ------------------------------------------------------------------

    def _structure_changed(self) -> None:
        self._flat_nodes = flatten(self.tree)
        self.view = views.prune(self.view, self._flat_nodes)
        self._visibility_changed(notify=False)
        self._notify(STRUCTURE)

    def _visibility_changed(self, notify: bool = True, reheat: Optional[float] = None) -> None:
        if self.root_id is None:
            self._visible, self._edges = [], []
        else:
            self._visible = views.visible_nodes(self._flat_nodes, self.view, self.root_id)
            self._edges = views.visible_edges(self._visible)
        self._selection_changed(notify=False)
        if self.auto_layout:
            self.request_layout(reheat)
        if notify:
            self._notify(VISIBILITY)

    def _selection_changed(self, notify: bool = True) -> None:
        self._highlight = views.highlighted_path(self.view, self._flat_nodes)
        if notify:
            self._notify(SELECTION)

    def request_layout(self, reheat: Optional[float] = None) -> LayoutRun:
        """Start a new layout run for the visible nodes, cancelling any other."""
        # snapshot the running layout first so the new run starts from it
        self.scheduler.cancel()
        base_depth = base_depth_for(self._visible, self.virtual_root_id or '')
        sim = self.engine.build(self._visible, self._edges, base_depth,
                                self.width, self.height, reheat)
        return self.scheduler.start(sim)

    def run_layout(self) -> List[LayoutNode]:
        """Drive the current layout run to completion."""
        if self.scheduler.current is None:
            self.request_layout()
        self.scheduler.run_until_idle()
        return self.get_layout_nodes()

    # ------------------------------------------------------------------
    # actions
    # ------------------------------------------------------------------

    def _enter_topic(self, key: str) -> None:
        self.current_topic_key = key
        self.view = ViewState.for_topic(self.topics[key].id)
        self._structure_changed()

    @deferrable
    def switch_topic(self, key: str) -> bool:
        if key not in self.topics:
            logger.warning(f"Unknown topic '{key}'")
            return False
        self._enter_topic(key)
        return True

    @deferrable
    def select_node(self, node_id: Optional[str]) -> None:
        self.view = views.select(self.view, node_id)
        self._selection_changed()

    @deferrable
    def hover_node(self, node_id: Optional[str]) -> None:
        self.view = views.hover(self.view, node_id)
        self._notify(HOVER)

    @deferrable
    def toggle_expand(self, node_id: str) -> None:
        self.view = views.toggle_expand(self.view, node_id, self._flat_nodes)
        self._visibility_changed()

    @deferrable
    def click_node(self, node_id: str) -> None:
        """Select a node and toggle it open or closed if it has children."""
        self.select_node(node_id)
        node = index_by_id(self._flat_nodes).get(node_id)
        if node is not None and node.has_children:
            self.toggle_expand(node_id)

    @deferrable
    def expand_all(self) -> None:
        self.view = views.expand_all(self.view, self._flat_nodes)
        self._visibility_changed()

    @deferrable
    def collapse_all(self) -> None:
        if self.root_id is None:
            return
        self.view = views.collapse_all(self.view, self.root_id)
        self._visibility_changed()

    @deferrable
    def drill_down(self) -> None:
        drilled = views.drill_down(self.view, self._flat_nodes)
        if drilled is not self.view:
            self.view = drilled
            self._visibility_changed()

    @deferrable
    def drill_up(self) -> None:
        if self.view.drill_path:
            self.view = views.drill_up(self.view)
            self._visibility_changed()

    @deferrable
    def update_node(self, node_id: str, changes: Mapping[str, Any]) -> None:
        tree = self.tree
        if tree is None:
            return
        updated = update(tree, node_id, changes)
        if updated is tree:
            return
        self.topics[self.current_topic_key] = updated
        self._structure_changed()

    @deferrable
    def add_node(self, parent_id: str, new_node: TreeNode) -> bool:
        """Append new_node under parent_id, expand the parent and select it."""
        tree = self.tree
        if tree is None:
            return False
        if find_node(tree, parent_id) is None:
            logger.debug(f"add_node: parent '{parent_id}' not found")
            return False
        if find_node(tree, new_node.id) is not None:
            logger.warning(f"Refusing to add node with duplicate id '{new_node.id}'")
            return False

        self.topics[self.current_topic_key] = insert(tree, parent_id, new_node)
        self.view = views.select(self.view, new_node.id)
        if parent_id not in self.view.expanded_node_ids:
            self.view = views.toggle_expand(self.view, parent_id, self._flat_nodes)
        self._structure_changed()
        return True

    @deferrable
    def delete_node(self, node_id: str) -> bool:
        """Remove a node and its subtree, then select its parent."""
        tree = self.tree
        node = index_by_id(self._flat_nodes).get(node_id)
        if tree is None or node is None:
            return False
        if node.parent_id is None:
            logger.warning("Refusing to delete the topic root")
            return False

        self.topics[self.current_topic_key] = remove(tree, node_id)
        self.view = views.select(self.view, node.parent_id)
        self._structure_changed()
        return True

    def export_data(self) -> str:
        return export_topics(self.topics)

    @deferrable
    def resize(self, width: float, height: float) -> None:
        self.width, self.height = width, height
        if self.auto_layout:
            self.request_layout(reheat=self.settings.layout.reheat_floor)
        self._notify(VIEWPORT)

    # ------------------------------------------------------------------
    # form boundary
    # ------------------------------------------------------------------

    def new_node_id(self) -> str:
        """A `node-<ms>` id not yet used in the current topic."""
        base = f"node-{int(time.time() * 1000)}"
        candidate, n = base, 1
        while find_node(self.tree, candidate) is not None:
            candidate = f"{base}-{n}"
            n += 1
        return candidate

    def submit_new_node(self, title: str, summary: str = '') -> Optional[TreeNode]:
        """Add a child of the selected node from form input; blank titles are refused."""
        title = (title or '').strip()
        parent_id = self.view.selected_node_id
        if not title or parent_id is None:
            return None
        node = TreeNode(id=self.new_node_id(), title=title,
                        summary=(summary or '').strip() or None)
        if self.scheduler.in_tick:
            # queued by add_node until the tick completes
            self.add_node(parent_id, node)
            return node
        return node if self.add_node(parent_id, node) else None

    def submit_node_edit(self, node_id: str, title: str, summary: str = '') -> bool:
        title = (title or '').strip()
        if not title:
            return False
        self.update_node(node_id, {'title': title, 'summary': (summary or '').strip() or None})
        return True

    # ------------------------------------------------------------------
    # viewport
    # ------------------------------------------------------------------

    @property
    def viewport(self) -> ViewportConfig:
        """Configured viewport options at this controller's current size."""
        return replace(self.settings.viewport, width=self.width, height=self.height)

    def fit_view(self):
        """Target transform fitting the rendered nodes, plus animation frames."""
        target, frames = fit_view(self.get_layout_nodes(), self.transform, self.viewport)
        if target is not None:
            self.transform = target
        return frames

    def zoom(self, factor: float):
        vp = self.viewport
        start = self.transform
        self.transform = zoom_by(start, factor, vp)
        return transition(start, self.transform, vp.zoom_duration_ms, vp.frame_ms)

    def zoom_in(self):
        return self.zoom(self.settings.viewport.zoom_in_factor)

    def zoom_out(self):
        return self.zoom(self.settings.viewport.zoom_out_factor)

    # ------------------------------------------------------------------
    # read accessors
    # ------------------------------------------------------------------

    def get_visible_nodes(self) -> List[FlatNode]:
        return list(self._visible)

    def get_visible_edges(self) -> List[Edge]:
        return list(self._edges)

    def get_breadcrumbs(self) -> List[FlatNode]:
        return views.breadcrumbs(self.view, self._flat_nodes)

    def get_highlighted_edges(self) -> List[Edge]:
        return views.highlighted_edges(self._edges, self._highlight)

    def get_selected_node(self) -> Optional[FlatNode]:
        if self.view.selected_node_id is None:
            return None
        return index_by_id(self._flat_nodes).get(self.view.selected_node_id)

    def get_children(self, node_id: str) -> List[FlatNode]:
        return [n for n in self._flat_nodes if n.parent_id == node_id]

    def get_layout_nodes(self) -> List[LayoutNode]:
        return self.scheduler.snapshot()

    def get_labels(self) -> Dict[str, WrappedLabel]:
        cfg = self.settings.layout
        return {
            n.id: wrap_label(n.title, n.r, n.font_size, width_factor=cfg.label_width_factor)
            for n in self.get_layout_nodes()
        }

    def get_tooltip(self, node_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Tooltip data for a node, by default the hovered one."""
        node_id = node_id if node_id is not None else self.view.hovered_node_id
        node = index_by_id(self._flat_nodes).get(node_id) if node_id is not None else None
        if node is None:
            return None
        return {
            'title': node.title,
            'summary': node.summary,
            'hint': 'Click to toggle' if node.has_children else 'Leaf node',
        }

    def can_drill_down(self) -> bool:
        selected = self.get_selected_node()
        return selected is not None and selected.has_children

    def can_drill_up(self) -> bool:
        return len(self.view.drill_path) > 0
