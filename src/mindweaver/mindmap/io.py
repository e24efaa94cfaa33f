# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Topic document loading/export and JSON Lines layout streams.

"""
I/O for mindmap topic documents and laid-out graphs.

A topic document is a JSON object mapping topic keys to root nodes shaped
{id, title, summary?, metadata?, children?}. Loading never raises: a
missing or malformed document yields a LoadResult with status "failed".

Layouts are streamed as JSON Lines, one object per line, so positions can
be piped to a renderer and fed back in as a warm-start cache.

Usage:
    from mindweaver.mindmap.io import load_topics, write_layout

    result = load_topics(Path('mindmap-data.json'))
    if result.ok:
        write_layout(layout_nodes, edges, sys.stdout)
"""

import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, TextIO, Tuple, Union

from .layout.styling import LayoutNode
from .tree import TopicDocumentError, TreeNode
from .view import Edge

logger = logging.getLogger(__name__)

STATUS_LOADED = 'loaded'
STATUS_FAILED = 'failed'


# ============================================================================
# TOPIC DOCUMENTS
# ============================================================================

@dataclass
class LoadResult:
    """Outcome of loading a topic document."""
    status: str
    topics: Dict[str, TreeNode] = field(default_factory=dict)
    error: Optional[str] = None
    source: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_LOADED


def parse_topic_document(data: Any) -> Dict[str, TreeNode]:
    """Convert a decoded document into a topic registry. Raises TopicDocumentError."""
    if not isinstance(data, Mapping):
        raise TopicDocumentError(f"document must be an object of topics, got {type(data).__name__}")
    topics: Dict[str, TreeNode] = {}
    for key, root in data.items():
        try:
            topics[str(key)] = TreeNode.from_dict(root)
        except TopicDocumentError as e:
            raise TopicDocumentError(f"topic '{key}': {e}") from e
    return topics


def load_topics(source: Union[str, Path, TextIO]) -> LoadResult:
    """
    Load a topic document from a path or open stream.

    Unreachable, undecodable or malformed documents are reported through
    the result rather than raised.
    """
    name = str(source) if isinstance(source, (str, Path)) else getattr(source, 'name', '<stream>')
    try:
        if isinstance(source, (str, Path)):
            with open(source, encoding='utf-8') as f:
                data = json.load(f)
        else:
            data = json.load(source)
        topics = parse_topic_document(data)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, TopicDocumentError) as e:
        logger.error(f"Failed to load mindmap data from {name}: {e}")
        return LoadResult(status=STATUS_FAILED, error=str(e), source=name)

    logger.info(f"Loaded {len(topics)} topics from {name}")
    return LoadResult(status=STATUS_LOADED, topics=topics, source=name)


def topics_to_dict(topics: Mapping[str, TreeNode]) -> Dict[str, Any]:
    return {key: root.to_dict() for key, root in topics.items()}


def export_topics(topics: Mapping[str, TreeNode]) -> str:
    """Serialize every topic, in full, as pretty-printed JSON."""
    return json.dumps(topics_to_dict(topics), indent=2, ensure_ascii=False)


def write_export(topics: Mapping[str, TreeNode], path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(export_topics(topics) + "\n", encoding='utf-8')
    logger.info(f"Exported {len(topics)} topics to {path}")
    return path


# ============================================================================
# JSON LINES LAYOUT STREAMS
# ============================================================================

def edge_to_dict(edge: Edge) -> Dict[str, Any]:
    return {"type": "edge", "from": edge.source_id, "to": edge.target_id}


def read_jsonl(stream: TextIO = sys.stdin) -> Iterator[Dict[str, Any]]:
    """Read raw JSON objects from JSON Lines stream, skipping bad lines."""
    for line in stream:
        line = line.strip()
        if not line:
            continue
        try:
            obj = json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f"Skipping malformed line: {line[:80]}")
            continue
        if isinstance(obj, dict):
            yield obj


def read_positions_dict(stream: TextIO = sys.stdin) -> Dict[str, Tuple[float, float]]:
    """Read position objects as {id: (x, y)}."""
    positions = {}
    for obj in read_jsonl(stream):
        if obj.get("type") != "position":
            continue
        try:
            positions[str(obj["id"])] = (float(obj["x"]), float(obj["y"]))
        except (KeyError, TypeError, ValueError):
            logger.debug(f"Skipping incomplete position: {obj}")
    return positions


def write_jsonl(obj: Dict[str, Any], stream: TextIO = sys.stdout) -> None:
    """Write a JSON object as a single line."""
    print(json.dumps(obj, ensure_ascii=False), file=stream)


def write_layout(
    nodes: Iterable[LayoutNode],
    edges: Iterable[Edge],
    stream: TextIO = sys.stdout,
) -> None:
    """Write positions followed by edges as JSON Lines."""
    for node in nodes:
        write_jsonl(node.to_dict(), stream)
    for edge in edges:
        write_jsonl(edge_to_dict(edge), stream)


def layout_to_dict(nodes: Iterable[LayoutNode], edges: Iterable[Edge]) -> Dict[str, Any]:
    """Single-document form of a layout, for --format json."""
    return {
        "type": "graph",
        "nodes": [node.to_dict() for node in nodes],
        "edges": [edge_to_dict(edge) for edge in edges],
    }
