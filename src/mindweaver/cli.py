#!/usr/bin/env python3
# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
"""
Command line front end for mindweaver.

Usage:
    # List topics in a document
    mindweaver topics --data test_data/mindmap-data.json

    # Lay out a topic with everything expanded, as JSON Lines
    mindweaver layout --data test_data/mindmap-data.json \
        --topic vitamins --expand-all > vitamins.jsonl

    # Re-run from previous positions, drilled into a subtree
    mindweaver layout --data test_data/mindmap-data.json \
        --topic vitamins --positions vitamins.jsonl --drill vit-b --expand vit-b

    # Re-export the whole registry
    mindweaver export --data test_data/mindmap-data.json --output out/mindmap.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config.settings import MindweaverSettings, load_settings
from .mindmap.controller import MindmapController
from .mindmap.io import layout_to_dict, read_positions_dict, write_export, write_layout
from .mindmap.tree import node_count

logger = logging.getLogger(__name__)


def setup_logging(level=logging.INFO, format_str=None):
    """Configure root logging for command line use."""
    format_str = format_str or '%(levelname)s: %(message)s'
    logging.basicConfig(level=level, format=format_str, stream=sys.stderr)


def _open_controller(args, settings: MindweaverSettings) -> Optional[MindmapController]:
    data = args.data or settings.data_path
    if data is None:
        logger.error("No data document given (use --data or set data_path in config)")
        return None
    controller = MindmapController.from_document(
        Path(data), settings, default_topic=getattr(args, 'topic', None), auto_layout=False
    )
    if controller.load_failed:
        return None
    return controller


def cmd_topics(args, settings: MindweaverSettings) -> int:
    controller = _open_controller(args, settings)
    if controller is None:
        return 1
    for key, root in controller.topics.items():
        print(f"{key}\t{controller.topic_label(key)}\t{node_count(root)} nodes")
    return 0


def cmd_layout(args, settings: MindweaverSettings) -> int:
    if args.width:
        settings.viewport.width = args.width
    if args.height:
        settings.viewport.height = args.height

    controller = _open_controller(args, settings)
    if controller is None:
        return 1
    if args.topic and controller.current_topic_key != args.topic:
        logger.error(f"Unknown topic '{args.topic}'")
        return 1

    if args.positions:
        try:
            with open(args.positions, encoding='utf-8') as f:
                controller.cache.seed(read_positions_dict(f))
        except OSError as e:
            logger.error(f"Cannot read positions from {args.positions}: {e}")
            return 1

    if args.expand_all:
        controller.expand_all()
    for node_id in args.expand or []:
        if node_id not in controller.view.expanded_node_ids:
            controller.toggle_expand(node_id)
    for node_id in args.drill or []:
        controller.select_node(node_id)
        if not controller.can_drill_down():
            logger.error(f"Cannot drill into '{node_id}': no such node with children")
            return 1
        controller.drill_down()

    controller.request_layout()
    nodes = controller.run_layout()
    edges = controller.get_visible_edges()

    out = open(args.output, 'w', encoding='utf-8') if args.output else sys.stdout
    try:
        if args.format == 'json':
            json.dump(layout_to_dict(nodes, edges), out, indent=2, ensure_ascii=False)
            out.write("\n")
        else:
            write_layout(nodes, edges, out)
    finally:
        if out is not sys.stdout:
            out.close()

    logger.info(f"Laid out {len(nodes)} nodes and {len(edges)} edges")
    return 0


def cmd_export(args, settings: MindweaverSettings) -> int:
    controller = _open_controller(args, settings)
    if controller is None:
        return 1
    write_export(controller.topics, args.output)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='mindweaver',
        description='Browse and lay out hierarchical mindmap documents.'
    )
    parser.add_argument('--config', type=Path, default=None,
                        help='Extra YAML settings file (overrides project/user config)')
    parser.add_argument('--log-level', type=str, default=None,
                        help='Logging level (default: from config, INFO)')

    sub = parser.add_subparsers(dest='command', required=True)

    topics = sub.add_parser('topics', help='List topics in a document')
    topics.add_argument('--data', type=Path, default=None, help='Topic document (JSON)')
    topics.set_defaults(func=cmd_topics)

    layout = sub.add_parser('layout', help='Compute a converged layout for a topic')
    layout.add_argument('--data', type=Path, default=None, help='Topic document (JSON)')
    layout.add_argument('--topic', type=str, default=None, help='Topic key (default: config)')
    layout.add_argument('--expand-all', action='store_true', help='Expand every node')
    layout.add_argument('--expand', nargs='+', metavar='ID', help='Node ids to expand')
    layout.add_argument('--drill', nargs='+', metavar='ID',
                        help='Node ids to drill into, outermost first')
    layout.add_argument('--width', type=float, default=None, help='Viewport width')
    layout.add_argument('--height', type=float, default=None, help='Viewport height')
    layout.add_argument('--positions', type=Path, default=None,
                        help='JSON Lines positions from an earlier run (warm start)')
    layout.add_argument('--format', choices=['jsonl', 'json'], default='jsonl',
                        help='Output format (default: jsonl)')
    layout.add_argument('--output', type=Path, default=None, help='Output file (default: stdout)')
    layout.set_defaults(func=cmd_layout)

    export = sub.add_parser('export', help='Export every topic as pretty-printed JSON')
    export.add_argument('--data', type=Path, default=None, help='Topic document (JSON)')
    export.add_argument('--output', type=Path, required=True, help='Output file')
    export.set_defaults(func=cmd_export)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings(config_path=args.config)
    level = (args.log_level or settings.log_level).upper()
    setup_logging(getattr(logging, level, logging.INFO))

    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
