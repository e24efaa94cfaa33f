#!/usr/bin/env python3
# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
"""
Settings - layered YAML configuration for layout, viewport and data.

Usage:
    from mindweaver.config.settings import load_settings

    settings = load_settings()
    print(settings.layout.alpha_decay)

    # Explicit file on top of the project/user layers
    settings = load_settings(config_path=Path('my_layout.yaml'))

Files are merged in order, later files overriding earlier ones:
    config/mindweaver_defaults.yaml   (project defaults)
    config/mindweaver.yaml            (user, gitignored)
    .local/mindweaver.yaml
    .mindweaver.yaml
    $MINDWEAVER_CONFIG or config_path
"""

import os
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

ENV_CONFIG = 'MINDWEAVER_CONFIG'

PROJECT_DEFAULTS = [
    'config/mindweaver_defaults.yaml',
]

USER_CONFIG_ORDER = [
    'config/mindweaver.yaml',
    '.local/mindweaver.yaml',
    '.mindweaver.yaml',
]


@dataclass
class LayoutConfig:
    """Force simulation and node styling constants."""
    # link force
    link_gap: float = 60.0
    link_strength: float = 0.5
    # many-body repulsion
    charge_strength: float = -400.0
    charge_strength_crowded: float = -600.0
    crowd_threshold: int = 15
    # collision
    collide_padding: float = 25.0
    collide_strength: float = 0.8
    # concentric rings by relative depth
    ring_step: float = 150.0
    ring_step_crowded: float = 180.0
    radial_strength: float = 0.4
    # integration and convergence
    alpha_decay: float = 0.03
    alpha_min: float = 0.001
    velocity_decay: float = 0.4
    energy_threshold: float = 1e-3
    max_iterations: int = 300
    reheat_floor: float = 0.3
    seed: int = 0
    # spiral seeding for uncached nodes
    spiral_angle_step: float = 0.5
    spiral_base_distance: float = 50.0
    spiral_distance_step: float = 5.0
    # styling
    radii: Tuple[float, ...] = (60.0, 45.0, 35.0)
    palette: Tuple[str, ...] = (
        '#6eb5ff', '#6abe6a', '#f5a623', '#a78bfa', '#f472b6', '#38bdf8'
    )
    root_font_size: float = 14.0
    font_size: float = 11.0
    label_width_factor: float = 1.6


@dataclass
class ViewportConfig:
    """Viewport size, fit-view and zoom behaviour."""
    width: float = 800.0
    height: float = 600.0
    padding: float = 100.0
    node_padding: float = 20.0
    max_scale: float = 1.2
    scale_extent: Tuple[float, float] = (0.1, 4.0)
    zoom_in_factor: float = 1.2
    zoom_out_factor: float = 0.8
    zoom_duration_ms: float = 300.0
    fit_duration_ms: float = 750.0
    frame_ms: float = 16.0


@dataclass
class MindweaverSettings:
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    viewport: ViewportConfig = field(default_factory=ViewportConfig)
    data_path: Optional[Path] = None
    default_topic: Optional[str] = None
    topic_labels: Dict[str, str] = field(default_factory=dict)
    log_level: str = 'INFO'
    sources: List[Path] = field(default_factory=list)


def find_project_root() -> Path:
    """Find project root by looking for markers."""
    current = Path.cwd()
    for parent in [current] + list(current.parents):
        if (parent / 'config' / 'mindweaver_defaults.yaml').exists():
            return parent
        if (parent / '.git').exists():
            return parent
    return current


def _load_yaml_file(path: Path) -> Optional[Dict[str, Any]]:
    """Load a YAML mapping if the file exists."""
    if not path.exists():
        return None
    try:
        with open(path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load {path}: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"Ignoring {path}: top level must be a mapping")
        return None
    return data


def _apply_section(target: Any, data: Dict[str, Any], section: str) -> None:
    """Copy known keys of a YAML section onto a config dataclass."""
    known = {f.name: f for f in fields(target)}
    for key, value in data.items():
        if key not in known:
            logger.warning(f"Unknown {section} setting '{key}' ignored")
            continue
        current = getattr(target, key)
        if isinstance(current, tuple) and isinstance(value, list):
            value = tuple(value)
        setattr(target, key, value)


def _parse_config(settings: MindweaverSettings, data: Dict[str, Any], source: Path) -> None:
    """Merge one configuration file into settings."""
    layout = data.get('layout') or {}
    if isinstance(layout, dict):
        _apply_section(settings.layout, layout, 'layout')

    viewport = data.get('viewport') or {}
    if isinstance(viewport, dict):
        _apply_section(settings.viewport, viewport, 'viewport')

    data_path = data.get('data_path')
    if data_path:
        path = Path(os.path.expandvars(os.path.expanduser(str(data_path))))
        if not path.is_absolute():
            path = source.parent / path
        settings.data_path = path

    if data.get('default_topic'):
        settings.default_topic = str(data['default_topic'])

    labels = data.get('topic_labels') or {}
    if isinstance(labels, dict):
        settings.topic_labels.update({str(k): str(v) for k, v in labels.items()})

    if data.get('log_level'):
        settings.log_level = str(data['log_level']).upper()

    settings.sources.append(source)


def load_settings(
    project_root: Optional[Path] = None,
    config_path: Optional[Path] = None,
) -> MindweaverSettings:
    """
    Build settings from defaults, project/user YAML files and an explicit file.

    Missing files are skipped; unreadable ones are logged and skipped.
    """
    root = project_root or find_project_root()
    settings = MindweaverSettings()

    candidates = [root / p for p in PROJECT_DEFAULTS + USER_CONFIG_ORDER]
    explicit = config_path or (Path(os.environ[ENV_CONFIG]) if os.environ.get(ENV_CONFIG) else None)
    if explicit is not None:
        if not explicit.exists():
            logger.warning(f"Config file {explicit} does not exist")
        candidates.append(explicit)

    for path in candidates:
        data = _load_yaml_file(path)
        if data:
            _parse_config(settings, data, path)

    logger.debug(f"Settings loaded from {[str(p) for p in settings.sources]}")
    return settings
