"""Mindweaver configuration modules."""

from .settings import LayoutConfig, MindweaverSettings, ViewportConfig, load_settings

__all__ = ['LayoutConfig', 'ViewportConfig', 'MindweaverSettings', 'load_settings']
