"""Mindweaver - browse, edit and lay out hierarchical mindmaps."""

__version__ = '0.1.0'
