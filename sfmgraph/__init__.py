"""Transforms, two-view geometry, view graphs and filters for global structure-from-motion."""

__version__ = "0.1.0"