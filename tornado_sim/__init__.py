"""Tornado outbreak simulator over a procedural map of cities and roads."""

__version__ = "0.1.0"
